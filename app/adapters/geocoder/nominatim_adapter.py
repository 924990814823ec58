"""Nominatim geocoder adapter — implements GeocoderPort."""

from __future__ import annotations

import logging
import re

import httpx

from app.application.ports.geocoder_port import GeocoderPort
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint, are_valid_coordinates

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"

_UNIT_PATTERN = re.compile(
    r"(?:\b(?:apt|apartment|suite|ste|unit)\b\.?|#)\s*[\w-]+", re.IGNORECASE
)


class NominatimAdapter(GeocoderPort):
    """Nominatim geocoding with query variants and caching."""

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._user_agent = user_agent or settings.geocoder_user_agent
        self._timeout = timeout
        self._client = client
        self._cache: dict[str, GeoPoint | None] = {}

    async def geocode(self, address: str) -> GeoPoint | None:
        """Geocode an address string to GeoPoint.

        Strategy:
        1. Check in-memory cache
        2. Try the full address, then a broader variant without unit numbers
        """
        cache_key = address.strip().lower()
        if not cache_key:
            return None

        if cache_key in self._cache:
            logger.debug("Cache hit for '%s'", address)
            return self._cache[cache_key]

        point = await self._nominatim_lookup(address)
        self._cache[cache_key] = point
        return point

    async def _nominatim_lookup(self, address: str) -> GeoPoint | None:
        try:
            if self._client is not None:
                return await self._query_variants(self._client, address)
            async with httpx.AsyncClient() as client:
                return await self._query_variants(client, address)
        except (httpx.HTTPError, ValueError, KeyError):
            logger.exception("Nominatim API error for '%s'", address)
            return None

    async def _query_variants(self, client: httpx.AsyncClient, address: str) -> GeoPoint | None:
        for query in self._build_queries(address):
            response = await client.get(
                NOMINATIM_URL,
                params={"q": query, "format": "json", "limit": 1},
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
            )
            response.raise_for_status()
            results = response.json()

            if results:
                lat = float(results[0]["lat"])
                lon = float(results[0]["lon"])
                if are_valid_coordinates(lat, lon):
                    logger.info("Nominatim resolved '%s' (q='%s') → (%f, %f)", address, query, lat, lon)
                    return GeoPoint(latitude=lat, longitude=lon)

        logger.info("Nominatim returned no results for '%s'", address)
        return None

    @staticmethod
    def _build_queries(address: str) -> list[str]:
        """Full address first, then the same address without apartment or suite parts."""
        q1 = " ".join(address.split())
        parts = (" ".join(p.split()) for p in _UNIT_PATTERN.sub("", q1).split(","))
        q2 = ", ".join(p for p in parts if p)
        queries = [q1]
        if q2 and q2.lower() != q1.lower():
            queries.append(q2)
        return queries
