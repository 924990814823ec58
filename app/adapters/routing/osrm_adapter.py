"""OSRM drive-time adapter — implements DriveTimeProvider.

Talks to the OSRM Table API with the origin as the only source. Coordinates
go over the wire as ``lon,lat``. Any destination OSRM cannot route, or the
whole request when OSRM fails, falls back to the great-circle estimate.
"""

from __future__ import annotations

import logging

import httpx

from app.adapters.routing.haversine_estimator import estimate
from app.application.ports.drive_time_port import DriveTime, DriveTimeProvider
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

SOURCE = "osrm"


class OsrmDriveTimeAdapter(DriveTimeProvider):
    def __init__(
        self,
        base_url: str | None = None,
        profile: str = "driving",
        timeout: float = 5.0,
        fallback_speed_kmh: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = (base_url or settings.osrm_base_url).rstrip("/")
        self._profile = profile
        self._timeout = timeout
        self._speed_kmh = fallback_speed_kmh or settings.fallback_speed_kmh
        self._client = client

        if not self._base_url:
            raise ValueError("OSRM base URL not set. Please set OSRM_BASE_URL.")

    @staticmethod
    def format_coordinates(points: list[GeoPoint]) -> str:
        return ";".join(f"{p.longitude},{p.latitude}" for p in points)

    async def drive_times(
        self, origin: GeoPoint, destinations: list[GeoPoint]
    ) -> list[DriveTime]:
        if not destinations:
            return []

        coords = self.format_coordinates([origin, *destinations])
        url = f"{self._base_url}/table/v1/{self._profile}/{coords}"
        params = {"sources": "0", "annotations": "duration,distance"}

        try:
            if self._client is not None:
                data = await self._fetch(self._client, url, params)
            else:
                async with httpx.AsyncClient() as client:
                    data = await self._fetch(client, url, params)
            return self._parse(data, origin, destinations)
        except (httpx.HTTPError, ValueError, KeyError, IndexError):
            logger.exception("OSRM table request failed, using great-circle estimates")
            return [estimate(origin, d, self._speed_kmh) for d in destinations]

    async def _fetch(self, client: httpx.AsyncClient, url: str, params: dict) -> dict:
        response = await client.get(url, params=params, timeout=self._timeout)
        response.raise_for_status()
        data = response.json()
        if data.get("code") != "Ok":
            raise ValueError(f"OSRM error: {data.get('code')}")
        return data

    def _parse(
        self, data: dict, origin: GeoPoint, destinations: list[GeoPoint]
    ) -> list[DriveTime]:
        # Row 0 is the origin; its first cell is the origin itself
        durations = data["durations"][0][1:]
        distances = data["distances"][0][1:] if data.get("distances") else None

        results = []
        for index, seconds in enumerate(durations):
            if seconds is None:
                results.append(estimate(origin, destinations[index], self._speed_kmh))
                continue
            meters = distances[index] if distances and distances[index] is not None else 0.0
            results.append(
                DriveTime(
                    duration_minutes=round(seconds / 60, 1),
                    distance_km=round(meters / 1000, 1),
                    source=SOURCE,
                )
            )
        return results
