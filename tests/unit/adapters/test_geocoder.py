"""Tests for geocoder adapters — HTTP is served by httpx.MockTransport (no network)."""

import httpx
import pytest

from app.adapters.geocoder.google_maps_adapter import GoogleMapsAdapter
from app.adapters.geocoder.nominatim_adapter import NominatimAdapter
from app.config import settings


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ─── Query variants ──────────────────────────────────────────────────


def test_build_queries_strips_unit():
    queries = NominatimAdapter._build_queries("1500 Marilla St,  Suite 4B, Dallas, TX")
    assert queries == ["1500 Marilla St, Suite 4B, Dallas, TX", "1500 Marilla St, Dallas, TX"]


def test_build_queries_single_variant_without_unit():
    assert NominatimAdapter._build_queries("1500 Marilla St, Dallas") == ["1500 Marilla St, Dallas"]


# ─── Nominatim ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_nominatim_resolves_and_sends_user_agent():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"lat": "32.7767", "lon": "-96.7970"}])

    adapter = NominatimAdapter(user_agent="dispatch-tests", client=_client(handler))
    point = await adapter.geocode("1500 Marilla St, Dallas, TX")

    assert point is not None
    assert point.latitude == pytest.approx(32.7767)
    assert point.longitude == pytest.approx(-96.797)
    assert seen[0].headers["User-Agent"] == "dispatch-tests"
    assert seen[0].url.params["q"] == "1500 Marilla St, Dallas, TX"


@pytest.mark.asyncio
async def test_nominatim_falls_back_to_broader_query():
    queries = []

    def handler(request: httpx.Request) -> httpx.Response:
        queries.append(request.url.params["q"])
        if "Apt" in request.url.params["q"]:
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[{"lat": "32.78", "lon": "-96.80"}])

    adapter = NominatimAdapter(client=_client(handler))
    point = await adapter.geocode("12 Elm St Apt 3, Dallas, TX")

    assert point is not None
    assert queries == ["12 Elm St Apt 3, Dallas, TX", "12 Elm St, Dallas, TX"]


@pytest.mark.asyncio
async def test_cache_deduplicates():
    """Same address should return cached result on second call."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[{"lat": "32.7767", "lon": "-96.797"}])

    adapter = NominatimAdapter(client=_client(handler))
    r1 = await adapter.geocode("Dallas, TX")
    r2 = await adapter.geocode("  dallas, tx ")
    assert r1 == r2
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_nominatim_http_error_returns_none():
    adapter = NominatimAdapter(client=_client(lambda request: httpx.Response(503)))
    assert await adapter.geocode("Dallas, TX") is None


@pytest.mark.asyncio
async def test_nominatim_invalid_coordinates_rejected():
    adapter = NominatimAdapter(
        client=_client(lambda request: httpx.Response(200, json=[{"lat": "95", "lon": "0"}]))
    )
    assert await adapter.geocode("Nowhere") is None


@pytest.mark.asyncio
async def test_empty_address_returns_none():
    adapter = NominatimAdapter(client=_client(lambda request: httpx.Response(500)))
    assert await adapter.geocode("   ") is None


# ─── Google Maps ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_google_without_key_returns_none(monkeypatch):
    monkeypatch.setattr(settings, "google_maps_api_key", "")
    adapter = GoogleMapsAdapter(api_key="")
    assert await adapter.geocode("Dallas, TX") is None


@pytest.mark.asyncio
async def test_google_resolves():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "test-key"
        return httpx.Response(200, json={
            "status": "OK",
            "results": [{"geometry": {"location": {"lat": 32.7767, "lng": -96.797}}}],
        })

    adapter = GoogleMapsAdapter(api_key="test-key", client=_client(handler))
    point = await adapter.geocode("Dallas, TX")
    assert point.latitude == 32.7767
    assert point.longitude == -96.797


@pytest.mark.asyncio
async def test_google_zero_results():
    adapter = GoogleMapsAdapter(
        api_key="test-key",
        client=_client(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})),
    )
    assert await adapter.geocode("Nowhere") is None
