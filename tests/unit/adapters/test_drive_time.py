"""Tests for drive-time providers."""

import httpx
import pytest

from app.adapters.routing.haversine_estimator import HaversineDriveTimeEstimator, estimate
from app.adapters.routing.osrm_adapter import OsrmDriveTimeAdapter
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint

DALLAS = GeoPoint(32.7767, -96.797)
FORT_WORTH = GeoPoint(32.7555, -97.3308)
PLANO = GeoPoint(33.0198, -96.6989)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ─── Haversine ───────────────────────────────────────────────────────


def test_estimate_at_constant_speed():
    result = estimate(DALLAS, FORT_WORTH, speed_kmh=50.0)
    assert result.source == "haversine"
    assert result.distance_km == pytest.approx(50.0, abs=0.5)
    assert result.duration_minutes == pytest.approx(60.0, abs=0.6)


@pytest.mark.asyncio
async def test_haversine_provider_keeps_order():
    provider = HaversineDriveTimeEstimator(speed_kmh=60.0)
    results = await provider.drive_times(DALLAS, [DALLAS, FORT_WORTH])
    assert results[0].duration_minutes == 0.0
    assert results[1].duration_minutes > 0


# ─── OSRM ────────────────────────────────────────────────────────────


def test_osrm_requires_base_url(monkeypatch):
    monkeypatch.setattr(settings, "osrm_base_url", "")
    with pytest.raises(ValueError):
        OsrmDriveTimeAdapter(base_url="", fallback_speed_kmh=50.0)


def test_format_coordinates_lon_first():
    assert OsrmDriveTimeAdapter.format_coordinates([GeoPoint(32.5, -96.5)]) == "-96.5,32.5"


@pytest.mark.asyncio
async def test_osrm_table_parsing_with_unroutable_destination():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={
            "code": "Ok",
            "durations": [[0, 1800.0, None]],
            "distances": [[0, 51234.0, None]],
        })

    adapter = OsrmDriveTimeAdapter(
        base_url="http://osrm.test/", fallback_speed_kmh=50.0, client=_client(handler)
    )
    results = await adapter.drive_times(DALLAS, [FORT_WORTH, PLANO])

    assert seen[0].url.path == "/table/v1/driving/-96.797,32.7767;-97.3308,32.7555;-96.6989,33.0198"
    assert seen[0].url.params["sources"] == "0"
    assert results[0].source == "osrm"
    assert results[0].duration_minutes == 30.0
    assert results[0].distance_km == 51.2
    assert results[1].source == "haversine"


@pytest.mark.asyncio
async def test_osrm_failure_falls_back_to_estimates():
    adapter = OsrmDriveTimeAdapter(
        base_url="http://osrm.test",
        fallback_speed_kmh=50.0,
        client=_client(lambda request: httpx.Response(200, json={"code": "NoTable"})),
    )
    results = await adapter.drive_times(DALLAS, [FORT_WORTH])
    assert [r.source for r in results] == ["haversine"]


@pytest.mark.asyncio
async def test_osrm_no_destinations():
    adapter = OsrmDriveTimeAdapter(base_url="http://osrm.test", client=_client(lambda r: httpx.Response(500)))
    assert await adapter.drive_times(DALLAS, []) == []
