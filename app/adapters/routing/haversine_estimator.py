"""Great-circle drive-time estimate at a constant average speed."""

from __future__ import annotations

from app.application.ports.drive_time_port import DriveTime, DriveTimeProvider
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint

SOURCE = "haversine"


def estimate(origin: GeoPoint, destination: GeoPoint, speed_kmh: float) -> DriveTime:
    km = origin.haversine_km(destination)
    return DriveTime(
        duration_minutes=round(km / speed_kmh * 60, 1),
        distance_km=round(km, 1),
        source=SOURCE,
    )


class HaversineDriveTimeEstimator(DriveTimeProvider):
    def __init__(self, speed_kmh: float | None = None):
        self._speed_kmh = speed_kmh or settings.fallback_speed_kmh

    async def drive_times(
        self, origin: GeoPoint, destinations: list[GeoPoint]
    ) -> list[DriveTime]:
        return [estimate(origin, d, self._speed_kmh) for d in destinations]
