"""GeoPoint value object — immutable (lat, lon) pair plus validity checks."""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def haversine_km(self, other: "GeoPoint") -> float:
        """Calculate distance in km between two points using the Haversine formula."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    def haversine_miles(self, other: "GeoPoint") -> float:
        return self.haversine_km(other) * KM_TO_MILES

    def is_valid(self) -> bool:
        return are_valid_coordinates(self.latitude, self.longitude)


def are_valid_coordinates(latitude: object, longitude: object) -> bool:
    """Check that a coordinate pair is usable for distance math.

    Both values must be real finite numbers, latitude within [-90, 90] and
    longitude within [-180, 180]. Booleans are rejected even though they are ints.
    """
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    if latitude < -90 or latitude > 90:
        return False
    if longitude < -180 or longitude > 180:
        return False
    return True


def is_valid_point(point: GeoPoint | None) -> bool:
    return point is not None and point.is_valid()
