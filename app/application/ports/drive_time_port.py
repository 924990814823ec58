"""Port interface for drive-time estimates."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class DriveTime:
    duration_minutes: float
    distance_km: float
    source: str


class DriveTimeProvider(ABC):
    @abstractmethod
    async def drive_times(
        self, origin: GeoPoint, destinations: list[GeoPoint]
    ) -> list[DriveTime]:
        """One estimate per destination, in input order."""
        ...
