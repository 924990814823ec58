"""Port interface for resolving job addresses to coordinates."""

from abc import ABC, abstractmethod

from app.domain.value_objects.geo_point import GeoPoint


class GeocoderPort(ABC):
    @abstractmethod
    async def geocode(self, address: str) -> GeoPoint | None:
        """Resolve a street address to a point.

        Returns None when the address cannot be resolved or the provider
        fails; callers record the attempt and retry on a later pass.
        """
        ...
