"""Port interface for job persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.job import Job
from app.domain.value_objects.geo_point import GeoPoint


class JobRepository(ABC):
    @abstractmethod
    async def get_by_id(self, job_id: str) -> Job | None:
        ...

    @abstractmethod
    async def get_unassigned_for_tenant(
        self, tenant_id: str, job_ids: list[str] | None = None
    ) -> list[Job]:
        """Unassigned jobs for the tenant in creation order.

        When ``job_ids`` is given only those jobs are considered.
        """
        ...

    @abstractmethod
    async def get_pending_geocoding(self, max_retries: int, limit: int) -> list[Job]:
        """Jobs still waiting for coordinates with retries left."""
        ...

    @abstractmethod
    async def update_geocoding(
        self, job_id: str, location: GeoPoint | None, status: str, retries: int
    ) -> None:
        ...

    @abstractmethod
    async def save(self, job: Job) -> Job:
        ...
