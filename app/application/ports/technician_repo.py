"""Port interface for technician rosters."""

from abc import ABC, abstractmethod

from app.domain.entities.technician import Technician


class TechnicianRepository(ABC):
    @abstractmethod
    async def get_by_id(self, tech_id: str) -> Technician | None:
        ...

    @abstractmethod
    async def get_dispatch_candidates(self, tenant_id: str) -> list[Technician]:
        """Active, available, geocoded technicians with rolling metrics filled in."""
        ...

    @abstractmethod
    async def get_batch_roster(self, tenant_id: str) -> list[Technician]:
        """Available technicians with remaining daily capacity.

        ``current_location`` is set only when a fresh live position exists.
        """
        ...

    @abstractmethod
    async def save(self, tech: Technician) -> Technician:
        ...
