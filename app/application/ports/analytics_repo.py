"""Port interface for dispatch analytics queries."""

from abc import ABC, abstractmethod


class AnalyticsRepository(ABC):
    @abstractmethod
    async def job_status_counts(self, tenant_id: str | None = None) -> dict[str, int]:
        ...

    @abstractmethod
    async def assignment_counts(self, tenant_id: str | None = None) -> dict[str, int]:
        """Returns {"total": n, "overrides": m, "emergency": k}."""
        ...

    @abstractmethod
    async def technician_workload(self, tenant_id: str | None = None) -> list[dict]:
        ...
