"""Port interface for race-free job state transitions."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment import AssignmentLog, CompletionLog


class AssignmentStore(ABC):
    """Every method runs in its own transaction: all writes commit or none do.

    Business-rule failures raise ``app.domain.errors`` subclasses and are
    never retried by the store.
    """

    @abstractmethod
    async def assign(
        self,
        job_id: str,
        tech_id: str,
        actor: str,
        is_override: bool = False,
        reason: str | None = None,
        scoring_snapshot: dict | None = None,
    ) -> AssignmentLog:
        """Lock the job row, then the technician row, re-check both, then write.

        Raises JobNotFoundError, JobAlreadyAssignedError, InvalidJobStateError,
        TechnicianNotFoundError or TechnicianAtCapacityError.
        """
        ...

    @abstractmethod
    async def complete(
        self,
        job_id: str,
        notes: str | None = None,
        duration_minutes: int | None = None,
        first_time_fix: bool = True,
        rating: int | None = None,
    ) -> CompletionLog:
        ...

    @abstractmethod
    async def unassign(self, job_id: str) -> str:
        """Clear the assignment and return the technician id it held."""
        ...

    @abstractmethod
    async def start(self, job_id: str) -> None:
        """Move ``assigned`` to ``in_progress`` with one conditional update.

        Raises JobNotStartableError when no row matched.
        """
        ...
