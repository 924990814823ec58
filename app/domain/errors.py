"""Typed dispatch errors.

Each error carries the HTTP status code the transport layer should answer
with. Route handlers never inspect messages; ``app.main`` registers a single
handler for ``DispatchError`` that converts it into a JSON response.
None of these are retried automatically: a retried assignment would act on a
recommendation computed from a roster that may have changed.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for all dispatch domain errors."""

    status_code: int = 500

    def __init__(self, detail: str = "Internal error"):
        self.detail = detail
        super().__init__(detail)


class ValidationError(DispatchError):
    status_code = 400


class NotFoundError(DispatchError):
    status_code = 404


class ConflictError(DispatchError):
    status_code = 409


class JobNotFoundError(NotFoundError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")


class TechnicianNotFoundError(NotFoundError):
    def __init__(self, tech_id: str):
        self.tech_id = tech_id
        super().__init__(f"Tech {tech_id} not found")


class JobAlreadyAssignedError(ConflictError):
    def __init__(self, job_id: str, assigned_tech_id: str):
        self.job_id = job_id
        self.assigned_tech_id = assigned_tech_id
        super().__init__(f"Job {job_id} is already assigned to tech {assigned_tech_id}")


class TechnicianAtCapacityError(ConflictError):
    def __init__(self, tech_id: str, current: int, maximum: int):
        self.tech_id = tech_id
        super().__init__(
            f"Tech {tech_id} has reached max concurrent jobs limit ({current}/{maximum})"
        )


class InvalidJobStateError(ConflictError):
    def __init__(self, job_id: str, status: str, action: str):
        self.job_id = job_id
        self.status = status
        super().__init__(f"Job {job_id} is {status}. Cannot {action}.")


class JobNotStartableError(ConflictError):
    """A conditional update matched no row; the two causes are indistinguishable."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found or not in 'assigned' status")


class JobNotAssignedError(ValidationError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} is not currently assigned to any technician")


class TechnicianNotRecommendedError(ValidationError):
    def __init__(self, job_id: str, tech_id: str, candidates: list[str]):
        self.job_id = job_id
        self.tech_id = tech_id
        self.candidates = candidates
        available = ", ".join(candidates) if candidates else "none"
        super().__init__(
            f"Tech {tech_id} is not among the recommended technicians for job {job_id}. "
            f"Available techs: {available}"
        )
