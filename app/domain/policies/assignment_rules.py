"""Job state transition checks shared by every assignment store.

Stores call these after taking their locks, on freshly re-read rows.
"""

from __future__ import annotations

from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.errors import (
    InvalidJobStateError,
    JobAlreadyAssignedError,
    JobNotAssignedError,
    TechnicianAtCapacityError,
)
from app.domain.value_objects.enums import JobStatus


def ensure_job_assignable(job: Job) -> None:
    if job.assigned_tech_id is not None:
        raise JobAlreadyAssignedError(job.id, job.assigned_tech_id)
    if job.status != JobStatus.UNASSIGNED.value:
        raise InvalidJobStateError(job.id, job.status, "assign")


def ensure_technician_has_capacity(tech: Technician) -> None:
    if tech.is_at_capacity():
        raise TechnicianAtCapacityError(
            tech.id, tech.current_jobs_count, tech.max_concurrent_jobs
        )


def ensure_job_completable(job: Job) -> None:
    if job.status == JobStatus.COMPLETED.value:
        raise InvalidJobStateError(job.id, job.status, "complete")
    if job.assigned_tech_id is None:
        raise JobNotAssignedError(job.id)
    if job.status == JobStatus.CANCELLED.value:
        raise InvalidJobStateError(job.id, job.status, "complete")


def ensure_job_unassignable(job: Job) -> None:
    if job.assigned_tech_id is None:
        raise JobNotAssignedError(job.id)
    if job.is_terminal():
        raise InvalidJobStateError(job.id, job.status, "unassign")
