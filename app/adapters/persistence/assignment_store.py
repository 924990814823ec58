"""SqlAssignmentStore — job state transitions guarded by PostgreSQL row locks.

Each operation opens its own session and transaction; raising inside the
``session.begin()`` block rolls every write back.

Lock order is always jobs row first, technicians row second, so concurrent
assigns over overlapping technicians cannot deadlock.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.models import (
    JobAssignmentModel,
    JobCompletionModel,
    JobModel,
    TechnicianModel,
)
from app.adapters.persistence.repositories import _job_to_domain, _tech_to_domain
from app.application.ports.assignment_store import AssignmentStore
from app.domain.entities.assignment import AssignmentLog, CompletionLog
from app.domain.errors import (
    InvalidJobStateError,
    JobNotFoundError,
    JobNotStartableError,
    TechnicianNotFoundError,
)
from app.domain.policies.assignment_rules import (
    ensure_job_assignable,
    ensure_job_completable,
    ensure_job_unassignable,
    ensure_technician_has_capacity,
)
from app.domain.value_objects.enums import JobPriority, JobStatus

logger = logging.getLogger(__name__)


def _decrement_workload(tech_id: str):
    return (
        update(TechnicianModel)
        .where(TechnicianModel.id == tech_id)
        .values(
            current_jobs_count=func.greatest(TechnicianModel.current_jobs_count - 1, 0)
        )
    )


class SqlAssignmentStore(AssignmentStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._factory = session_factory

    async def assign(
        self,
        job_id: str,
        tech_id: str,
        actor: str,
        is_override: bool = False,
        reason: str | None = None,
        scoring_snapshot: dict | None = None,
    ) -> AssignmentLog:
        async with self._factory() as s, s.begin():
            job_m = (
                await s.execute(select(JobModel).where(JobModel.id == job_id).with_for_update())
            ).scalar_one_or_none()
            if job_m is None:
                raise JobNotFoundError(job_id)
            # Checked after the lock so a concurrent winner is always visible
            ensure_job_assignable(_job_to_domain(job_m))

            tech_m = (
                await s.execute(
                    select(TechnicianModel)
                    .where(TechnicianModel.id == tech_id)
                    .with_for_update()
                )
            ).scalar_one_or_none()
            if tech_m is None:
                raise TechnicianNotFoundError(tech_id)
            ensure_technician_has_capacity(_tech_to_domain(tech_m))

            job_m.assigned_tech_id = tech_id
            job_m.status = JobStatus.ASSIGNED.value
            tech_m.current_jobs_count = (tech_m.current_jobs_count or 0) + 1

            log_m = JobAssignmentModel(
                job_id=job_id,
                tech_id=tech_id,
                tenant_id=job_m.tenant_id,
                assigned_by=actor,
                is_manual_override=is_override,
                override_reason=reason,
                scoring_details=scoring_snapshot,
                job_priority=job_m.priority,
                job_type=job_m.job_type,
                is_emergency=(job_m.priority or "").lower() == JobPriority.EMERGENCY.value,
                assigned_at=datetime.now(timezone.utc),
            )
            s.add(log_m)
            await s.flush()

        logger.info(
            "Job %s assigned to %s by %s%s",
            job_id, tech_id, actor, " (override)" if is_override else "",
        )
        return AssignmentLog(
            id=log_m.id,
            job_id=job_id,
            tech_id=tech_id,
            tenant_id=log_m.tenant_id,
            assigned_by=actor,
            is_manual_override=is_override,
            override_reason=reason,
            scoring_details=scoring_snapshot,
            job_priority=log_m.job_priority,
            job_type=log_m.job_type,
            is_emergency=log_m.is_emergency,
            assigned_at=log_m.assigned_at,
        )

    async def complete(
        self,
        job_id: str,
        notes: str | None = None,
        duration_minutes: int | None = None,
        first_time_fix: bool = True,
        rating: int | None = None,
    ) -> CompletionLog:
        async with self._factory() as s, s.begin():
            job_m = await s.get(JobModel, job_id)
            if job_m is None:
                raise JobNotFoundError(job_id)
            job = _job_to_domain(job_m)
            ensure_job_completable(job)

            now = datetime.now(timezone.utc)
            # Revalidates the unlocked read: only matches while still assigned to the same tech
            result = await s.execute(
                update(JobModel)
                .where(
                    JobModel.id == job_id,
                    JobModel.assigned_tech_id == job.assigned_tech_id,
                    JobModel.status.in_(
                        [JobStatus.ASSIGNED.value, JobStatus.IN_PROGRESS.value]
                    ),
                )
                .values(
                    status=JobStatus.COMPLETED.value,
                    completed_at=now,
                    completion_notes=notes,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await s.refresh(job_m)
                ensure_job_completable(_job_to_domain(job_m))
                raise InvalidJobStateError(job_id, job_m.status, "complete")

            await s.execute(_decrement_workload(job.assigned_tech_id))
            completion_m = JobCompletionModel(
                job_id=job_id,
                tech_id=job.assigned_tech_id,
                tenant_id=job.tenant_id,
                completion_notes=notes,
                duration_minutes=duration_minutes,
                first_time_fix=first_time_fix,
                customer_rating=rating,
                completed_at=now,
            )
            s.add(completion_m)
            await s.flush()

        logger.info("Job %s completed by %s", job_id, job.assigned_tech_id)
        return CompletionLog(
            id=completion_m.id,
            job_id=job_id,
            tech_id=job.assigned_tech_id,
            tenant_id=job.tenant_id,
            completion_notes=notes,
            duration_minutes=duration_minutes,
            first_time_fix=first_time_fix,
            customer_rating=rating,
            completed_at=now,
        )

    async def unassign(self, job_id: str) -> str:
        async with self._factory() as s, s.begin():
            job_m = (
                await s.execute(select(JobModel).where(JobModel.id == job_id).with_for_update())
            ).scalar_one_or_none()
            if job_m is None:
                raise JobNotFoundError(job_id)
            ensure_job_unassignable(_job_to_domain(job_m))

            tech_id = job_m.assigned_tech_id
            job_m.assigned_tech_id = None
            job_m.status = JobStatus.UNASSIGNED.value
            await s.flush()
            await s.execute(_decrement_workload(tech_id))

        logger.info("Job %s unassigned from %s", job_id, tech_id)
        return tech_id

    async def start(self, job_id: str) -> None:
        async with self._factory() as s, s.begin():
            result = await s.execute(
                update(JobModel)
                .where(JobModel.id == job_id, JobModel.status == JobStatus.ASSIGNED.value)
                .values(status=JobStatus.IN_PROGRESS.value, started_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise JobNotStartableError(job_id)

        logger.info("Job %s started", job_id)
