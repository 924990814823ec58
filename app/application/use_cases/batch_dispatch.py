"""BatchDispatchUseCase — capacity-aware dispatch of many jobs in one tenant.

The capacity ledger lives only for one ``execute`` call. It stops this run
from handing a technician more jobs than their remaining daily capacity; it
does not protect against concurrent runs. The assignment store's row locks
do that when ``persist`` is requested.

Jobs handed out earlier in the run also count toward each technician's
concurrent-job limit, so every proposal is one the store can accept.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field, replace

from app.application.ports.assignment_store import AssignmentStore
from app.application.ports.drive_time_port import DriveTimeProvider
from app.application.ports.job_repo import JobRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.config import settings
from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.errors import ConflictError, NotFoundError
from app.domain.policies.dispatch import dispatch

logger = logging.getLogger(__name__)

BATCH_ACTOR = "batch-dispatch"
NO_CAPACITY_REASON = "No technicians with capacity or location available"
NO_ELIGIBLE_REASON = "No eligible technicians found"
LOW_SCORE_REASON = "No suitable technician found (score too low)"


@dataclass
class BatchAssignment:
    job_id: str
    tech_id: str
    tech_name: str
    score: float
    distance_miles: float
    priority: str
    drive_time_minutes: float | None = None
    persisted: bool = False


@dataclass
class UnassignedJob:
    job_id: str
    priority: str
    reason: str


@dataclass
class BatchStats:
    total_jobs: int
    assigned: int
    unassigned: int
    duration_ms: float


@dataclass
class BatchResult:
    assignments: list[BatchAssignment] = field(default_factory=list)
    unassigned: list[UnassignedJob] = field(default_factory=list)
    stats: BatchStats | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def build_capacity_ledger(
    roster: list[Technician], default_max_per_day: int
) -> dict[str, int]:
    """Remaining jobs each technician may take in this run."""
    ledger = {}
    for tech in roster:
        max_per_day = tech.max_jobs_per_day
        if max_per_day is None:
            max_per_day = default_max_per_day
        ledger[tech.id] = max(0, max_per_day - (tech.current_jobs_count or 0))
    return ledger


def order_jobs(jobs: list[Job]) -> list[Job]:
    """Emergency, high, medium, low; unknown last; input order within a priority."""
    return sorted(jobs, key=lambda job: job.priority_rank)


class BatchDispatchUseCase:
    def __init__(
        self,
        job_repo: JobRepository,
        tech_repo: TechnicianRepository,
        drive_times: DriveTimeProvider | None = None,
        store: AssignmentStore | None = None,
        min_score: float | None = None,
        tie_threshold: float | None = None,
        default_max_per_day: int | None = None,
    ):
        self._jobs = job_repo
        self._techs = tech_repo
        self._drive_times = drive_times
        self._store = store
        self._min_score = settings.batch_min_score if min_score is None else min_score
        self._tie_threshold = settings.tie_threshold if tie_threshold is None else tie_threshold
        self._default_max_per_day = default_max_per_day or settings.default_max_jobs_per_day

    async def execute(
        self,
        tenant_id: str,
        job_ids: list[str] | None = None,
        persist: bool = False,
        actor: str = BATCH_ACTOR,
    ) -> BatchResult:
        started = time.perf_counter()

        jobs = await self._jobs.get_unassigned_for_tenant(tenant_id, job_ids)
        roster = await self._techs.get_batch_roster(tenant_id)
        ledger = build_capacity_ledger(roster, self._default_max_per_day)
        logger.info(
            "Batch dispatch for tenant %s: %d jobs, %d technicians",
            tenant_id, len(jobs), len(roster),
        )

        result = BatchResult()
        snapshots: dict[str, dict] = {}
        # Jobs handed out so far in this run, per technician
        taken: dict[str, int] = {}

        for job in order_jobs(jobs):
            available = [
                replace(
                    tech,
                    location=tech.current_location,
                    current_jobs_count=(tech.current_jobs_count or 0) + taken.get(tech.id, 0),
                )
                for tech in roster
                if ledger.get(tech.id, 0) > 0 and tech.current_location is not None
            ]
            if not available:
                result.unassigned.append(UnassignedJob(job.id, job.priority, NO_CAPACITY_REASON))
                continue

            recommendation = dispatch(job, available, tie_threshold=self._tie_threshold)
            best = recommendation.assigned_tech
            if best is None:
                result.unassigned.append(UnassignedJob(job.id, job.priority, NO_ELIGIBLE_REASON))
                continue
            if best.total_score < self._min_score:
                result.unassigned.append(UnassignedJob(job.id, job.priority, LOW_SCORE_REASON))
                continue

            ledger[best.tech_id] -= 1
            taken[best.tech_id] = taken.get(best.tech_id, 0) + 1
            tech = next(t for t in available if t.id == best.tech_id)
            result.assignments.append(
                BatchAssignment(
                    job_id=job.id,
                    tech_id=best.tech_id,
                    tech_name=best.tech_name,
                    score=best.total_score,
                    distance_miles=round(best.distance_miles, 2),
                    priority=job.priority,
                    drive_time_minutes=await self._drive_time(tech, job),
                )
            )
            snapshots[job.id] = recommendation.to_dict()

        if persist:
            await self._persist(result, snapshots, actor)

        result.stats = BatchStats(
            total_jobs=len(jobs),
            assigned=len(result.assignments),
            unassigned=len(result.unassigned),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        logger.info(
            "Batch dispatch for tenant %s done: %d assigned, %d unassigned in %.1f ms",
            tenant_id, result.stats.assigned, result.stats.unassigned, result.stats.duration_ms,
        )
        return result

    async def _drive_time(self, tech: Technician, job: Job) -> float | None:
        if self._drive_times is None or tech.location is None or job.location is None:
            return None
        estimates = await self._drive_times.drive_times(tech.location, [job.location])
        return estimates[0].duration_minutes if estimates else None

    async def _persist(
        self, result: BatchResult, snapshots: dict[str, dict], actor: str
    ) -> None:
        if self._store is None:
            raise ValueError("persist requested but no assignment store is configured")

        kept: list[BatchAssignment] = []
        for assignment in result.assignments:
            try:
                await self._store.assign(
                    assignment.job_id,
                    assignment.tech_id,
                    actor,
                    scoring_snapshot=snapshots.get(assignment.job_id),
                )
            except (ConflictError, NotFoundError) as e:
                logger.warning("Batch assign of job %s failed: %s", assignment.job_id, e.detail)
                result.unassigned.append(
                    UnassignedJob(assignment.job_id, assignment.priority, e.detail)
                )
                continue
            assignment.persisted = True
            kept.append(assignment)
        result.assignments = kept
