"""RunDispatchUseCase / ManualAssignUseCase — single-job dispatch and override."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.assignment_store import AssignmentStore
from app.application.ports.job_repo import JobRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.config import settings
from app.domain.entities.assignment import AssignmentLog
from app.domain.errors import JobNotFoundError
from app.domain.policies.assignment_rules import ensure_job_assignable
from app.domain.policies.dispatch import dispatch, override_assignment
from app.domain.policies.ranking import DispatchRecommendation

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


@dataclass
class DispatchOutcome:
    recommendation: DispatchRecommendation
    assignment: AssignmentLog | None = None

    def to_dict(self) -> dict:
        return {
            "recommendation": self.recommendation.to_dict(),
            "assigned": self.assignment is not None,
            "assignment_id": self.assignment.id if self.assignment else None,
        }


class RunDispatchUseCase:
    """Load a job and its tenant roster, recommend, and optionally persist the pick."""

    def __init__(
        self,
        job_repo: JobRepository,
        tech_repo: TechnicianRepository,
        store: AssignmentStore,
        tie_threshold: float | None = None,
        top_n: int | None = None,
    ):
        self._jobs = job_repo
        self._techs = tech_repo
        self._store = store
        self._tie_threshold = settings.tie_threshold if tie_threshold is None else tie_threshold
        self._top_n = top_n or settings.top_n

    async def execute(
        self, job_id: str, actor: str = SYSTEM_ACTOR, auto_assign: bool = True
    ) -> DispatchOutcome:
        job = await self._jobs.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        ensure_job_assignable(job)

        candidates = await self._techs.get_dispatch_candidates(job.tenant_id)
        recommendation = dispatch(
            job, candidates, tie_threshold=self._tie_threshold, top_n=self._top_n
        )

        if not auto_assign or recommendation.requires_manual_dispatch:
            return DispatchOutcome(recommendation=recommendation)

        # Conflicts propagate; a stale recommendation must not be retried
        assignment = await self._store.assign(
            job.id,
            recommendation.assigned_tech.tech_id,
            actor,
            is_override=False,
            scoring_snapshot=recommendation.to_dict(),
        )
        return DispatchOutcome(recommendation=recommendation, assignment=assignment)

    async def recommend(self, job_id: str) -> DispatchRecommendation:
        outcome = await self.execute(job_id, auto_assign=False)
        return outcome.recommendation


class ManualAssignUseCase:
    """Assign a job to one of its top recommendations instead of the first pick."""

    def __init__(self, run_dispatch: RunDispatchUseCase, store: AssignmentStore):
        self._dispatch = run_dispatch
        self._store = store

    async def execute(
        self, job_id: str, tech_id: str, actor: str, reason: str
    ) -> DispatchOutcome:
        recommendation = await self._dispatch.recommend(job_id)
        overridden = override_assignment(recommendation, tech_id, reason, overridden_by=actor)

        assignment = await self._store.assign(
            job_id,
            tech_id,
            actor,
            is_override=True,
            reason=reason,
            scoring_snapshot=overridden.to_dict(),
        )
        return DispatchOutcome(recommendation=overridden, assignment=assignment)
