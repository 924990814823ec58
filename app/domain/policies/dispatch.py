"""DispatchPolicy — single-job pipeline: eligibility, scoring, ranking.

Also hosts the override check and aggregate stats over recommendations.
Everything here is pure; persistence is the caller's explicit next step.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.errors import TechnicianNotRecommendedError
from app.domain.policies.eligibility import filter_eligible_technicians
from app.domain.policies.ranking import (
    DEFAULT_TIE_THRESHOLD,
    DEFAULT_TOP_N,
    DispatchRecommendation,
    OverrideRecord,
    create_recommendation,
    with_manual_dispatch,
)
from app.domain.policies.scoring import round2, score_all_technicians

logger = logging.getLogger(__name__)


def dispatch(
    job: Job,
    technicians: list[Technician],
    tie_threshold: float = DEFAULT_TIE_THRESHOLD,
    top_n: int = DEFAULT_TOP_N,
) -> DispatchRecommendation:
    """Recommend a technician for one job.

    The manual-dispatch flag is taken from the eligibility partition, never
    re-derived from the recommendation.
    """
    partition = filter_eligible_technicians(technicians, job)
    for rejected in partition.ineligible:
        logger.debug(
            "Job %s: %s ineligible (%s)",
            job.id, rejected.technician.id, rejected.result.failed_rules[0],
        )

    scores = score_all_technicians(partition.eligible, job)
    recommendation = create_recommendation(
        job.id, scores, job.is_emergency, tie_threshold=tie_threshold, top_n=top_n
    )
    recommendation = with_manual_dispatch(recommendation, required=not partition.eligible)

    if recommendation.requires_manual_dispatch:
        logger.warning(
            "Job %s: no eligible technicians among %d, manual dispatch required",
            job.id, len(technicians or []),
        )
    else:
        logger.info(
            "Job %s -> %s (score=%.2f, eligible=%d/%d)",
            job.id,
            recommendation.assigned_tech.tech_id,
            recommendation.assigned_tech.total_score,
            len(partition.eligible),
            len(technicians or []),
        )
    return recommendation


def preview_batch(
    jobs: list[Job],
    technicians: list[Technician],
    tie_threshold: float = DEFAULT_TIE_THRESHOLD,
    top_n: int = DEFAULT_TOP_N,
) -> list[DispatchRecommendation]:
    """Map ``dispatch`` over jobs against one shared roster.

    No capacity is consumed between jobs, so the same technician may be
    recommended for every job. Use for previews only, never for assignment.
    """
    return [
        dispatch(job, technicians, tie_threshold=tie_threshold, top_n=top_n) for job in jobs
    ]


def override_assignment(
    recommendation: DispatchRecommendation,
    selected_tech_id: str,
    reason: str,
    overridden_by: str | None = None,
) -> DispatchRecommendation:
    """Swap the assignee for one of the top recommendations.

    Eligibility is not re-run; the recommendation snapshot is trusted.
    """
    selected = next(
        (r for r in recommendation.recommendations if r.tech_id == selected_tech_id),
        None,
    )
    if selected is None:
        raise TechnicianNotRecommendedError(
            recommendation.job_id, selected_tech_id, recommendation.candidate_ids()
        )

    original = recommendation.assigned_tech.tech_id if recommendation.assigned_tech else None
    logger.info(
        "Job %s: override %s -> %s by %s",
        recommendation.job_id, original, selected_tech_id, overridden_by or "unknown",
    )
    return replace(
        recommendation,
        assigned_tech=selected,
        requires_manual_dispatch=False,
        override=OverrideRecord(
            reason=reason,
            overridden_by=overridden_by,
            overridden_at=datetime.now(timezone.utc),
            original_tech_id=original,
        ),
    )


def get_dispatch_stats(
    recommendations: list[DispatchRecommendation],
    overrides_count: int | None = None,
) -> dict:
    total = len(recommendations)
    auto_assigned = sum(1 for r in recommendations if not r.requires_manual_dispatch)
    manual = total - auto_assigned
    emergency = sum(1 for r in recommendations if r.is_emergency)
    eligible_sum = sum(r.total_eligible_techs for r in recommendations)

    stats = {
        "total_jobs": total,
        "auto_assigned": auto_assigned,
        "manual_dispatch_required": manual,
        "emergency_jobs": emergency,
        "avg_eligible_techs": round2(eligible_sum / total) if total else 0.0,
    }
    if overrides_count is not None and auto_assigned > 0:
        stats["overrides_count"] = overrides_count
        stats["override_rate"] = round2(overrides_count / auto_assigned * 100)
    return stats
