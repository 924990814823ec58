"""RankingPolicy — order scored technicians and build a dispatch recommendation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from app.domain.policies.scoring import TechnicianScore

DEFAULT_TIE_THRESHOLD = 0.1
DEFAULT_TOP_N = 3
NO_ELIGIBLE_REASON = "No eligible technicians found"

# Absorbs float noise such as 80.3 - 80.2 == 0.10000000000000853
_SCORE_EPSILON = 1e-9


@dataclass(frozen=True)
class OverrideRecord:
    reason: str
    overridden_by: str | None
    overridden_at: datetime
    original_tech_id: str | None = None


@dataclass(frozen=True)
class DispatchRecommendation:
    job_id: str
    recommendations: tuple[TechnicianScore, ...]
    assigned_tech: TechnicianScore | None
    total_eligible_techs: int
    requires_manual_dispatch: bool
    is_emergency: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    manual_dispatch_reason: str | None = None
    override: OverrideRecord | None = None

    def candidate_ids(self) -> list[str]:
        return [r.tech_id for r in self.recommendations]

    def to_dict(self) -> dict:
        """Plain JSON-safe form, used for API responses and the assignment log snapshot."""
        data = {
            "job_id": self.job_id,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "assigned_tech": self.assigned_tech.to_dict() if self.assigned_tech else None,
            "total_eligible_techs": self.total_eligible_techs,
            "requires_manual_dispatch": self.requires_manual_dispatch,
            "is_emergency": self.is_emergency,
            "timestamp": self.timestamp.isoformat(),
            "manual_dispatch_reason": self.manual_dispatch_reason,
            "override": None,
        }
        if self.override:
            data["override"] = {
                "reason": self.override.reason,
                "overridden_by": self.override.overridden_by,
                "overridden_at": self.override.overridden_at.isoformat(),
                "original_tech_id": self.override.original_tech_id,
            }
        return data


def _tiebreak_key(score: TechnicianScore) -> tuple[float, float, str]:
    # Closer first, then the lighter day, then the smaller id
    return (score.distance_miles, -score.workload_score, score.tech_id)


def rank_technicians(
    scores: list[TechnicianScore],
    tie_threshold: float = DEFAULT_TIE_THRESHOLD,
) -> list[TechnicianScore]:
    """Sort by total score descending with a deterministic tie-break.

    Two-phase and transitive: candidates are first ordered by score, then cut
    into tie groups anchored at the highest remaining score. A group holds
    every candidate within ``tie_threshold`` of its anchor and is ordered by
    the tie-break key alone, so any two candidates whose scores differ by at
    most the threshold and share a group are ordered by distance, workload
    score and id.
    """
    by_score = sorted(scores, key=_tiebreak_key)
    by_score.sort(key=lambda s: s.total_score, reverse=True)

    ranked: list[TechnicianScore] = []
    start = 0
    while start < len(by_score):
        anchor = by_score[start].total_score
        end = start + 1
        while (
            end < len(by_score)
            and anchor - by_score[end].total_score <= tie_threshold + _SCORE_EPSILON
        ):
            end += 1
        ranked.extend(sorted(by_score[start:end], key=_tiebreak_key))
        start = end
    return ranked


def create_recommendation(
    job_id: str,
    scores: list[TechnicianScore],
    is_emergency: bool,
    tie_threshold: float = DEFAULT_TIE_THRESHOLD,
    top_n: int = DEFAULT_TOP_N,
) -> DispatchRecommendation:
    """Rank all scores, keep the top N for visibility and pick the first as assignee."""
    if not scores:
        return DispatchRecommendation(
            job_id=job_id,
            recommendations=(),
            assigned_tech=None,
            total_eligible_techs=0,
            requires_manual_dispatch=True,
            is_emergency=is_emergency,
            manual_dispatch_reason=NO_ELIGIBLE_REASON,
        )

    ranked = rank_technicians(scores, tie_threshold)
    return DispatchRecommendation(
        job_id=job_id,
        recommendations=tuple(ranked[:top_n]),
        assigned_tech=ranked[0],
        total_eligible_techs=len(scores),
        requires_manual_dispatch=False,
        is_emergency=is_emergency,
    )


def with_manual_dispatch(
    recommendation: DispatchRecommendation, required: bool
) -> DispatchRecommendation:
    """Return a copy whose manual-dispatch flag follows the caller's eligibility result."""
    if not required:
        return replace(recommendation, requires_manual_dispatch=False)
    return replace(
        recommendation,
        requires_manual_dispatch=True,
        assigned_tech=None,
        manual_dispatch_reason=recommendation.manual_dispatch_reason or NO_ELIGIBLE_REASON,
    )


def format_recommendation(rec: DispatchRecommendation) -> str:
    """Render a plain-text dispatch summary for logs and the CLI."""
    lines = [
        "DISPATCH RECOMMENDATION",
        "=" * 60,
        f"Job ID: {rec.job_id}",
        f"Priority: {'EMERGENCY' if rec.is_emergency else 'Normal'}",
        f"Eligible Techs: {rec.total_eligible_techs}",
        f"Timestamp: {rec.timestamp.isoformat()}",
        "",
    ]

    if rec.requires_manual_dispatch or rec.assigned_tech is None:
        lines.append("MANUAL DISPATCH REQUIRED")
        lines.append(f"Reason: {rec.manual_dispatch_reason or NO_ELIGIBLE_REASON}")
        return "\n".join(lines) + "\n"

    tech = rec.assigned_tech
    label = "OVERRIDE-ASSIGNED" if rec.override else "AUTO-ASSIGNED"
    lines.append(f"{label}: {tech.tech_name}")
    lines.append(f"   Score: {tech.total_score}/100")
    lines.append(f"   Distance: {tech.distance_miles:.1f} mi")
    if rec.override:
        lines.append(f"   Override reason: {rec.override.reason}")
    lines.append("")
    lines.append(f"TOP {len(rec.recommendations)} RECOMMENDATIONS:")
    for index, candidate in enumerate(rec.recommendations, start=1):
        lines.append(f"{index}. {candidate.tech_name} ({candidate.total_score}/100 points)")
        lines.append(f"   Distance: {candidate.distance_miles:.1f} mi")

    return "\n".join(lines) + "\n"
