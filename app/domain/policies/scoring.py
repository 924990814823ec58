"""ScoringPolicy — five bounded components summed into a 0-100 fitness score.

Component maxima (normal / emergency):

  distance      40 / 60   linear from 0 mi (full) to 50 mi (zero)
  availability  20 / 10   scaled by current / max concurrent jobs
  skill match   20        exact fit beats overqualification
  performance   10        tiered by recent completion rate
  workload      10 / 0    linear from 0 jobs today (full) to 6 (zero)

Callers must pass eligible technicians only; nothing here raises on
incomplete records, missing values fall back to the defaults below.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.value_objects.geo_point import GeoPoint

# Fallbacks for incomplete records
DEFAULT_SKILL_LEVEL = 0
DEFAULT_MAX_CONCURRENT_JOBS = 1
DEFAULT_COORDINATE = 0.0

DISTANCE_MAX_POINTS = 40.0
DISTANCE_MAX_POINTS_EMERGENCY = 60.0
DISTANCE_ZERO_AT_MILES = 50.0

AVAILABILITY_MAX_POINTS = 20.0
AVAILABILITY_MAX_POINTS_EMERGENCY = 10.0

SKILL_MATCH_EXACT = 20
SKILL_MATCH_PARTIAL = 15
SKILL_MATCH_UNDERQUALIFIED = 10
SKILL_DEFICIT_TOLERANCE = 1.0

PERFORMANCE_MAX_POINTS = 10
NEW_TECH_JOB_THRESHOLD = 10
NEW_TECH_SHARE = 0.7
# (minimum completion rate, share of max points), checked top-down
PERFORMANCE_TIERS: tuple[tuple[float, float], ...] = (
    (0.95, 1.0),
    (0.90, 0.9),
    (0.85, 0.7),
    (0.75, 0.5),
)
PERFORMANCE_FLOOR_SHARE = 0.3

WORKLOAD_MAX_POINTS = 10.0
WORKLOAD_ZERO_AT_JOBS = 6

MAX_TOTAL_SCORE = 100.0


@dataclass(frozen=True)
class TechnicianScore:
    tech_id: str
    tech_name: str
    distance_score: float
    availability_score: float
    skill_match_score: float
    performance_score: float
    workload_score: float
    total_score: float
    distance_miles: float
    is_emergency: bool

    def to_dict(self) -> dict:
        return asdict(self)


def round2(value: float) -> float:
    """Round half away from zero to 2 decimals (not banker's rounding)."""
    return math.floor(value * 100 + 0.5) / 100


def distance_score(distance_miles: float | None, is_emergency: bool = False) -> float:
    max_points = DISTANCE_MAX_POINTS_EMERGENCY if is_emergency else DISTANCE_MAX_POINTS
    distance_miles = distance_miles or 0.0
    if distance_miles <= 0:
        return max_points
    if distance_miles >= DISTANCE_ZERO_AT_MILES:
        return 0.0
    score = max_points * (1 - distance_miles / DISTANCE_ZERO_AT_MILES)
    return round2(max(0.0, score))


def availability_score(
    current_jobs: int | None, max_jobs: int | None, is_emergency: bool = False
) -> float:
    max_points = AVAILABILITY_MAX_POINTS_EMERGENCY if is_emergency else AVAILABILITY_MAX_POINTS
    current_jobs = current_jobs or 0
    max_jobs = DEFAULT_MAX_CONCURRENT_JOBS if max_jobs is None else max_jobs
    if current_jobs <= 0 or max_jobs <= 0:
        return max_points
    score = max_points * (1 - current_jobs / max_jobs)
    return round2(max(0.0, score))


def skill_match_score(tech: Technician, job: Job) -> float:
    """Score how closely technician levels fit the job's minimum level.

    Exactly at the minimum everywhere is the best fit. Any level above the
    minimum costs a little, a senior technician is wasted on a routine job.
    """
    required = job.required_skills or []
    if not required:
        return SKILL_MATCH_EXACT

    minimum = job.minimum_skill_level or 0
    total_deficit = 0
    overqualified = False
    for skill in required:
        level = (tech.skill_level or {}).get(skill, DEFAULT_SKILL_LEVEL) or DEFAULT_SKILL_LEVEL
        total_deficit += max(0, minimum - level)
        if level > minimum:
            overqualified = True

    avg_deficit = total_deficit / len(required)

    if avg_deficit == 0:
        return SKILL_MATCH_PARTIAL if overqualified else SKILL_MATCH_EXACT
    if overqualified and avg_deficit <= SKILL_DEFICIT_TOLERANCE:
        return SKILL_MATCH_PARTIAL
    return SKILL_MATCH_UNDERQUALIFIED


def performance_score(completion_rate: float | None, recent_job_count: int | None) -> float:
    completion_rate = completion_rate or 0.0
    if (recent_job_count or 0) < NEW_TECH_JOB_THRESHOLD:
        return round(PERFORMANCE_MAX_POINTS * NEW_TECH_SHARE)
    for threshold, share in PERFORMANCE_TIERS:
        if completion_rate >= threshold:
            return round(PERFORMANCE_MAX_POINTS * share)
    return round(PERFORMANCE_MAX_POINTS * PERFORMANCE_FLOOR_SHARE)


def workload_score(daily_job_count: int | None, is_emergency: bool = False) -> float:
    # Emergency dispatch ignores daily load balancing
    if is_emergency:
        return 0.0
    daily_job_count = daily_job_count or 0
    if daily_job_count <= 0:
        return WORKLOAD_MAX_POINTS
    if daily_job_count >= WORKLOAD_ZERO_AT_JOBS:
        return 0.0
    score = WORKLOAD_MAX_POINTS * (1 - daily_job_count / WORKLOAD_ZERO_AT_JOBS)
    return round2(max(0.0, score))


def _point_or_origin(point: GeoPoint | None) -> GeoPoint:
    if point is None:
        return GeoPoint(latitude=DEFAULT_COORDINATE, longitude=DEFAULT_COORDINATE)
    return point


def score_technician(tech: Technician, job: Job) -> TechnicianScore:
    """Score one technician for a job. Pure and deterministic."""
    is_emergency = job.is_emergency

    distance_miles = _point_or_origin(tech.location).haversine_miles(
        _point_or_origin(job.location)
    )
    if not math.isfinite(distance_miles):
        distance_miles = 0.0

    components = (
        distance_score(distance_miles, is_emergency),
        availability_score(tech.current_jobs_count, tech.max_concurrent_jobs, is_emergency),
        skill_match_score(tech, job),
        performance_score(tech.recent_completion_rate, tech.recent_job_count),
        workload_score(tech.daily_job_count, is_emergency),
    )
    total = min(MAX_TOTAL_SCORE, max(0.0, sum(components)))

    return TechnicianScore(
        tech_id=tech.id or "unknown",
        tech_name=tech.name or "unknown",
        distance_score=components[0],
        availability_score=components[1],
        skill_match_score=components[2],
        performance_score=components[3],
        workload_score=components[4],
        total_score=round2(total),
        distance_miles=distance_miles,
        is_emergency=is_emergency,
    )


def score_all_technicians(technicians: list[Technician], job: Job) -> list[TechnicianScore]:
    """Score every technician; anything that is not a list or tuple yields []."""
    if not isinstance(technicians, (list, tuple)):
        return []
    return [score_technician(tech, job) for tech in technicians]
