"""EligibilityPolicy — hard rule gates a technician must pass for a job.

Seven rules are evaluated in a fixed order and all of them always run, so a
result explains every failure at once:

  1. Technician is active.
  2. Technician is available.
  3. Technician is below max concurrent jobs.
  4. Technician and job belong to the same tenant.
  5. Technician has a valid location.
  6. Technician is within their max travel distance of the job.
  7. Technician meets the minimum level for every required skill.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.value_objects.geo_point import is_valid_point

RULE_COUNT = 7


@dataclass(frozen=True)
class EligibilityResult:
    is_eligible: bool
    failed_rules: tuple[str, ...]
    passed_rules: tuple[str, ...]


@dataclass(frozen=True)
class IneligibleTechnician:
    technician: Technician
    result: EligibilityResult


@dataclass(frozen=True)
class EligibilityPartition:
    eligible: list[Technician]
    ineligible: list[IneligibleTechnician]


def missing_skills(tech: Technician, job: Job) -> list[str]:
    """Required skills the technician lacks or holds below the job's minimum level."""
    missing = []
    for skill in job.required_skills or []:
        known = tech.has_skill(skill) or skill in (tech.skill_level or {})
        if not known or tech.level_for(skill) < (job.minimum_skill_level or 0):
            missing.append(skill)
    return missing


def check_eligibility(tech: Technician, job: Job) -> EligibilityResult:
    """Evaluate all seven rules for one (technician, job) pair. Never raises."""
    failed: list[str] = []
    passed: list[str] = []

    def record(ok: bool, passed_msg: str, failed_msg: str) -> None:
        if ok:
            passed.append(passed_msg)
        else:
            failed.append(failed_msg)

    record(
        bool(tech.is_active),
        "Rule 1: Technician is active",
        "Rule 1: Technician is not active",
    )
    record(
        bool(tech.is_available),
        "Rule 2: Technician is available",
        "Rule 2: Technician is not available",
    )
    record(
        (tech.current_jobs_count or 0) < (tech.max_concurrent_jobs or 0),
        "Rule 3: Technician is not at capacity",
        "Rule 3: Technician is at capacity",
    )
    record(
        tech.tenant_id == job.tenant_id,
        "Rule 4: Technician belongs to the same tenant",
        "Rule 4: Technician belongs to a different tenant",
    )

    tech_location_ok = is_valid_point(tech.location)
    record(
        tech_location_ok,
        "Rule 5: Technician has valid location",
        "Rule 5: Technician has invalid location",
    )

    if not tech_location_ok:
        failed.append("Rule 6: Cannot compute distance due to invalid technician location")
    elif not is_valid_point(job.location):
        failed.append("Rule 6: Cannot compute distance due to invalid job location")
    else:
        distance = tech.location.haversine_miles(job.location)
        record(
            distance <= (tech.max_travel_distance_miles or 0),
            "Rule 6: Technician is within distance",
            f"Rule 6: Technician is too far away (actual: {distance:.2f} mi)",
        )

    missing = missing_skills(tech, job)
    record(
        not missing,
        "Rule 7: Technician meets skill requirements",
        "Rule 7: Technician does not meet skill requirements. "
        f"Missing or insufficient skills: {', '.join(missing)}",
    )

    return EligibilityResult(
        is_eligible=not failed,
        failed_rules=tuple(failed),
        passed_rules=tuple(passed),
    )


def filter_eligible_technicians(
    technicians: list[Technician], job: Job
) -> EligibilityPartition:
    """Partition a roster into eligible technicians and ineligible ones with reasons."""
    eligible: list[Technician] = []
    ineligible: list[IneligibleTechnician] = []

    for tech in technicians or []:
        result = check_eligibility(tech, job)
        if result.is_eligible:
            eligible.append(tech)
        else:
            ineligible.append(IneligibleTechnician(technician=tech, result=result))

    return EligibilityPartition(eligible=eligible, ineligible=ineligible)
