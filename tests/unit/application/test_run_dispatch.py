"""Tests for RunDispatchUseCase and ManualAssignUseCase."""

import pytest

from app.application.use_cases.run_dispatch import ManualAssignUseCase, RunDispatchUseCase
from app.domain.errors import (
    JobAlreadyAssignedError,
    JobNotFoundError,
    TechnicianNotRecommendedError,
)
from tests.builders import make_job
from tests.fakes import FakeJobRepo, FakeTechRepo, InMemoryAssignmentStore


def _wire(roster, jobs):
    job_repo = FakeJobRepo(jobs)
    tech_repo = FakeTechRepo(roster)
    store = InMemoryAssignmentStore(job_repo.jobs, tech_repo.techs)
    uc = RunDispatchUseCase(job_repo, tech_repo, store, tie_threshold=0.1, top_n=3)
    return uc, store


# ─── RunDispatchUseCase ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_dispatch_assigns_best_technician(dallas_roster):
    uc, store = _wire(dallas_roster, [make_job()])

    outcome = await uc.execute("job-001", actor="dispatcher-1")

    assert outcome.assignment is not None
    assert outcome.assignment.tech_id == "tech-001"
    assert outcome.assignment.assigned_by == "dispatcher-1"
    assert outcome.assignment.is_manual_override is False
    assert outcome.assignment.scoring_details["assigned_tech"]["tech_id"] == "tech-001"
    assert store.jobs["job-001"].status == "assigned"
    assert store.techs["tech-001"].current_jobs_count == 1
    assert outcome.to_dict()["assigned"] is True


@pytest.mark.asyncio
async def test_recommend_does_not_write(dallas_roster):
    uc, store = _wire(dallas_roster, [make_job()])

    rec = await uc.recommend("job-001")

    assert rec.assigned_tech.tech_id == "tech-001"
    assert store.assignments == []
    assert store.jobs["job-001"].status == "unassigned"


@pytest.mark.asyncio
async def test_manual_dispatch_is_not_persisted(dallas_roster):
    uc, store = _wire(dallas_roster, [make_job(required_skills=["plumbing"])])

    outcome = await uc.execute("job-001")

    assert outcome.recommendation.requires_manual_dispatch is True
    assert outcome.assignment is None
    assert store.assignments == []


@pytest.mark.asyncio
async def test_unknown_job_raises(dallas_roster):
    uc, _ = _wire(dallas_roster, [])
    with pytest.raises(JobNotFoundError):
        await uc.execute("job-404")


@pytest.mark.asyncio
async def test_already_assigned_job_raises(dallas_roster):
    job = make_job(status="assigned", assigned_tech_id="tech-002")
    uc, store = _wire(dallas_roster, [job])
    with pytest.raises(JobAlreadyAssignedError):
        await uc.execute("job-001")
    assert store.assignments == []


@pytest.mark.asyncio
async def test_other_tenant_roster_is_ignored(dallas_roster):
    uc, _ = _wire(dallas_roster, [make_job(tenant_id="other-co")])
    outcome = await uc.execute("job-001")
    assert outcome.recommendation.requires_manual_dispatch is True


# ─── ManualAssignUseCase ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_manual_assign_to_recommended_technician(dallas_roster):
    uc, store = _wire(dallas_roster, [make_job()])
    manual = ManualAssignUseCase(uc, store)

    outcome = await manual.execute("job-001", "tech-002", "dispatcher-1", "Customer prefers Bob")

    assert outcome.assignment.tech_id == "tech-002"
    assert outcome.assignment.is_manual_override is True
    assert outcome.assignment.override_reason == "Customer prefers Bob"
    assert outcome.recommendation.override.original_tech_id == "tech-001"
    assert store.techs["tech-002"].current_jobs_count == 2


@pytest.mark.asyncio
async def test_manual_assign_outside_recommendations_is_rejected(dallas_roster):
    uc, store = _wire(dallas_roster, [make_job()])
    manual = ManualAssignUseCase(uc, store)

    with pytest.raises(TechnicianNotRecommendedError) as exc_info:
        await manual.execute("job-001", "tech-004", "dispatcher-1", "Dave is free today")

    assert exc_info.value.candidates == ["tech-001", "tech-002", "tech-003"]
    assert store.assignments == []
