"""Concurrent assignment: exactly one writer wins a job or a technician's last slot."""

import asyncio

import pytest

from app.domain.entities.assignment import AssignmentLog
from app.domain.errors import (
    InvalidJobStateError,
    JobAlreadyAssignedError,
    JobNotAssignedError,
    JobNotStartableError,
    TechnicianAtCapacityError,
)
from tests.builders import make_job, make_tech
from tests.fakes import InMemoryAssignmentStore


def _store(jobs, techs) -> InMemoryAssignmentStore:
    return InMemoryAssignmentStore({j.id: j for j in jobs}, {t.id: t for t in techs})


@pytest.mark.asyncio
async def test_two_dispatchers_same_job_one_wins():
    store = _store([make_job()], [make_tech("tech-001"), make_tech("tech-002")])

    results = await asyncio.gather(
        store.assign("job-001", "tech-001", "alice"),
        store.assign("job-001", "tech-002", "bob"),
        return_exceptions=True,
    )

    wins = [r for r in results if isinstance(r, AssignmentLog)]
    losses = [r for r in results if isinstance(r, JobAlreadyAssignedError)]
    assert len(wins) == 1
    assert len(losses) == 1
    assert store.jobs["job-001"].assigned_tech_id == wins[0].tech_id
    assert sum(t.current_jobs_count for t in store.techs.values()) == 1


@pytest.mark.asyncio
async def test_last_slot_is_never_oversold():
    jobs = [make_job(f"job-{i}") for i in range(4)]
    store = _store(jobs, [make_tech("tech-001", current_jobs_count=1, max_concurrent_jobs=2)])

    results = await asyncio.gather(
        *(store.assign(j.id, "tech-001", "batch") for j in jobs),
        return_exceptions=True,
    )

    assert sum(isinstance(r, AssignmentLog) for r in results) == 1
    assert sum(isinstance(r, TechnicianAtCapacityError) for r in results) == 3
    assert store.techs["tech-001"].current_jobs_count == 2


@pytest.mark.asyncio
async def test_complete_releases_capacity():
    store = _store([make_job()], [make_tech("tech-001", max_concurrent_jobs=1)])
    await store.assign("job-001", "tech-001", "alice")

    log = await store.complete("job-001", notes="Replaced capacitor", duration_minutes=45, rating=5)

    assert log.tech_id == "tech-001"
    assert store.jobs["job-001"].status == "completed"
    assert store.techs["tech-001"].current_jobs_count == 0
    with pytest.raises(InvalidJobStateError):
        await store.complete("job-001")


@pytest.mark.asyncio
async def test_start_then_unassign():
    store = _store([make_job()], [make_tech("tech-001")])
    await store.assign("job-001", "tech-001", "alice")
    await store.start("job-001")
    assert store.jobs["job-001"].status == "in_progress"

    with pytest.raises(JobNotStartableError):
        await store.start("job-001")

    assert await store.unassign("job-001") == "tech-001"
    assert store.jobs["job-001"].status == "unassigned"
    assert store.techs["tech-001"].current_jobs_count == 0
    with pytest.raises(JobNotAssignedError):
        await store.unassign("job-001")
