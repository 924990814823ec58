"""SqlAssignmentStore against a real PostgreSQL database.

Set TEST_DATABASE_URL (postgresql+asyncpg://...) to a disposable database;
every test drops and recreates the schema.
"""

import asyncio
import os

import pytest
import pytest_asyncio
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.adapters.persistence.assignment_store import SqlAssignmentStore
from app.adapters.persistence.database import Base
from app.adapters.persistence.models import (
    JobAssignmentModel,
    JobCompletionModel,
    JobModel,
    TechnicianModel,
)
from app.domain.entities.assignment import AssignmentLog
from app.domain.errors import (
    InvalidJobStateError,
    JobAlreadyAssignedError,
    JobNotAssignedError,
    JobNotFoundError,
    JobNotStartableError,
    TechnicianAtCapacityError,
)

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")
TENANT = "company-123"

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set"),
]


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL, pool_size=10)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


async def _seed(factory, techs: list[dict], jobs: list[dict]) -> None:
    async with factory() as s, s.begin():
        s.add_all(
            TechnicianModel(
                tenant_id=TENANT,
                name=t["id"],
                latitude=32.7767,
                longitude=-96.797,
                skills=["hvac_repair"],
                skill_level={"hvac_repair": 2},
                **t,
            )
            for t in techs
        )
        await s.flush()
        s.add_all(
            JobModel(tenant_id=TENANT, job_type="repair", priority="high", **j) for j in jobs
        )


async def _tech_count(factory, tech_id: str) -> int:
    async with factory() as s:
        return (await s.get(TechnicianModel, tech_id)).current_jobs_count


async def _job(factory, job_id: str) -> JobModel:
    async with factory() as s:
        return await s.get(JobModel, job_id)


# ─── assign ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_two_dispatchers_same_job_one_wins(session_factory):
    await _seed(
        session_factory,
        [{"id": "tech-001", "max_concurrent_jobs": 3}, {"id": "tech-002", "max_concurrent_jobs": 3}],
        [{"id": "job-001"}],
    )
    store = SqlAssignmentStore(session_factory)

    results = await asyncio.gather(
        store.assign("job-001", "tech-001", "alice"),
        store.assign("job-001", "tech-002", "bob"),
        return_exceptions=True,
    )

    wins = [r for r in results if isinstance(r, AssignmentLog)]
    assert len(wins) == 1
    assert sum(isinstance(r, JobAlreadyAssignedError) for r in results) == 1

    job = await _job(session_factory, "job-001")
    assert job.status == "assigned"
    assert job.assigned_tech_id == wins[0].tech_id
    total = await _tech_count(session_factory, "tech-001") + await _tech_count(session_factory, "tech-002")
    assert total == 1
    async with session_factory() as s:
        logs = (await s.execute(select(JobAssignmentModel))).scalars().all()
    assert len(logs) == 1


@pytest.mark.asyncio
async def test_last_slot_is_never_oversold(session_factory):
    job_ids = [f"job-{i}" for i in range(4)]
    await _seed(
        session_factory,
        [{"id": "tech-001", "current_jobs_count": 1, "max_concurrent_jobs": 2}],
        [{"id": j} for j in job_ids],
    )
    store = SqlAssignmentStore(session_factory)

    results = await asyncio.gather(
        *(store.assign(j, "tech-001", "batch") for j in job_ids),
        return_exceptions=True,
    )

    assert sum(isinstance(r, AssignmentLog) for r in results) == 1
    assert sum(isinstance(r, TechnicianAtCapacityError) for r in results) == 3
    assert await _tech_count(session_factory, "tech-001") == 2
    async with session_factory() as s:
        unassigned = (
            await s.execute(select(JobModel).where(JobModel.status == "unassigned"))
        ).scalars().all()
    assert len(unassigned) == 3


@pytest.mark.asyncio
async def test_assign_records_snapshot_and_override(session_factory):
    await _seed(session_factory, [{"id": "tech-001", "max_concurrent_jobs": 1}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)

    log = await store.assign(
        "job-001", "tech-001", "disp-1", is_override=True,
        reason="Customer asked for Alice", scoring_snapshot={"job_id": "job-001"},
    )

    assert log.id is not None
    assert log.is_manual_override is True
    async with session_factory() as s:
        row = await s.get(JobAssignmentModel, log.id)
    assert row.override_reason == "Customer asked for Alice"
    assert row.scoring_details == {"job_id": "job-001"}


@pytest.mark.asyncio
async def test_assign_unknown_job(session_factory):
    await _seed(session_factory, [{"id": "tech-001"}], [])
    with pytest.raises(JobNotFoundError):
        await SqlAssignmentStore(session_factory).assign("job-404", "tech-001", "alice")


# ─── complete ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_complete_releases_capacity_and_logs(session_factory):
    await _seed(session_factory, [{"id": "tech-001", "max_concurrent_jobs": 1}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)
    await store.assign("job-001", "tech-001", "alice")

    completion = await store.complete("job-001", notes="Replaced capacitor", duration_minutes=40, rating=5)

    assert completion.tech_id == "tech-001"
    job = await _job(session_factory, "job-001")
    assert job.status == "completed"
    assert job.completed_at is not None
    assert await _tech_count(session_factory, "tech-001") == 0
    async with session_factory() as s:
        row = await s.get(JobCompletionModel, completion.id)
    assert row.customer_rating == 5

    with pytest.raises(InvalidJobStateError):
        await store.complete("job-001")


@pytest.mark.asyncio
async def test_concurrent_completes_one_wins(session_factory):
    await _seed(session_factory, [{"id": "tech-001", "max_concurrent_jobs": 2}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)
    await store.assign("job-001", "tech-001", "alice")

    results = await asyncio.gather(
        store.complete("job-001"), store.complete("job-001"), return_exceptions=True
    )

    assert sum(isinstance(r, InvalidJobStateError) for r in results) == 1
    assert await _tech_count(session_factory, "tech-001") == 0
    async with session_factory() as s:
        completions = (await s.execute(select(JobCompletionModel))).scalars().all()
    assert len(completions) == 1


@pytest.mark.asyncio
async def test_complete_floors_workload_at_zero(session_factory):
    await _seed(session_factory, [{"id": "tech-001"}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)
    await store.assign("job-001", "tech-001", "alice")
    async with session_factory() as s, s.begin():
        await s.execute(update(TechnicianModel).values(current_jobs_count=0))

    await store.complete("job-001")

    assert await _tech_count(session_factory, "tech-001") == 0


@pytest.mark.asyncio
async def test_complete_unassigned_job(session_factory):
    await _seed(session_factory, [], [{"id": "job-001"}])
    with pytest.raises(JobNotAssignedError):
        await SqlAssignmentStore(session_factory).complete("job-001")


# ─── start / unassign ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_only_from_assigned(session_factory):
    await _seed(session_factory, [{"id": "tech-001"}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)

    with pytest.raises(JobNotStartableError):
        await store.start("job-001")
    with pytest.raises(JobNotStartableError):
        await store.start("job-404")

    await store.assign("job-001", "tech-001", "alice")
    await store.start("job-001")
    job = await _job(session_factory, "job-001")
    assert job.status == "in_progress"
    assert job.started_at is not None

    with pytest.raises(JobNotStartableError):
        await store.start("job-001")


@pytest.mark.asyncio
async def test_unassign_in_progress_job(session_factory):
    await _seed(session_factory, [{"id": "tech-001"}], [{"id": "job-001"}])
    store = SqlAssignmentStore(session_factory)
    await store.assign("job-001", "tech-001", "alice")
    await store.start("job-001")

    assert await store.unassign("job-001") == "tech-001"

    job = await _job(session_factory, "job-001")
    assert job.status == "unassigned"
    assert job.assigned_tech_id is None
    assert await _tech_count(session_factory, "tech-001") == 0
    with pytest.raises(JobNotAssignedError):
        await store.unassign("job-001")
