"""Job endpoints — listing, detail and lifecycle transitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.assignment_store import SqlAssignmentStore
from app.adapters.persistence.database import get_session
from app.adapters.persistence.models import JobAssignmentModel, JobModel
from app.domain.errors import JobNotFoundError
from app.infrastructure.api.dependencies import get_assignment_store

router = APIRouter(prefix="/jobs", tags=["jobs"])


class CompleteJobRequest(BaseModel):
    completion_notes: str | None = None
    duration_minutes: int | None = Field(default=None, ge=1)
    first_time_fix: bool = True
    customer_rating: int | None = Field(default=None, ge=1, le=5)


@router.get("")
async def list_jobs(
    tenant_id: str | None = None,
    status: str | None = None,
    limit: int = 100,
    session: AsyncSession = Depends(get_session),
):
    """List jobs, optionally filtered by tenant and status."""
    stmt = select(JobModel).order_by(JobModel.created_at, JobModel.id).limit(limit)
    if tenant_id:
        stmt = stmt.where(JobModel.tenant_id == tenant_id)
    if status:
        stmt = stmt.where(JobModel.status == status)
    jobs = (await session.execute(stmt)).scalars().all()

    return {"total": len(jobs), "jobs": [_serialize_job(j) for j in jobs]}


@router.get("/{job_id}")
async def get_job(job_id: str, session: AsyncSession = Depends(get_session)):
    """Get a single job with its assignment history."""
    job = await session.get(JobModel, job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    history = (
        await session.execute(
            select(JobAssignmentModel)
            .where(JobAssignmentModel.job_id == job_id)
            .order_by(JobAssignmentModel.assigned_at)
        )
    ).scalars().all()

    data = _serialize_job(job)
    data["assignments"] = [
        {
            "id": a.id,
            "tech_id": a.tech_id,
            "assigned_by": a.assigned_by,
            "is_manual_override": a.is_manual_override,
            "override_reason": a.override_reason,
            "assigned_at": a.assigned_at.isoformat() if a.assigned_at else None,
        }
        for a in history
    ]
    return data


@router.post("/{job_id}/start")
async def start_job(job_id: str, store: SqlAssignmentStore = Depends(get_assignment_store)):
    await store.start(job_id)
    return {"status": "ok", "job_id": job_id, "job_status": "in_progress"}


@router.post("/{job_id}/complete")
async def complete_job(
    job_id: str,
    body: CompleteJobRequest,
    store: SqlAssignmentStore = Depends(get_assignment_store),
):
    completion = await store.complete(
        job_id,
        notes=body.completion_notes,
        duration_minutes=body.duration_minutes,
        first_time_fix=body.first_time_fix,
        rating=body.customer_rating,
    )
    return {
        "status": "ok",
        "job_id": job_id,
        "tech_id": completion.tech_id,
        "completion_id": completion.id,
        "completed_at": completion.completed_at.isoformat(),
    }


@router.delete("/{job_id}/assignment")
async def unassign_job(job_id: str, store: SqlAssignmentStore = Depends(get_assignment_store)):
    tech_id = await store.unassign(job_id)
    return {"status": "ok", "job_id": job_id, "unassigned_tech_id": tech_id}


def _serialize_job(j: JobModel) -> dict:
    return {
        "id": j.id,
        "tenant_id": j.tenant_id,
        "customer_name": j.customer_name,
        "address": j.address,
        "job_type": j.job_type,
        "priority": j.priority,
        "status": j.status,
        "assigned_tech_id": j.assigned_tech_id,
        "latitude": j.latitude,
        "longitude": j.longitude,
        "geocoding_status": j.geocoding_status,
        "required_skills": list(j.required_skills or []),
        "minimum_skill_level": j.minimum_skill_level,
        "created_at": j.created_at.isoformat() if j.created_at else None,
        "started_at": j.started_at.isoformat() if j.started_at else None,
        "completed_at": j.completed_at.isoformat() if j.completed_at else None,
    }
