"""Batch dispatch endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import SqlJobRepository, SqlTechnicianRepository
from app.application.use_cases.batch_dispatch import BatchDispatchUseCase
from app.config import settings
from app.domain.policies.dispatch import get_dispatch_stats, preview_batch
from app.infrastructure.api.dependencies import get_batch_dispatch_uc

router = APIRouter(prefix="/dispatch", tags=["batch"])


class BatchDispatchRequest(BaseModel):
    tenant_id: str
    job_ids: list[str] | None = None
    persist: bool = False


class PreviewRequest(BaseModel):
    tenant_id: str
    job_ids: list[str] | None = None


@router.post("/batch")
async def batch_dispatch(
    body: BatchDispatchRequest,
    uc: BatchDispatchUseCase = Depends(get_batch_dispatch_uc),
):
    """Capacity-aware dispatch of the tenant's unassigned jobs."""
    result = await uc.execute(body.tenant_id, job_ids=body.job_ids, persist=body.persist)
    return result.to_dict()


@router.post("/preview")
async def preview_dispatch(body: PreviewRequest, session: AsyncSession = Depends(get_session)):
    """Per-job recommendations against the full roster; nothing is reserved or saved."""
    jobs = await SqlJobRepository(session).get_unassigned_for_tenant(body.tenant_id, body.job_ids)
    roster = await SqlTechnicianRepository(session).get_dispatch_candidates(body.tenant_id)
    recommendations = preview_batch(
        jobs, roster, tie_threshold=settings.tie_threshold, top_n=settings.top_n
    )
    return {
        "recommendations": [r.to_dict() for r in recommendations],
        "stats": get_dispatch_stats(recommendations),
    }
