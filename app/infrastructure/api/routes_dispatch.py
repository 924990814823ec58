"""Single-job dispatch endpoints — recommend, auto-assign, manual override."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from app.application.use_cases.run_dispatch import ManualAssignUseCase, RunDispatchUseCase
from app.domain.policies.ranking import format_recommendation
from app.infrastructure.api.dependencies import get_manual_assign_uc, get_run_dispatch_uc

router = APIRouter(prefix="/jobs", tags=["dispatch"])


class ManualAssignRequest(BaseModel):
    tech_id: str = Field(min_length=1)
    reason: str = Field(min_length=10)
    actor: str = "dispatcher"


@router.post("/{job_id}/dispatch")
async def dispatch_job(
    job_id: str,
    actor: str = "system",
    uc: RunDispatchUseCase = Depends(get_run_dispatch_uc),
):
    """Recommend a technician and assign when one is eligible."""
    outcome = await uc.execute(job_id, actor=actor, auto_assign=True)
    return {"status": "ok", **outcome.to_dict()}


@router.get("/{job_id}/recommendations")
async def job_recommendations(
    job_id: str,
    output: str = Query("json", pattern="^(json|text)$"),
    uc: RunDispatchUseCase = Depends(get_run_dispatch_uc),
):
    recommendation = await uc.recommend(job_id)
    if output == "text":
        return PlainTextResponse(format_recommendation(recommendation))
    return recommendation.to_dict()


@router.post("/{job_id}/assign")
async def assign_job(
    job_id: str,
    body: ManualAssignRequest,
    uc: ManualAssignUseCase = Depends(get_manual_assign_uc),
):
    """Assign one of the top recommendations instead of the automatic pick."""
    outcome = await uc.execute(job_id, body.tech_id, body.actor, body.reason)
    return {"status": "ok", **outcome.to_dict()}
