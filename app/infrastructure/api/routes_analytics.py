"""Analytics endpoints — dispatch summary + technician workload."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.adapters.persistence.repositories import SqlAnalyticsRepository
from app.domain.policies.scoring import round2
from app.infrastructure.api.dependencies import get_analytics_repo

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/summary")
async def analytics_summary(
    tenant_id: str | None = None,
    repo: SqlAnalyticsRepository = Depends(get_analytics_repo),
):
    """Aggregate dispatch stats for the dashboard."""
    by_status = await repo.job_status_counts(tenant_id)
    assignments = await repo.assignment_counts(tenant_id)

    automatic = assignments["total"] - assignments["overrides"]
    override_rate = (
        round2(assignments["overrides"] / automatic * 100) if automatic > 0 else None
    )
    return {
        "tenant_id": tenant_id,
        "total_jobs": sum(by_status.values()),
        "by_status": by_status,
        "assignments": assignments["total"],
        "overrides": assignments["overrides"],
        "emergency_assignments": assignments["emergency"],
        "override_rate": override_rate,
    }


@router.get("/technicians")
async def technician_workload(
    tenant_id: str | None = None,
    repo: SqlAnalyticsRepository = Depends(get_analytics_repo),
):
    technicians = await repo.technician_workload(tenant_id)
    return {"total": len(technicians), "technicians": technicians}
