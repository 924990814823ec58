"""Geocoding endpoint — runs one pass over jobs missing coordinates."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.geocode_jobs import GeocodePendingJobsUseCase
from app.infrastructure.api.dependencies import get_geocode_jobs_uc

router = APIRouter(prefix="/geocoding", tags=["geocoding"])


@router.post("/run")
async def run_geocoding(
    limit: int = 10,
    uc: GeocodePendingJobsUseCase = Depends(get_geocode_jobs_uc),
    session: AsyncSession = Depends(get_session),
):
    summary = await uc.execute(limit=limit)
    await session.commit()
    return {"status": "ok", **asdict(summary)}
