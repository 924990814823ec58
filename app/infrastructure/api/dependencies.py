"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.geocoder.google_maps_adapter import GoogleMapsAdapter
from app.adapters.geocoder.nominatim_adapter import NominatimAdapter
from app.adapters.persistence.assignment_store import SqlAssignmentStore
from app.adapters.persistence.database import async_session_factory, get_session
from app.adapters.persistence.repositories import (
    SqlAnalyticsRepository,
    SqlJobRepository,
    SqlTechnicianRepository,
)
from app.adapters.routing.haversine_estimator import HaversineDriveTimeEstimator
from app.adapters.routing.osrm_adapter import OsrmDriveTimeAdapter
from app.application.ports.drive_time_port import DriveTimeProvider
from app.application.ports.geocoder_port import GeocoderPort
from app.application.use_cases.batch_dispatch import BatchDispatchUseCase
from app.application.use_cases.geocode_jobs import GeocodePendingJobsUseCase
from app.application.use_cases.run_dispatch import ManualAssignUseCase, RunDispatchUseCase
from app.config import settings

logger = logging.getLogger(__name__)

# Singleton adapters (stateless or with internal caching)
_store = SqlAssignmentStore(async_session_factory)

_geocoder_adapter: GeocoderPort
if settings.google_maps_api_key:
    _geocoder_adapter = GoogleMapsAdapter()
    logger.info("Using Google Maps for geocoding")
else:
    _geocoder_adapter = NominatimAdapter()

_drive_time_adapter: DriveTimeProvider
if settings.osrm_base_url:
    _drive_time_adapter = OsrmDriveTimeAdapter()
    logger.info("Using OSRM at %s for drive times", settings.osrm_base_url)
else:
    _drive_time_adapter = HaversineDriveTimeEstimator()


def get_assignment_store() -> SqlAssignmentStore:
    return _store


def get_analytics_repo(session: AsyncSession = Depends(get_session)) -> SqlAnalyticsRepository:
    return SqlAnalyticsRepository(session)


def get_run_dispatch_uc(
    session: AsyncSession = Depends(get_session),
) -> RunDispatchUseCase:
    return RunDispatchUseCase(
        job_repo=SqlJobRepository(session),
        tech_repo=SqlTechnicianRepository(session),
        store=_store,
    )


def get_manual_assign_uc(
    run_dispatch: RunDispatchUseCase = Depends(get_run_dispatch_uc),
) -> ManualAssignUseCase:
    return ManualAssignUseCase(run_dispatch=run_dispatch, store=_store)


def get_batch_dispatch_uc(
    session: AsyncSession = Depends(get_session),
) -> BatchDispatchUseCase:
    return BatchDispatchUseCase(
        job_repo=SqlJobRepository(session),
        tech_repo=SqlTechnicianRepository(session),
        drive_times=_drive_time_adapter,
        store=_store,
    )


def get_geocode_jobs_uc(
    session: AsyncSession = Depends(get_session),
) -> GeocodePendingJobsUseCase:
    return GeocodePendingJobsUseCase(job_repo=SqlJobRepository(session), geocoder=_geocoder_adapter)
