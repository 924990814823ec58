"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import (
    JobAssignmentModel,
    JobCompletionModel,
    JobModel,
    TechnicianLocationModel,
    TechnicianModel,
)
from app.application.ports.analytics_repo import AnalyticsRepository
from app.application.ports.job_repo import JobRepository
from app.application.ports.technician_repo import TechnicianRepository
from app.config import settings
from app.domain.entities.job import Job
from app.domain.entities.technician import Technician
from app.domain.value_objects.enums import GeocodingStatus, JobStatus
from app.domain.value_objects.geo_point import GeoPoint

DEFAULT_RATING = 3.0

# ─── Mappers ─────────────────────────────────────────────────────────


def _point(lat: float | None, lon: float | None) -> GeoPoint | None:
    if lat is None or lon is None:
        return None
    return GeoPoint(latitude=lat, longitude=lon)


def _job_to_domain(m: JobModel) -> Job:
    return Job(
        id=m.id,
        tenant_id=m.tenant_id,
        job_type=m.job_type,
        priority=m.priority,
        location=_point(m.latitude, m.longitude),
        required_skills=list(m.required_skills or []),
        minimum_skill_level=m.minimum_skill_level or 0,
        status=m.status,
        assigned_tech_id=m.assigned_tech_id,
        address=m.address,
        customer_name=m.customer_name,
        geocoding_status=m.geocoding_status,
        geocoding_retries=m.geocoding_retries or 0,
        created_at=m.created_at,
    )


def _tech_to_domain(m: TechnicianModel) -> Technician:
    return Technician(
        id=m.id,
        tenant_id=m.tenant_id,
        name=m.name,
        is_active=m.is_active,
        is_available=m.is_available,
        current_jobs_count=m.current_jobs_count or 0,
        max_concurrent_jobs=m.max_concurrent_jobs,
        max_jobs_per_day=m.max_jobs_per_day,
        location=_point(m.latitude, m.longitude),
        max_travel_distance_miles=m.max_travel_distance_miles or 0.0,
        skills=set(m.skills) if m.skills else set(),
        skill_level={k: int(v) for k, v in (m.skill_level or {}).items()},
        average_rating=m.rating if m.rating is not None else DEFAULT_RATING,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlJobRepository(JobRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, job_id: str) -> Job | None:
        m = await self._s.get(JobModel, job_id)
        return _job_to_domain(m) if m else None

    async def get_unassigned_for_tenant(
        self, tenant_id: str, job_ids: list[str] | None = None
    ) -> list[Job]:
        stmt = (
            select(JobModel)
            .where(
                JobModel.tenant_id == tenant_id,
                JobModel.status == JobStatus.UNASSIGNED.value,
                JobModel.assigned_tech_id.is_(None),
            )
            .order_by(JobModel.created_at, JobModel.id)
        )
        if job_ids:
            stmt = stmt.where(JobModel.id.in_(job_ids))
        result = await self._s.execute(stmt)
        return [_job_to_domain(m) for m in result.scalars()]

    async def get_pending_geocoding(self, max_retries: int, limit: int) -> list[Job]:
        result = await self._s.execute(
            select(JobModel)
            .where(
                JobModel.address.is_not(None),
                or_(
                    JobModel.geocoding_status == GeocodingStatus.PENDING.value,
                    and_(
                        JobModel.geocoding_status == GeocodingStatus.FAILED.value,
                        JobModel.geocoding_retries < max_retries,
                    ),
                ),
            )
            .order_by(JobModel.created_at, JobModel.id)
            .limit(limit)
        )
        return [_job_to_domain(m) for m in result.scalars()]

    async def update_geocoding(
        self, job_id: str, location: GeoPoint | None, status: str, retries: int
    ) -> None:
        await self._s.execute(
            update(JobModel)
            .where(JobModel.id == job_id)
            .values(
                latitude=location.latitude if location else None,
                longitude=location.longitude if location else None,
                geocoding_status=status,
                geocoding_retries=retries,
            )
        )
        await self._s.flush()

    async def save(self, job: Job) -> Job:
        m = JobModel(
            id=job.id,
            tenant_id=job.tenant_id,
            customer_name=job.customer_name,
            address=job.address,
            job_type=job.job_type,
            priority=job.priority,
            status=job.status,
            assigned_tech_id=job.assigned_tech_id,
            latitude=job.location.latitude if job.location else None,
            longitude=job.location.longitude if job.location else None,
            geocoding_status=job.geocoding_status,
            geocoding_retries=job.geocoding_retries,
            required_skills=list(job.required_skills),
            minimum_skill_level=job.minimum_skill_level,
        )
        await self._s.merge(m)
        await self._s.flush()
        return job


class SqlTechnicianRepository(TechnicianRepository):
    def __init__(
        self,
        session: AsyncSession,
        lookback_days: int | None = None,
        freshness_minutes: int | None = None,
        default_max_jobs_per_day: int | None = None,
    ):
        self._s = session
        self._lookback_days = lookback_days or settings.metrics_lookback_days
        self._freshness_minutes = freshness_minutes or settings.location_freshness_minutes
        self._default_max_per_day = (
            default_max_jobs_per_day or settings.default_max_jobs_per_day
        )

    async def get_by_id(self, tech_id: str) -> Technician | None:
        m = await self._s.get(TechnicianModel, tech_id)
        return _tech_to_domain(m) if m else None

    async def get_dispatch_candidates(self, tenant_id: str) -> list[Technician]:
        result = await self._s.execute(
            select(TechnicianModel)
            .where(
                TechnicianModel.tenant_id == tenant_id,
                TechnicianModel.is_active.is_(True),
                TechnicianModel.is_available.is_(True),
                TechnicianModel.latitude.is_not(None),
                TechnicianModel.longitude.is_not(None),
            )
            .order_by(TechnicianModel.id)
        )
        techs = [_tech_to_domain(m) for m in result.scalars()]
        await self._attach_metrics(techs)
        return techs

    async def get_batch_roster(self, tenant_id: str) -> list[Technician]:
        max_per_day = func.coalesce(TechnicianModel.max_jobs_per_day, self._default_max_per_day)
        result = await self._s.execute(
            select(TechnicianModel)
            .where(
                TechnicianModel.tenant_id == tenant_id,
                TechnicianModel.is_active.is_(True),
                TechnicianModel.is_available.is_(True),
                TechnicianModel.current_jobs_count < max_per_day,
            )
            .order_by(TechnicianModel.id)
        )
        techs = [_tech_to_domain(m) for m in result.scalars()]
        for tech in techs:
            if tech.max_jobs_per_day is None:
                tech.max_jobs_per_day = self._default_max_per_day
        await self._attach_live_locations(techs)
        await self._attach_metrics(techs)
        return techs

    async def save(self, tech: Technician) -> Technician:
        m = TechnicianModel(
            id=tech.id,
            tenant_id=tech.tenant_id,
            name=tech.name,
            is_active=tech.is_active,
            is_available=tech.is_available,
            current_jobs_count=tech.current_jobs_count,
            max_concurrent_jobs=tech.max_concurrent_jobs,
            max_jobs_per_day=tech.max_jobs_per_day,
            latitude=tech.location.latitude if tech.location else None,
            longitude=tech.location.longitude if tech.location else None,
            max_travel_distance_miles=tech.max_travel_distance_miles,
            skills=sorted(tech.skills),
            skill_level=dict(tech.skill_level),
            rating=tech.average_rating,
        )
        await self._s.merge(m)
        await self._s.flush()
        return tech

    async def _attach_live_locations(self, techs: list[Technician]) -> None:
        if not techs:
            return
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=self._freshness_minutes)
        result = await self._s.execute(
            select(TechnicianLocationModel)
            .where(
                TechnicianLocationModel.tech_id.in_([t.id for t in techs]),
                TechnicianLocationModel.updated_at >= cutoff,
            )
            .order_by(TechnicianLocationModel.tech_id, TechnicianLocationModel.updated_at.desc())
            .distinct(TechnicianLocationModel.tech_id)
        )
        latest = {m.tech_id: GeoPoint(m.latitude, m.longitude) for m in result.scalars()}
        for tech in techs:
            tech.current_location = latest.get(tech.id)

    async def _attach_metrics(self, techs: list[Technician]) -> None:
        """Fill rolling completion metrics from job history."""
        if not techs:
            return
        ids = [t.id for t in techs]
        now = datetime.now(timezone.utc)
        window_start = now - timedelta(days=self._lookback_days)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        completions = await self._s.execute(
            select(
                JobCompletionModel.tech_id,
                func.count(JobCompletionModel.id),
                func.count(case((JobCompletionModel.completed_at >= day_start, 1))),
            )
            .where(
                JobCompletionModel.tech_id.in_(ids),
                JobCompletionModel.completed_at >= window_start,
            )
            .group_by(JobCompletionModel.tech_id)
        )
        completed = {row[0]: row[1:] for row in completions.all()}

        assignments = await self._s.execute(
            select(JobAssignmentModel.tech_id, func.count(JobAssignmentModel.id))
            .where(
                JobAssignmentModel.tech_id.in_(ids),
                JobAssignmentModel.assigned_at >= window_start,
            )
            .group_by(JobAssignmentModel.tech_id)
        )
        assigned = dict(assignments.all())

        for tech in techs:
            recent, daily = completed.get(tech.id, (0, 0))
            total_assigned = assigned.get(tech.id, 0)
            tech.recent_job_count = recent
            tech.daily_job_count = daily
            tech.recent_completion_rate = (
                min(1.0, recent / total_assigned) if total_assigned else 0.0
            )


class SqlAnalyticsRepository(AnalyticsRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def job_status_counts(self, tenant_id: str | None = None) -> dict[str, int]:
        stmt = select(JobModel.status, func.count(JobModel.id)).group_by(JobModel.status)
        if tenant_id:
            stmt = stmt.where(JobModel.tenant_id == tenant_id)
        result = await self._s.execute(stmt)
        return {status: count for status, count in result.all()}

    async def assignment_counts(self, tenant_id: str | None = None) -> dict[str, int]:
        stmt = select(
            func.count(JobAssignmentModel.id),
            func.count(case((JobAssignmentModel.is_manual_override.is_(True), 1))),
            func.count(case((JobAssignmentModel.is_emergency.is_(True), 1))),
        )
        if tenant_id:
            stmt = stmt.where(JobAssignmentModel.tenant_id == tenant_id)
        total, overrides, emergency = (await self._s.execute(stmt)).one()
        return {"total": total, "overrides": overrides, "emergency": emergency}

    async def technician_workload(self, tenant_id: str | None = None) -> list[dict]:
        stmt = select(TechnicianModel).order_by(TechnicianModel.id)
        if tenant_id:
            stmt = stmt.where(TechnicianModel.tenant_id == tenant_id)
        result = await self._s.execute(stmt)
        return [
            {
                "tech_id": m.id,
                "name": m.name,
                "is_active": m.is_active,
                "is_available": m.is_available,
                "current_jobs_count": m.current_jobs_count,
                "max_concurrent_jobs": m.max_concurrent_jobs,
                "max_jobs_per_day": m.max_jobs_per_day,
            }
            for m in result.scalars()
        ]
