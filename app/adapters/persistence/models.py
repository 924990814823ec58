"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.adapters.persistence.database import Base


class TechnicianModel(Base):
    __tablename__ = "technicians"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    current_jobs_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_concurrent_jobs: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_jobs_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_travel_distance_miles: Mapped[float] = mapped_column(Float, nullable=False, default=30.0)
    skills: Mapped[list[str]] = mapped_column(ARRAY(String(50)), nullable=False, default=list)
    skill_level: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    locations: Mapped[list["TechnicianLocationModel"]] = relationship(
        back_populates="technician"
    )

    __table_args__ = (
        Index("idx_technicians_tenant", "tenant_id"),
        Index("idx_technicians_dispatchable", "tenant_id", "is_active", "is_available"),
    )


class TechnicianLocationModel(Base):
    __tablename__ = "technician_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tech_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("technicians.id", ondelete="CASCADE"), nullable=False
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    technician: Mapped["TechnicianModel"] = relationship(back_populates="locations")

    __table_args__ = (Index("idx_tech_locations_tech_updated", "tech_id", "updated_at"),)


class JobModel(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    job_type: Mapped[str] = mapped_column(String(30), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="unassigned")
    assigned_tech_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("technicians.id"), nullable=True
    )
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    geocoding_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    geocoding_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_skills: Mapped[list[str]] = mapped_column(
        ARRAY(String(50)), nullable=False, default=list
    )
    minimum_skill_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scheduled_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    assignments: Mapped[list["JobAssignmentModel"]] = relationship(back_populates="job")

    __table_args__ = (
        Index("idx_jobs_tenant_status", "tenant_id", "status"),
        Index("idx_jobs_assigned_tech", "assigned_tech_id"),
        Index("idx_jobs_geocoding", "geocoding_status"),
    )


class JobAssignmentModel(Base):
    __tablename__ = "job_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False
    )
    tech_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("technicians.id"), nullable=False
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    assigned_by: Mapped[str] = mapped_column(String(100), nullable=False)
    is_manual_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    override_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    scoring_details: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    job_priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    job_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_emergency: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    job: Mapped["JobModel"] = relationship(back_populates="assignments")

    __table_args__ = (
        Index("idx_job_assignments_job", "job_id"),
        Index("idx_job_assignments_tech_time", "tech_id", "assigned_at"),
    )


class JobCompletionModel(Base):
    __tablename__ = "job_completions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False
    )
    tech_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("technicians.id"), nullable=False
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    first_time_fix: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    customer_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_job_completions_tech_time", "tech_id", "completed_at"),)
