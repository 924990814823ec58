"""Initial schema — technicians, jobs and dispatch audit tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Technicians
    op.create_table(
        "technicians",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("current_jobs_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_concurrent_jobs", sa.Integer, nullable=False, server_default="1"),
        sa.Column("max_jobs_per_day", sa.Integer, nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("max_travel_distance_miles", sa.Float, nullable=False, server_default="30"),
        sa.Column("skills", ARRAY(sa.String(50)), nullable=False, server_default="{}"),
        sa.Column("skill_level", JSONB, nullable=False, server_default="{}"),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("current_jobs_count >= 0", name="ck_technicians_jobs_nonneg"),
    )
    op.create_index("idx_technicians_tenant", "technicians", ["tenant_id"])
    op.create_index(
        "idx_technicians_dispatchable", "technicians", ["tenant_id", "is_active", "is_available"]
    )

    # Live technician positions
    op.create_table(
        "technician_locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "tech_id", sa.String(64),
            sa.ForeignKey("technicians.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "idx_tech_locations_tech_updated", "technician_locations", ["tech_id", "updated_at"]
    )

    # Jobs
    op.create_table(
        "jobs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("job_type", sa.String(30), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="unassigned"),
        sa.Column("assigned_tech_id", sa.String(64), sa.ForeignKey("technicians.id"), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("geocoding_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("geocoding_retries", sa.Integer, nullable=False, server_default="0"),
        sa.Column("required_skills", ARRAY(sa.String(50)), nullable=False, server_default="{}"),
        sa.Column("minimum_skill_level", sa.Integer, nullable=False, server_default="0"),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completion_notes", sa.Text, nullable=True),
    )
    op.create_index("idx_jobs_tenant_status", "jobs", ["tenant_id", "status"])
    op.create_index("idx_jobs_assigned_tech", "jobs", ["assigned_tech_id"])
    op.create_index("idx_jobs_geocoding", "jobs", ["geocoding_status"])

    # Assignment log (immutable)
    op.create_table(
        "job_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("job_id", sa.String(64), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tech_id", sa.String(64), sa.ForeignKey("technicians.id"), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("assigned_by", sa.String(100), nullable=False),
        sa.Column("is_manual_override", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("override_reason", sa.Text, nullable=True),
        sa.Column("scoring_details", JSONB, nullable=True),
        sa.Column("job_priority", sa.String(20), nullable=True),
        sa.Column("job_type", sa.String(30), nullable=True),
        sa.Column("is_emergency", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_job_assignments_job", "job_assignments", ["job_id"])
    op.create_index("idx_job_assignments_tech_time", "job_assignments", ["tech_id", "assigned_at"])

    # Completion log
    op.create_table(
        "job_completions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("job_id", sa.String(64), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tech_id", sa.String(64), sa.ForeignKey("technicians.id"), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("completion_notes", sa.Text, nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("first_time_fix", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("customer_rating", sa.Integer, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_job_completions_tech_time", "job_completions", ["tech_id", "completed_at"])


def downgrade() -> None:
    op.drop_table("job_completions")
    op.drop_table("job_assignments")
    op.drop_table("jobs")
    op.drop_table("technician_locations")
    op.drop_table("technicians")
