"""Assignment and completion log entries — immutable audit rows."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class AssignmentLog:
    id: int | None
    job_id: str
    tech_id: str
    tenant_id: str
    assigned_by: str
    is_manual_override: bool = False
    override_reason: str | None = None
    scoring_details: dict | None = field(default=None)
    job_priority: str | None = None
    job_type: str | None = None
    is_emergency: bool = False
    assigned_at: datetime | None = None


@dataclass
class CompletionLog:
    id: int | None
    job_id: str
    tech_id: str
    tenant_id: str
    completion_notes: str | None = None
    duration_minutes: int | None = None
    first_time_fix: bool = True
    customer_rating: int | None = None
    completed_at: datetime | None = None
