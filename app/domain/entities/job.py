"""Job entity — a field-service visit waiting for (or holding) a technician."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.enums import (
    PRIORITY_RANK,
    TERMINAL_STATUSES,
    GeocodingStatus,
    JobPriority,
    JobStatus,
)
from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class Job:
    id: str
    tenant_id: str
    job_type: str
    priority: str
    location: GeoPoint | None = None
    required_skills: list[str] = field(default_factory=list)
    minimum_skill_level: int = 0
    status: str = JobStatus.UNASSIGNED.value
    assigned_tech_id: str | None = None
    address: str | None = None
    customer_name: str | None = None
    geocoding_status: str = GeocodingStatus.PENDING.value
    geocoding_retries: int = 0
    created_at: datetime | None = None

    @property
    def is_emergency(self) -> bool:
        return (self.priority or "").lower() == JobPriority.EMERGENCY.value

    @property
    def priority_rank(self) -> int:
        """Dispatch order; unknown priorities sort after every known one."""
        return PRIORITY_RANK.get((self.priority or "").lower(), len(PRIORITY_RANK))

    def is_assigned(self) -> bool:
        return self.assigned_tech_id is not None

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
