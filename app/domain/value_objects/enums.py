"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class JobPriority(str, Enum):
    EMERGENCY = "emergency"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class JobStatus(str, Enum):
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobType(str, Enum):
    INSTALLATION = "installation"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"


class GeocodingStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


# Batch dispatch order: lower rank is dispatched first.
PRIORITY_RANK: dict[str, int] = {
    JobPriority.EMERGENCY.value: 0,
    JobPriority.HIGH.value: 1,
    JobPriority.MEDIUM.value: 2,
    JobPriority.LOW.value: 3,
}

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED.value, JobStatus.CANCELLED.value})
