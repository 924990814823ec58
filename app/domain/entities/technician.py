"""Technician entity — a field employee who can be dispatched to jobs."""

from dataclasses import dataclass, field

from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class Technician:
    id: str
    tenant_id: str
    name: str = "unknown"
    is_active: bool = True
    is_available: bool = True
    current_jobs_count: int = 0
    max_concurrent_jobs: int = 1
    max_jobs_per_day: int | None = None
    location: GeoPoint | None = None
    current_location: GeoPoint | None = None
    max_travel_distance_miles: float = 0.0
    skills: set[str] = field(default_factory=set)
    skill_level: dict[str, int] = field(default_factory=dict)

    # Stored profile rating, informational only
    average_rating: float = 3.0

    # Rolling metrics, computed from job history by the repository
    recent_completion_rate: float = 0.0
    recent_job_count: int = 0
    daily_job_count: int = 0

    def level_for(self, skill: str) -> int:
        return self.skill_level.get(skill, 0) or 0

    def has_skill(self, skill: str) -> bool:
        return skill in self.skills

    def is_at_capacity(self) -> bool:
        return self.current_jobs_count >= self.max_concurrent_jobs
