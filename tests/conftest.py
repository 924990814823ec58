"""Pytest configuration and shared fixtures."""

import pytest

from app.domain.entities.technician import Technician
from app.domain.value_objects.geo_point import GeoPoint
from tests.builders import make_tech


@pytest.fixture
def dallas_roster() -> list[Technician]:
    """Four technicians around downtown Dallas; the last one is unavailable."""
    return [
        make_tech(
            "tech-001",
            name="Alice Perfect",
            location=GeoPoint(32.7767, -96.797),
            skills={"hvac_repair", "hvac_maintenance"},
            skill_level={"hvac_repair": 3, "hvac_maintenance": 2},
            recent_completion_rate=0.98,
            recent_job_count=15,
            daily_job_count=0,
        ),
        make_tech(
            "tech-002",
            name="Bob Nearby",
            current_jobs_count=1,
            location=GeoPoint(32.8, -96.8),
            max_travel_distance_miles=75.0,
            skills={"hvac_repair", "electrical"},
            skill_level={"hvac_repair": 2, "electrical": 3},
            recent_completion_rate=0.92,
            recent_job_count=12,
            daily_job_count=1,
        ),
        make_tech(
            "tech-003",
            name="Carol Busy",
            current_jobs_count=2,
            location=GeoPoint(32.75, -96.75),
            skills={"hvac_repair", "hvac_install"},
            skill_level={"hvac_repair": 2, "hvac_install": 2},
            recent_completion_rate=0.88,
            recent_job_count=10,
            daily_job_count=3,
        ),
        make_tech(
            "tech-004",
            name="Dave Unavailable",
            is_available=False,
            location=GeoPoint(32.77, -96.79),
            skills={"hvac_repair"},
            skill_level={"hvac_repair": 3},
            recent_completion_rate=0.95,
            recent_job_count=10,
        ),
    ]
