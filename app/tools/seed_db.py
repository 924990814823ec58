"""Seed database from CSV files.

Usage:
    python -m app.tools.seed_db
    python -m app.tools.seed_db --data-dir data --tenant acme
    python -m app.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.csv_loader.loader import load_jobs, load_technicians
from app.adapters.persistence.database import async_session_factory
from app.adapters.persistence.models import (
    JobAssignmentModel,
    JobCompletionModel,
    JobModel,
    TechnicianLocationModel,
    TechnicianModel,
)
from app.config import settings
from app.domain.value_objects.enums import GeocodingStatus
from app.domain.value_objects.geo_point import are_valid_coordinates

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [
        JobCompletionModel,
        JobAssignmentModel,
        JobModel,
        TechnicianLocationModel,
        TechnicianModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(data_dir: Path, drop: bool = False, tenant_id: str = "default") -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    counts = {"technicians": 0, "jobs": 0}

    tech_csv = _find_csv(data_dir, ["technicians", "techs", "employees"])
    job_csv = _find_csv(data_dir, ["jobs", "work_orders"])
    if not tech_csv:
        raise FileNotFoundError(
            f"No technicians CSV found in {data_dir}. Expected something like technicians.csv"
        )

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        # 1. Technicians
        for td in load_technicians(tech_csv, default_tenant=tenant_id):
            if await session.get(TechnicianModel, td["id"]):
                logger.debug("Technician '%s' already exists, skipping", td["id"])
                continue
            if not are_valid_coordinates(td["latitude"], td["longitude"]):
                logger.warning("Technician '%s' has no usable coordinates", td["id"])
            session.add(
                TechnicianModel(
                    id=td["id"],
                    tenant_id=td["tenant_id"],
                    name=td["name"],
                    is_active=td["is_active"],
                    is_available=td["is_available"],
                    current_jobs_count=0,
                    max_concurrent_jobs=td["max_concurrent_jobs"],
                    max_jobs_per_day=td["max_jobs_per_day"],
                    latitude=td["latitude"],
                    longitude=td["longitude"],
                    max_travel_distance_miles=td["max_travel_distance_miles"],
                    skills=sorted(td["skill_level"]),
                    skill_level=td["skill_level"],
                    rating=td["rating"],
                )
            )
            counts["technicians"] += 1
        await session.commit()

        # 2. Jobs (if CSV exists); jobs without coordinates wait for the geocoder
        if job_csv:
            jobs = load_jobs(
                job_csv,
                default_tenant=tenant_id,
                default_min_skill_level=settings.default_min_skill_level,
            )
            for jd in jobs:
                if await session.get(JobModel, jd["id"]):
                    logger.debug("Job '%s' already exists, skipping", jd["id"])
                    continue
                has_coords = are_valid_coordinates(jd["latitude"], jd["longitude"])
                session.add(
                    JobModel(
                        id=jd["id"],
                        tenant_id=jd["tenant_id"],
                        customer_name=jd["customer_name"],
                        address=jd["address"],
                        job_type=jd["job_type"],
                        priority=jd["priority"],
                        latitude=jd["latitude"] if has_coords else None,
                        longitude=jd["longitude"] if has_coords else None,
                        geocoding_status=(
                            GeocodingStatus.COMPLETE.value if has_coords
                            else GeocodingStatus.PENDING.value
                        ),
                        required_skills=jd["required_skills"],
                        minimum_skill_level=jd["minimum_skill_level"],
                    )
                )
                counts["jobs"] += 1
            await session.commit()
        else:
            logger.info("No jobs CSV found — skipping job import")

    logger.info(
        "Seed complete: %d technicians, %d jobs", counts["technicians"], counts["jobs"]
    )
    return counts


def _find_csv(data_dir: Path, name_hints: list[str]) -> Path | None:
    """Find a CSV file matching any of the name hints."""
    for f in sorted(data_dir.glob("*.csv")):
        fname_lower = f.stem.lower()
        for hint in name_hints:
            if hint in fname_lower:
                logger.info("Found CSV: %s (matched hint '%s')", f.name, hint)
                return f
    return None


async def _verify_data() -> None:
    """Print sanity checks after seeding."""
    async with async_session_factory() as session:
        techs = (await session.execute(select(TechnicianModel))).scalars().all()
        job_status = (
            await session.execute(
                select(JobModel.geocoding_status, func.count(JobModel.id))
                .group_by(JobModel.geocoding_status)
            )
        ).all()

        print(f"\n{'='*50}")
        print("SEED VERIFICATION")
        print(f"{'='*50}")
        print(f"Technicians: {len(techs)}")
        with_coords = sum(
            1 for t in techs if are_valid_coordinates(t.latitude, t.longitude)
        )
        print(f"Technicians with coordinates: {with_coords}/{len(techs)}")
        with_skills = sum(1 for t in techs if t.skill_level)
        print(f"Technicians with skills: {with_skills}/{len(techs)}")
        print(f"Jobs by geocoding status: {dict(job_status)}")
        print(f"{'='*50}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed the dispatch database from CSV files")
    parser.add_argument(
        "--data-dir", type=str, default=settings.csv_data_path,
        help="Directory containing CSV files (default: CSV_DATA_PATH)",
    )
    parser.add_argument(
        "--tenant", type=str, default="default",
        help="Tenant id for rows that do not name one",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not args.verify_only and not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(data_dir, drop=args.drop, tenant_id=args.tenant)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
