"""CSV loader — reads technician and job rosters into plain dicts."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from app.adapters.csv_loader.normalizer import (
    JOB_TYPE_TO_SKILL,
    clean_string,
    normalize_column_name,
    parse_skill_levels,
    parse_skills,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "y", "t"}


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab) from the header line."""
    if not sample:
        return csv.excel

    first_line = sample.splitlines()[0]
    counts = {d: first_line.count(d) for d in (",", ";", "\t")}
    best_delim = max(counts, key=counts.get)
    if counts[best_delim] == 0:
        return csv.excel

    class DynamicDialect(csv.excel):
        delimiter = best_delim

    return DynamicDialect


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization."""
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = [
            {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            for raw_row in reader
        ]

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def load_technicians(file_path: Path, default_tenant: str = "default") -> list[dict]:
    """Load the technicians CSV.

    Expected columns (after normalization):
        id, tenant_id, name, latitude, longitude, max_travel_distance_miles,
        max_concurrent_jobs, max_jobs_per_day, skills ("hvac_repair:3;plumbing:2"),
        is_active, is_available, rating
    """
    technicians = []
    for row in _read_csv(file_path):
        tech_id = row.get("id") or row.get("tech_id")
        if not tech_id:
            logger.warning("Skipping technician row without id: %s", row)
            continue
        technicians.append({
            "id": tech_id,
            "tenant_id": row.get("tenant_id") or row.get("company_id") or default_tenant,
            "name": row.get("name") or tech_id,
            "latitude": _parse_float(row.get("latitude")),
            "longitude": _parse_float(row.get("longitude")),
            "max_travel_distance_miles": _parse_float(row.get("max_travel_distance_miles")) or 30.0,
            "max_concurrent_jobs": _parse_int(row.get("max_concurrent_jobs"), default=1),
            "max_jobs_per_day": _parse_int(row.get("max_jobs_per_day"), default=None),
            "skill_level": parse_skill_levels(row.get("skills")),
            "is_active": _parse_bool(row.get("is_active"), default=True),
            "is_available": _parse_bool(row.get("is_available"), default=True),
            "rating": _parse_float(row.get("rating")),
        })
    logger.info("Parsed %d technicians", len(technicians))
    return technicians


def load_jobs(
    file_path: Path, default_tenant: str = "default", default_min_skill_level: int = 2
) -> list[dict]:
    """Load the jobs CSV.

    Expected columns (after normalization):
        id, tenant_id, customer_name, address, job_type, priority,
        latitude, longitude, required_skills, minimum_skill_level

    When required_skills is empty it is derived from job_type.
    """
    jobs = []
    for row in _read_csv(file_path):
        job_id = row.get("id") or row.get("job_id")
        if not job_id:
            logger.warning("Skipping job row without id: %s", row)
            continue
        job_type = (row.get("job_type") or "repair").lower()
        required = parse_skills(row.get("required_skills"))
        if not required and job_type in JOB_TYPE_TO_SKILL:
            required = [JOB_TYPE_TO_SKILL[job_type]]
        jobs.append({
            "id": job_id,
            "tenant_id": row.get("tenant_id") or row.get("company_id") or default_tenant,
            "customer_name": row.get("customer_name"),
            "address": row.get("address"),
            "job_type": job_type,
            "priority": (row.get("priority") or "medium").lower(),
            "latitude": _parse_float(row.get("latitude")),
            "longitude": _parse_float(row.get("longitude")),
            "required_skills": required,
            "minimum_skill_level": _parse_int(
                row.get("minimum_skill_level"), default=default_min_skill_level
            ),
        })
    logger.info("Parsed %d jobs", len(jobs))
    return jobs


def _parse_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value.replace(",", ".").strip())
    except ValueError:
        return None


def _parse_int(value: str | None, default: int | None = 0) -> int | None:
    if not value:
        return default
    try:
        # handle "4", "4.0"
        return int(float(str(value).replace(",", ".").strip()))
    except ValueError:
        return default


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES
