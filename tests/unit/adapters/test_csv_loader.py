"""Tests for CSV loader functions."""

import csv
import tempfile
from pathlib import Path

import pytest

from app.adapters.csv_loader.loader import load_jobs, load_technicians


def _write_csv(rows: list[dict], path: Path, encoding: str = "utf-8-sig", delimiter: str = ",") -> None:
    """Helper to write a test CSV file."""
    if not rows:
        return
    with open(path, "w", encoding=encoding, newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys(), delimiter=delimiter)
        writer.writeheader()
        writer.writerows(rows)


# ─── Technicians ─────────────────────────────────────────────────────


def test_load_technicians_basic():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "technicians.csv"
        _write_csv([
            {
                "Tech ID": "tech-001", "Name": "Alice", "Latitude": "32.7767", "Longitude": "-96.797",
                "Max Travel Distance Miles": "40", "Max Concurrent Jobs": "3",
                "Skills": "hvac_repair:3; AC repair:2", "Is Available": "no",
            },
            {
                "Tech ID": "tech-002", "Name": "", "Latitude": "", "Longitude": "",
                "Max Travel Distance Miles": "", "Max Concurrent Jobs": "",
                "Skills": "", "Is Available": "",
            },
        ], csv_path)

        techs = load_technicians(csv_path, default_tenant="acme")
        assert len(techs) == 2
        alice, bare = techs
        assert alice["id"] == "tech-001"
        assert alice["tenant_id"] == "acme"
        assert alice["latitude"] == 32.7767
        assert alice["max_travel_distance_miles"] == 40.0
        assert alice["max_concurrent_jobs"] == 3
        assert alice["skill_level"] == {"hvac_repair": 3}
        assert alice["is_available"] is False
        assert alice["is_active"] is True

        assert bare["name"] == "tech-002"
        assert bare["latitude"] is None
        assert bare["max_travel_distance_miles"] == 30.0
        assert bare["max_concurrent_jobs"] == 1
        assert bare["max_jobs_per_day"] is None
        assert bare["is_available"] is True


def test_load_technicians_skips_rows_without_id():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "technicians.csv"
        _write_csv([{"id": "", "name": "Ghost"}, {"id": "tech-9", "name": "Real"}], csv_path)

        techs = load_technicians(csv_path)
        assert [t["id"] for t in techs] == ["tech-9"]


def test_load_technicians_semicolon_delimiter():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "technicians.csv"
        _write_csv(
            [{"id": "tech-1", "latitude": "32,7767", "longitude": "-96,797", "tenant_id": "co-1"}],
            csv_path,
            delimiter=";",
        )

        techs = load_technicians(csv_path)
        assert techs[0]["latitude"] == 32.7767
        assert techs[0]["longitude"] == -96.797
        assert techs[0]["tenant_id"] == "co-1"


def test_load_technicians_without_header(tmp_path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_technicians(csv_path)


# ─── Jobs ────────────────────────────────────────────────────────────


def test_load_jobs_derives_skill_from_type():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "jobs.csv"
        _write_csv([
            {"Job ID": "job-1", "Job Type": "Installation", "Priority": "EMERGENCY",
             "Required Skills": "", "Minimum Skill Level": ""},
            {"Job ID": "job-2", "Job Type": "repair", "Priority": "",
             "Required Skills": "plumbing; electrical", "Minimum Skill Level": "3.0"},
        ], csv_path)

        jobs = load_jobs(csv_path, default_tenant="acme", default_min_skill_level=2)
        assert jobs[0]["job_type"] == "installation"
        assert jobs[0]["priority"] == "emergency"
        assert jobs[0]["required_skills"] == ["hvac_install"]
        assert jobs[0]["minimum_skill_level"] == 2
        assert jobs[1]["priority"] == "medium"
        assert jobs[1]["required_skills"] == ["plumbing", "electrical"]
        assert jobs[1]["minimum_skill_level"] == 3


def test_load_jobs_unknown_type_has_no_skills():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "jobs.csv"
        _write_csv([{"id": "job-1", "job_type": "consultation"}], csv_path)

        jobs = load_jobs(csv_path)
        assert jobs[0]["required_skills"] == []
        assert jobs[0]["tenant_id"] == "default"
