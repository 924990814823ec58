"""CSV value normalization — column names, skills and skill levels."""

from __future__ import annotations

import re

# Older rosters use free-form skill names
LEGACY_SKILL_MAPPING: dict[str, str] = {
    "ac repair": "hvac_repair",
    "furnace": "hvac_repair",
    "heat pump": "hvac_repair",
    "installation": "hvac_install",
    "inspection": "hvac_maintenance",
}

JOB_TYPE_TO_SKILL: dict[str, str] = {
    "installation": "hvac_install",
    "repair": "hvac_repair",
    "maintenance": "hvac_maintenance",
    "inspection": "hvac_maintenance",
}


def normalize_column_name(name: str) -> str:
    """Normalize a CSV column name.

    - Removes BOM characters (\\ufeff)
    - Replaces runs of spaces / non-breaking spaces with a single underscore
    - Lowercases and drops anything that is not alphanumeric or underscore
    """
    name = name.replace("\ufeff", "").strip()
    name = re.sub(r"[\s\u00a0]+", "_", name)
    name = name.lower()
    return re.sub(r"[^\w]", "", name)


def clean_string(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def standardize_skill(skill: str) -> str:
    key = " ".join(skill.strip().lower().split())
    return LEGACY_SKILL_MAPPING.get(key, key.replace(" ", "_"))


def parse_skill_levels(raw: str | None) -> dict[str, int]:
    """Parse 'hvac_repair:3; plumbing:2' into {skill: level}.

    A skill without a level gets level 1. Duplicate skills keep the highest level.
    """
    if not raw:
        return {}
    levels: dict[str, int] = {}
    for part in re.split(r"[;,|]+", raw):
        part = part.strip()
        if not part:
            continue
        name, _, level = part.partition(":")
        skill = standardize_skill(name)
        if not skill:
            continue
        try:
            value = int(float(level)) if level.strip() else 1
        except ValueError:
            value = 1
        levels[skill] = max(levels.get(skill, 0), value)
    return levels


def parse_skills(raw: str | None) -> list[str]:
    """Parse 'hvac_repair; AC repair' into standardized, de-duplicated skill names."""
    return list(parse_skill_levels(raw))
