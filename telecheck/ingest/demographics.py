"""Demographic cell normalisation: gender, age and date of birth."""

from __future__ import annotations

import re
from datetime import date, datetime

from telecheck.common.time_utils import local_today

# ISO first, then Australian day-first; month-first only as a last resort.
DOB_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%Y/%m/%d",
    "%m/%d/%Y",
)

_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


def _age_in_bounds(age: int) -> bool:
    return 0 < age < 150


def normalise_gender(value: str) -> str:
    cleaned = value.strip().lower()
    if cleaned.startswith("m") or cleaned == "male":
        return "Male"
    if cleaned.startswith("f") or cleaned == "female":
        return "Female"
    return "Other"


def parse_age(value: str) -> int | None:
    match = _LEADING_INT_RE.match(value.strip())
    if match is None:
        return None
    age = int(match.group(0))
    return age if _age_in_bounds(age) else None


def parse_dob(value: str) -> date | None:
    cleaned = value.strip()
    if not cleaned:
        return None
    for fmt in DOB_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def age_from_dob(value: str, today: date | None = None) -> int | None:
    """Whole years between ``value`` and ``today``; None when unusable."""
    dob = parse_dob(value)
    if dob is None:
        return None

    today = today or local_today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1

    return age if _age_in_bounds(age) else None
