"""Australian postcode normalisation and validation."""

from __future__ import annotations

import re

from telecheck.common.constants import AU_POSTCODE_RANGES

_NON_DIGIT_RE = re.compile(r"\D")
_CANDIDATE_RE = re.compile(r"\b\d{3,4}\b")


def _in_valid_range(number: int) -> bool:
    return any(low <= number <= high for low, high in AU_POSTCODE_RANGES)


def validate_postcode(raw: str | int | None) -> str | None:
    """Return the zero-padded postcode, or None when it is not Australian."""
    if raw is None:
        return None

    cleaned = _NON_DIGIT_RE.sub("", str(raw).strip())
    if len(cleaned) not in (3, 4):
        return None

    if not _in_valid_range(int(cleaned)):
        return None

    return cleaned.zfill(4)


def is_valid_postcode(value: str | int | None) -> bool:
    return validate_postcode(value) is not None


def find_postcode_candidates(text: str) -> list[str]:
    # Any standalone 3-4 digit number is a candidate; unrelated numbers in a
    # valid range are kept as patients.
    return _CANDIDATE_RE.findall(text)


def describe_valid_ranges() -> str:
    return ", ".join(f"{low:04d}-{high:04d}" for low, high in AU_POSTCODE_RANGES)
