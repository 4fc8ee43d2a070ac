"""Ordered classification rules and field-level change descriptions.

Rules are evaluated top to bottom and the first match wins, so an end date
appearing on a previously active declaration is reported as ``ended`` even
when other fields changed too.
"""

from __future__ import annotations

from typing import Callable

from telecheck.common.models import (
    STATUS_ENDED,
    STATUS_NEW,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    TRACKED_FIELDS,
    DisasterRecord,
)

NONE_LABEL = "(none)"
REMOVED_NOTE = "no longer listed in the latest scrape"

Rule = Callable[[DisasterRecord, "DisasterRecord | None"], bool]


def _field_value(record: DisasterRecord, field: str) -> str:
    value = getattr(record, field, None)
    if value is None:
        return ""
    return str(value).strip()


def _label(value: str) -> str:
    return value if value else NONE_LABEL


def changed_fields(stored: DisasterRecord, scraped: DisasterRecord) -> list[str]:
    return [field for field in TRACKED_FIELDS if _field_value(stored, field) != _field_value(scraped, field)]


def is_end_transition(stored: DisasterRecord, scraped: DisasterRecord) -> bool:
    return not _field_value(stored, "end_date") and bool(_field_value(scraped, "end_date"))


def describe_changes(stored: DisasterRecord, scraped: DisasterRecord) -> list[str]:
    descriptions = []
    for field in changed_fields(stored, scraped):
        old = _field_value(stored, field)
        new = _field_value(scraped, field)
        if field == "end_date" and not old:
            descriptions.append(f"end_date set to {new} (disaster ended)")
        else:
            descriptions.append(f"{field} changed from {_label(old)} to {_label(new)}")
    return descriptions


def _is_new(scraped: DisasterRecord, stored: DisasterRecord | None) -> bool:
    return stored is None


def _is_ended(scraped: DisasterRecord, stored: DisasterRecord | None) -> bool:
    return stored is not None and is_end_transition(stored, scraped)


def _is_updated(scraped: DisasterRecord, stored: DisasterRecord | None) -> bool:
    return stored is not None and bool(changed_fields(stored, scraped))


def _always(scraped: DisasterRecord, stored: DisasterRecord | None) -> bool:
    return True


CLASSIFICATION_RULES: tuple[tuple[str, Rule], ...] = (
    (STATUS_NEW, _is_new),
    (STATUS_ENDED, _is_ended),
    (STATUS_UPDATED, _is_updated),
    (STATUS_UNCHANGED, _always),
)


def classify(scraped: DisasterRecord, stored: DisasterRecord | None) -> str:
    for status, rule in CLASSIFICATION_RULES:
        if rule(scraped, stored):
            return status
    return STATUS_UNCHANGED
