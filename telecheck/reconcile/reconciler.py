"""Reconcile a scraped disaster list against the stored baseline."""

from __future__ import annotations

from typing import Iterable

from telecheck.common.deterministic import stable_sorted
from telecheck.common.errors import NoChangesSelected
from telecheck.common.models import (
    STATUS_ENDED,
    STATUS_NEW,
    STATUS_REMOVED,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    ChangeSet,
    DisasterChange,
    DisasterRecord,
    ScanReport,
)
from telecheck.common.time_utils import utc_timestamp_iso
from telecheck.reconcile.rules import REMOVED_NOTE, classify, describe_changes


def _index_by_agrn(records: Iterable[DisasterRecord]) -> tuple[dict[str, DisasterRecord], set[str]]:
    index: dict[str, DisasterRecord] = {}
    duplicates: set[str] = set()
    for record in records:
        agrn = (record.agrn or "").strip()
        if not agrn:
            continue
        if agrn in index:
            duplicates.add(agrn)
        # Last occurrence wins.
        index[agrn] = record
    return index, duplicates


def _by_agrn(changes: list[DisasterChange]) -> tuple[DisasterChange, ...]:
    return tuple(stable_sorted(changes, key=lambda change: change.agrn))


def reconcile(
    scraped: Iterable[DisasterRecord],
    stored: Iterable[DisasterRecord],
    *,
    timestamp: str | None = None,
) -> ScanReport:
    scraped_index, scraped_dupes = _index_by_agrn(scraped)
    stored_index, stored_dupes = _index_by_agrn(stored)

    buckets: dict[str, list[DisasterChange]] = {
        STATUS_NEW: [],
        STATUS_ENDED: [],
        STATUS_UPDATED: [],
    }
    unchanged: list[str] = []

    for agrn, record in scraped_index.items():
        previous = stored_index.get(agrn)
        status = classify(record, previous)
        if status == STATUS_UNCHANGED:
            unchanged.append(agrn)
            continue
        changes = describe_changes(previous, record) if previous is not None else []
        buckets[status].append(DisasterChange(record=record, status=status, changes=tuple(changes)))

    removed = [
        DisasterChange(
            record=record,
            status=STATUS_REMOVED,
            changes=(REMOVED_NOTE,),
        )
        for agrn, record in stored_index.items()
        if agrn not in scraped_index
    ]

    duplicates = sorted(scraped_dupes | stored_dupes)

    return ScanReport(
        timestamp=timestamp or utc_timestamp_iso(),
        scraped_count=len(scraped_index),
        existing_count=len(stored_index),
        new_disasters=_by_agrn(buckets[STATUS_NEW]),
        updated_disasters=_by_agrn(buckets[STATUS_UPDATED]),
        ended_disasters=_by_agrn(buckets[STATUS_ENDED]),
        removed_disasters=_by_agrn(removed),
        unchanged_agrns=tuple(sorted(unchanged)),
        duplicate_agrns=tuple(duplicates),
    )


def select_changes(
    report: ScanReport,
    chosen_new_agrns: set[str],
    chosen_updated_agrns: set[str],
) -> ChangeSet:
    """Filter the report down to the operator's selection.

    Ended declarations are selected through ``chosen_updated_agrns``; they are
    persisted as field updates like any other change to a stored record.
    """
    if not chosen_new_agrns and not chosen_updated_agrns:
        raise NoChangesSelected("No changes selected. Select at least one new or updated disaster to apply.")

    to_insert = tuple(change for change in report.new_disasters if change.agrn in chosen_new_agrns)
    to_update = _by_agrn(
        [
            change
            for change in (*report.updated_disasters, *report.ended_disasters)
            if change.agrn in chosen_updated_agrns
        ]
    )

    change_set = ChangeSet(to_insert=to_insert, to_update=to_update)
    if change_set.is_empty:
        raise NoChangesSelected("None of the selected AGRNs are pending changes in the scan report.")
    return change_set


def select_all(report: ScanReport) -> ChangeSet:
    return select_changes(
        report,
        {change.agrn for change in report.new_disasters},
        {change.agrn for change in (*report.updated_disasters, *report.ended_disasters)},
    )
