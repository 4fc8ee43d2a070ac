"""Scan report and change set persistence."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from telecheck.common.errors import ReconcileError
from telecheck.common.fs import read_json, write_json
from telecheck.common.models import ChangeSet, DisasterChange, DisasterRecord, ScanReport


def records_from_payload(items: list[dict[str, Any]] | None) -> list[DisasterRecord]:
    records = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        record = DisasterRecord.from_dict(item)
        if record.agrn:
            records.append(record)
    return records


def load_disaster_records(path: Path) -> list[DisasterRecord]:
    """Read a snapshot saved as a JSON list or as ``{"disasters": [...]}``."""
    if not path.exists():
        raise ReconcileError(f"Missing disaster snapshot: {path}")
    payload = read_json(path)
    if isinstance(payload, dict) and "disasters" in payload:
        payload = payload["disasters"]
    if not isinstance(payload, list):
        raise ReconcileError(f"Disaster snapshot must be a list or {{'disasters': [...]}}: {path}")
    return records_from_payload(payload)


def write_scan_report(report: ScanReport, out_dir: Path, run_id: str) -> Path:
    payload = report.to_dict()
    payload["run_id"] = run_id
    report_path = out_dir / "scan_report.json"
    write_json(report_path, payload)
    return report_path


def load_scan_report(path: Path) -> ScanReport:
    if not path.exists():
        raise ReconcileError(f"Missing scan report: {path}")
    return ScanReport.from_dict(read_json(path))


def write_change_set(change_set: ChangeSet, out_dir: Path, run_id: str) -> Path:
    payload = change_set.to_dict()
    payload["run_id"] = run_id
    payload["insert_count"] = len(change_set.to_insert)
    payload["update_count"] = len(change_set.to_update)
    path = out_dir / "change_set.json"
    write_json(path, payload)
    return path


def load_change_set(path: Path) -> ChangeSet:
    if not path.exists():
        raise ReconcileError(f"Missing change set: {path}")
    payload = read_json(path)
    return ChangeSet(
        to_insert=tuple(DisasterChange.from_dict(item) for item in payload.get("to_insert", [])),
        to_update=tuple(DisasterChange.from_dict(item) for item in payload.get("to_update", [])),
    )
