import json
from pathlib import Path

import pytest

from telecheck.common.errors import ReconcileError
from telecheck.common.models import ScanReport
from telecheck.reconcile.reports import load_disaster_records, load_scan_report, records_from_payload, write_scan_report


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_disaster_records_accepts_list_and_wrapped_mapping(tmp_path: Path):
    as_list = _write(tmp_path / "list.json", [{"agrn": "A-1", "state": "vic"}])
    wrapped = _write(tmp_path / "wrapped.json", {"disasters": [{"agrn": "A-2"}], "exported_at": "2024-01-01"})

    assert [(r.agrn, r.state) for r in load_disaster_records(as_list)] == [("A-1", "VIC")]
    assert [r.agrn for r in load_disaster_records(wrapped)] == ["A-2"]


def test_load_disaster_records_accepts_empty_list(tmp_path: Path):
    assert load_disaster_records(_write(tmp_path / "empty.json", [])) == []


@pytest.mark.parametrize(
    "payload",
    [
        {"records": [{"agrn": "A-1"}]},
        {"disasters": {"agrn": "A-1"}},
        "A-1",
        None,
    ],
)
def test_load_disaster_records_rejects_misshapen_snapshot(tmp_path: Path, payload):
    path = _write(tmp_path / "stored.json", payload)

    with pytest.raises(ReconcileError) as excinfo:
        load_disaster_records(path)
    assert "must be a list" in str(excinfo.value)
    assert str(path) in str(excinfo.value)


def test_load_disaster_records_missing_file(tmp_path: Path):
    with pytest.raises(ReconcileError):
        load_disaster_records(tmp_path / "nope.json")


def test_records_from_payload_skips_malformed_items():
    assert records_from_payload(None) == []
    assert [r.agrn for r in records_from_payload([{"agrn": "A"}, "junk", {"agrn": ""}])] == ["A"]


def test_records_from_payload_maps_full_state_names_to_codes():
    records = records_from_payload(
        [
            {"agrn": "A-1", "state": "Western Australia"},
            {"agrn": "A-2", "state": " qld "},
            {"agrn": "A-3", "state": "Norfolk Island"},
        ]
    )

    assert [record.state for record in records] == ["WA", "QLD", "NORFOLK ISLAND"]


def test_scan_report_keeps_scanner_unchanged_count_through_disk(tmp_path: Path):
    report = ScanReport(timestamp="t", scraped_count=4, existing_count=4, unchanged_total=4)

    path = write_scan_report(report, tmp_path, "run-x")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["unchanged_count"] == 4
    assert load_scan_report(path).unchanged_count == 4
