import json
from pathlib import Path

import pytest

from telecheck.cli import main, parse_args, run_command
from telecheck.common.constants import EXIT_SUCCESS, EXIT_USER_ERROR


def _run(*argv: str) -> int:
    return run_command(parse_args(list(argv)))


@pytest.mark.integration
def test_cli_ingest_csv_generates_expected_artifacts(tmp_path: Path):
    upload = tmp_path / "patients.csv"
    upload.write_text("Postcode,Age,Gender,DOB\n2000,45,F,\n9999,200,M,\n800,,m,1980-06-16\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    exit_code = _run(
        "ingest",
        "--input",
        str(upload),
        "--as-of",
        "2024-06-15",
        "--config-dir",
        "config",
        "--data-dir",
        str(tmp_path / "data"),
        "--out-dir",
        str(out_dir),
        "--run-id",
        "run-test",
    )

    assert exit_code == EXIT_SUCCESS
    payload = json.loads((out_dir / "parse_result.json").read_text(encoding="utf-8"))
    assert payload["postcodes"] == ["2000", "0800"]
    assert payload["demographics"][1] == {"postcode": "0800", "gender": "Male", "date_of_birth": "1980-06-16", "age": 43}
    assert (out_dir / "patients.csv").exists()
    assert (tmp_path / "data" / "run_meta" / "run-test.log.jsonl").exists()


@pytest.mark.integration
def test_cli_ingest_pasted_text(tmp_path: Path):
    out_dir = tmp_path / "out"
    exit_code = _run("ingest", "--text", "2000 2000 3000", "--data-dir", str(tmp_path), "--out-dir", str(out_dir))

    assert exit_code == EXIT_SUCCESS
    payload = json.loads((out_dir / "parse_result.json").read_text(encoding="utf-8"))
    assert payload["total_records"] == 3


@pytest.mark.integration
def test_cli_ingest_user_errors_return_user_error_exit(tmp_path: Path):
    workbook = tmp_path / "patients.xlsx"
    workbook.write_bytes(b"PK\x03\x04")

    assert _run("ingest", "--input", str(workbook), "--data-dir", str(tmp_path)) == EXIT_USER_ERROR
    assert _run("ingest", "--text", "9999", "--data-dir", str(tmp_path)) == EXIT_USER_ERROR
    assert _run("ingest", "--input", str(tmp_path / "missing.csv"), "--data-dir", str(tmp_path)) == EXIT_USER_ERROR
    assert _run("ingest", "--data-dir", str(tmp_path)) == EXIT_USER_ERROR


@pytest.mark.integration
def test_cli_reconcile_then_select(tmp_path: Path):
    stored = [
        {"agrn": "1001", "title": "Floods", "state": "NSW", "start_date": "2024-01-01", "end_date": None, "url": ""},
        {"agrn": "1002", "title": "Fires", "state": "VIC", "start_date": "2024-01-02", "end_date": None, "url": ""},
        {"agrn": "1003", "title": "Storms", "state": "QLD", "start_date": "2024-01-03", "end_date": None, "url": ""},
    ]
    scraped = [
        {"agrn": "1001", "title": "Floods", "state": "NSW", "start_date": "2024-01-01", "end_date": "2024-05-01", "url": ""},
        {"agrn": "1002", "title": "Bushfires", "state": "VIC", "start_date": "2024-01-02", "end_date": None, "url": ""},
        {"agrn": "1004", "title": "Cyclone", "state": "NT", "start_date": "2024-02-01", "end_date": None, "url": ""},
    ]
    (tmp_path / "stored.json").write_text(json.dumps(stored), encoding="utf-8")
    (tmp_path / "scraped.json").write_text(json.dumps({"disasters": scraped}), encoding="utf-8")
    out_dir = tmp_path / "out"

    exit_code = _run(
        "reconcile",
        "--scraped",
        str(tmp_path / "scraped.json"),
        "--stored",
        str(tmp_path / "stored.json"),
        "--data-dir",
        str(tmp_path),
        "--out-dir",
        str(out_dir),
    )
    assert exit_code == EXIT_SUCCESS

    report = json.loads((out_dir / "scan_report.json").read_text(encoding="utf-8"))
    assert report["summary"]["total_changes"] == 3
    assert [d["agrn"] for d in report["ended_disasters"]] == ["1001"]
    assert [d["agrn"] for d in report["updated_disasters"]] == ["1002"]
    assert [d["agrn"] for d in report["new_disasters"]] == ["1004"]
    assert [d["agrn"] for d in report["removed_disasters"]] == ["1003"]

    exit_code = _run(
        "select",
        "--report",
        str(out_dir / "scan_report.json"),
        "--new",
        "all",
        "--updated",
        "1001",
        "--data-dir",
        str(tmp_path),
        "--out-dir",
        str(out_dir),
    )
    assert exit_code == EXIT_SUCCESS
    change_set = json.loads((out_dir / "change_set.json").read_text(encoding="utf-8"))
    assert [d["agrn"] for d in change_set["to_insert"]] == ["1004"]
    assert [d["agrn"] for d in change_set["to_update"]] == ["1001"]

    empty_selection = _run("select", "--report", str(out_dir / "scan_report.json"), "--data-dir", str(tmp_path))
    assert empty_selection == EXIT_USER_ERROR


@pytest.mark.integration
def test_main_returns_user_error_for_missing_snapshot(tmp_path: Path):
    assert main(["reconcile", "--scraped", str(tmp_path / "nope.json"), "--stored", str(tmp_path / "nope.json"), "--data-dir", str(tmp_path)]) == EXIT_USER_ERROR


@pytest.mark.integration
def test_cli_malformed_as_of_is_user_error(tmp_path: Path):
    upload = tmp_path / "patients.csv"
    upload.write_text("postcode,dob\n2000,01/02/1990\n", encoding="utf-8")

    exit_code = _run("ingest", "--input", str(upload), "--as-of", "15/06/2024", "--data-dir", str(tmp_path), "--run-id", "run-bad-date")

    assert exit_code == EXIT_USER_ERROR
    lines = (tmp_path / "run_meta" / "run-bad-date.log.jsonl").read_text(encoding="utf-8").splitlines()
    failure = json.loads(lines[-1])
    assert failure["error_code"] == "USAGE_ERROR"
    assert "--as-of" in failure["message"]


@pytest.mark.integration
def test_cli_reconcile_rejects_misshapen_stored_snapshot(tmp_path: Path):
    scraped = tmp_path / "scraped.json"
    stored = tmp_path / "stored.json"
    scraped.write_text(json.dumps([{"agrn": "A-1"}]), encoding="utf-8")
    stored.write_text(json.dumps({"records": [{"agrn": "A-1"}]}), encoding="utf-8")
    out_dir = tmp_path / "out"

    exit_code = _run("reconcile", "--scraped", str(scraped), "--stored", str(stored), "--data-dir", str(tmp_path), "--out-dir", str(out_dir))

    assert exit_code == EXIT_USER_ERROR
    assert not (out_dir / "scan_report.json").exists()
