"""Parsed patient dataset export."""

from __future__ import annotations

from pathlib import Path

from telecheck.common.fs import write_csv, write_json
from telecheck.common.models import ParseResult, PostcodeRecord

PATIENT_HEADERS = [
    "postcode",
    "age",
    "gender",
    "date_of_birth",
]


def _serialize_record(record: PostcodeRecord) -> dict:
    row = record.to_dict()
    return {key: ("" if row.get(key) is None else row[key]) for key in PATIENT_HEADERS}


def write_parse_result(result: ParseResult, out_dir: Path, *, source_name: str | None = None) -> dict[str, Path]:
    json_path = out_dir / "parse_result.json"
    csv_path = out_dir / "patients.csv"

    payload = result.to_dict()
    payload["source_name"] = source_name
    write_json(json_path, payload)
    write_csv(csv_path, PATIENT_HEADERS, [_serialize_record(record) for record in result.records])

    return {"json": json_path, "csv": csv_path}
