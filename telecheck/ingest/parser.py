"""Parse pasted text and delimited uploads into validated postcode records.

Invalid postcodes are dropped rather than flagged; callers see the surviving
records plus how many candidates were rejected. Duplicates are kept because
every occurrence is a separate patient at the same location.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from telecheck.common.constants import MAX_RECORDS
from telecheck.common.errors import DatasetTooLargeError, EmptyFileError, NoValidPostcodesFound
from telecheck.common.models import Demographics, ParseResult, PostcodeRecord
from telecheck.common.postcode import describe_valid_ranges, find_postcode_candidates, validate_postcode
from telecheck.ingest.demographics import age_from_dob, normalise_gender, parse_age

FORMAT_CSV = "CSV"
FORMAT_TEXT = "Text"

POSTCODE_HEADER_KEYWORDS = ("postcode", "post", "zip")
AGE_HEADER_KEYWORDS = ("age", "years")
GENDER_HEADER_KEYWORDS = ("gender", "sex")
DOB_HEADER_KEYWORDS = ("dob", "birth", "born")


@dataclass(frozen=True)
class ColumnLayout:
    postcode: int | None
    age: int | None
    gender: int | None
    dob: int | None


def _find_column(headers: list[str], keywords: tuple[str, ...]) -> int | None:
    for idx, header in enumerate(headers):
        if any(keyword in header for keyword in keywords):
            return idx
    return None


def locate_columns(header_line: str) -> ColumnLayout:
    headers = [cell.strip().lower() for cell in header_line.split(",")]
    return ColumnLayout(
        postcode=_find_column(headers, POSTCODE_HEADER_KEYWORDS),
        age=_find_column(headers, AGE_HEADER_KEYWORDS),
        gender=_find_column(headers, GENDER_HEADER_KEYWORDS),
        dob=_find_column(headers, DOB_HEADER_KEYWORDS),
    )


def _cell(values: list[str], idx: int | None) -> str:
    if idx is None or idx >= len(values):
        return ""
    return values[idx].strip()


def _no_valid_postcodes() -> NoValidPostcodesFound:
    return NoValidPostcodesFound(
        f"No valid Australian postcodes found. Valid ranges: {describe_valid_ranges()}"
    )


def _finalise(records: list[PostcodeRecord], file_format: str, candidate_count: int, max_records: int) -> ParseResult:
    if not records:
        raise _no_valid_postcodes()
    if len(records) > max_records:
        raise DatasetTooLargeError(
            f"Found {len(records):,} patient records; the limit is {max_records:,} per analysis. "
            "For larger datasets please contact support for enterprise processing."
        )
    return ParseResult(records=tuple(records), file_format=file_format, candidate_count=candidate_count)


def parse_free_text(text: str, *, max_records: int = MAX_RECORDS) -> ParseResult:
    if not text or not text.strip():
        raise EmptyFileError("No postcodes entered. Paste postcodes one per line or comma-separated.")

    candidates = find_postcode_candidates(text)
    records = []
    for candidate in candidates:
        postcode = validate_postcode(candidate)
        if postcode is not None:
            records.append(PostcodeRecord(postcode=postcode))

    return _finalise(records, FORMAT_TEXT, len(candidates), max_records)


def _row_demographics(values: list[str], layout: ColumnLayout, today: date | None) -> Demographics:
    age = None
    gender = None
    date_of_birth = None

    age_cell = _cell(values, layout.age)
    if age_cell:
        age = parse_age(age_cell)

    gender_cell = _cell(values, layout.gender)
    if gender_cell:
        gender = normalise_gender(gender_cell)

    dob_cell = _cell(values, layout.dob)
    if dob_cell:
        date_of_birth = dob_cell
        if age is None:
            age = age_from_dob(dob_cell, today)

    return Demographics(age=age, gender=gender, date_of_birth=date_of_birth)


def parse_delimited_file(
    text: str,
    *,
    today: date | None = None,
    max_records: int = MAX_RECORDS,
) -> ParseResult:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise EmptyFileError("The file is empty. Add a header row and at least one postcode.")

    layout = locate_columns(lines[0])
    data_lines = lines[1:]
    if layout.postcode is None:
        raise _no_valid_postcodes()

    records: list[PostcodeRecord] = []
    for line in data_lines:
        values = line.split(",")
        postcode = validate_postcode(_cell(values, layout.postcode))
        if postcode is None:
            continue
        records.append(PostcodeRecord(postcode=postcode, demographics=_row_demographics(values, layout, today)))

    return _finalise(records, FORMAT_CSV, len(data_lines), max_records)
