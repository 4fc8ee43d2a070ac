"""Upload dispatch by file extension, with size guards."""

from __future__ import annotations

from datetime import date
from pathlib import PurePath

from telecheck.common.constants import DATASET_SIZE_TIERS
from telecheck.common.config_loader import IngestSettings
from telecheck.common.errors import EmptyFileError, FileTooLargeError, UnsupportedFileFormat
from telecheck.common.models import ParseResult
from telecheck.ingest.parser import parse_delimited_file, parse_free_text


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lstrip(".").lower()


def decode_upload(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    return content.decode("utf-8-sig", errors="replace")


def _check_size(content: bytes | str, settings: IngestSettings) -> None:
    size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
    if size > settings.max_file_size_mb * 1024 * 1024:
        raise FileTooLargeError(f"Maximum file size is {settings.max_file_size_mb}MB")


def parse_upload(
    filename: str,
    content: bytes | str,
    *,
    settings: IngestSettings,
    today: date | None = None,
) -> ParseResult:
    extension = file_extension(filename)

    if extension in settings.spreadsheet_extensions:
        raise UnsupportedFileFormat(
            "Excel files are not supported. Please export your Excel file as CSV format and upload again."
        )
    if extension not in settings.supported_extensions:
        supported = ", ".join(settings.supported_extensions)
        raise UnsupportedFileFormat(
            f"Unsupported file format: {extension or '(none)'}. Supported: {supported}. "
            "Excel workbooks can be saved as CSV and uploaded again."
        )

    _check_size(content, settings)
    text = decode_upload(content)

    if extension in settings.delimited_extensions:
        return parse_delimited_file(text, today=today, max_records=settings.max_records)
    return parse_free_text(text, max_records=settings.max_records)


def parse_pasted_text(text: str, *, settings: IngestSettings) -> ParseResult:
    if not text.strip():
        raise EmptyFileError("No postcodes entered. Paste postcodes one per line or comma-separated.")
    return parse_free_text(text, max_records=settings.max_records)


def dataset_size_tier(record_count: int) -> str:
    for ceiling, tier in DATASET_SIZE_TIERS:
        if record_count <= ceiling:
            return tier
    return "enterprise"
