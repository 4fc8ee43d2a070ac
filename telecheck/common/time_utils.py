"""Date helpers. Ages use the clinic's local date; run metadata is stamped in UTC."""

from __future__ import annotations

from datetime import date, datetime, timezone

from telecheck.common.errors import UsageError


def local_today() -> date:
    # Local calendar date; UTC lags Australian clinics by 8-11 hours.
    return date.today()


def parse_as_of_date(value: str | None) -> date:
    if not value:
        return local_today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise UsageError(f"--as-of must be an ISO date such as 2024-06-15, got {value!r}") from exc


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")
