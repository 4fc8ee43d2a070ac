"""Client for the hosted disaster scanner function.

The function scrapes the declarations site, diffs it against the stored table
and answers ``scan`` with ``{"success", "report", "removed_disasters"}``;
``apply_changes`` writes the operator's selection back.
"""

from __future__ import annotations

import os
from typing import Any

from telecheck.common.deterministic import stable_sorted
from telecheck.common.errors import ScannerError
from telecheck.common.http import HttpClient, RetryConfig, TimeoutConfig
from telecheck.common.models import (
    STATUS_ENDED,
    STATUS_NEW,
    STATUS_REMOVED,
    STATUS_UPDATED,
    ChangeSet,
    DisasterChange,
    DisasterRecord,
    ScanReport,
)
from telecheck.common.time_utils import utc_timestamp_iso
from telecheck.reconcile.rules import REMOVED_NOTE

REPORT_BUCKETS = {
    "new_disasters": STATUS_NEW,
    "updated_disasters": STATUS_UPDATED,
    "ended_disasters": STATUS_ENDED,
}


def _list_field(payload: dict[str, Any], key: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ScannerError(f"Disaster scanner returned {key!r} as {type(value).__name__}, expected a list")
    return value


def _bucket(items: list, status: str, changes: tuple[str, ...] | None = None) -> tuple[DisasterChange, ...]:
    out = []
    for item in items:
        if not isinstance(item, dict):
            continue
        record = DisasterRecord.from_dict(item)
        if not record.agrn:
            continue
        notes = changes if changes is not None else tuple(item.get("changes") or ())
        out.append(DisasterChange(record=record, status=status, changes=notes))
    return tuple(stable_sorted(out, key=lambda change: change.agrn))


def report_from_scan_payload(payload: dict[str, Any]) -> ScanReport:
    report = payload.get("report")
    if not isinstance(report, dict):
        raise ScannerError("Disaster scanner reply has no 'report' object; is the function deployed at this URL?")

    buckets = {key: _bucket(_list_field(report, key), status) for key, status in REPORT_BUCKETS.items()}
    removed = _bucket(_list_field(payload, "removed_disasters"), STATUS_REMOVED, (REMOVED_NOTE,))
    unchanged = report.get("unchanged_count")

    return ScanReport(
        timestamp=str(report.get("timestamp") or utc_timestamp_iso()),
        scraped_count=int(report.get("scraped_count") or 0),
        existing_count=int(report.get("existing_count") or 0),
        new_disasters=buckets["new_disasters"],
        updated_disasters=buckets["updated_disasters"],
        ended_disasters=buckets["ended_disasters"],
        removed_disasters=removed,
        unchanged_total=int(unchanged) if unchanged is not None else 0,
    )


class ScannerClient:
    def __init__(
        self,
        functions_url: str,
        *,
        function_name: str = "admin-disaster-scanner",
        http: HttpClient,
    ) -> None:
        self.endpoint = f"{functions_url.rstrip('/')}/{function_name}"
        self.http = http

    @classmethod
    def from_config(cls, cfg: dict) -> "ScannerClient":
        api_key_env = cfg.get("api_key_env")
        http = HttpClient(
            timeout=TimeoutConfig(read=float(cfg["timeout_seconds"])),
            retry=RetryConfig(max_attempts=int(cfg["retry"]["max_attempts"])),
            bearer_token=os.environ.get(api_key_env) if api_key_env else None,
        )
        return cls(cfg["functions_url"], function_name=cfg["function_name"], http=http)

    def _invoke(self, body: dict[str, Any], *, resend_safe: bool) -> dict[str, Any]:
        payload = self.http.post_json(self.endpoint, body, resend_safe=resend_safe)
        if not payload.get("success"):
            message = payload.get("error") or payload.get("message") or "scanner reported failure"
            raise ScannerError(f"Disaster scanner {body['action']} failed: {message}")
        return payload

    def fetch_scan(self) -> ScanReport:
        """Run a scan and return the scanner's classification as a ScanReport."""
        return report_from_scan_payload(self._invoke({"action": "scan"}, resend_safe=True))

    def apply_changes(self, change_set: ChangeSet) -> str:
        body = {
            "action": "apply_changes",
            "apply_changes": {
                "changes_to_apply": {
                    "new_disasters": [change.to_dict() for change in change_set.to_insert],
                    "updated_disasters": [change.to_dict() for change in change_set.to_update],
                }
            },
        }
        # Inserts are not idempotent on the server side.
        payload = self._invoke(body, resend_safe=False)
        return str(payload.get("message") or "changes applied")
