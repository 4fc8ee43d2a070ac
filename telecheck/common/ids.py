"""Run ids name the command and sort by start time, e.g. ``scan-20240615T010203123456Z``."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_run_id(command: str) -> str:
    stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{command}-{stamp}"
