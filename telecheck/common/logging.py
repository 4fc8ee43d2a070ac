"""JSON-lines run logs: one object per event, every known field always present."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from telecheck.common.constants import JSON_LOG_FIELDS
from telecheck.common.fs import ensure_dir

# Statuses logged above INFO so they survive --log-level WARNING.
_LOUD_STATUSES = frozenset({"error", "warning"})


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {field: getattr(record, field, None) for field in JSON_LOG_FIELDS}
        payload["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds")
        payload["level"] = record.levelname
        payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    handler.setFormatter(JsonLineFormatter())
    logger.addHandler(handler)


def run_log_path(data_dir: Path, run_id: str) -> Path:
    return data_dir / "run_meta" / f"{run_id}.log.jsonl"


def build_logger(run_id: str, data_dir: Path, level: str = "INFO") -> logging.Logger:
    """Logger for one CLI run, writing to stderr and the run's jsonl file."""
    logger = logging.getLogger(f"telecheck.run.{run_id}")
    logger.setLevel(level.upper())
    logger.propagate = False
    close_logger(logger)

    log_path = run_log_path(data_dir, run_id)
    ensure_dir(log_path.parent)
    _attach(logger, logging.StreamHandler())
    _attach(logger, logging.FileHandler(log_path, encoding="utf-8"))
    return logger


def close_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def log_event(logger: logging.Logger, message: str, **event_fields: Any) -> None:
    level = logging.WARNING if event_fields.get("status") in _LOUD_STATUSES else logging.INFO
    logger.log(level, message, extra=event_fields)
