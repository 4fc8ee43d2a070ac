"""Data models used across ingest and reconciliation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from telecheck.common.constants import AUSTRALIAN_STATES

STATUS_NEW = "new"
STATUS_ENDED = "ended"
STATUS_UPDATED = "updated"
STATUS_UNCHANGED = "unchanged"
STATUS_REMOVED = "removed"

TRACKED_FIELDS = ("title", "state", "start_date", "end_date", "url")


@dataclass(frozen=True)
class Demographics:
    age: int | None = None
    gender: str | None = None
    date_of_birth: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.age is None and self.gender is None and self.date_of_birth is None


@dataclass(frozen=True)
class PostcodeRecord:
    postcode: str
    demographics: Demographics = field(default_factory=Demographics)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"postcode": self.postcode}
        if self.demographics.age is not None:
            out["age"] = self.demographics.age
        if self.demographics.gender is not None:
            out["gender"] = self.demographics.gender
        if self.demographics.date_of_birth is not None:
            out["date_of_birth"] = self.demographics.date_of_birth
        return out


@dataclass(frozen=True)
class ParseResult:
    records: tuple[PostcodeRecord, ...]
    file_format: str
    candidate_count: int

    @property
    def postcodes(self) -> list[str]:
        return [record.postcode for record in self.records]

    @property
    def demographics(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.records]

    @property
    def total_records(self) -> int:
        return len(self.records)

    @property
    def dropped_count(self) -> int:
        return self.candidate_count - len(self.records)

    @property
    def has_demographics(self) -> bool:
        return any(not record.demographics.is_empty for record in self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_format": self.file_format,
            "postcodes": self.postcodes,
            "demographics": self.demographics,
            "total_records": self.total_records,
            "has_demographics": self.has_demographics,
            "candidate_count": self.candidate_count,
            "dropped_count": self.dropped_count,
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


_STATE_CODE_BY_NAME = {name.upper(): code for code, name in AUSTRALIAN_STATES.items()}


def normalise_state(value: Any) -> str:
    """Map a state code or full state name to its code; unknown values pass through upper-cased."""
    cleaned = _text(value).upper()
    return _STATE_CODE_BY_NAME.get(cleaned, cleaned)


@dataclass(frozen=True)
class DisasterRecord:
    agrn: str
    title: str = ""
    state: str = ""
    start_date: str = ""
    end_date: str | None = None
    url: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DisasterRecord":
        end_date = _text(payload.get("end_date"))
        return cls(
            agrn=_text(payload.get("agrn")),
            title=_text(payload.get("title")),
            state=normalise_state(payload.get("state")),
            start_date=_text(payload.get("start_date")),
            end_date=end_date or None,
            url=_text(payload.get("url")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DisasterChange:
    record: DisasterRecord
    status: str
    changes: tuple[str, ...] = ()

    @property
    def agrn(self) -> str:
        return self.record.agrn

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DisasterChange":
        return cls(
            record=DisasterRecord.from_dict(payload),
            status=payload.get("status", STATUS_UNCHANGED),
            changes=tuple(payload.get("changes") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        out = self.record.to_dict()
        out["status"] = self.status
        out["changes"] = list(self.changes)
        return out


@dataclass(frozen=True)
class ScanSummary:
    new_count: int = 0
    updated_count: int = 0
    ended_count: int = 0
    unchanged_count: int = 0
    removed_count: int = 0

    @property
    def total_changes(self) -> int:
        return self.new_count + self.updated_count + self.ended_count

    def to_dict(self) -> dict[str, int]:
        out = asdict(self)
        out["total_changes"] = self.total_changes
        return out


@dataclass(frozen=True)
class ScanReport:
    timestamp: str
    scraped_count: int
    existing_count: int
    new_disasters: tuple[DisasterChange, ...] = ()
    updated_disasters: tuple[DisasterChange, ...] = ()
    ended_disasters: tuple[DisasterChange, ...] = ()
    removed_disasters: tuple[DisasterChange, ...] = ()
    unchanged_agrns: tuple[str, ...] = ()
    duplicate_agrns: tuple[str, ...] = ()
    # Set when the scanner reports a count without listing the AGRNs.
    unchanged_total: int | None = None

    @property
    def unchanged_count(self) -> int:
        if self.unchanged_total is not None:
            return self.unchanged_total
        return len(self.unchanged_agrns)

    @property
    def summary(self) -> ScanSummary:
        return ScanSummary(
            new_count=len(self.new_disasters),
            updated_count=len(self.updated_disasters),
            ended_count=len(self.ended_disasters),
            unchanged_count=self.unchanged_count,
            removed_count=len(self.removed_disasters),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "scraped_count": self.scraped_count,
            "existing_count": self.existing_count,
            "new_disasters": [change.to_dict() for change in self.new_disasters],
            "updated_disasters": [change.to_dict() for change in self.updated_disasters],
            "ended_disasters": [change.to_dict() for change in self.ended_disasters],
            "removed_disasters": [change.to_dict() for change in self.removed_disasters],
            "unchanged_agrns": list(self.unchanged_agrns),
            "unchanged_count": self.unchanged_count,
            "duplicate_agrns": list(self.duplicate_agrns),
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ScanReport":
        def _changes(key: str) -> tuple[DisasterChange, ...]:
            return tuple(DisasterChange.from_dict(item) for item in payload.get(key) or [])

        unchanged_agrns = tuple(payload.get("unchanged_agrns") or ())
        unchanged_total = _optional_int(payload.get("unchanged_count"))
        return cls(
            timestamp=payload.get("timestamp", ""),
            scraped_count=int(payload.get("scraped_count", 0)),
            existing_count=int(payload.get("existing_count", 0)),
            new_disasters=_changes("new_disasters"),
            updated_disasters=_changes("updated_disasters"),
            ended_disasters=_changes("ended_disasters"),
            removed_disasters=_changes("removed_disasters"),
            unchanged_agrns=unchanged_agrns,
            duplicate_agrns=tuple(payload.get("duplicate_agrns") or ()),
            unchanged_total=unchanged_total if unchanged_total != len(unchanged_agrns) else None,
        )


@dataclass(frozen=True)
class ChangeSet:
    to_insert: tuple[DisasterChange, ...] = ()
    to_update: tuple[DisasterChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.to_insert and not self.to_update

    def to_dict(self) -> dict[str, Any]:
        return {
            "to_insert": [change.to_dict() for change in self.to_insert],
            "to_update": [change.to_dict() for change in self.to_update],
        }
