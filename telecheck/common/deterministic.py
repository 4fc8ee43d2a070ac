"""Helpers for deterministic ordering and serialisation."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(items: Iterable[T], key: Callable[[T], object]) -> list[T]:
    return sorted(items, key=key)


def parse_agrn_list(value: str | None) -> set[str]:
    """Split a comma-separated AGRN list, ignoring blanks."""
    if not value:
        return set()
    return {part.strip() for part in value.split(",") if part.strip()}
