"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from telecheck.common.errors import ConfigError
from telecheck.common.fs import read_yaml
from telecheck.common.schema import validate_ingest_config, validate_scanner_config


@dataclass(frozen=True)
class IngestSettings:
    max_records: int
    max_file_size_mb: int
    delimited_extensions: tuple[str, ...]
    text_extensions: tuple[str, ...]
    spreadsheet_extensions: tuple[str, ...]

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return self.delimited_extensions + self.text_extensions

    @classmethod
    def from_config(cls, cfg: dict) -> "IngestSettings":
        return cls(
            max_records=int(cfg["limits"]["max_records"]),
            max_file_size_mb=int(cfg["limits"]["max_file_size_mb"]),
            delimited_extensions=tuple(ext.lower() for ext in cfg["formats"]["delimited"]),
            text_extensions=tuple(ext.lower() for ext in cfg["formats"]["text"]),
            spreadsheet_extensions=tuple(ext.lower() for ext in cfg["formats"]["rejected_spreadsheet"]),
        )


@dataclass(frozen=True)
class ConfigBundle:
    ingest: IngestSettings
    scanner: dict


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def _overlay(name: str) -> Path | None:
        if overlay_config_dir is None:
            return None
        return overlay_config_dir / name

    ingest = validate_ingest_config(
        _load_yaml_with_overlay(config_dir / "ingest.yml", _overlay("ingest.yml")),
        allow_unknown=allow_unknown,
    )
    scanner = validate_scanner_config(
        _load_yaml_with_overlay(config_dir / "scanner.yml", _overlay("scanner.yml")),
        allow_unknown=allow_unknown,
    )
    return ConfigBundle(ingest=IngestSettings.from_config(ingest), scanner=scanner)
