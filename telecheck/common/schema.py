"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from telecheck.common.errors import ConfigError


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive integer")


def _assert_extension_list(value, ctx: str) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{ctx} must be a non-empty list")
    for item in value:
        if not isinstance(item, str) or not item or item.startswith("."):
            raise ConfigError(f"{ctx} entries must be bare extensions such as 'csv'")


def validate_ingest_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"limits", "formats"}
    _assert_required_keys(cfg, top_required, "ingest config")
    _assert_no_unknown_keys(cfg, top_required, "ingest config", allow_unknown)

    limits_required = {"max_records", "max_file_size_mb"}
    _assert_required_keys(cfg["limits"], limits_required, "limits")
    _assert_no_unknown_keys(cfg["limits"], limits_required, "limits", allow_unknown)
    _assert_positive_int(cfg["limits"]["max_records"], "limits.max_records")
    _assert_positive_int(cfg["limits"]["max_file_size_mb"], "limits.max_file_size_mb")

    formats_required = {"delimited", "text", "rejected_spreadsheet"}
    _assert_required_keys(cfg["formats"], formats_required, "formats")
    _assert_no_unknown_keys(cfg["formats"], formats_required, "formats", allow_unknown)
    for key in sorted(formats_required):
        _assert_extension_list(cfg["formats"][key], f"formats.{key}")

    overlap = set(cfg["formats"]["delimited"]) & set(cfg["formats"]["text"])
    if overlap:
        raise ConfigError(f"Extensions mapped to two parsers: {', '.join(sorted(overlap))}")

    return cfg


def validate_scanner_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"functions_url", "function_name", "timeout_seconds", "retry"}
    top_known = top_required | {"api_key_env"}
    _assert_required_keys(cfg, top_required, "scanner config")
    _assert_no_unknown_keys(cfg, top_known, "scanner config", allow_unknown)

    if not isinstance(cfg["functions_url"], str) or not cfg["functions_url"].startswith(("http://", "https://")):
        raise ConfigError("functions_url must be an http(s) URL")
    _assert_positive_int(cfg["timeout_seconds"], "timeout_seconds")
    _assert_required_keys(cfg["retry"], {"max_attempts"}, "retry")
    _assert_positive_int(cfg["retry"]["max_attempts"], "retry.max_attempts")

    return cfg
