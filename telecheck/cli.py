"""CLI entrypoint for TeleCheck patient postcode ingest and disaster reconciliation."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from telecheck.common.config_loader import ConfigBundle, load_all_configs
from telecheck.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS, EXIT_USER_ERROR
from telecheck.common.deterministic import parse_agrn_list
from telecheck.common.errors import IngestError, NoChangesSelected, TelecheckError, UsageError
from telecheck.common.ids import generate_run_id
from telecheck.common.logging import build_logger, close_logger, log_event
from telecheck.common.time_utils import parse_as_of_date
from telecheck.ingest.export import write_parse_result
from telecheck.ingest.upload import dataset_size_tier, parse_pasted_text, parse_upload
from telecheck.reconcile.reconciler import reconcile, select_changes
from telecheck.reconcile.reports import (
    load_change_set,
    load_disaster_records,
    load_scan_report,
    write_change_set,
    write_scan_report,
)
from telecheck.reconcile.scanner_client import ScannerClient


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="telecheck", description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--input", default=None, help="CSV or text upload to ingest")
    parser.add_argument("--text", default=None, help="pasted postcode text to ingest")
    parser.add_argument("--as-of", default=None, help="ISO date used to derive ages from dates of birth")
    parser.add_argument("--scraped", default=None)
    parser.add_argument("--stored", default=None)
    parser.add_argument("--report", default=None)
    parser.add_argument("--change-set", default=None)
    parser.add_argument("--new", default="", help="comma-separated AGRNs to insert, or 'all'")
    parser.add_argument("--updated", default="", help="comma-separated AGRNs to update, or 'all'")
    parser.add_argument("--out-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def _require(args: argparse.Namespace, *names: str) -> None:
    missing = [f"--{name.replace('_', '-')}" for name in names if not getattr(args, name)]
    if missing:
        raise UsageError(f"{args.command} requires {', '.join(missing)}")


def _selection(value: str, available: set[str]) -> set[str]:
    if value.strip().lower() == "all":
        return set(available)
    return parse_agrn_list(value)


def run_ingest(args: argparse.Namespace, bundle: ConfigBundle, out_dir: Path, logger: logging.Logger, run_id: str) -> None:
    if args.input:
        path = Path(args.input)
        if not path.exists():
            raise IngestError(f"Missing upload: {path}")
        result = parse_upload(
            path.name,
            path.read_bytes(),
            settings=bundle.ingest,
            today=parse_as_of_date(args.as_of),
        )
        source_name = path.name
    else:
        _require(args, "text")
        result = parse_pasted_text(args.text, settings=bundle.ingest)
        source_name = "pasted-text"

    write_parse_result(result, out_dir, source_name=source_name)
    log_event(
        logger,
        f"parsed {result.total_records} patient records ({dataset_size_tier(result.total_records)} dataset)",
        run_id=run_id,
        command="ingest",
        source=source_name,
        event="INGEST_PARSED",
        status="ok",
        rows_in=result.candidate_count,
        rows_out=result.total_records,
    )


def _write_reconciliation(report, out_dir: Path, logger: logging.Logger, run_id: str, command: str) -> None:
    write_scan_report(report, out_dir, run_id)
    if report.duplicate_agrns:
        log_event(
            logger,
            f"duplicate AGRNs collapsed to last occurrence: {', '.join(report.duplicate_agrns)}",
            run_id=run_id,
            command=command,
            event="DUPLICATE_AGRNS",
            status="warning",
        )
    summary = report.summary
    log_event(
        logger,
        f"{summary.total_changes} changes: {summary.new_count} new, {summary.updated_count} updated, "
        f"{summary.ended_count} ended; {summary.removed_count} removed",
        run_id=run_id,
        command=command,
        event="RECONCILE_COMPLETE",
        status="ok",
        rows_in=report.scraped_count,
        rows_out=summary.total_changes,
    )


def run_reconcile(args: argparse.Namespace, out_dir: Path, logger: logging.Logger, run_id: str) -> None:
    _require(args, "scraped", "stored")
    report = reconcile(load_disaster_records(Path(args.scraped)), load_disaster_records(Path(args.stored)))
    _write_reconciliation(report, out_dir, logger, run_id, "reconcile")


def run_select(args: argparse.Namespace, out_dir: Path, logger: logging.Logger, run_id: str) -> None:
    _require(args, "report")
    report = load_scan_report(Path(args.report))
    new_agrns = {change.agrn for change in report.new_disasters}
    updated_agrns = {change.agrn for change in (*report.updated_disasters, *report.ended_disasters)}
    change_set = select_changes(report, _selection(args.new, new_agrns), _selection(args.updated, updated_agrns))
    write_change_set(change_set, out_dir, run_id)
    log_event(
        logger,
        f"selected {len(change_set.to_insert)} inserts and {len(change_set.to_update)} updates",
        run_id=run_id,
        command="select",
        event="CHANGES_SELECTED",
        status="ok",
        rows_out=len(change_set.to_insert) + len(change_set.to_update),
    )


def run_scan(bundle: ConfigBundle, out_dir: Path, logger: logging.Logger, run_id: str) -> None:
    client = ScannerClient.from_config(bundle.scanner)
    with client.http:
        report = client.fetch_scan()
    _write_reconciliation(report, out_dir, logger, run_id, "scan")


def run_apply(args: argparse.Namespace, bundle: ConfigBundle, logger: logging.Logger, run_id: str) -> None:
    _require(args, "change_set")
    change_set = load_change_set(Path(args.change_set))
    if change_set.is_empty:
        raise NoChangesSelected(f"Change set {args.change_set} has nothing to apply.")
    client = ScannerClient.from_config(bundle.scanner)
    with client.http:
        message = client.apply_changes(change_set)
    log_event(logger, message, run_id=run_id, command="apply", source=client.endpoint, event="CHANGES_APPLIED", status="ok")


def execute_command(args: argparse.Namespace, bundle: ConfigBundle, out_dir: Path, logger: logging.Logger, run_id: str) -> None:
    if args.command == "ingest":
        run_ingest(args, bundle, out_dir, logger, run_id)
    elif args.command == "reconcile":
        run_reconcile(args, out_dir, logger, run_id)
    elif args.command == "select":
        run_select(args, out_dir, logger, run_id)
    elif args.command == "scan":
        run_scan(bundle, out_dir, logger, run_id)
    elif args.command == "apply":
        run_apply(args, bundle, logger, run_id)
    else:
        raise ValueError(f"Unknown command: {args.command}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id(args.command)
    data_dir = Path(args.data_dir)
    out_dir = Path(args.out_dir) if args.out_dir else data_dir / "out" / run_id
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    started = time.monotonic()
    log_event(logger, "command start", run_id=run_id, command=args.command, event="COMMAND_START", status="ok")

    try:
        bundle = load_all_configs(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        execute_command(args, bundle, out_dir, logger, run_id)
    except TelecheckError as exc:
        log_event(
            logger,
            str(exc),
            run_id=run_id,
            command=args.command,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        close_logger(logger)
        return EXIT_USER_ERROR
    except Exception:
        logger.exception(
            "unexpected failure",
            extra={"run_id": run_id, "command": args.command, "event": "COMMAND_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
        )
        close_logger(logger)
        return EXIT_HARD_FAIL

    log_event(
        logger,
        "command end",
        run_id=run_id,
        command=args.command,
        event="COMMAND_END",
        status="ok",
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    close_logger(logger)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except TelecheckError:
        return EXIT_USER_ERROR
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
