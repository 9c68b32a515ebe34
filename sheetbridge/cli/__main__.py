from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

from sheetbridge.config.loader import DEFAULT_CONFIG_PATH, ConfigError, SyncConfig, load_config
from sheetbridge.context import AppContext, build_context
from sheetbridge.errors import ExecutionConflictError, SheetBridgeError
from sheetbridge.excel.transform import transform_workbook
from sheetbridge.logging.init import get_logger, setup_logging
from sheetbridge.models.dataset import LocationsDataset
from sheetbridge.models.execution import ExecutionStatus
from sheetbridge.models.source_file import SourceVariant
from sheetbridge.services.classifier import classify, environment_tag
from sheetbridge.services.publisher import json_default

"""CLI entrypoint.

    python -m sheetbridge.cli [--config PATH] [--debug] run
    python -m sheetbridge.cli [--config PATH] [--debug] serve
    python -m sheetbridge.cli [--config PATH] [--debug] check
    python -m sheetbridge.cli [--config PATH] [--debug] inspect FILE [--limit N]

Exit codes for ``run``: 0 completed, 2 completed with warnings, 1 failed
(including config errors). ``check`` exits 0 when storage and the
portal both answer, else 1.
"""

EXIT_SUCCESS = 0
EXIT_WARNINGS = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so that credentials in it win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetbridge", description="Spreadsheet inbox -> portal JSON sync")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Run one cycle now and exit")
    sub.add_parser("serve", help="Run cycles on the configured interval until interrupted")
    sub.add_parser("check", help="Verify storage and portal access without running a cycle")
    ins = sub.add_parser("inspect", help="Classify and transform a local workbook, print sample records")
    ins.add_argument("file", type=Path)
    ins.add_argument("--limit", type=int, default=3, help="Records to print per sheet")
    return p.parse_args(argv)


def _run_once(ctx: AppContext) -> int:
    logger = get_logger()
    try:
        result = ctx.scheduler.trigger_manual()
    except ExecutionConflictError as e:
        logger.error(f"run: {e.message} ({e.details.get('executionId')})")
        return EXIT_FATAL
    if result is None:
        return EXIT_FATAL
    execution = result.execution
    if execution.status is not ExecutionStatus.COMPLETED:
        err = execution.error or {}
        logger.error(f"run: {execution.status.value}: {err.get('type')}: {err.get('message')}")
        return EXIT_FATAL
    if execution.warnings:
        return EXIT_WARNINGS
    return EXIT_SUCCESS


def _serve(ctx: AppContext) -> int:
    logger = get_logger()
    stop_requested = threading.Event()

    def _handle(signum, _frame) -> None:
        logger.info(f"received {signal.Signals(signum).name}, shutting down")
        stop_requested.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)

    ctx.scheduler.start()
    while not stop_requested.wait(1.0):
        pass
    ctx.scheduler.stop()
    stats = ctx.tracker.calculate_stats()
    logger.info(
        f"final stats: executions={stats['totalExecutions']} completed={stats['successfulExecutions']} "
        f"failed={stats['failedExecutions']} cancelled={stats['cancelledExecutions']} "
        f"records={stats['totalRecordsProcessed']}"
    )
    return EXIT_SUCCESS


def _check(ctx: AppContext) -> int:
    logger = get_logger()
    ok = True
    inbox = ctx.cfg.storage.inbox_prefix
    try:
        candidates = ctx.locator.list_candidates(inbox)
    except SheetBridgeError as e:
        logger.error(f"check: storage: {e.error_type}: {e.message}")
        ok = False
    else:
        logger.info(f"check: storage ok: bucket={ctx.store.bucket} inbox={inbox} spreadsheets={len(candidates)}")

    destination = ctx.publisher.resolve_destination(SourceVariant.HOME, "")
    outcome = ctx.portal.check_connection(destination)
    if outcome["status"] == "connected":
        logger.info(f"check: portal ok: account={outcome['account']} status={outcome['statusCode']}")
    else:
        logger.error(f"check: portal: account={outcome['account']} {outcome.get('error')}")
        ok = False
    return EXIT_SUCCESS if ok else EXIT_FATAL


def _inspect(cfg: SyncConfig, file: Path, limit: int) -> int:
    if not file.exists():
        print(f"inspect: file not found: {file}")
        return EXIT_FATAL
    variant = classify(file.name)
    print(f"FILE: {file.name} variant={variant.value} effective={variant.effective.value} "
          f"environment={environment_tag(file.name) or '-'}")
    try:
        dataset = transform_workbook(variant, file, cfg, file_name=file.name)
    except SheetBridgeError as e:
        print(f"  error: {e.error_type}: {e.message}")
        return EXIT_FATAL
    data = dataset.to_json_data()
    if isinstance(data, dict):
        for sheet, records in data.items():
            print(f"  SHEET: {sheet} records={len(records)}")
            print("    sample=", json.dumps(records[:limit], ensure_ascii=False, default=json_default))
    else:
        print(f"  records={dataset.record_count}")
        # the Locations grid keeps its header row on top of the sample
        sample = data[: limit + 1] if isinstance(dataset, LocationsDataset) else data[:limit]
        print("    sample=", json.dumps(sample, ensure_ascii=False, default=json_default))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    setup_logging("DEBUG" if args.debug else cfg.log_level)
    logger.debug("debug mode enabled")

    if args.command == "inspect":
        return _inspect(cfg, args.file, args.limit)

    ctx = build_context(cfg)
    if args.command == "serve":
        return _serve(ctx)
    if args.command == "check":
        return _check(ctx)
    return _run_once(ctx)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
