from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.batch_upsert import PostgresPriceStore
from ..excel.headers import resolve_header
from ..excel.reader import SheetReadError, read_sheet
from ..excel.template import write_template
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_level, setup_logging
from ..models.config_models import ImportConfig
from ..models.import_result import ImportStatus
from ..models.parse_result import ParseResult
from ..models.parsed_row import ProductRow
from ..services.classifier import classify_rows
from ..services.importer import import_rows, replay_queue
from ..services.offline_queue import OfflineQueue, QueueError
from ..services.progress import ImportProgressBar
from ..services.session import UploadSession
from ..services.summary import render_import_summary, render_parse_summary

"""CLI entrypoint.

Subcommands:
  inspect FILE            header map + first classified rows
  parse FILE              parse / validate, print row problems and SUMMARY
  import FILE [--offline] parse, then upsert valid rows (or queue them)
  queue list|replay|clear manage the offline queue
  template PATH           write a sample pricing workbook

Exit codes: 0 success, 2 partial (invalid rows / failed chunks), 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _connect(cfg: ImportConfig) -> Any:  # pragma: no cover (thin wrapper; needs a live server)
    """Open a psycopg2 connection.

    Resolution order:
        1. DATABASE_URL / PGDSN environment variables (.env loaded first)
        2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. database section of the config file
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"
    conn = psycopg2.connect(dsn)
    # PostgresPriceStore issues BEGIN / COMMIT per chunk itself
    conn.autocommit = True
    return conn


def _load_env_file(path: Path, override: bool = True) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="pricing-import", description="Pricing sheet validator and importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    sub = p.add_subparsers(dest="command", required=True)

    inspect_p = sub.add_parser("inspect", help="Print header mapping and first classified rows")
    inspect_p.add_argument("file", type=Path)
    inspect_p.add_argument("--limit", type=int, default=5)

    parse_p = sub.add_parser("parse", help="Parse and validate a pricing sheet")
    parse_p.add_argument("file", type=Path)

    import_p = sub.add_parser("import", help="Import the valid rows of a pricing sheet")
    import_p.add_argument("file", type=Path)
    import_p.add_argument("--offline", action="store_true", help="Queue the batch instead of connecting")

    queue_p = sub.add_parser("queue", help="Manage the offline import queue")
    queue_p.add_argument("action", choices=["list", "replay", "clear"])

    template_p = sub.add_parser("template", help="Write a sample pricing workbook")
    template_p.add_argument("path", type=Path)
    return p.parse_args(argv)


def _resolve_config(path: Path | None, logger: logging.Logger) -> ImportConfig:
    """Explicit --config must load; the default path is optional."""
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.debug("no %s found, using defaults", DEFAULT_CONFIG_PATH)
    return ImportConfig()


def _report_rows(result: ParseResult, logger: logging.Logger) -> None:
    for row in result.rows:
        if not isinstance(row, ProductRow):
            continue
        for err in row.errors:
            logger.warning(f"row={row.row_number} product={row.product_name!r} error={err}")
        for warn in row.warnings:
            logger.debug(f"row={row.row_number} product={row.product_name!r} warning={warn}")


def _inspect(cfg: ImportConfig, file: Path, limit: int) -> int:
    try:
        raw = read_sheet(file)
    except SheetReadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    header = resolve_header(
        raw, scan_rows=cfg.parser.header_scan_rows, min_matches=cfg.parser.header_min_matches
    )
    print(f"FILE: {file.name} header_row={header.header_row_index + 1}")
    print(f"  columns={dict(header.columns)}")
    rows = classify_rows(raw, header, file.name, blank_ratio=cfg.parser.section_blank_ratio)
    for row in rows[:limit]:
        if isinstance(row, ProductRow):
            color = row.color.value if row.color else None
            print(f"  row={row.row_number} product brand={row.brand!r} name={row.product_name!r} color={color}")
        else:
            print(f"  row={row.row_number} section label={row.label!r}")
    return EXIT_SUCCESS_ALL


def _parse(session: UploadSession, file: Path, logger: logging.Logger) -> ParseResult | None:
    result = session.load(file)
    if not result.rows and result.errors:
        for err in result.errors:
            logger.error(err)
        return None
    _report_rows(result, logger)
    log_summary(render_parse_summary(result))
    return result


def _import(cfg: ImportConfig, file: Path, offline: bool, logger: logging.Logger) -> int:
    session = UploadSession(cfg.parser)
    result = _parse(session, file, logger)
    if result is None:
        return EXIT_FATAL

    queue = OfflineQueue(cfg.queue_directory)
    error_log = ErrorLogBuffer()
    conn = None
    if not offline:
        try:
            conn = _connect(cfg)
        except Exception as e:
            logger.info(f"DB connection failed -> queueing batch: {e}")

    try:
        store = PostgresPriceStore(conn.cursor(), cfg.target_table, cfg.conflict_columns) if conn else None
        with ImportProgressBar() as progress:
            outcome = import_rows(
                result.rows,
                store,
                filename=file.name,
                chunk_size=cfg.chunk_size,
                is_online=lambda: conn is not None,
                queue=queue,
                on_progress=progress,
                error_log=error_log,
            )
    finally:
        if conn is not None:
            conn.close()

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")
    for err in outcome.errors:
        logger.error(f"row={err.row} product={err.product!r} error={err.error}")
    log_summary(render_import_summary(outcome))

    if outcome.status is ImportStatus.ERROR:
        logger.error(f"import: {outcome.message}")
        return EXIT_FATAL
    if outcome.errors or result.invalid_rows:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _queue(cfg: ImportConfig, action: str, logger: logging.Logger) -> int:
    queue = OfflineQueue(cfg.queue_directory)
    try:
        if action == "list":
            for entry in queue.list():
                print(f"{entry.id} file={entry.filename} rows={len(entry.rows)}")
            return EXIT_SUCCESS_ALL
        if action == "clear":
            logger.info(f"removed {queue.clear()} queued imports")
            return EXIT_SUCCESS_ALL

        try:
            conn = _connect(cfg)
        except Exception as e:
            logger.error(f"queue replay: DB connection failed: {e}")
            return EXIT_FATAL
        error_log = ErrorLogBuffer()
        try:
            store = PostgresPriceStore(conn.cursor(), cfg.target_table, cfg.conflict_columns)
            outcomes = replay_queue(queue, store, chunk_size=cfg.chunk_size, error_log=error_log)
        finally:
            conn.close()
        error_log.flush()
    except QueueError as e:
        logger.error(f"queue: {e}")
        return EXIT_FATAL

    failed = 0
    for entry, outcome in outcomes:
        failed += outcome.failed
        log_summary(render_import_summary(outcome), queue_id=entry.id)
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む ([] はテストからの明示指定)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.command == "template":
        path = write_template(args.path)
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS_ALL

    try:
        cfg = _resolve_config(args.config, logger)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _inspect(cfg, args.file, args.limit)
    if args.command == "parse":
        result = _parse(UploadSession(cfg.parser), args.file, logger)
        if result is None:
            return EXIT_FATAL
        return EXIT_PARTIAL_FAILURE if result.invalid_rows else EXIT_SUCCESS_ALL
    if args.command == "import":
        return _import(cfg, args.file, args.offline, logger)
    return _queue(cfg, args.action, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
