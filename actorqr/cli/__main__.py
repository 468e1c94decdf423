from __future__ import annotations

import argparse
import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import psycopg2
import requests
from dotenv import load_dotenv

from actorqr.config.loader import DEFAULT_CONFIG_PATH, load_config
from actorqr.db.audit_log import ensure_audit_table
from actorqr.errors import ConfigurationError, RowValidationError, SchemaError, WorkbookError
from actorqr.excel.headers import extract_row, validate_headers
from actorqr.excel.reader import read_first_sheet
from actorqr.logging.error_log import BatchErrorLog
from actorqr.logging.init import enable_debug, log_summary, register_secret, setup_logging
from actorqr.models.config_models import DatabaseConfig
from actorqr.services.orchestrator import BatchOrchestrator
from actorqr.services.summary import render_summary_line
from actorqr.storage.s3 import S3ObjectStorage

"""CLI entrypoint.

Stands in for the upload endpoint: reads one .xlsx file, runs the batch and
emits the BatchResult JSON (``total, ok, skipped, errors, results[]``).

Exit codes:
    0  every row ok or skipped
    2  at least one row ended in error
    1  fatal (configuration, unreadable workbook, header mismatch, database)
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """DSN resolution order: DATABASE_URL / PGDSN, config dsn, then PG* env over config fields."""
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(db_cfg: DatabaseConfig):  # pragma: no cover (thin wrapper)
    """Yield a cursor on an autocommit psycopg2 connection (one audit row = one commit)."""
    conn = psycopg2.connect(_resolve_dsn(db_cfg))
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; .env values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Actor workbook -> encrypted QR -> storage, API and audit log")
    p.add_argument("workbook", type=Path, help="Path to the .xlsx file")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--output", type=Path, default=None, help="Write the BatchResult JSON here instead of stdout")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect", action="store_true", help="Validate headers, print the first rows and exit")
    return p.parse_args(argv)


def _inspect_workbook(data: bytes, logger) -> int:
    """Header check plus a preview of the first data rows; no side effects."""
    try:
        sheet = read_first_sheet(data)
    except WorkbookError as e:
        logger.error(f"workbook: {e}")
        return EXIT_FATAL
    print(f"SHEET: {sheet.sheet_name} headers={sheet.raw_headers} data_rows={len(sheet.rows)}")
    try:
        header_index = validate_headers(sheet.raw_headers)
    except SchemaError as e:
        logger.error(f"headers: {e}")
        return EXIT_FATAL
    print("headers: ok")
    for row_number, cells in sheet.rows[:3]:
        try:
            record = extract_row(cells, header_index, row_number)
        except RowValidationError as e:
            print(f"  row {row_number}: error={e}")
            continue
        if record is None:
            print(f"  row {row_number}: skipped")
        else:
            print(f"  row {row_number}: {record.as_dict()}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> read sys.argv; [] stays [] (pytest argv must not leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    config_path = args.config
    if config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path)
    except ConfigurationError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    register_secret(cfg.passphrase)

    if not args.workbook.is_file():
        logger.error(f"workbook not found: {args.workbook}")
        return EXIT_FATAL
    data = args.workbook.read_bytes()

    if args.inspect:
        return _inspect_workbook(data, logger)

    # --inspect never touches storage, so the bucket is only required from here on
    try:
        storage = S3ObjectStorage(cfg.storage)
    except ConfigurationError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = BatchErrorLog()
    try:
        with _db_connection(cfg.database) as cur, requests.Session() as session:
            ensure_audit_table(cur, cfg.audit_table)
            orchestrator = BatchOrchestrator.from_config(
                cfg,
                storage=storage,
                cursor=cur,
                session=session,
                error_log=error_log,
            )
            result = orchestrator.process(data, file_name=args.workbook.name)
    except (WorkbookError, SchemaError) as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL

    payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    if args.output is not None:
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info(f"result written: {args.output}")
    else:
        print(payload)

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.errors > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
