from __future__ import annotations

import argparse
import json
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from src.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from src.db.sales_store import commit_batch
from src.excel.reader import FileDecodeError, UnsupportedFileTypeError, read_table, resolve_source
from src.logging.error_log import ErrorLogBuffer
from src.logging.init import log_summary, setup_logging
from src.models.config_models import IngestConfig
from src.models.upload import UploadedFile
from src.services.summary import render_summary_line
from src.services.upload import handle_upload

"""CLI entrypoint: ingest one weekly sales file.

Flow:
- Load .env and config/ingest.yml
- Read the file into memory, resolve CSV / spreadsheet from the content type
- Run the ingestion pipeline through the upload contract
- Persist the batch unless --dry-run / DISABLE_DB_CONNECT=1
- Print the JSON response and the SUMMARY line
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_VALIDATION = 2


@contextmanager
def _db_connection(cfg: IngestConfig):  # pragma: no cover (thin wrapper; tested via integration)
    """Yield a psycopg2 connection with autocommit off.

    Resolution order:
        1. DATABASE_URL / PGDSN (environment, .env already loaded)
        2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. database section of config/ingest.yml
    """
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
    conn.autocommit = False  # commit_batch owns the transaction
    try:
        yield conn
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Weekly sales upload ingestion")
    p.add_argument("file", type=Path, help="CSV / XLSX / XLS sales export")
    p.add_argument("--area", default=None, help="Area assigned to every record of this upload")
    p.add_argument("--content-type", default=None, help="Override the MIME type guessed from the extension")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file (YAML)")
    p.add_argument("--dry-run", action="store_true", help="Validate and normalize only, do not store")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(upload: UploadedFile) -> int:
    try:
        sheet = read_table(resolve_source(upload))
    except (UnsupportedFileTypeError, FileDecodeError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {sheet.name} cols={sheet.columns}")
    for row in sheet.rows[:3]:
        # spreadsheet dates are not JSON serializable
        safe = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in row.values.items()}
        print(f"  row {row.row_number}: {safe}")
    print(f"  total_rows={len(sheet.rows)}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None -> read sys.argv; an explicit [] must not pick up pytest's arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.file.is_file():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    upload = UploadedFile.from_path(args.file, args.content_type)

    if args.inspect_data:
        return _inspect_data(upload)

    error_log = ErrorLogBuffer() if cfg.upload.rejection_log else None
    dry_run = args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1"
    start = time.monotonic()

    if dry_run:
        logger.debug("dry run: batch will not be stored")
        response = handle_upload(upload, args.area, cfg, error_log=error_log, show_progress=True)
    else:
        try:
            with _db_connection(cfg) as conn:
                response = handle_upload(
                    upload,
                    args.area,
                    cfg,
                    store=lambda u, r: commit_batch(conn, u, r, cfg.upload.uploaded_by),
                    error_log=error_log,
                    show_progress=True,
                )
        except psycopg2.Error as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL

    elapsed = time.monotonic() - start
    if error_log is not None:
        path = error_log.flush()
        if path is not None:
            logger.info(f"rejections written to {path}")

    print(json.dumps(response.payload, ensure_ascii=False, default=str))
    summary_line = render_summary_line(upload.name, response.result, elapsed)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if response.ok:
        return EXIT_SUCCESS
    if response.status == 400:
        return EXIT_VALIDATION
    return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
