from __future__ import annotations

import argparse
import logging
import sys
from contextlib import nullcontext
from pathlib import Path

from dotenv import load_dotenv

from takeoff_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from takeoff_import.db.connection import open_component_store
from takeoff_import.logging.error_log import ErrorLogBuffer
from takeoff_import.logging.init import log_summary, setup_logging
from takeoff_import.models.context import ImportContext
from takeoff_import.reader.takeoff_reader import TakeoffReadError, read_takeoff_file
from takeoff_import.services.orchestrator import import_takeoff
from takeoff_import.services.summary import render_summary_line

"""CLI entrypoint.

takeoff-import <file> --project-id ID --user-id ID [--config PATH] [--dry-run] [--debug]

- Load .env (overrides existing env vars so DB settings in .env win)
- Load + validate config
- Read the takeoff (.csv as-is, .xlsx first sheet converted to CSV)
- Import into PostgreSQL, or validate only with --dry-run (mock mode)
- Flush the JSON error log, print the SUMMARY line

Exit codes: 0 imported, 2 import rejected (validation / persistence), 1 fatal.
"""

EXIT_SUCCESS = 0
EXIT_REJECTED = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True: .env の値で既存環境変数を上書き (DB 接続情報を最優先化)
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="takeoff-import", description="Takeoff CSV -> PostgreSQL component importer")
    p.add_argument("file", type=Path, help="Takeoff file (.csv or .xlsx)")
    p.add_argument("--project-id", required=True, help="Target project id")
    p.add_argument("--user-id", required=True, help="User recorded as creator of the components")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML (default: config/import.yml)")
    p.add_argument("--dry-run", action="store_true", help="Validate only, do not connect to the database")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: [] が与えられた場合に sys.argv[1:] (pytest の引数) を読まないよう None のみ判定
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        csv_content = read_takeoff_file(args.file)
    except TakeoffReadError as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    logger.info(f"Importing {args.file.name} into project {args.project_id}")
    context = ImportContext(project_id=args.project_id, user_id=args.user_id, source=args.file.name)
    error_log = ErrorLogBuffer(cfg.error_log_dir)

    db_mode = "mock" if args.dry_run else "live"
    try:
        store_cm = nullcontext(None) if args.dry_run else open_component_store(cfg.database)
        with store_cm as store:
            result = import_takeoff(csv_content, context, persistence=store, config=cfg, error_log=error_log)
    except Exception as e:  # connect failure (psycopg2.OperationalError etc.)
        logger.error(f"database: {type(e).__name__}: {e}")
        return EXIT_FATAL

    for err in result.errors:
        column = f" column={err.column}" if err.column else ""
        logger.error(f"row={err.row}{column} {err.reason}")

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")

    logger.info(f"mode={db_mode} components={result.components_created or 0}")
    summary_line = render_summary_line(result, source=args.file.name)
    # log_summary adds the "SUMMARY " prefix
    log_summary(summary_line[len("SUMMARY "):])

    return EXIT_SUCCESS if result.success else EXIT_REJECTED


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
