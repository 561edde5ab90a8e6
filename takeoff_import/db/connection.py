from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig
from .persistence import PostgresComponentStore

"""PostgreSQL connection helpers.

Connection parameter resolution order:
    1. DATABASE_URL / PGDSN environment variables (a full DSN)
    2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` section of config/import.yml (fallback for anything unset)
"""

__all__ = [
    "resolve_dsn",
    "db_cursor",
    "open_component_store",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
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
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on an autocommit connection.

    Autocommit is on because PostgresComponentStore issues BEGIN/COMMIT itself.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    try:
        conn.autocommit = True
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()


@contextmanager
def open_component_store(db_cfg: DatabaseConfig, page_size: int = 1000) -> Iterator[PostgresComponentStore]:
    """Yield a PostgresComponentStore on a fresh connection (one per import)."""
    with db_cursor(db_cfg) as cur:
        yield PostgresComponentStore(
            cur,
            page_size=page_size,
            statement_timeout_ms=db_cfg.statement_timeout_ms,
        )
