from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the takeoff import pipeline.

These are the typed results of config.loader.load_config. They are separate
from the loader so that services can depend on them without pulling in YAML /
jsonschema.
"""

__all__ = [
    "DEFAULT_ALLOWED_TYPES",
    "DEFAULT_MAX_FILE_BYTES",
    "DEFAULT_MAX_ROWS",
    "DEFAULT_MAX_QTY",
    "DuplicateScope",
    "DatabaseConfig",
    "LimitsConfig",
    "ImportConfig",
]

# Component types known to the progress templates of the store
DEFAULT_ALLOWED_TYPES: tuple[str, ...] = (
    "Spool",
    "Field_Weld",
    "Valve",
    "Instrument",
    "Support",
    "Pipe",
    "Fitting",
    "Flange",
    "Tubing",
    "Hose",
    "Misc_Component",
    "Threaded_Pipe",
)

DEFAULT_MAX_FILE_BYTES = 5 * 1024 * 1024  # 5 MB
DEFAULT_MAX_ROWS = 10_000
DEFAULT_MAX_QTY = 10_000  # per row; each unit becomes one component


class DuplicateScope(Enum):
    """Which tuple two drafts must share to be reported as duplicates.

    - PROJECT: (commodity_code, size, seq) across the whole batch
    - DRAWING: (drawing, commodity_code, size, seq)
    """
    PROJECT = "project"
    DRAWING = "drawing"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    statement_timeout_ms: int | None = None


@dataclass(frozen=True)
class LimitsConfig:
    """Input limits. File size and row count are checked before any row is
    evaluated; max_qty is checked per row by the validator."""
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    max_rows: int = DEFAULT_MAX_ROWS
    max_qty: int = DEFAULT_MAX_QTY


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for takeoff imports."""
    allowed_types: tuple[str, ...]  # closed component-type vocabulary
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    duplicate_scope: DuplicateScope = DuplicateScope.PROJECT
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    error_log_dir: str = "./logs"

    @staticmethod
    def default() -> ImportConfig:
        """Built-in vocabulary and limits, for library use without a config file."""
        return ImportConfig(allowed_types=DEFAULT_ALLOWED_TYPES)
