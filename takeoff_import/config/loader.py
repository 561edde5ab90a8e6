from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_MAX_QTY,
    DEFAULT_MAX_ROWS,
    DatabaseConfig,
    DuplicateScope,
    ImportConfig,
    LimitsConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the bundled JSON schema (additional keys rejected)
- Apply defaults (limits, duplicate_scope=project, error_log_dir=./logs)
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("import_config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails schema validation (missing keys, wrong types, extra keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    limits_raw = data.get("limits") or {}
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        statement_timeout_ms=db_raw.get("statement_timeout_ms"),
    )
    return ImportConfig(
        allowed_types=tuple(t.strip() for t in data["allowed_types"]),
        limits=LimitsConfig(
            max_file_bytes=limits_raw.get("max_file_bytes", DEFAULT_MAX_FILE_BYTES),
            max_rows=limits_raw.get("max_rows", DEFAULT_MAX_ROWS),
            max_qty=limits_raw.get("max_qty", DEFAULT_MAX_QTY),
        ),
        duplicate_scope=DuplicateScope(data.get("duplicate_scope", "project")),
        database=db,
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
