from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Mapping
from typing import Any

from ..db.persistence import ComponentStore
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.column_mapping import ColumnMapping
from ..models.config_models import ImportConfig
from ..models.context import ImportContext
from ..models.fields import ErrorKind, RowCategory
from ..models.import_result import ImportErrorDetail, ImportResult
from ..models.validation import ValidationResult
from ..reader.takeoff_reader import TakeoffReadError, TakeoffRowWidthError, TakeoffSheet, parse_takeoff_csv
from .column_mapper import map_columns
from .identity import expand_rows
from .progress import RowProgress
from .row_validator import RowValidator

"""Takeoff import orchestration.

import_takeoff() is the single entry point used by the CLI and the HTTP API:

1. size limit on the raw CSV bytes
2. parse header + rows (rows wider than the header are rejected), row-count limit
3. column mapping (missing required columns abort here, row 0)
4. validate every row, fan out the valid ones, detect duplicate identity keys
5. all-or-nothing: any hard error -> nothing is persisted
6. one persistence call with every draft (persistence=None -> dry run)

Data problems never raise; they come back as a failed ImportResult that lists
every error found.
"""

__all__ = [
    "PERSISTENCE_FAILURE_REASON",
    "import_takeoff",
]

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
HEADER_ROW = 0  # row used for header / file-level errors
PERSISTENCE_FAILURE_REASON = "Import failed: components could not be saved. No changes were made."

_ROW_ERROR_KINDS = {
    RowCategory.INVALID_QUANTITY: ErrorKind.INVALID_DATA_TYPE,
    RowCategory.QTY_LIMIT_EXCEEDED: ErrorKind.QTY_LIMIT_EXCEEDED,
    RowCategory.INVALID_TYPE: ErrorKind.INVALID_ENUM,
    RowCategory.EMPTY_REQUIRED_FIELD: ErrorKind.EMPTY_REQUIRED_FIELD,
}


def _file_error(kind: ErrorKind, reason: str, column: str | None = None) -> ImportErrorDetail:
    return ImportErrorDetail(row=HEADER_ROW, column=column, reason=reason, kind=kind)


def _check_size(csv_content: str, config: ImportConfig) -> ImportErrorDetail | None:
    size = len(csv_content.encode("utf-8"))
    limit = config.limits.max_file_bytes
    if size <= limit:
        return None
    return _file_error(
        ErrorKind.FILE_TOO_LARGE,
        f"File too large: {size / MIB:.2f} MB (max {limit / MIB:g} MB)",
    )


def _check_row_count(sheet: TakeoffSheet, config: ImportConfig) -> ImportErrorDetail | None:
    limit = config.limits.max_rows
    if len(sheet.rows) <= limit:
        return None
    return _file_error(
        ErrorKind.ROW_COUNT_EXCEEDED,
        f"Maximum {limit:,} rows per import (file has {len(sheet.rows):,} data rows)",
    )


def _missing_column_errors(mapping: ColumnMapping) -> list[ImportErrorDetail]:
    errors = []
    for f in mapping.missing_required_fields:
        if f.label != f.name:
            logger.info("missing %s: expected header '%s'", f.name, f.label)
        errors.append(_file_error(ErrorKind.MISSING_COLUMN, f"Missing required column: {f.name}", column=f.label))
    return errors


def _row_width_errors(exc: TakeoffRowWidthError) -> list[ImportErrorDetail]:
    # 余分なセルは切り捨てず行単位のエラーにする
    return [
        ImportErrorDetail(
            row=row_number,
            column=None,
            reason=f"Row has {field_count} fields, header has {exc.header_fields}",
            kind=ErrorKind.MALFORMED_CSV,
        )
        for row_number, field_count in exc.rows
    ]


def _row_errors(results: list[ValidationResult]) -> list[ImportErrorDetail]:
    errors = []
    for r in results:
        if r.is_valid:
            continue
        kind = _ROW_ERROR_KINDS.get(r.category, ErrorKind.EMPTY_REQUIRED_FIELD)  # type: ignore[arg-type]
        for e in r.errors:
            errors.append(ImportErrorDetail(row=r.row_number, column=e.column, reason=e.reason, kind=kind))
    return errors


def _reject(
    errors: list[ImportErrorDetail],
    context: ImportContext,
    error_log: ErrorLogBuffer | None,
) -> ImportResult:
    for e in errors:
        logger.debug("reject project=%s row=%d column=%s reason=%s", context.project_id, e.row, e.column, e.reason)
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(
                    project_id=context.project_id,
                    source=context.source,
                    row=e.row,
                    column=e.column,
                    error_type=e.kind.value,
                    reason=e.reason,
                )
            )
    logger.warning(
        "import rejected project=%s source=%s errors=%d first=%s",
        context.project_id,
        context.source,
        len(errors),
        errors[0].reason if errors else "-",
    )
    return ImportResult.failed(errors)


def import_takeoff(
    csv_content: str,
    context: ImportContext | Mapping[str, Any],
    persistence: ComponentStore | None = None,
    config: ImportConfig | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool | None = None,
) -> ImportResult:
    """Validate a takeoff CSV and, if it is clean, persist all of its components.

    Args:
        csv_content: Raw CSV text (header row first)
        context: ImportContext, or a mapping with projectId/userId
        persistence: Store receiving the complete draft set in one call.
            None = dry run (mock mode): counts are reported, nothing is written
        config: Limits, type vocabulary and duplicate scope (built-in defaults if None)
        error_log: Buffer receiving one ErrorRecord per reported error
        show_progress: Force the row progress bar on/off (default: TTY only)

    Returns:
        ImportResult. success=False lists every hard error and guarantees that
        nothing was persisted.
    """
    started = time.perf_counter()
    ctx = ImportContext.coerce(context)
    cfg = config or ImportConfig.default()

    # 1. size (before parsing anything)
    too_large = _check_size(csv_content, cfg)
    if too_large is not None:
        return _reject([too_large], ctx, error_log)

    # 2. parse + row count
    try:
        sheet = parse_takeoff_csv(csv_content)
    except TakeoffRowWidthError as e:
        return _reject(_row_width_errors(e), ctx, error_log)
    except TakeoffReadError as e:
        return _reject([_file_error(ErrorKind.MALFORMED_CSV, str(e))], ctx, error_log)
    too_many = _check_row_count(sheet, cfg)
    if too_many is not None:
        return _reject([too_many], ctx, error_log)

    # 3. header
    mapping = map_columns(sheet.headers)
    if not mapping.has_all_required_fields:
        return _reject(_missing_column_errors(mapping), ctx, error_log)
    if mapping.unmapped_columns:
        logger.info("unmapped columns kept as attributes: %s", list(mapping.unmapped_columns))

    # 4. rows
    validator = RowValidator(cfg.allowed_types, max_qty=cfg.limits.max_qty)
    results: list[ValidationResult] = []
    with RowProgress(len(sheet.rows), enabled=show_progress) as progress:
        for row in sheet.rows:
            results.append(validator.validate(row, mapping))
            progress.advance()
    expansion = expand_rows(results, cfg.duplicate_scope)

    # 5. all-or-nothing
    errors = _row_errors(results) + expansion.duplicates
    if errors:
        errors.sort(key=lambda e: e.row)
        return _reject(errors, ctx, error_log)

    # 6. single persistence call
    drafts = expansion.drafts
    if persistence is None:
        logger.debug("dry run: %d components not persisted", len(drafts))
    else:
        try:
            persistence.persist_components(drafts, ctx)
        except Exception as e:
            logger.error("persistence failed project=%s: %s", ctx.project_id, e)
            return _reject(
                [_file_error(ErrorKind.PERSISTENCE_ERROR, PERSISTENCE_FAILURE_REASON)],
                ctx,
                error_log,
            )

    by_type = Counter(d.component_type for d in drafts)
    duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "import %s project=%s source=%s components=%d rows_processed=%d rows_skipped=%d",
        "committed" if persistence is not None else "validated (dry run)",
        ctx.project_id,
        ctx.source,
        len(drafts),
        expansion.rows_processed,
        expansion.rows_skipped,
    )
    return ImportResult(
        success=True,
        components_created=len(drafts),
        rows_processed=expansion.rows_processed,
        rows_skipped=expansion.rows_skipped,
        components_by_type=dict(sorted(by_type.items())),
        duration_ms=duration_ms,
    )
