from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from psycopg2.extras import Json

from ..models.component import ComponentDraft
from ..models.context import ImportContext
from ..models.import_result import BatchStatsAccumulator
from ..services.drawing import normalize_size
from .batch_insert import BatchInsertError, batch_insert

"""Persistence collaborator for committed imports.

The orchestrator hands the complete draft set to ComponentStore.persist_components
exactly once. The PostgreSQL implementation writes everything inside a single
transaction (drawings first, then components) and rolls back on any failure,
so a failed call never leaves partial data behind.
"""

__all__ = [
    "PersistenceError",
    "ComponentStore",
    "PostgresComponentStore",
    "NO_SIZE",
]

logger = logging.getLogger(__name__)

NO_SIZE = "NOSIZE"  # identity_key.size placeholder used by the store


class PersistenceError(Exception):
    """Raised when the store rejects or fails to write an import."""


class ComponentStore:
    """Abstract persistence interface.

    Implementations must be all-or-nothing: either every draft is stored or
    nothing is, and failures are raised (not returned).
    """

    def persist_components(self, drafts: Sequence[ComponentDraft], context: ImportContext) -> int:
        """Store ``drafts`` for ``context.project_id``; return the number written."""
        raise NotImplementedError


def _identity_key_json(draft: ComponentDraft) -> dict[str, Any]:
    key = draft.identity_key
    return {
        "drawing_norm": draft.drawing,
        "commodity_code": key.commodity_code,
        "size": normalize_size(key.size) or NO_SIZE,
        "seq": key.seq,
    }


class PostgresComponentStore(ComponentStore):
    """Writes drawings + components through a psycopg2 cursor.

    The cursor's connection is expected in autocommit mode; this class issues
    BEGIN / COMMIT / ROLLBACK itself.
    """

    DRAWING_COLUMNS = ("project_id", "drawing_no_raw", "drawing_no_norm", "is_retired")
    COMPONENT_COLUMNS = (
        "project_id",
        "drawing_id",
        "component_type",
        "identity_key",
        "attributes",
        "area",
        "system",
        "test_package",
        "created_by",
    )

    def __init__(
        self,
        cursor: Any,
        *,
        page_size: int = 1000,
        statement_timeout_ms: int | None = None,
    ) -> None:
        self.cursor = cursor
        self.page_size = page_size
        self.statement_timeout_ms = statement_timeout_ms

    def persist_components(self, drafts: Sequence[ComponentDraft], context: ImportContext) -> int:
        cur = self.cursor
        try:
            cur.execute("BEGIN")
        except Exception as e:
            raise PersistenceError(f"failed to begin transaction: {e}") from e

        try:
            if self.statement_timeout_ms:
                cur.execute("SET LOCAL statement_timeout = %s", (self.statement_timeout_ms,))
            drawing_ids = self._upsert_drawings(drafts, context)
            stats = BatchStatsAccumulator()
            result = batch_insert(
                cur,
                table="components",
                columns=self.COMPONENT_COLUMNS,
                rows=self._component_rows(drafts, drawing_ids, context),
                page_size=self.page_size,
                metrics_callback=lambda m: stats.add_batch_time(m.elapsed_seconds),
            )
            cur.execute("COMMIT")
        except Exception as e:
            try:
                cur.execute("ROLLBACK")
            except Exception as rollback_e:
                logger.error("rollback failed project=%s: %s", context.project_id, rollback_e)
            if isinstance(e, (BatchInsertError, PersistenceError)):
                raise PersistenceError(str(e)) from e
            raise PersistenceError(f"unexpected storage error: {e}") from e

        total, avg, p95 = stats.get_stats()
        logger.debug(
            "persisted project=%s components=%d drawings=%d batches=%d avg_batch_sec=%.4f p95_batch_sec=%.4f",
            context.project_id,
            result.inserted_rows,
            len(drawing_ids),
            total,
            avg,
            p95,
        )
        return result.inserted_rows

    def _upsert_drawings(
        self, drafts: Sequence[ComponentDraft], context: ImportContext
    ) -> dict[str, Any]:
        # normalized -> first raw spelling seen in the file
        drawings: dict[str, str] = {}
        for d in drafts:
            drawings.setdefault(d.drawing, d.drawing_raw or d.drawing)
        res = batch_insert(
            self.cursor,
            table="drawings",
            columns=self.DRAWING_COLUMNS,
            rows=[(context.project_id, raw, norm, False) for norm, raw in drawings.items()],
            returning=("id", "drawing_no_norm"),
            page_size=self.page_size,
            # 既存図面も RETURNING で id を得るため DO UPDATE (no-op)
            on_conflict=(
                "ON CONFLICT (project_id, drawing_no_norm) "
                "DO UPDATE SET drawing_no_norm = EXCLUDED.drawing_no_norm"
            ),
        )
        ids = {norm: drawing_id for drawing_id, norm in (res.returned_values or [])}
        missing = [n for n in drawings if n not in ids]
        if missing:
            raise PersistenceError(f"drawing ids not returned for: {missing[:5]}")
        return ids

    def _component_rows(
        self,
        drafts: Sequence[ComponentDraft],
        drawing_ids: dict[str, Any],
        context: ImportContext,
    ) -> list[tuple[Any, ...]]:
        return [
            (
                context.project_id,
                drawing_ids[d.drawing],
                d.component_type,
                Json(_identity_key_json(d)),
                Json(d.attributes()),
                d.area,
                d.system,
                d.test_package,
                context.user_id,
            )
            for d in drafts
        ]
