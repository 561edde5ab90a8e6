from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Any

from .fields import ErrorKind

"""Import result models for the takeoff import pipeline.

ImportResult is the single structured outcome returned for every import,
successful or not. ImportErrorDetail attributes one problem to a row/column.
"""

__all__ = [
    "ImportErrorDetail",
    "ImportResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class ImportErrorDetail:
    """One reported problem.

    Attributes:
        row: 1-based CSV row (header = 1). 0 for file-level / header errors
        column: Canonical header label, or None for file-level errors
        reason: User-facing message
        kind: Classification used in the JSON error log
    """
    row: int
    column: str | None
    reason: str
    kind: ErrorKind

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "column": self.column, "reason": self.reason}


@dataclass(frozen=True)
class ImportResult:
    success: bool
    components_created: int | None = None
    rows_processed: int | None = None  # rows with QTY > 0
    rows_skipped: int | None = None  # rows with QTY == 0
    errors: tuple[ImportErrorDetail, ...] = ()
    components_by_type: dict[str, int] = field(default_factory=dict)
    duration_ms: int | None = None

    @staticmethod
    def failed(errors: list[ImportErrorDetail] | tuple[ImportErrorDetail, ...]) -> ImportResult:
        return ImportResult(success=False, errors=tuple(errors))

    def to_dict(self) -> dict[str, Any]:
        """camelCase JSON shape. Unset optional counters are omitted."""
        out: dict[str, Any] = {"success": self.success}
        if self.components_created is not None:
            out["componentsCreated"] = self.components_created
        if self.rows_processed is not None:
            out["rowsProcessed"] = self.rows_processed
        if self.rows_skipped is not None:
            out["rowsSkipped"] = self.rows_skipped
        if self.errors:
            out["errors"] = [e.to_dict() for e in self.errors]
        if self.components_by_type:
            out["componentsByType"] = dict(self.components_by_type)
        if self.duration_ms is not None:
            out["durationMs"] = self.duration_ms
        return out


class BatchStatsAccumulator:
    """Accumulates per-batch insert timings during persistence.

    Collects individual batch timing data and calculates summary statistics.
    """

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        """Add a batch timing measurement."""
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 95th percentile (19th out of 20 quantiles, 0-indexed)
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
