from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for the takeoff import CLI."""

__all__ = [
    "render_summary_line",
]


def render_summary_line(result: ImportResult, source: str | None = None) -> str:
    """Render a single SUMMARY line from an ImportResult.

    Format:
    SUMMARY [file={source}] success={true|false} components={n} rows_processed={n}
    rows_skipped={n} errors={n} elapsed_ms={n} [types={type:n,...}]

    Counters missing on a failed result render as 0.

    Examples:
        >>> r = ImportResult(success=True, components_created=3, rows_processed=2,
        ...                  rows_skipped=1, components_by_type={"valve": 3}, duration_ms=12)
        >>> render_summary_line(r)
        'SUMMARY success=true components=3 rows_processed=2 rows_skipped=1 errors=0 elapsed_ms=12 types=valve:3'
    """
    parts = ["SUMMARY"]
    if source:
        parts.append(f"file={source}")
    parts += [
        f"success={'true' if result.success else 'false'}",
        f"components={result.components_created or 0}",
        f"rows_processed={result.rows_processed or 0}",
        f"rows_skipped={result.rows_skipped or 0}",
        f"errors={len(result.errors)}",
        f"elapsed_ms={result.duration_ms or 0}",
    ]
    if result.components_by_type:
        types = ",".join(f"{t}:{n}" for t, n in sorted(result.components_by_type.items()))
        parts.append(f"types={types}")
    return " ".join(parts)
