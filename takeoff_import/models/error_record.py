from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

Structured JSON Lines record for every error reported by a rejected import.
Header and file-level errors use row=0, matching ImportResult attribution.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        project_id: Target project of the import
        source: Name of the takeoff file (or '<inline>' for API payloads)
        row: CSV row number (header = 1). 0 for header/file-level errors
        column: Canonical header label, or None
        error_type: Error classification in UPPER_SNAKE_CASE format
        reason: Message reported to the user
    """
    timestamp: str  # ISO8601 UTC
    project_id: str
    source: str
    row: int
    column: str | None
    error_type: str  # UPPER_SNAKE
    reason: str

    @staticmethod
    def create(
        project_id: str,
        source: str,
        row: int,
        column: str | None,
        error_type: str,
        reason: str,
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            project_id=project_id,
            source=source,
            row=row,
            column=column,
            error_type=error_type,
            reason=reason,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
