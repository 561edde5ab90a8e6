from __future__ import annotations

from dataclasses import dataclass

"""RawRow model for the takeoff import pipeline.

RawRow represents a single CSV data row exactly as read, before mapping or
validation. Values are always strings (empty string for blank cells).
"""

__all__ = [
    "RawRow",
    "HEADER_ROW_NUMBER",
    "FIRST_DATA_ROW_NUMBER",
]

HEADER_ROW_NUMBER = 1
FIRST_DATA_ROW_NUMBER = 2


@dataclass(frozen=True)
class RawRow:
    """One data row of a takeoff CSV.

    The row_number follows spreadsheet conventions: the header is row 1 and the
    first data row is row 2. Blank lines keep their number even though they are
    not emitted as rows.
    """
    row_number: int
    values: dict[str, str]  # CSV column name -> raw cell text

    def get(self, column: str | None) -> str:
        """Return the raw cell for ``column`` ('' when unmapped or absent)."""
        if column is None:
            return ""
        return self.values.get(column, "")
