from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .fields import CanonicalField

"""ColumnMapping model: resolved CSV header -> canonical field pairs.

Built once per import by services.column_mapper.map_columns and never mutated.
"""

__all__ = [
    "MatchTier",
    "ColumnMatch",
    "ColumnMapping",
]


class MatchTier(Enum):
    """How a header was matched, with its confidence percentage."""
    EXACT = "exact"
    CASE_INSENSITIVE = "case-insensitive"
    SYNONYM = "synonym"

    @property
    def confidence(self) -> int:
        return _CONFIDENCE[self]


_CONFIDENCE = {
    MatchTier.EXACT: 100,
    MatchTier.CASE_INSENSITIVE: 95,
    MatchTier.SYNONYM: 85,
}


@dataclass(frozen=True)
class ColumnMatch:
    csv_column: str  # header exactly as it appears in the file
    field: CanonicalField
    tier: MatchTier


@dataclass(frozen=True)
class ColumnMapping:
    """Ordered header mapping plus required-field bookkeeping."""
    matches: tuple[ColumnMatch, ...]
    missing_required_fields: tuple[CanonicalField, ...]
    unmapped_columns: tuple[str, ...] = ()

    @property
    def has_all_required_fields(self) -> bool:
        return not self.missing_required_fields

    @property
    def pairs(self) -> list[tuple[str, CanonicalField]]:
        return [(m.csv_column, m.field) for m in self.matches]

    def column_for(self, field: CanonicalField) -> str | None:
        """CSV column mapped to ``field`` (None if the file has no such column)."""
        for m in self.matches:
            if m.field is field:
                return m.csv_column
        return None

    def is_mapped(self, csv_column: str) -> bool:
        return any(m.csv_column == csv_column for m in self.matches)
