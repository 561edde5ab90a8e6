from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from ..models.column_mapping import ColumnMapping, ColumnMatch, MatchTier
from ..models.fields import REQUIRED_FIELDS, CanonicalField

"""Column mapper: CSV header row -> canonical fields.

Lookup is a plain dict keyed by the normalized header (trimmed, inner
whitespace collapsed, uppercased). Three tiers, first hit wins:

1. exact            header text equals the canonical label   (100)
2. case-insensitive normalized header equals the label        (95)
3. synonym          normalized header is a known synonym      (85)

Each canonical field is claimed by the first header that matches it; later
headers resolving to an already-claimed field are left unmapped.
"""

__all__ = [
    "COLUMN_SYNONYMS",
    "normalize_header",
    "map_columns",
]

logger = logging.getLogger(__name__)

COLUMN_SYNONYMS: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.DRAWING: ("DRAWINGS", "DRAWING NUMBER", "DRAWING NO", "DWG", "DWG NO", "DWG NUM"),
    CanonicalField.TYPE: ("COMPONENT TYPE",),
    CanonicalField.QTY: ("QUANTITY", "COUNT", "CNT"),
    CanonicalField.CMDTY_CODE: ("COMMODITY CODE", "CMDTY", "COMMODITY", "PART CODE"),
    CanonicalField.SPEC: ("SPECIFICATION", "MATERIAL SPEC", "MAT SPEC"),
    CanonicalField.DESCRIPTION: ("DESC", "ITEM DESCRIPTION"),
    CanonicalField.SIZE: ("NOM SIZE", "NOMINAL SIZE", "NOMSIZE"),
    CanonicalField.COMMENTS: ("COMMENT", "NOTES", "NOTE", "REMARKS"),
    CanonicalField.AREA: ("AREAS", "LOCATION", "ZONE"),
    CanonicalField.SYSTEM: ("SYSTEMS", "SYS"),
    CanonicalField.TEST_PACKAGE: ("TEST PACKAGE", "TEST PKG", "PKG", "PACKAGE"),
}

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    return _WHITESPACE_RUN.sub(" ", header.strip()).upper()


def _build_lookup() -> dict[str, tuple[CanonicalField, MatchTier]]:
    lookup: dict[str, tuple[CanonicalField, MatchTier]] = {}
    for f in CanonicalField:
        lookup[normalize_header(f.label)] = (f, MatchTier.CASE_INSENSITIVE)
    for f, synonyms in COLUMN_SYNONYMS.items():
        for s in synonyms:
            lookup.setdefault(normalize_header(s), (f, MatchTier.SYNONYM))
    return lookup


_LOOKUP = _build_lookup()


def _match(header: str) -> tuple[CanonicalField, MatchTier] | None:
    hit = _LOOKUP.get(normalize_header(header))
    if hit is None:
        return None
    field, tier = hit
    if tier is MatchTier.CASE_INSENSITIVE and header == field.label:
        tier = MatchTier.EXACT
    return field, tier


def map_columns(headers: Iterable[str]) -> ColumnMapping:
    """Resolve a CSV header row to canonical fields.

    Unrecognized headers are carried in ``unmapped_columns``; they are not an
    error. Missing required fields are listed in canonical order.
    """
    matches: list[ColumnMatch] = []
    unmapped: list[str] = []
    claimed: set[CanonicalField] = set()
    for header in headers:
        hit = _match(header)
        if hit is None or hit[0] in claimed:
            unmapped.append(header)
            continue
        field, tier = hit
        claimed.add(field)
        matches.append(ColumnMatch(csv_column=header, field=field, tier=tier))

    missing = tuple(f for f in REQUIRED_FIELDS if f not in claimed)
    logger.debug(
        "column mapping matched=%s unmapped=%s missing=%s",
        [(m.csv_column, m.field.name, m.tier.value) for m in matches],
        unmapped,
        [f.name for f in missing],
    )
    return ColumnMapping(
        matches=tuple(matches),
        missing_required_fields=missing,
        unmapped_columns=tuple(unmapped),
    )
