from __future__ import annotations

import re

"""Drawing number and size normalization.

normalize_drawing must stay identical to the store's normalize_drawing_number:
UPPER(TRIM(regexp_replace(raw, '\\s+', ' ', 'g'))).
Hyphens, underscores and leading zeros are kept. Sheet suffixes such as
"01of02" or "Sheet 1 of 2" are ordinary text, so every sheet stays its own
drawing.
"""

__all__ = [
    "normalize_drawing",
    "normalize_size",
]

_WHITESPACE_RUN = re.compile(r"\s+")
_SIZE_STRIP = re.compile(r"[\"'\s]")


def normalize_drawing(raw: str) -> str:
    """Trim, collapse whitespace runs to one space, uppercase.

    >>> normalize_drawing("  p-91010_1   01of02 ")
    'P-91010_1 01OF02'
    """
    return _WHITESPACE_RUN.sub(" ", raw.strip()).upper()


def normalize_size(raw: str | None) -> str | None:
    """Comparable form of a SIZE cell; None when blank.

    Quotes and whitespace are removed and '/' becomes 'X':
    '2"' -> '2', '1/2' -> '1X2', '1 1/2' -> '11X2'.
    """
    if raw is None or raw.strip() == "":
        return None
    return _SIZE_STRIP.sub("", raw).replace("/", "X").upper()
