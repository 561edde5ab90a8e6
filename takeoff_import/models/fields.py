from __future__ import annotations

from enum import Enum

"""Canonical takeoff fields and row/error vocabularies.

Every CSV header is resolved to one of these fields by the column mapper.
The enum value is the header label users see in templates and error messages.
"""

__all__ = [
    "CanonicalField",
    "REQUIRED_FIELDS",
    "ValidationStatus",
    "RowCategory",
    "ErrorKind",
]


class CanonicalField(Enum):
    """Fields a takeoff column can map to.

    DRAWING, TYPE, QTY and CMDTY_CODE are required; the rest are optional.
    AREA / SYSTEM / TEST_PACKAGE are metadata columns carried onto drafts.
    """
    DRAWING = "DRAWING"
    TYPE = "TYPE"
    QTY = "QTY"
    CMDTY_CODE = "CMDTY CODE"
    SPEC = "SPEC"
    DESCRIPTION = "DESCRIPTION"
    SIZE = "SIZE"
    COMMENTS = "COMMENTS"
    AREA = "AREA"
    SYSTEM = "SYSTEM"
    TEST_PACKAGE = "TEST_PACKAGE"

    @property
    def label(self) -> str:
        """Header label used in error attribution (e.g. 'CMDTY CODE')."""
        return self.value


REQUIRED_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField.DRAWING,
    CanonicalField.TYPE,
    CanonicalField.QTY,
    CanonicalField.CMDTY_CODE,
)


class ValidationStatus(Enum):
    VALID = "valid"
    ERROR = "error"


class RowCategory(Enum):
    """Why a row ended up in its status bucket."""
    SKIPPED = "skipped"  # QTY = 0, not an error
    INVALID_QUANTITY = "invalid_quantity"
    QTY_LIMIT_EXCEEDED = "qty_limit_exceeded"
    INVALID_TYPE = "invalid_type"
    EMPTY_REQUIRED_FIELD = "empty_required_field"
    DUPLICATE_IDENTITY_KEY = "duplicate_identity_key"


class ErrorKind(Enum):
    """Error classification (UPPER_SNAKE) written to the JSON error log."""
    MISSING_COLUMN = "MISSING_COLUMN"
    INVALID_DATA_TYPE = "INVALID_DATA_TYPE"
    QTY_LIMIT_EXCEEDED = "QTY_LIMIT_EXCEEDED"
    INVALID_ENUM = "INVALID_ENUM"
    EMPTY_REQUIRED_FIELD = "EMPTY_REQUIRED_FIELD"
    DUPLICATE_IDENTITY_KEY = "DUPLICATE_IDENTITY_KEY"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    ROW_COUNT_EXCEEDED = "ROW_COUNT_EXCEEDED"
    MALFORMED_CSV = "MALFORMED_CSV"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
