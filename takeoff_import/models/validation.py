from __future__ import annotations

from dataclasses import dataclass, field

from .fields import RowCategory, ValidationStatus

"""Row validation result models.

A ValidationResult is a tagged variant: ``valid`` results carry a typed
TakeoffRowData payload, ``error`` results carry one or more FieldError entries
and never a payload.
"""

__all__ = [
    "TakeoffRowData",
    "FieldError",
    "ValidationResult",
]


@dataclass(frozen=True)
class TakeoffRowData:
    """Typed payload of a valid row. ``drawing`` is already normalized."""
    drawing: str
    type: str  # canonical spelling from the allowed vocabulary
    qty: int
    commodity_code: str
    spec: str | None = None
    description: str | None = None
    size: str | None = None
    comments: str | None = None
    area: str | None = None
    system: str | None = None
    test_package: str | None = None
    unmapped_fields: dict[str, str] = field(default_factory=dict)
    drawing_raw: str | None = None  # as written in the file


@dataclass(frozen=True)
class FieldError:
    column: str  # canonical header label, e.g. "QTY"
    reason: str


@dataclass(frozen=True)
class ValidationResult:
    row_number: int
    status: ValidationStatus
    category: RowCategory | None = None
    data: TakeoffRowData | None = None
    errors: tuple[FieldError, ...] = ()

    @staticmethod
    def valid(row_number: int, data: TakeoffRowData) -> ValidationResult:
        category = RowCategory.SKIPPED if data.qty == 0 else None
        return ValidationResult(
            row_number=row_number,
            status=ValidationStatus.VALID,
            category=category,
            data=data,
        )

    @staticmethod
    def error(
        row_number: int, category: RowCategory, column: str, reason: str
    ) -> ValidationResult:
        return ValidationResult(
            row_number=row_number,
            status=ValidationStatus.ERROR,
            category=category,
            errors=(FieldError(column=column, reason=reason),),
        )

    @property
    def is_valid(self) -> bool:
        return self.status is ValidationStatus.VALID

    @property
    def is_skipped(self) -> bool:
        return self.is_valid and self.category is RowCategory.SKIPPED
