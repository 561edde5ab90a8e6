from __future__ import annotations

import re
from collections.abc import Iterable

from ..models.column_mapping import ColumnMapping
from ..models.config_models import DEFAULT_MAX_QTY
from ..models.fields import CanonicalField, RowCategory
from ..models.row_data import RawRow
from ..models.validation import TakeoffRowData, ValidationResult
from .drawing import normalize_drawing

"""Per-row validation of takeoff data.

Checks run in a fixed order and the first failure decides the row's error:

1. QTY is a non-negative integer           -> "Invalid data type"
   QTY is at most max_qty                   -> "QTY ... exceeds the maximum"
2. TYPE is in the allowed vocabulary       -> "Invalid component type"
3. DRAWING / CMDTY CODE are not blank      -> "Required field ... is empty"

QTY = 0 is not an error: the row is valid with category SKIPPED and yields no
components. Rows are independent of each other; validating one row never looks
at another.
"""

__all__ = [
    "RowValidator",
]

_NON_NEGATIVE_INT = re.compile(r"^\+?[0-9]+$")  # ASCII digits only

# Optional fields copied verbatim onto the row payload
_PASSTHROUGH_FIELDS: dict[CanonicalField, str] = {
    CanonicalField.SPEC: "spec",
    CanonicalField.DESCRIPTION: "description",
    CanonicalField.SIZE: "size",
    CanonicalField.COMMENTS: "comments",
    CanonicalField.AREA: "area",
    CanonicalField.SYSTEM: "system",
    CanonicalField.TEST_PACKAGE: "test_package",
}


class RowValidator:
    """Validates RawRows against a resolved ColumnMapping.

    The component-type vocabulary is injected so it can vary per project or
    tenant; matching is case-insensitive and the configured spelling is kept.
    """

    def __init__(self, allowed_types: Iterable[str], max_qty: int = DEFAULT_MAX_QTY) -> None:
        self.max_qty = max_qty
        self._types_by_key: dict[str, str] = {}
        for t in allowed_types:
            self._types_by_key.setdefault(t.strip().lower(), t.strip())
        if not self._types_by_key:
            raise ValueError("allowed_types must not be empty")

    @property
    def allowed_types(self) -> tuple[str, ...]:
        return tuple(self._types_by_key.values())

    def validate(self, row: RawRow, mapping: ColumnMapping) -> ValidationResult:
        def cell(field: CanonicalField) -> str:
            return row.get(mapping.column_for(field))

        # 1. QTY
        qty_raw = cell(CanonicalField.QTY).strip()
        if not _NON_NEGATIVE_INT.match(qty_raw):
            return ValidationResult.error(
                row.row_number,
                RowCategory.INVALID_QUANTITY,
                CanonicalField.QTY.label,
                f"Invalid data type: QTY must be a non-negative integer, got '{qty_raw}'",
            )
        # length check first: int() refuses very long digit strings
        digits = qty_raw.lstrip("+").lstrip("0") or "0"
        if len(digits) > len(str(self.max_qty)) or int(digits) > self.max_qty:
            return ValidationResult.error(
                row.row_number,
                RowCategory.QTY_LIMIT_EXCEEDED,
                CanonicalField.QTY.label,
                f"QTY {digits} exceeds the maximum of {self.max_qty:,} components per row",
            )
        qty = int(digits)

        # 2. TYPE
        type_raw = cell(CanonicalField.TYPE).strip()
        component_type = self._types_by_key.get(type_raw.lower())
        if component_type is None:
            return ValidationResult.error(
                row.row_number,
                RowCategory.INVALID_TYPE,
                CanonicalField.TYPE.label,
                f"Invalid component type: '{type_raw}'. Expected one of: "
                + ", ".join(self.allowed_types),
            )

        # 3. required text fields
        drawing_raw = cell(CanonicalField.DRAWING)
        commodity_code = cell(CanonicalField.CMDTY_CODE).strip()
        for field, value in (
            (CanonicalField.DRAWING, drawing_raw.strip()),
            (CanonicalField.CMDTY_CODE, commodity_code),
        ):
            if value == "":
                return ValidationResult.error(
                    row.row_number,
                    RowCategory.EMPTY_REQUIRED_FIELD,
                    field.label,
                    f"Required field {field.label} is empty",
                )

        optional = {}
        for field, attr in _PASSTHROUGH_FIELDS.items():
            value = cell(field)
            optional[attr] = value if value.strip() != "" else None

        unmapped = {
            col: val
            for col, val in row.values.items()
            if not mapping.is_mapped(col) and val.strip() != ""
        }

        data = TakeoffRowData(
            drawing=normalize_drawing(drawing_raw),
            type=component_type,
            qty=qty,
            commodity_code=commodity_code,
            unmapped_fields=unmapped,
            drawing_raw=drawing_raw.strip(),
            **optional,
        )
        return ValidationResult.valid(row.row_number, data)
