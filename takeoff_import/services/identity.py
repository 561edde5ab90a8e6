from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models.component import ComponentDraft, IdentityKey
from ..models.config_models import DuplicateScope
from ..models.fields import CanonicalField, ErrorKind
from ..models.import_result import ImportErrorDetail
from ..models.validation import ValidationResult
from .drawing import normalize_size

"""Quantity fan-out and intra-batch duplicate detection.

A valid row with QTY = N becomes N ComponentDrafts with seq 1..N. All drafts of
the batch are then indexed in one pass by their composite key; any key owned by
more than one draft is a duplicate. The result does not depend on row order.
"""

__all__ = [
    "ExpansionResult",
    "expand_row",
    "expand_rows",
]

logger = logging.getLogger(__name__)

# (drawing | None, commodity_code, normalized size | None, seq)
CompositeKey = tuple[str | None, str, str | None, int]


@dataclass
class ExpansionResult:
    drafts: list[ComponentDraft] = field(default_factory=list)
    duplicates: list[ImportErrorDetail] = field(default_factory=list)
    rows_processed: int = 0  # rows with QTY > 0
    rows_skipped: int = 0  # rows with QTY == 0


def expand_row(result: ValidationResult) -> list[ComponentDraft]:
    """Fan one valid row out into one draft per unit of quantity."""
    data = result.data
    if data is None or not result.is_valid:
        return []
    return [
        ComponentDraft(
            drawing=data.drawing,
            type=data.type,
            identity_key=IdentityKey(commodity_code=data.commodity_code, size=data.size, seq=seq),
            row_number=result.row_number,
            spec=data.spec,
            description=data.description,
            comments=data.comments,
            area=data.area,
            system=data.system,
            test_package=data.test_package,
            extra_attributes=data.unmapped_fields,
            drawing_raw=data.drawing_raw,
        )
        for seq in range(1, data.qty + 1)
    ]


def _composite_key(draft: ComponentDraft, scope: DuplicateScope) -> CompositeKey:
    key = draft.identity_key
    drawing = draft.drawing if scope is DuplicateScope.DRAWING else None
    return (drawing, key.commodity_code, normalize_size(key.size), key.seq)


def _find_duplicates(
    drafts: list[ComponentDraft], scope: DuplicateScope
) -> list[ImportErrorDetail]:
    owners: dict[CompositeKey, list[int]] = defaultdict(list)
    for d in drafts:
        owners[_composite_key(d, scope)].append(d.row_number)

    # row -> (lowest colliding key by (seq, repr), all rows sharing it)
    per_row: dict[int, tuple[CompositeKey, list[int]]] = {}
    for key, rows in owners.items():
        if len(rows) < 2:
            continue
        rank = (key[3], repr(key))
        for r in set(rows):
            current = per_row.get(r)
            if current is None or rank < (current[0][3], repr(current[0])):
                per_row[r] = (key, rows)

    errors: list[ImportErrorDetail] = []
    for r in sorted(per_row):
        (drawing, code, size_norm, seq), rows = per_row[r]
        label = IdentityKey(commodity_code=code, size=size_norm, seq=seq).label(
            drawing=drawing, size_norm=size_norm
        )
        row_list = ", ".join(str(x) for x in sorted(set(rows)))
        errors.append(
            ImportErrorDetail(
                row=r,
                column=CanonicalField.CMDTY_CODE.label,
                reason=f"Duplicate identity key: {label} (rows {row_list})",
                kind=ErrorKind.DUPLICATE_IDENTITY_KEY,
            )
        )
    return errors


def expand_rows(
    results: Iterable[ValidationResult],
    scope: DuplicateScope = DuplicateScope.PROJECT,
) -> ExpansionResult:
    """Expand every valid row and report intra-batch identity key collisions.

    Error results are ignored here; they are reported by the validator.
    """
    out = ExpansionResult()
    for result in results:
        if not result.is_valid:
            continue
        if result.is_skipped:
            out.rows_skipped += 1
            continue
        out.rows_processed += 1
        out.drafts.extend(expand_row(result))

    # 全ドラフト生成後に一括判定 (join point)
    out.duplicates = _find_duplicates(out.drafts, scope)
    if out.duplicates:
        logger.debug("duplicate identity keys rows=%s", [e.row for e in out.duplicates])
    return out
