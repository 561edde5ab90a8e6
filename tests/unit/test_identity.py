from __future__ import annotations

from takeoff_import.models.component import IdentityKey
from takeoff_import.models.config_models import DuplicateScope
from takeoff_import.models.fields import ErrorKind, RowCategory
from takeoff_import.models.validation import TakeoffRowData, ValidationResult
from takeoff_import.services.identity import expand_row, expand_rows


def _valid(row: int, drawing: str, code: str, qty: int, size: str | None = None, type_: str = "Valve"):
    return ValidationResult.valid(
        row, TakeoffRowData(drawing=drawing, type=type_, qty=qty, commodity_code=code, size=size)
    )


def test_fan_out_one_draft_per_unit():
    drafts = expand_row(_valid(2, "P-001", "VBALU-001", 3, size="2"))
    assert [d.identity_key.seq for d in drafts] == [1, 2, 3]
    assert {d.identity_key.commodity_code for d in drafts} == {"VBALU-001"}
    assert all(d.drawing == "P-001" and d.row_number == 2 for d in drafts)


def test_error_and_zero_rows_produce_nothing():
    err = ValidationResult.error(2, RowCategory.INVALID_QUANTITY, "QTY", "bad")
    assert expand_row(err) == []
    assert expand_row(_valid(3, "P-001", "X", 0)) == []


def test_counts_processed_and_skipped():
    out = expand_rows(
        [
            _valid(2, "P-001", "A", 2),
            _valid(3, "P-001", "B", 0),
            ValidationResult.error(4, RowCategory.INVALID_TYPE, "TYPE", "bad"),
            _valid(5, "P-002", "C", 1),
        ]
    )
    assert len(out.drafts) == 3
    assert out.rows_processed == 2
    assert out.rows_skipped == 1
    assert out.duplicates == []


def test_same_code_on_two_drawings_is_duplicate_in_project_scope():
    out = expand_rows([_valid(2, "P-001", "VTEST-001", 2), _valid(3, "P-002", "VTEST-001", 2)])
    assert [e.row for e in out.duplicates] == [2, 3]
    e = out.duplicates[0]
    assert e.kind is ErrorKind.DUPLICATE_IDENTITY_KEY
    assert e.column == "CMDTY CODE"
    assert e.reason == "Duplicate identity key: VTEST-001-001 (rows 2, 3)"


def test_drawing_scope_allows_same_code_on_other_drawing():
    results = [_valid(2, "P-001", "VTEST-001", 2), _valid(3, "P-002", "VTEST-001", 2)]
    out = expand_rows(results, DuplicateScope.DRAWING)
    assert out.duplicates == []
    assert len(out.drafts) == 4


def test_drawing_scope_detects_collision_on_same_drawing():
    results = [_valid(2, "P-001", "VTEST-001", 1), _valid(9, "P-001", "VTEST-001", 3)]
    out = expand_rows(results, DuplicateScope.DRAWING)
    assert [e.row for e in out.duplicates] == [2, 9]
    assert "P-001-VTEST-001-001" in out.duplicates[0].reason


def test_size_is_part_of_the_key():
    out = expand_rows([_valid(2, "P-001", "FIT-1", 1, size="1/2"), _valid(3, "P-001", "FIT-1", 1, size="2")])
    assert out.duplicates == []


def test_equivalent_sizes_collide():
    out = expand_rows([_valid(2, "P-001", "FIT-1", 1, size='1/2"'), _valid(3, "P-001", "FIT-1", 1, size="1/2")])
    assert [e.row for e in out.duplicates] == [2, 3]
    assert "1X2-FIT-1-001" in out.duplicates[0].reason


def test_duplicates_independent_of_row_order():
    results = [
        _valid(2, "P-001", "A", 2),
        _valid(3, "P-001", "B", 1),
        _valid(4, "P-009", "A", 1),
    ]
    forward = expand_rows(results)
    backward = expand_rows(list(reversed(results)))
    assert [(e.row, e.reason) for e in forward.duplicates] == [(e.row, e.reason) for e in backward.duplicates]
    assert [e.row for e in forward.duplicates] == [2, 4]


def test_identity_key_label():
    key = IdentityKey(commodity_code="VBALU-001", size="2", seq=7)
    assert key.label() == "VBALU-001-007"
    assert key.label(drawing="P-001", size_norm="2") == "P-001-2-VBALU-001-007"
    assert key.to_dict() == {"commodity_code": "VBALU-001", "size": "2", "seq": 7}
