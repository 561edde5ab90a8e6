from __future__ import annotations

import re

from takeoff_import.models.fields import ErrorKind
from takeoff_import.models.import_result import ImportErrorDetail, ImportResult
from takeoff_import.services.summary import render_summary_line

SUMMARY_RE = re.compile(
    r"^SUMMARY (file=\S+ )?success=(true|false) components=\d+ rows_processed=\d+ "
    r"rows_skipped=\d+ errors=\d+ elapsed_ms=\d+( types=\S+)?$"
)


def test_success_line():
    res = ImportResult(
        success=True,
        components_created=6,
        rows_processed=3,
        rows_skipped=1,
        components_by_type={"valve": 2, "field_weld": 3, "fitting": 1},
        duration_ms=42,
    )
    line = render_summary_line(res, source="takeoff.csv")
    assert line == (
        "SUMMARY file=takeoff.csv success=true components=6 rows_processed=3 rows_skipped=1 "
        "errors=0 elapsed_ms=42 types=field_weld:3,fitting:1,valve:2"
    )
    assert SUMMARY_RE.match(line)


def test_failed_line_defaults_counters_to_zero():
    res = ImportResult.failed(
        [ImportErrorDetail(2, "QTY", "Invalid data type", ErrorKind.INVALID_DATA_TYPE)] * 2
    )
    line = render_summary_line(res)
    assert line == "SUMMARY success=false components=0 rows_processed=0 rows_skipped=0 errors=2 elapsed_ms=0"
    assert SUMMARY_RE.match(line)
