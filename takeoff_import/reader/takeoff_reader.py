from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..models.row_data import FIRST_DATA_ROW_NUMBER, RawRow

"""Takeoff CSV reader.

Row 1 is the header row, data starts at row 2. Cells are read as text only
(no NaN conversion, no type inference) so that validation sees exactly what the
design tool exported. Completely blank lines are dropped but keep consuming a
row number, so error rows match what a spreadsheet shows.

A data row with more fields than the header (typically an unquoted comma in
DESCRIPTION) is rejected with TakeoffRowWidthError instead of being cut to the
header width.

Excel takeoffs (.xlsx) are converted to CSV text first; size limits apply to
that CSV text.
"""

__all__ = [
    "TakeoffReadError",
    "TakeoffRowWidthError",
    "TakeoffSheet",
    "parse_takeoff_csv",
    "read_takeoff_file",
    "excel_to_csv",
]

UTF8_BOM = "\ufeff"


class TakeoffReadError(Exception):
    """Raised when the takeoff cannot be read as CSV (empty, malformed, unreadable)."""


class TakeoffRowWidthError(TakeoffReadError):
    """Raised when data rows have more fields than the header row.

    ``rows`` holds (row_number, field_count) for every offending row.
    """

    def __init__(self, rows: list[tuple[int, int]], header_fields: int) -> None:
        self.rows = rows
        self.header_fields = header_fields
        row_number, field_count = rows[0]
        msg = f"Row {row_number} has {field_count} fields, header has {header_fields}"
        if len(rows) > 1:
            msg += f" ({len(rows)} rows affected)"
        super().__init__(msg)


@dataclass
class TakeoffSheet:
    headers: list[str]
    rows: list[RawRow]


def _overlong_rows(content: str) -> tuple[int, list[tuple[int, int]]]:
    """Return (header field count, [(row_number, field_count), ...] for longer rows)."""
    try:
        records = csv.reader(io.StringIO(content))
        header = next(records, None)
        if header is None:
            return 0, []
        width = len(header)
        overlong = [
            (idx + FIRST_DATA_ROW_NUMBER, len(record))
            for idx, record in enumerate(records)
            if len(record) > width
        ]
    except csv.Error as e:
        raise TakeoffReadError(f"Malformed CSV: {e}") from e
    return width, overlong


def parse_takeoff_csv(content: str) -> TakeoffSheet:
    """Split CSV text into header + RawRows.

    Steps:
    1. Strip a leading UTF-8 BOM
    2. Reject rows wider than the header (TakeoffRowWidthError)
    3. Parse with pandas, every cell as str, no NA detection
    4. Drop rows whose cells are all blank (row numbering unaffected)
    """
    if content.startswith(UTF8_BOM):
        content = content[len(UTF8_BOM):]
    width, overlong = _overlong_rows(content)
    if overlong:
        raise TakeoffRowWidthError(overlong, width)
    try:
        df = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=False,
            index_col=False,
        )
    except pd.errors.EmptyDataError as e:
        raise TakeoffReadError("CSV file is empty") from e
    except pd.errors.ParserError as e:
        raise TakeoffReadError(f"Malformed CSV: {e}") from e

    headers = [str(c) for c in df.columns]
    df = df.fillna("")  # 列数不足の行は NaN になるため空文字に揃える
    rows: list[RawRow] = []
    for idx, record in enumerate(df.itertuples(index=False, name=None)):
        values = {col: str(val) for col, val in zip(headers, record, strict=True)}
        if all(v.strip() == "" for v in values.values()):
            continue
        rows.append(RawRow(row_number=idx + FIRST_DATA_ROW_NUMBER, values=values))
    return TakeoffSheet(headers=headers, rows=rows)


def excel_to_csv(path: Path, sheet: int | str = 0) -> str:
    """Convert one worksheet (first by default) to CSV text.

    The sheet's first row is taken as the header row, like a CSV export.
    """
    try:
        df = pd.read_excel(path, sheet_name=sheet, header=None, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise TakeoffReadError(f"cannot read workbook {path.name}: {e}") from e
    return df.to_csv(header=False, index=False, lineterminator="\n")


def read_takeoff_file(path: Path) -> str:
    """Return the takeoff at ``path`` as CSV text (.csv read as-is, .xlsx converted)."""
    if not path.exists():
        raise TakeoffReadError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        return excel_to_csv(path)
    if suffix != ".csv":
        raise TakeoffReadError(f"unsupported file type: {path.suffix} (expected .csv or .xlsx)")
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise TakeoffReadError(f"cannot read {path.name}: {e}") from e
