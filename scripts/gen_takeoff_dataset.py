#!/usr/bin/env python3
"""Synthetic takeoff generator for limit and throughput checks.

Writes a takeoff in the layout the importer expects:
- Row 1: Header row (DRAWING, TYPE, QTY, CMDTY CODE, SPEC, DESCRIPTION, SIZE, Comments, ...)
- Row 2+: Data rows

Output format follows the file suffix (.csv or .xlsx). Options let you inject
duplicate identity keys, invalid rows and QTY=0 rows to exercise the rejection
paths, or push the file past the size / row limits.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

COMPONENT_TYPES = [
    "Spool", "Field_Weld", "Valve", "Instrument", "Support", "Pipe",
    "Fitting", "Flange", "Tubing", "Hose", "Misc_Component", "Threaded_Pipe",
]
SIZES = ["1/2", "3/4", "1", "2", "3", "4", "6", "8", "10", "12", ""]
SPECS = ["ES-03", "CS-150", "SS-300", "CS-600"]
AREAS = ["A-100", "A-200", "B-100"]
SYSTEMS = ["CW", "HW", "STM", "AIR"]


def generate_takeoff(
    rows: int,
    drawings: int = 50,
    max_qty: int = 4,
    zero_qty_ratio: float = 0.0,
    invalid_ratio: float = 0.0,
    duplicates: int = 0,
    metadata: bool = False,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a takeoff DataFrame (all cells as text).

    Commodity codes are unique per row so a clean file never collides;
    ``duplicates`` copies that many rows to the end of the file to force
    duplicate identity keys.

    Args:
        rows: Number of data rows (before duplicates are appended)
        drawings: Number of distinct drawing numbers
        max_qty: Upper bound for QTY (inclusive)
        zero_qty_ratio: Share of rows with QTY=0 (skipped by the importer)
        invalid_ratio: Share of rows with a non-numeric QTY
        duplicates: Rows to repeat at the end
        metadata: Add AREA / SYSTEM / TEST_PACKAGE columns
        seed: Random seed for reproducible data
    """
    rng = np.random.default_rng(seed)

    drawing_pool = [f"P-{n:05d}" for n in range(1, drawings + 1)]
    qty = rng.integers(1, max_qty + 1, rows)
    if zero_qty_ratio > 0:
        qty[rng.random(rows) < zero_qty_ratio] = 0

    data: dict[str, list[str]] = {
        "DRAWING": rng.choice(drawing_pool, rows).tolist(),
        "TYPE": rng.choice(COMPONENT_TYPES, rows).tolist(),
        "QTY": [str(q) for q in qty],
        "CMDTY CODE": [f"CC-{n:06d}" for n in range(1, rows + 1)],
        "SPEC": rng.choice(SPECS, rows).tolist(),
        "DESCRIPTION": [f"Synthetic component {n}" for n in range(1, rows + 1)],
        "SIZE": rng.choice(SIZES, rows).tolist(),
        "Comments": [""] * rows,
    }
    if invalid_ratio > 0:
        for i in np.flatnonzero(rng.random(rows) < invalid_ratio):
            data["QTY"][i] = "ABC"
    if metadata:
        data["AREA"] = rng.choice(AREAS, rows).tolist()
        data["SYSTEM"] = rng.choice(SYSTEMS, rows).tolist()
        data["TEST_PACKAGE"] = [f"TP-{n:03d}" for n in rng.integers(1, 40, rows)]

    df = pd.DataFrame(data)
    if duplicates > 0:
        picked = rng.choice(rows, size=min(duplicates, rows), replace=False)
        dup = df.iloc[picked].copy()
        dup["QTY"] = "1"
        df = pd.concat([df, dup], ignore_index=True)
    return df


def write_takeoff(df: pd.DataFrame, output_path: Path) -> None:
    """Write the takeoff as CSV or as a single-sheet workbook (by suffix)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".xlsx":
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Takeoff", index=False)
    else:
        df.to_csv(output_path, index=False, lineterminator="\n")

    size = output_path.stat().st_size
    print(f"Created takeoff: {output_path}")
    print(f"  Data rows: {len(df):,}")
    print(f"  Components: {int(pd.to_numeric(df['QTY'], errors='coerce').fillna(0).sum()):,}")
    print(f"  File size: {size / (1024 * 1024):.2f} MB")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic takeoff files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Largest file the default limits accept
  %(prog)s data/takeoff_10k.csv --rows 10000

  # Past the row limit
  %(prog)s data/takeoff_too_many.csv --rows 10001

  # Rejected import: invalid QTY values and duplicate identity keys
  %(prog)s data/takeoff_bad.csv --rows 500 --invalid-ratio 0.01 --duplicates 3

  # Excel input with metadata columns
  %(prog)s data/takeoff.xlsx --rows 2000 --metadata
        """,
    )
    parser.add_argument("output", type=Path, help="Output file (.csv or .xlsx)")
    parser.add_argument("--rows", type=int, default=10_000, help="Data rows (default: 10,000)")
    parser.add_argument("--drawings", type=int, default=50, help="Distinct drawings (default: 50)")
    parser.add_argument("--max-qty", type=int, default=4, help="Maximum QTY per row (default: 4)")
    parser.add_argument("--zero-qty-ratio", type=float, default=0.0, help="Share of QTY=0 rows")
    parser.add_argument("--invalid-ratio", type=float, default=0.0, help="Share of rows with QTY=ABC")
    parser.add_argument("--duplicates", type=int, default=0, help="Rows repeated at the end")
    parser.add_argument("--metadata", action="store_true", help="Add AREA / SYSTEM / TEST_PACKAGE")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.drawings <= 0 or args.max_qty <= 0:
        print("Error: --drawings and --max-qty must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in (".csv", ".xlsx"):
        print("Error: output must end in .csv or .xlsx", file=sys.stderr)
        return 1

    df = generate_takeoff(
        args.rows,
        drawings=args.drawings,
        max_qty=args.max_qty,
        zero_qty_ratio=args.zero_qty_ratio,
        invalid_ratio=args.invalid_ratio,
        duplicates=args.duplicates,
        metadata=args.metadata,
        seed=args.seed,
    )
    write_takeoff(df, args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
