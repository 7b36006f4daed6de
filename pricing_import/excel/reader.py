from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pandas as pd

"""Pricing sheet decoding (CSV / Excel -> RawSheet).

Only the first worksheet of a workbook is read, without a header (the header
row is located later by excel.headers). Empty cells become "" so downstream
code never sees NaN. This is the only pipeline step allowed to raise: every
decode problem surfaces as SheetReadError.
"""

__all__ = [
    "RawSheet",
    "SheetReadError",
    "SUPPORTED_SUFFIXES",
    "read_sheet",
    "read_sheet_bytes",
]

RawSheet = list[list[Any]]

SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".csv")


class SheetReadError(Exception):
    """Raised when an uploaded file cannot be decoded into rows."""


def read_sheet(path: Path) -> RawSheet:
    """Decode the first sheet of a CSV / Excel file on disk."""
    if not path.exists():
        raise SheetReadError(f"file not found: {path}")
    return read_sheet_bytes(path.read_bytes(), path.name)


def read_sheet_bytes(data: bytes, filename: str) -> RawSheet:
    """Decode uploaded file bytes; the file name only selects the format."""
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SheetReadError(
            f"unsupported file type '{suffix or filename}': expected one of {', '.join(SUPPORTED_SUFFIXES)}"
        )
    try:
        if suffix == ".csv":
            df = _read_csv(data)
        else:
            xls = pd.ExcelFile(io.BytesIO(data))
            if not xls.sheet_names:
                return []
            df = xls.parse(xls.sheet_names[0], header=None, dtype=object)
    except SheetReadError:
        raise
    except Exception as e:
        raise SheetReadError(f"failed to read {filename}: {e}") from e
    return _to_raw(df)


def _read_csv(data: bytes) -> pd.DataFrame:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    if not text.strip():
        return pd.DataFrame()
    # 行ごとに列数が違う (タイトル行など) ので列数の上限を先に決める
    width = max(line.count(",") + 1 for line in text.splitlines() or [""])
    return pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )


def _to_raw(df: pd.DataFrame) -> RawSheet:
    rows: RawSheet = []
    for raw in df.itertuples(index=False, name=None):
        rows.append(["" if _is_blank(v) else v for v in raw])
    # trailing columns that are blank everywhere (CSV width over-estimate)
    width = max((i + 1 for row in rows for i, v in enumerate(row) if v != ""), default=0)
    return [row[:width] for row in rows]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
