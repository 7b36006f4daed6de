from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from ..models.config_models import DEFAULT_HEADER_MIN_MATCHES, DEFAULT_HEADER_SCAN_ROWS

"""Header row detection and column aliasing.

Supplier sheets often start with a title or logo row, so the header is located
by scoring the first few rows against a small signal set. Columns are then
mapped onto canonical field names through the static alias table below. A
canonical field without a matching column is simply absent from the map.
"""

__all__ = [
    "COLUMN_ALIASES",
    "HEADER_SIGNALS",
    "HeaderMap",
    "normalize_header",
    "find_header_row",
    "build_header_map",
    "resolve_header",
]

COLUMN_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "brand": ("brand",),
        "area": ("area", "region"),
        "color": ("color", "colour", "wine color", "wine colour"),
        "product_name": ("product", "product name", "name", "item"),
        "packed_case": ("case", "cases", "packed", "pack"),
        "size_text": ("size", "bottle size"),
        "ex_vat_per_case": ("exv per case", "ex vat per case", "ex vat case", "exv case"),
        "ex_vat_per_unit": ("exv per unit", "ex vat per unit", "ex vat unit", "exv unit"),
        "inc_vat_per_case": (
            "inv per case", "incl per case", "including per case", "incl vat per case", "inc per case",
        ),
        "inc_vat_per_unit": (
            "inv per unit", "incl per unit", "including per unit", "incl vat per unit", "inc per unit",
        ),
    }
)

HEADER_SIGNALS: tuple[str, ...] = ("brand", "area", "product", "case", "size")

_SPACES = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


@dataclass(frozen=True)
class HeaderMap:
    """Canonical field -> zero-based column index, fixed once built."""
    header_row_index: int
    columns: Mapping[str, int]

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.columns

    def get(self, field_name: str) -> int | None:
        return self.columns.get(field_name)

    def cell(self, row: Sequence[Any], field_name: str) -> Any:
        """Cell value for a canonical field; a missing column reads as empty."""
        idx = self.columns.get(field_name)
        if idx is None or idx >= len(row):
            return None
        return row[idx]


def normalize_header(value: Any) -> str:
    if value is None:
        return ""
    text = _SPACES.sub(" ", str(value).lower())
    return _NON_ALNUM.sub("", text).strip()


def find_header_row(
    raw: Sequence[Sequence[Any]],
    scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
    min_matches: int = DEFAULT_HEADER_MIN_MATCHES,
) -> int:
    """Index of the first row carrying >= min_matches header signals (default 0)."""
    for i, row in enumerate(raw[:scan_rows]):
        cells = {normalize_header(c) for c in row}
        score = sum(1 for signal in HEADER_SIGNALS if signal in cells)
        if score >= min_matches:
            return i
    return 0


def build_header_map(header_row: Sequence[Any], header_row_index: int = 0) -> HeaderMap:
    cells = [normalize_header(c) for c in header_row]
    columns: dict[str, int] = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for idx, cell in enumerate(cells):
            if cell in aliases:
                columns[field_name] = idx
                break
    return HeaderMap(header_row_index=header_row_index, columns=MappingProxyType(columns))


def resolve_header(
    raw: Sequence[Sequence[Any]],
    scan_rows: int = DEFAULT_HEADER_SCAN_ROWS,
    min_matches: int = DEFAULT_HEADER_MIN_MATCHES,
) -> HeaderMap:
    """Locate the header row of a raw sheet and build its HeaderMap."""
    if not raw:
        return HeaderMap(header_row_index=0, columns=MappingProxyType({}))
    idx = find_header_row(raw, scan_rows=scan_rows, min_matches=min_matches)
    return build_header_map(raw[idx], header_row_index=idx)
