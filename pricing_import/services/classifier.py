from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from ..excel.headers import HeaderMap
from ..models.config_models import DEFAULT_SECTION_BLANK_RATIO
from ..models.parsed_row import ParsedRow, ProductRow, SectionHeaderRow, WineColor
from ..normalize.colors import color_from_label, color_from_name, color_from_token
from ..normalize.numbers import parse_case_count, parse_locale_number

"""Row classification and extraction pass.

Supplier sheets group products visually: a "Red Wine" line sets the color of
everything below it, a lone "KLAWER CELLARS" line sets the brand. The pass is
a fold over the data rows in sheet order carrying (current_brand,
active_color); rows must never be classified out of order.

Per row:
1. color-section line     -> update active_color, emit nothing
2. mostly-empty, label    -> SectionHeaderRow, update current_brand
3. all blank              -> skip
4. otherwise              -> ProductRow (dropped when product_name is blank)
"""

__all__ = [
    "RowKind",
    "ClassifierState",
    "cell_text",
    "classify_cells",
    "extract_product",
    "classify_step",
    "classify_rows",
]

logger = logging.getLogger(__name__)

# Color-section labels are read from the first few cells only.
_SECTION_LABEL_CELLS = 3


class RowKind(Enum):
    COLOR_SECTION = "color_section"
    SECTION_HEADER = "section_header"
    EMPTY = "empty"
    PRODUCT = "product"


@dataclass(frozen=True)
class ClassifierState:
    """Sticky context carried from row to row."""
    current_brand: str = ""
    active_color: WineColor | None = None


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # 750.0 (Excel 数値セル) -> "750"
        return str(int(value))
    return str(value).strip()


def _color_section(cells: Sequence[Any]) -> WineColor | None:
    if any(cell_text(c) for c in cells[_SECTION_LABEL_CELLS:]):
        return None
    label = " ".join(t for t in (cell_text(c) for c in cells[:_SECTION_LABEL_CELLS]) if t)
    return color_from_label(label)


def _is_section_header(cells: Sequence[Any], blank_ratio: float) -> bool:
    if not cells or not cell_text(cells[0]):
        return False
    rest = cells[1:]
    blanks = sum(1 for c in rest if not cell_text(c))
    return blanks >= len(rest) * blank_ratio


def classify_cells(
    cells: Sequence[Any], blank_ratio: float = DEFAULT_SECTION_BLANK_RATIO
) -> tuple[RowKind, WineColor | None]:
    """Kind of a data row (plus its color for color-section lines)."""
    color = _color_section(cells)
    if color is not None:
        return RowKind.COLOR_SECTION, color
    if _is_section_header(cells, blank_ratio):
        return RowKind.SECTION_HEADER, None
    if not any(cell_text(c) for c in cells):
        return RowKind.EMPTY, None
    return RowKind.PRODUCT, None


def extract_product(
    cells: Sequence[Any],
    header: HeaderMap,
    state: ClassifierState,
    source_file: str,
    row_number: int,
) -> ProductRow | None:
    """Typed ProductRow for a data row, or None when it has no product name.

    Derived fields are left at their defaults; validator.refresh_row fills them.
    """
    product_name = cell_text(header.cell(cells, "product_name"))
    if not product_name:
        return None

    color = color_from_token(header.cell(cells, "color"))
    if color is None:
        color = state.active_color or color_from_name(product_name)

    return ProductRow(
        row_number=row_number,
        source_file=source_file,
        brand=cell_text(header.cell(cells, "brand")) or state.current_brand,
        area=cell_text(header.cell(cells, "area")),
        color=color,
        product_name=product_name,
        packed_case=parse_case_count(header.cell(cells, "packed_case")),
        size_text=cell_text(header.cell(cells, "size_text")),
        ex_vat_per_case=parse_locale_number(header.cell(cells, "ex_vat_per_case")),
        ex_vat_per_unit=parse_locale_number(header.cell(cells, "ex_vat_per_unit")),
        inc_vat_per_case=parse_locale_number(header.cell(cells, "inc_vat_per_case")),
        inc_vat_per_unit=parse_locale_number(header.cell(cells, "inc_vat_per_unit")),
    )


def classify_step(
    state: ClassifierState,
    cells: Sequence[Any],
    header: HeaderMap,
    source_file: str,
    row_number: int,
    blank_ratio: float = DEFAULT_SECTION_BLANK_RATIO,
) -> tuple[ClassifierState, ParsedRow | None]:
    """One fold step: (state, row) -> (next state, emitted row or None)."""
    kind, color = classify_cells(cells, blank_ratio)
    if kind is RowKind.COLOR_SECTION:
        logger.debug("row=%d color section -> %s", row_number, color.value if color else None)
        return replace(state, active_color=color), None
    if kind is RowKind.SECTION_HEADER:
        label = cell_text(cells[0])
        return (
            replace(state, current_brand=label),
            SectionHeaderRow(row_number=row_number, source_file=source_file, label=label),
        )
    if kind is RowKind.EMPTY:
        return state, None

    product = extract_product(cells, header, state, source_file, row_number)
    if product is None:
        logger.debug("row=%d dropped: no product name", row_number)
    return state, product


def classify_rows(
    raw: Sequence[Sequence[Any]],
    header: HeaderMap,
    source_file: str,
    blank_ratio: float = DEFAULT_SECTION_BLANK_RATIO,
) -> list[ParsedRow]:
    """Classify every row below the header row, in sheet order."""
    state = ClassifierState()
    rows: list[ParsedRow] = []
    first = header.header_row_index + 1
    for offset, cells in enumerate(raw[first:]):
        # 1-based sheet row number for user-facing messages
        row_number = first + offset + 1
        state, parsed = classify_step(state, cells, header, source_file, row_number, blank_ratio)
        if parsed is not None:
            rows.append(parsed)
    return rows
