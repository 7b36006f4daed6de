from __future__ import annotations

from collections.abc import Iterable

from ..models.parsed_row import ParsedRow, ProductRow

"""Derived fields: display price and batch-wide duplicate flags.

display_price fallback order:
  inc_vat_per_unit -> ex_vat_per_unit -> inc_vat_per_case / packed_case
  -> ex_vat_per_case / packed_case -> None

Duplicates are grouped by brand|product_name|size_text (product_name|size_text
when the brand is blank) and recomputed over the whole batch; the group size,
not row identity, drives the warning text.
"""

__all__ = [
    "DUPLICATE_WARNING_PREFIX",
    "apply_duplicate_warning",
    "compute_display_price",
    "duplicate_key",
    "duplicate_warning",
    "mark_duplicates",
]

DUPLICATE_WARNING_PREFIX = "Duplicate found:"


def compute_display_price(row: ProductRow) -> float | None:
    if row.inc_vat_per_unit is not None:
        return row.inc_vat_per_unit
    if row.ex_vat_per_unit is not None:
        return row.ex_vat_per_unit
    if row.packed_case and row.packed_case > 0:
        if row.inc_vat_per_case:
            return row.inc_vat_per_case / row.packed_case
        if row.ex_vat_per_case:
            return row.ex_vat_per_case / row.packed_case
    return None


def duplicate_key(row: ProductRow) -> str:
    if row.brand:
        return f"{row.brand}|{row.product_name}|{row.size_text}"
    return f"{row.product_name}|{row.size_text}"


def duplicate_warning(count: int) -> str:
    return f"{DUPLICATE_WARNING_PREFIX} {count} rows with same product+size"


def apply_duplicate_warning(row: ProductRow) -> None:
    """Replace any stale duplicate warning on one row with its current one."""
    kept = [w for w in row.warnings if not w.startswith(DUPLICATE_WARNING_PREFIX)]
    if row.duplicate_count > 1:
        kept.append(duplicate_warning(row.duplicate_count))
    row.warnings = kept


def mark_duplicates(rows: Iterable[ParsedRow]) -> int:
    """Recompute duplicate keys / counts / warnings over a whole batch.

    Returns the number of rows that share their key with at least one other row.
    """
    groups: dict[str, list[ProductRow]] = {}
    for row in rows:
        if not isinstance(row, ProductRow) or not row.product_name:
            continue
        row.duplicate_key = duplicate_key(row)
        groups.setdefault(row.duplicate_key, []).append(row)

    flagged = 0
    for members in groups.values():
        count = len(members)
        if count > 1:
            flagged += count
        for row in members:
            row.duplicate_count = count
            apply_duplicate_warning(row)
    return flagged
