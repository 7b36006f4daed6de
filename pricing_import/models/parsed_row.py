from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

"""ParsedRow domain models for the pricing sheet pipeline.

A classified sheet row is either a SectionHeaderRow (brand/vendor divider that
only sets context for the rows below it) or a ProductRow (one priced product).
The two are distinct types so that price fields can never be read off a
section header.

State transitions for a ProductRow: extracted -> validated -> (edited ->
re-validated)*. Import never mutates a row.
"""

__all__ = [
    "WineColor",
    "SectionHeaderRow",
    "ProductRow",
    "ParsedRow",
    "PRICE_FIELDS",
    "BUSINESS_FIELDS",
    "DUPLICATE_KEY_FIELDS",
]


class WineColor(Enum):
    """Fixed category set; unresolved is represented as None, never a free string."""
    RED = "RED"
    WHITE = "WHITE"
    ROSE = "ROSE"
    DESSERT = "DESSERT"


PRICE_FIELDS: tuple[str, ...] = (
    "ex_vat_per_case",
    "ex_vat_per_unit",
    "inc_vat_per_case",
    "inc_vat_per_unit",
)

BUSINESS_FIELDS: tuple[str, ...] = (
    "brand",
    "area",
    "color",
    "product_name",
    "packed_case",
    "size_text",
    *PRICE_FIELDS,
)

DUPLICATE_KEY_FIELDS: frozenset[str] = frozenset({"brand", "product_name", "size_text"})


@dataclass
class SectionHeaderRow:
    """Brand/section divider row. Never valid, never imported."""
    row_number: int  # 1-based sheet row
    source_file: str
    label: str

    is_section_header = True
    is_valid = False

    @property
    def product_name(self) -> str:
        return self.label


@dataclass
class ProductRow:
    """One priced product line after extraction.

    Review edits work on a copy of the row (see UploadSession); the derived fields
    (display_price, duplicate_key, errors, warnings, is_valid) are recomputed by
    the validator / derived-field engine and are never set directly by callers.
    """
    row_number: int  # 1-based sheet row
    source_file: str
    brand: str
    area: str
    color: WineColor | None
    product_name: str
    packed_case: int
    size_text: str
    ex_vat_per_case: float | None = None
    ex_vat_per_unit: float | None = None
    inc_vat_per_case: float | None = None
    inc_vat_per_unit: float | None = None
    # derived
    display_price: float | None = None
    duplicate_key: str = ""
    duplicate_count: int = 1
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    is_valid: bool = False

    is_section_header = False

    def to_record(self) -> dict[str, Any]:
        """Plain record handed to the store / offline queue (business fields only)."""
        return {
            "brand": self.brand or None,
            "area": self.area or None,
            "color": self.color.value if self.color else None,
            "product_name": self.product_name,
            "packed_case": self.packed_case,
            "size_text": self.size_text or None,
            "ex_vat_per_case": self.ex_vat_per_case,
            "ex_vat_per_unit": self.ex_vat_per_unit,
            "inc_vat_per_case": self.inc_vat_per_case,
            "inc_vat_per_unit": self.inc_vat_per_unit,
            "source_file": self.source_file or None,
            "row_number": self.row_number,
        }


ParsedRow = Union[SectionHeaderRow, ProductRow]
