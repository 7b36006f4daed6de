from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator

from ..models.parsed_row import BUSINESS_FIELDS, PRICE_FIELDS, ProductRow, WineColor
from .derived import apply_duplicate_warning, compute_display_price

"""Row-level schema validation for extracted product rows.

Validation never raises and never removes a row: an invalid row stays in the
batch with is_valid=False and one message per failing field, so the reviewer
can fix it in place. Warnings are advisory and do not affect is_valid.
"""

__all__ = [
    "PRICE_ROW_SCHEMA",
    "NO_PRICE_WARNING",
    "MISSING_COLOR_WARNING",
    "validate_row",
    "row_warnings",
    "refresh_row",
]

NO_PRICE_WARNING = "No unit price available - check ex/inc VAT fields"
MISSING_COLOR_WARNING = "Missing color - use auto-fill colors or set manually"

_REQUIRED_TEXT = {"type": "string", "pattern": r"\S"}
_PRICE = {"type": ["number", "null"], "minimum": 0}

PRICE_ROW_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "brand": _REQUIRED_TEXT,
        "area": _REQUIRED_TEXT,
        "color": {"enum": [c.value for c in WineColor] + [None]},
        "product_name": _REQUIRED_TEXT,
        "packed_case": {"type": "integer", "minimum": 1},
        "size_text": _REQUIRED_TEXT,
        **{name: _PRICE for name in PRICE_FIELDS},
    },
    "required": list(BUSINESS_FIELDS),
}

_FIELD_MESSAGES: dict[str, str] = {
    "brand": "Brand required",
    "area": "Area required",
    "color": "Unknown color",
    "product_name": "Product required",
    "packed_case": "Case must be a whole number of at least 1",
    "size_text": "Size required",
}
_PRICE_MESSAGE = "Price must be 0 or more"

_validator = Draft7Validator(PRICE_ROW_SCHEMA)
_FIELD_ORDER = {name: i for i, name in enumerate(BUSINESS_FIELDS)}


def _instance(row: ProductRow) -> dict[str, Any]:
    data: dict[str, Any] = {name: getattr(row, name) for name in BUSINESS_FIELDS}
    data["color"] = row.color.value if isinstance(row.color, WineColor) else row.color
    return data


def validate_row(row: ProductRow) -> list[str]:
    """Error messages for one product row, in canonical field order."""
    seen: set[str] = set()
    failures: list[tuple[int, str]] = []
    for err in _validator.iter_errors(_instance(row)):
        field_name = str(err.path[0]) if err.path else ""
        if not field_name or field_name in seen:
            continue
        seen.add(field_name)
        message = _FIELD_MESSAGES.get(field_name, _PRICE_MESSAGE if field_name in PRICE_FIELDS else err.message)
        failures.append((_FIELD_ORDER.get(field_name, len(_FIELD_ORDER)), f"{field_name}: {message}"))
    return [msg for _, msg in sorted(failures)]


def row_warnings(row: ProductRow) -> list[str]:
    warnings: list[str] = []
    if row.display_price is None:
        warnings.append(NO_PRICE_WARNING)
    if row.color is None:
        warnings.append(MISSING_COLOR_WARNING)
    return warnings


def refresh_row(row: ProductRow) -> ProductRow:
    """Recompute every derived field of a single row in place.

    Only this row is touched; the duplicate warning is re-attached from the
    row's last known group size (batch-wide recount is mark_duplicates()).
    """
    row.display_price = compute_display_price(row)
    row.errors = validate_row(row)
    row.is_valid = not row.errors
    row.warnings = row_warnings(row)
    apply_duplicate_warning(row)
    return row
