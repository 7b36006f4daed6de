from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any

"""Locale-aware number parsing for pricing sheet cells.

Supplier sheets mix formats such as "2 288,23", "2,288.23", "R 190,69" and
plain spreadsheet floats. Every parse failure is reported as None so that the
caller decides whether the field is required.
"""

__all__ = [
    "parse_locale_number",
    "parse_case_count",
]

_WHITESPACE = re.compile(r"\s+")
_NON_NUMERIC = re.compile(r"[^0-9.+-]")
_NON_DIGIT = re.compile(r"\D+")


def parse_locale_number(value: Any) -> float | None:
    """Convert a cell value to a finite float or None.

    Rules:
    - None / NaN / empty-after-trim -> None
    - "," together with "." -> "," is a thousands separator (removed)
    - "," alone -> decimal separator
    - currency symbols and unit suffixes are stripped
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Real):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).replace("\u00a0", " ").strip()
    if not text:
        return None
    text = _WHITESPACE.sub("", text)
    if "," in text and "." in text:
        text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    text = _NON_NUMERIC.sub("", text)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_case_count(value: Any) -> int:
    """Digit-stripping integer parse used for the packed case column (empty -> 0)."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, Real):
        number = float(value)
        # Excel 由来の 12.0 を "120" にしない
        if math.isfinite(number) and number.is_integer():
            return max(int(number), 0)
    digits = _NON_DIGIT.sub("", str(value))
    return int(digits) if digits else 0
