from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .parsed_row import ParsedRow, ProductRow

"""ParseResult aggregate for one uploaded sheet.

The summary counts are never maintained incrementally: build_parse_result()
derives them from the current row list every time, so they always agree with
the rows.
"""

__all__ = [
    "ParseResult",
    "build_parse_result",
]


@dataclass(frozen=True)
class ParseResult:
    """Rows of one sheet plus summary counts and flattened messages."""
    rows: list[ParsedRow]
    total_rows: int  # len(rows)
    valid_rows: int
    invalid_rows: int  # product rows with errors
    section_headers: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source_file: str = ""

    @classmethod
    def failed(cls, source_file: str, message: str) -> ParseResult:
        """Result for a file that could not be decoded at all."""
        return cls(
            rows=[],
            total_rows=0,
            valid_rows=0,
            invalid_rows=0,
            section_headers=0,
            errors=[message],
            warnings=[],
            source_file=source_file,
        )

    @property
    def product_rows(self) -> list[ProductRow]:
        return [r for r in self.rows if isinstance(r, ProductRow)]


def build_parse_result(rows: Sequence[ParsedRow], source_file: str = "") -> ParseResult:
    row_list = list(rows)
    products = [r for r in row_list if isinstance(r, ProductRow)]
    valid = sum(1 for r in products if r.is_valid)
    return ParseResult(
        rows=row_list,
        total_rows=len(row_list),
        valid_rows=valid,
        invalid_rows=len(products) - valid,
        section_headers=len(row_list) - len(products),
        errors=[e for r in products for e in r.errors],
        warnings=[w for r in products for w in r.warnings],
        source_file=source_file,
    )
