from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..excel.reader import SheetReadError
from ..models.config_models import ParserConfig
from ..models.parse_result import ParseResult, build_parse_result
from ..models.parsed_row import (
    BUSINESS_FIELDS,
    DUPLICATE_KEY_FIELDS,
    PRICE_FIELDS,
    ParsedRow,
    ProductRow,
    SectionHeaderRow,
    WineColor,
)
from ..normalize.colors import color_from_name, color_from_token
from ..normalize.numbers import parse_case_count, parse_locale_number
from .classifier import cell_text
from .derived import mark_duplicates
from .pipeline import parse_file, parse_upload
from .validator import refresh_row

"""Review session owning one uploaded batch.

An UploadSession is the single writer of the current ParseResult: loading a
new file replaces it wholesale, clear() drops it, and every edit goes through
update_row() which re-derives exactly the edited row and then rebuilds the
summary. Rows already submitted to the store are not affected by clear().

Edits are copy-on-write: the edited row (or, for a brand / product / size
edit, every product row) is replaced by a copy, so a ParseResult handed out
earlier keeps the rows and counts it was built with.
"""

__all__ = [
    "RowEditError",
    "UploadSession",
]

logger = logging.getLogger(__name__)


class RowEditError(Exception):
    """Raised when an edit targets a row or field that cannot be edited."""


class UploadSession:
    def __init__(self, parser: ParserConfig | None = None) -> None:
        self._parser = parser or ParserConfig()
        self._result: ParseResult | None = None

    @property
    def result(self) -> ParseResult | None:
        return self._result

    @property
    def rows(self) -> list[ParsedRow]:
        return list(self._result.rows) if self._result else []

    def load(self, path: Path) -> ParseResult:
        """Parse a file and make it the session's batch (decode errors become data)."""
        try:
            result = parse_file(path, self._parser)
        except SheetReadError as e:
            logger.error("parse failed file=%s: %s", path.name, e)
            result = ParseResult.failed(path.name, f"Failed to parse file: {e}")
        self._result = result
        return result

    def load_bytes(self, data: bytes, filename: str) -> ParseResult:
        try:
            result = parse_upload(data, filename, self._parser)
        except SheetReadError as e:
            logger.error("parse failed file=%s: %s", filename, e)
            result = ParseResult.failed(filename, f"Failed to parse file: {e}")
        self._result = result
        return result

    def clear(self) -> None:
        self._result = None

    def _require(self) -> ParseResult:
        if self._result is None:
            raise RowEditError("no file loaded")
        return self._result

    def _rebuild(self, rows: list[ParsedRow]) -> ParseResult:
        current = self._require()
        self._result = build_parse_result(rows, current.source_file)
        return self._result

    def update_row(self, index: int, field_name: str, value: Any) -> ParseResult:
        """Apply a reviewer edit to one row and re-derive it.

        Only the edited row's derived fields change; duplicate flags are
        recounted over the batch when brand / product / size changed.
        """
        rows = list(self._require().rows)
        if not 0 <= index < len(rows):
            raise RowEditError(f"row index out of range: {index}")
        row = rows[index]

        if isinstance(row, SectionHeaderRow):
            if field_name not in ("label", "product_name"):
                raise RowEditError(f"section header rows have no '{field_name}' field")
            rows[index] = replace(row, label=cell_text(value))
            return self._rebuild(rows)

        if field_name not in BUSINESS_FIELDS:
            raise RowEditError(f"field is not editable: {field_name}")
        if field_name in DUPLICATE_KEY_FIELDS:
            # 重複フラグは全行に書き戻すので全商品行を複製
            rows = [replace(r) if isinstance(r, ProductRow) else r for r in rows]
        else:
            rows[index] = replace(row)
        edited = rows[index]
        setattr(edited, field_name, _coerce(field_name, value))
        refresh_row(edited)
        if field_name in DUPLICATE_KEY_FIELDS:
            mark_duplicates(rows)
        return self._rebuild(rows)

    def auto_fill_colors(self) -> int:
        """Infer missing colors from product names; returns rows filled."""
        rows = list(self._require().rows)
        filled = 0
        for i, row in enumerate(rows):
            if isinstance(row, ProductRow) and row.color is None:
                inferred = color_from_name(row.product_name)
                if inferred is not None:
                    rows[i] = refresh_row(replace(row, color=inferred))
                    filled += 1
        self._rebuild(rows)
        return filled

    def valid_rows(self) -> list[ProductRow]:
        return [r for r in self.rows if isinstance(r, ProductRow) and r.is_valid]

    def brands(self) -> list[str]:
        return sorted({r.brand for r in self.rows if isinstance(r, ProductRow) and r.brand})

    def filter_rows(self, brand: str | None = None, color: WineColor | str | None = None) -> list[ParsedRow]:
        """Rows matching brand / color; section headers are always kept for context."""
        wanted_color = color_from_token(color) if color not in (None, "", "All") else None
        out: list[ParsedRow] = []
        for row in self.rows:
            if isinstance(row, ProductRow):
                if brand and row.brand != brand:
                    continue
                if wanted_color is not None and row.color is not wanted_color:
                    continue
            out.append(row)
        return out


def _coerce(field_name: str, value: Any) -> Any:
    if field_name in PRICE_FIELDS:
        return parse_locale_number(value)
    if field_name == "packed_case":
        return parse_case_count(value)
    if field_name == "color":
        # 未知の色は None (警告で表面化)
        return color_from_token(value)
    return cell_text(value)
