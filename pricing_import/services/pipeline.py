from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..excel.headers import resolve_header
from ..excel.reader import read_sheet, read_sheet_bytes
from ..models.config_models import ParserConfig
from ..models.parse_result import ParseResult, build_parse_result
from ..models.parsed_row import ProductRow
from .classifier import classify_rows
from .derived import mark_duplicates
from .validator import refresh_row

"""Ingestion pipeline: RawSheet -> validated, de-duplicated ParseResult.

Steps (single synchronous pass):
1. resolve header row + HeaderMap
2. classification / extraction fold
3. per-row validation and derived fields
4. batch-wide duplicate detection
5. summary counts

parse_file()/parse_upload() add the decode step, which is the only step that
raises (SheetReadError); callers turn it into a single top-level error.
"""

__all__ = [
    "parse_sheet",
    "parse_file",
    "parse_upload",
]

logger = logging.getLogger(__name__)


def parse_sheet(
    raw: Sequence[Sequence[Any]],
    source_file: str,
    parser: ParserConfig | None = None,
) -> ParseResult:
    cfg = parser or ParserConfig()
    if not raw:
        return build_parse_result([], source_file)

    header = resolve_header(raw, scan_rows=cfg.header_scan_rows, min_matches=cfg.header_min_matches)
    logger.debug(
        "file=%s header_row=%d columns=%s", source_file, header.header_row_index + 1, dict(header.columns)
    )
    if "product_name" not in header:
        logger.warning("file=%s no product column found; every data row will be dropped", source_file)

    rows = classify_rows(raw, header, source_file, blank_ratio=cfg.section_blank_ratio)
    for row in rows:
        if isinstance(row, ProductRow):
            refresh_row(row)
    duplicates = mark_duplicates(rows)

    result = build_parse_result(rows, source_file)
    logger.info(
        "file=%s rows=%d valid=%d invalid=%d sections=%d duplicates=%d",
        source_file,
        result.total_rows,
        result.valid_rows,
        result.invalid_rows,
        result.section_headers,
        duplicates,
    )
    return result


def parse_file(path: Path, parser: ParserConfig | None = None) -> ParseResult:
    """Decode and parse a file on disk. Raises SheetReadError on decode failure."""
    return parse_sheet(read_sheet(path), path.name, parser)


def parse_upload(data: bytes, filename: str, parser: ParserConfig | None = None) -> ParseResult:
    """Decode and parse uploaded bytes. Raises SheetReadError on decode failure."""
    return parse_sheet(read_sheet_bytes(data, filename), filename, parser)
