from __future__ import annotations

from ..models.import_result import ImportResult
from ..models.parse_result import ParseResult

"""SUMMARY line rendering for parse and import runs.

Formats:
  SUMMARY file={name} rows={n} valid={n} invalid={n} sections={n} errors={n} warnings={n}
  SUMMARY status={status} imported={n} skipped={n} failed={n} chunks={n}[ queue_id={id}]
"""


def render_parse_summary(result: ParseResult) -> str:
    """Render the SUMMARY line for a parsed sheet.

    Examples:
        >>> from pricing_import.models.parse_result import build_parse_result
        >>> render_parse_summary(build_parse_result([], "prices.xlsx"))
        'SUMMARY file=prices.xlsx rows=0 valid=0 invalid=0 sections=0 errors=0 warnings=0'
    """
    return (
        f"SUMMARY file={result.source_file or '-'} "
        f"rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"invalid={result.invalid_rows} "
        f"sections={result.section_headers} "
        f"errors={len(result.errors)} "
        f"warnings={len(result.warnings)}"
    )


def render_import_summary(result: ImportResult) -> str:
    line = (
        f"SUMMARY status={result.status.value} "
        f"imported={result.imported} "
        f"skipped={result.skipped} "
        f"failed={result.failed} "
        f"chunks={result.chunks}"
    )
    if result.queue_id:
        line += f" queue_id={result.queue_id}"
    return line
