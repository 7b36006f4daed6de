"""Domain models for the pricing sheet import tool.

Parsed rows (section headers / products), parse and import results, config
dataclasses and the JSON Lines error record.
"""

from .config_models import DatabaseConfig, ImportConfig, ParserConfig
from .error_record import ErrorRecord
from .import_result import ImportProgress, ImportResult, ImportStatus, RowImportError
from .parse_result import ParseResult, build_parse_result
from .parsed_row import ParsedRow, ProductRow, SectionHeaderRow, WineColor

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ParserConfig",
    # Parsing models
    "ParsedRow",
    "ProductRow",
    "SectionHeaderRow",
    "WineColor",
    "ParseResult",
    "build_parse_result",
    # Import models
    "ErrorRecord",
    "ImportProgress",
    "ImportResult",
    "ImportStatus",
    "RowImportError",
]
