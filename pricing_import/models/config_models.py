from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the pricing sheet import tool.

These are the typed form of config/import.yml after schema validation in
pricing_import.config.loader. Every field has a default so the tool also runs
without a config file.
"""

DEFAULT_CHUNK_SIZE = 250
DEFAULT_HEADER_SCAN_ROWS = 5
DEFAULT_HEADER_MIN_MATCHES = 3
DEFAULT_SECTION_BLANK_RATIO = 0.7


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ParserConfig:
    """Tuning knobs for header detection and row classification."""
    header_scan_rows: int = DEFAULT_HEADER_SCAN_ROWS  # ヘッダ探索行数
    header_min_matches: int = DEFAULT_HEADER_MIN_MATCHES
    section_blank_ratio: float = DEFAULT_SECTION_BLANK_RATIO  # 空セル比率 >= で見出し行


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for parsing and importing pricing sheets."""
    chunk_size: int = DEFAULT_CHUNK_SIZE  # rows per upsert call
    queue_directory: str = "./queue"  # offline queue storage
    target_table: str = "product_prices"
    conflict_columns: tuple[str, ...] = ("brand", "product_name", "size_text")
    parser: ParserConfig = field(default_factory=ParserConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
