from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for import error logging.

One record per row the store rejected, or one file-level record (row=-1) when
the failure cannot be tied to a row (unreadable file, pre-flight failure).
Serialized as JSON Lines with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source pricing sheet name
        row: Sheet row number (1-based). -1 for file-level errors
        product: Product name of the failed row ("" for file-level errors)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Store / driver error message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int  # 行番号。不明な場合 -1
    product: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, product: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            product=product,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict で追加キーを防ぐ
        return json.dumps(asdict(self), ensure_ascii=False)
