from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Import run models: status enum, per-row failures, progress and result.

An import run moves idle -> importing -> (complete | error). Partial chunk
failures still end in COMPLETE with a non-empty error list; ERROR is only used
when the run could not start (pre-flight failure). QUEUED is the terminal
state for a batch handed to the offline queue instead of the store.
"""

__all__ = [
    "ImportStatus",
    "RowImportError",
    "ImportProgress",
    "ImportResult",
]


class ImportStatus(Enum):
    """Status of an import run.

    - IDLE: nothing submitted yet
    - IMPORTING: chunks are being submitted (re-entered per chunk for progress)
    - COMPLETE: every chunk was attempted
    - ERROR: pre-flight failure, nothing attempted
    - QUEUED: environment offline, batch stored for later replay
    """
    IDLE = "idle"
    IMPORTING = "importing"
    COMPLETE = "complete"
    ERROR = "error"
    QUEUED = "queued"


@dataclass(frozen=True)
class RowImportError:
    """One row that the store rejected (row number + product name for the user)."""
    row: int | None
    product: str
    error: str


@dataclass(frozen=True)
class ImportProgress:
    """Snapshot passed to progress callbacks after each state change / chunk."""
    current: int  # imported so far
    total: int
    status: ImportStatus
    message: str


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped: int  # input rows not eligible (section headers / invalid rows)
    errors: list[RowImportError] = field(default_factory=list)
    status: ImportStatus = ImportStatus.COMPLETE
    queue_id: str | None = None  # set when status is QUEUED
    message: str | None = None  # pre-flight failure reason
    chunks: int = 0  # submission calls made

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def queued(self) -> bool:
        return self.status is ImportStatus.QUEUED
