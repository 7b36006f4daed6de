from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from ..models.parsed_row import ProductRow

"""Durable offline queue for import batches.

Each queued batch is one JSON file under the queue directory, so entries
survive a restart. list() returns entries in enqueue order. The queue knows
nothing about the store; replay lives in services.importer.
"""

__all__ = [
    "QUEUE_PREFIX",
    "QueueError",
    "QueuedImport",
    "OfflineQueue",
]

logger = logging.getLogger(__name__)

QUEUE_PREFIX = "pricing_import_"


class QueueError(Exception):
    """Raised when a queue entry cannot be written or read back."""


@dataclass(frozen=True)
class QueuedImport:
    id: str
    filename: str
    timestamp: int  # time.time_ns() at enqueue
    rows: list[dict[str, Any]]


class OfflineQueue:
    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path(self, entry_id: str) -> Path:
        return self.directory / f"{entry_id}.json"

    def enqueue(self, rows: Iterable[ProductRow | Mapping[str, Any]], filename: str) -> str:
        """Store a batch and return its opaque queue id."""
        records = [r.to_record() if isinstance(r, ProductRow) else dict(r) for r in rows]
        now = time.time_ns()
        entry = QueuedImport(
            id=f"{QUEUE_PREFIX}{now // 1_000_000}_{uuid.uuid4().hex[:9]}",
            filename=filename,
            timestamp=now,
            rows=records,
        )
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = self._path(entry.id).with_suffix(".tmp")
            tmp.write_text(json.dumps(asdict(entry), ensure_ascii=False), encoding="utf-8")
            tmp.replace(self._path(entry.id))
        except OSError as e:
            raise QueueError(f"failed to queue {filename}: {e}") from e
        logger.info("queued %d rows from %s as %s", len(records), filename, entry.id)
        return entry.id

    def get(self, entry_id: str) -> QueuedImport:
        path = self._path(entry_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return QueuedImport(
                id=data["id"],
                filename=data["filename"],
                timestamp=int(data["timestamp"]),
                rows=list(data["rows"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise QueueError(f"unreadable queue entry {entry_id}: {e}") from e

    def list(self) -> list[QueuedImport]:
        """Readable entries in enqueue order; unreadable files are logged and left in place."""
        if not self.directory.exists():
            return []
        entries: list[QueuedImport] = []
        for path in self.directory.glob(f"{QUEUE_PREFIX}*.json"):
            try:
                entries.append(self.get(path.stem))
            except QueueError as e:
                logger.warning("skipping queue entry: %s", e)
        return sorted(entries, key=lambda e: (e.timestamp, e.id))

    def remove(self, entry_id: str) -> None:
        self._path(entry_id).unlink(missing_ok=True)

    def clear(self) -> int:
        if not self.directory.exists():
            return 0
        removed = 0
        for path in self.directory.glob(f"{QUEUE_PREFIX}*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed

    def __len__(self) -> int:
        if not self.directory.exists():
            return 0
        return sum(1 for _ in self.directory.glob(f"{QUEUE_PREFIX}*.json"))
