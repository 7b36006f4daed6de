from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import DEFAULT_CHUNK_SIZE
from ..models.error_record import ErrorRecord
from ..models.import_result import ImportProgress, ImportResult, ImportStatus, RowImportError
from ..models.parsed_row import ParsedRow, ProductRow
from .offline_queue import OfflineQueue, QueuedImport, QueueError

"""Import batcher: chunked, sequential upserts of valid rows.

- only valid product rows are submitted (section headers / invalid rows are
  counted as skipped)
- chunks are submitted one after another; a failed chunk turns into one error
  entry per row and the next chunk is still attempted
- offline at the start -> the whole batch goes to the offline queue and the
  store is never called
- everything is returned as an ImportResult; nothing raises past this module
"""

__all__ = [
    "PriceStore",
    "chunked",
    "import_rows",
    "replay_queue",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]


class PriceStore(Protocol):
    def upsert_rows(self, records: Sequence[Mapping[str, Any]]) -> Any: ...


def chunked(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _notify(callback: ProgressCallback | None, current: int, total: int, status: ImportStatus, message: str) -> None:
    if callback is not None:
        callback(ImportProgress(current=current, total=total, status=status, message=message))


def _submit_records(
    records: Sequence[Mapping[str, Any]],
    store: PriceStore,
    chunk_size: int,
    filename: str,
    on_progress: ProgressCallback | None,
    error_log: ErrorLogBuffer | None,
) -> tuple[int, list[RowImportError], int]:
    """Submit records chunk by chunk. Returns (imported, errors, chunk calls)."""
    total = len(records)
    chunks = chunked(records, chunk_size)
    imported = 0
    errors: list[RowImportError] = []

    for i, chunk in enumerate(chunks, start=1):
        _notify(on_progress, imported, total, ImportStatus.IMPORTING, f"Importing chunk {i} of {len(chunks)}...")
        try:
            store.upsert_rows(list(chunk))
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning("chunk %d/%d failed (%d rows): %s", i, len(chunks), len(chunk), message)
            for record in chunk:
                row_number = record.get("row_number")
                product = str(record.get("product_name") or "")
                errors.append(RowImportError(row=row_number, product=product, error=message))
                if error_log is not None:
                    error_log.append(
                        ErrorRecord.create(
                            file=str(record.get("source_file") or filename),
                            row=row_number if row_number is not None else -1,
                            product=product,
                            error_type="STORE_UPSERT_ERROR",
                            message=message,
                        )
                    )
        else:
            imported += len(chunk)
        _notify(on_progress, imported, total, ImportStatus.IMPORTING, f"Imported {imported} of {total} products...")

    return imported, errors, len(chunks)


def import_rows(
    rows: Iterable[ParsedRow],
    store: PriceStore | None,
    *,
    filename: str = "",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    is_online: Callable[[], bool] | None = None,
    queue: OfflineQueue | None = None,
    on_progress: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Import the valid rows of a batch into the store (or the offline queue)."""
    try:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        row_list = list(rows)
        online = True if is_online is None else bool(is_online())
        if online and store is None:
            raise ValueError("no store configured")
    except Exception as e:
        logger.error("import pre-flight failed: %s", e)
        if error_log is not None:
            error_log.append(ErrorRecord.create(filename, -1, "", "IMPORT_PREFLIGHT_ERROR", str(e)))
        _notify(on_progress, 0, 0, ImportStatus.ERROR, f"Import failed: {e}")
        return ImportResult(imported=0, skipped=0, status=ImportStatus.ERROR, message=str(e))

    eligible = [r for r in row_list if isinstance(r, ProductRow) and r.is_valid]
    skipped = len(row_list) - len(eligible)
    total = len(eligible)

    if not online:
        if queue is None:
            message = "offline and no queue configured"
            _notify(on_progress, 0, total, ImportStatus.ERROR, f"Import failed: {message}")
            return ImportResult(imported=0, skipped=skipped, status=ImportStatus.ERROR, message=message)
        try:
            queue_id = queue.enqueue(eligible, filename)
        except QueueError as e:
            _notify(on_progress, 0, total, ImportStatus.ERROR, f"Import failed: {e}")
            return ImportResult(imported=0, skipped=skipped, status=ImportStatus.ERROR, message=str(e))
        _notify(on_progress, total, total, ImportStatus.QUEUED, "Queued for import when online")
        return ImportResult(imported=0, skipped=skipped, status=ImportStatus.QUEUED, queue_id=queue_id)

    _notify(on_progress, 0, total, ImportStatus.IMPORTING, "Starting import...")
    imported, errors, calls = _submit_records(
        [r.to_record() for r in eligible], store, chunk_size, filename, on_progress, error_log  # type: ignore[arg-type]
    )
    _notify(on_progress, imported, total, ImportStatus.COMPLETE, f"Import complete: {imported} products imported")
    logger.info("import file=%s imported=%d failed=%d skipped=%d chunks=%d", filename, imported, len(errors), skipped, calls)
    return ImportResult(imported=imported, skipped=skipped, errors=errors, status=ImportStatus.COMPLETE, chunks=calls)


def replay_queue(
    queue: OfflineQueue,
    store: PriceStore,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> list[tuple[QueuedImport, ImportResult]]:
    """Re-submit queued batches in enqueue order; fully imported entries are removed."""
    outcomes: list[tuple[QueuedImport, ImportResult]] = []
    for entry in queue.list():
        imported, errors, calls = _submit_records(
            entry.rows, store, chunk_size, entry.filename, on_progress, error_log
        )
        result = ImportResult(imported=imported, skipped=0, errors=errors, status=ImportStatus.COMPLETE, chunks=calls)
        if not errors:
            queue.remove(entry.id)
        logger.info("replayed %s file=%s imported=%d failed=%d", entry.id, entry.filename, imported, len(errors))
        outcomes.append((entry, result))
    return outcomes
