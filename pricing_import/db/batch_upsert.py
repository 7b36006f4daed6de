from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

"""PostgreSQL upsert of product price records.

One upsert_rows() call = one chunk = one transaction (BEGIN / COMMIT, ROLLBACK
on failure). The conflict target is configuration; the pipeline only supplies
the business fields. Driver failures are wrapped in BatchUpsertError so the
import batcher can record them per row and move on to the next chunk.
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import execute_values
except ImportError:  # pragma: no cover
    execute_values = None  # type: ignore

__all__ = [
    "RECORD_COLUMNS",
    "build_upsert_sql",
    "BatchUpsertError",
    "BatchMetrics",
    "PostgresPriceStore",
]

logger = logging.getLogger(__name__)

RECORD_COLUMNS: tuple[str, ...] = (
    "brand",
    "area",
    "color",
    "product_name",
    "packed_case",
    "size_text",
    "ex_vat_per_case",
    "ex_vat_per_unit",
    "inc_vat_per_case",
    "inc_vat_per_unit",
    "source_file",
    "row_number",
)


class BatchUpsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of a single upsert call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def build_upsert_sql(table: str, columns: Sequence[str], conflict_columns: Sequence[str]) -> str:
    cols_sql = ",".join(_quote(c) for c in columns)
    sql = f"INSERT INTO {_quote(table)} ({cols_sql}) VALUES %s"
    if conflict_columns:
        conflict_sql = ",".join(_quote(c) for c in conflict_columns)
        updates = [c for c in columns if c not in conflict_columns]
        if updates:
            set_sql = ",".join(f"{_quote(c)}=EXCLUDED.{_quote(c)}" for c in updates)
            sql += f" ON CONFLICT ({conflict_sql}) DO UPDATE SET {set_sql}"
        else:
            sql += f" ON CONFLICT ({conflict_sql}) DO NOTHING"
    return sql


class PostgresPriceStore:
    """Store collaborator backed by a psycopg2 cursor.

    Parameters
    ----------
    cursor: psycopg2 cursor (connection in manual transaction mode)
    table: target table
    conflict_columns: upsert identity columns (empty -> plain INSERT)
    metrics_callback: receives BatchMetrics after every call, failed or not
    """

    def __init__(
        self,
        cursor: Any,
        table: str = "product_prices",
        conflict_columns: Sequence[str] = ("brand", "product_name", "size_text"),
        page_size: int = 1000,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        self.cursor = cursor
        self.table = table
        self.conflict_columns = tuple(conflict_columns)
        self.page_size = page_size
        self.metrics_callback = metrics_callback
        self.sql = build_upsert_sql(table, RECORD_COLUMNS, self.conflict_columns)

    def _collapse(self, records: Sequence[Mapping[str, Any]]) -> list[tuple[Any, ...]]:
        """One value tuple per conflict key (last record wins, first position kept).

        ON CONFLICT DO UPDATE cannot touch the same target row twice in one
        statement, and duplicate product rows are valid input.
        """
        if not self.conflict_columns:
            return [tuple(r.get(c) for c in RECORD_COLUMNS) for r in records]
        by_key: dict[tuple[Any, ...], tuple[Any, ...]] = {}
        for r in records:
            key = tuple(r.get(c) for c in self.conflict_columns)
            by_key[key] = tuple(r.get(c) for c in RECORD_COLUMNS)
        return list(by_key.values())

    def upsert_rows(self, records: Sequence[Mapping[str, Any]]) -> int:
        """Upsert one chunk in a single transaction; returns the number of rows sent."""
        if execute_values is None:
            raise BatchUpsertError("psycopg2 not available")
        if not records:
            return 0
        values = self._collapse(records)
        if len(values) < len(records):
            logger.debug("collapsed %d duplicate-key records", len(records) - len(values))

        start_time = time.time()
        try:
            self.cursor.execute("BEGIN")
            execute_values(self.cursor, self.sql, values, page_size=self.page_size)
            self.cursor.execute("COMMIT")
        except Exception as e:
            try:
                self.cursor.execute("ROLLBACK")
            except Exception:  # pragma: no cover - connection already gone
                pass
            raise BatchUpsertError(str(e)) from e
        finally:
            end_time = time.time()
            if self.metrics_callback is not None:
                self.metrics_callback(
                    BatchMetrics(
                        batch_size=len(values),
                        elapsed_seconds=end_time - start_time,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )
        return len(values)
