from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json, execute_values

from .base import (
    StoreQueryError,
    StoreUnavailableError,
    StoreWriteError,
    StudentStore,
    WriteOperation,
)

"""PostgreSQL store.

Each collection is a table of JSON documents: ``(id text primary key,
data jsonb, created_at timestamptz)``. An atomic write is one transaction in
which every collection's operations go through a single
``psycopg2.extras.execute_values`` INSERT; any failure rolls the whole
transaction back. Existence queries use ``data->>field = ANY(%s)``.
"""

__all__ = [
    "WriteMetrics",
    "PostgresStudentStore",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteMetrics:
    """Timing for one atomic write."""
    operations: int
    elapsed_seconds: float
    start_time: float
    end_time: float


class PostgresStudentStore(StudentStore):
    def __init__(
        self,
        connection: Any,
        max_write_operations: int = 500,
        max_query_values: int = 10,
        metrics_callback: Callable[[WriteMetrics], None] | None = None,
    ) -> None:
        self._conn = connection
        self._conn.autocommit = False
        self.max_write_operations = max_write_operations
        self.max_query_values = max_query_values
        self._metrics_callback = metrics_callback

    @classmethod
    def connect(cls, dsn: str, **kwargs: Any) -> PostgresStudentStore:
        try:
            conn = psycopg2.connect(dsn)
        except psycopg2.Error as e:
            raise StoreUnavailableError(f"could not connect to database: {e}") from e
        return cls(conn, **kwargs)

    def ensure_collections(self, collections: Iterable[str]) -> None:
        """Create the document tables if missing.

        Raises:
            StoreUnavailableError: the tables cannot be created or reached
        """
        try:
            with self._conn.cursor() as cur:
                for name in collections:
                    cur.execute(
                        sql.SQL(
                            "CREATE TABLE IF NOT EXISTS {} ("
                            "id text PRIMARY KEY, "
                            "data jsonb NOT NULL, "
                            "created_at timestamptz NOT NULL DEFAULT now())"
                        ).format(sql.Identifier(name))
                    )
            self._conn.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise StoreUnavailableError(f"cannot prepare collections: {e}") from e

    def atomic_write(self, operations: Sequence[WriteOperation]) -> None:
        ops = list(operations)
        if not ops:
            return
        if len(ops) > self.max_write_operations:
            raise StoreWriteError(
                f"invalid argument: {len(ops)} operations exceeds limit {self.max_write_operations}"
            )

        by_collection: dict[str, list[tuple[str, Json]]] = {}
        for op in ops:
            by_collection.setdefault(op.collection, []).append((op.key, Json(op.record)))

        start_time = time.time()
        try:
            with self._conn.cursor() as cur:
                for collection, rows in by_collection.items():
                    query = sql.SQL("INSERT INTO {} (id, data) VALUES %s").format(
                        sql.Identifier(collection)
                    )
                    execute_values(cur, query, rows, page_size=len(rows))
            self._conn.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise StoreWriteError(str(e).strip()) from e
        finally:
            end_time = time.time()
            if self._metrics_callback is not None:
                self._metrics_callback(
                    WriteMetrics(
                        operations=len(ops),
                        elapsed_seconds=end_time - start_time,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )
        logger.debug(f"atomic write committed operations={len(ops)}")

    def existing_keys(self, collection: str, field: str, values: Iterable[str]) -> set[str]:
        wanted = sorted(set(values))
        if not wanted:
            return set()
        if len(wanted) > self.max_query_values:
            raise StoreQueryError(
                f"invalid argument: {len(wanted)} values exceeds limit {self.max_query_values}"
            )
        query = sql.SQL("SELECT DISTINCT data->>%s FROM {} WHERE data->>%s = ANY(%s)").format(
            sql.Identifier(collection)
        )
        try:
            with self._conn.cursor() as cur:
                cur.execute(query, (field, field, wanted))
                found = {r[0] for r in cur.fetchall()}
            self._conn.commit()
        except psycopg2.Error as e:
            self._rollback()
            raise StoreQueryError(str(e).strip()) from e
        return found

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except psycopg2.Error as e:  # pragma: no cover
            logger.warning(f"rollback failed: {e}")

    def close(self) -> None:
        if not self._conn.closed:
            self._conn.close()
