from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from typing import Any

from .base import StoreQueryError, StoreWriteError, StudentStore, WriteOperation

"""In-memory store.

Used in mock mode (``DISABLE_DB_CONNECT=1`` or ``store.backend: memory``) and
by the test suite. It enforces the same limits a real backend documents so
that oversize writes and queries surface in tests.
"""

__all__ = [
    "InMemoryStudentStore",
]


class InMemoryStudentStore(StudentStore):
    def __init__(self, max_write_operations: int = 500, max_query_values: int = 10) -> None:
        self.max_write_operations = max_write_operations
        self.max_query_values = max_query_values
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.write_calls = 0
        self.query_calls = 0
        self._lock = threading.Lock()

    def atomic_write(self, operations: Sequence[WriteOperation]) -> None:
        ops = list(operations)
        if len(ops) > self.max_write_operations:
            raise StoreWriteError(
                f"invalid-argument: batch of {len(ops)} operations exceeds limit {self.max_write_operations}"
            )
        with self._lock:
            self.write_calls += 1
            for op in ops:
                existing = self.collections.get(op.collection, {})
                if op.key in existing:
                    raise StoreWriteError(f"already-exists: {op.collection}/{op.key}")
            # validated up front so a rejected write leaves nothing behind
            for op in ops:
                self.collections.setdefault(op.collection, {})[op.key] = dict(op.record)

    def existing_keys(self, collection: str, field: str, values: Iterable[str]) -> set[str]:
        wanted = set(values)
        if len(wanted) > self.max_query_values:
            raise StoreQueryError(
                f"invalid-argument: query of {len(wanted)} values exceeds limit {self.max_query_values}"
            )
        with self._lock:
            self.query_calls += 1
            docs = self.collections.get(collection, {})
            return {doc[field] for doc in docs.values() if doc.get(field) in wanted}

    def documents(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self.collections.get(collection, {}).values())
