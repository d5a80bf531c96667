from __future__ import annotations

import logging
from collections.abc import Iterable

from ..store.base import StudentStore

"""Store-side duplicate detection.

The store's membership query takes a bounded number of values per call, so
candidates are split into sub-batches of ``chunk_size`` and the answers are
unioned.
"""

__all__ = [
    "DEFAULT_QUERY_CHUNK_SIZE",
    "chunked",
    "DuplicateDetector",
]

logger = logging.getLogger(__name__)

DEFAULT_QUERY_CHUNK_SIZE = 10


def chunked(items: list, size: int) -> list[list]:
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class DuplicateDetector:
    def __init__(
        self,
        store: StudentStore,
        collection: str = "students",
        field: str = "idNumber",
        chunk_size: int = DEFAULT_QUERY_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk size must be >= 1, got {chunk_size}")
        if chunk_size > store.max_query_values:
            raise ValueError(
                f"chunk size {chunk_size} exceeds store query limit {store.max_query_values}"
            )
        self.store = store
        self.collection = collection
        self.field = field
        self.chunk_size = chunk_size

    def find_existing(self, id_numbers: Iterable[str]) -> set[str]:
        """Return the identifiers that already exist in the store."""
        candidates = list(dict.fromkeys(id_numbers))
        existing: set[str] = set()
        for chunk in chunked(candidates, self.chunk_size):
            existing |= self.store.existing_keys(self.collection, self.field, chunk)
        logger.debug(f"duplicate check candidates={len(candidates)} existing={len(existing)}")
        return existing
