from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""Store contracts consumed by the batch committer.

Two capabilities are needed from a backend:

- ``atomic_write``: persist a list of (collection, key, record) operations all
  or nothing. Callers keep the list under ``max_write_operations``.
- ``existing_keys``: given candidate values for one field, return those that
  already exist. At most ``max_query_values`` candidates per call.
"""

__all__ = [
    "StoreError",
    "StoreWriteError",
    "StoreQueryError",
    "StoreUnavailableError",
    "WriteOperation",
    "StudentStore",
]


class StoreError(Exception):
    """Base exception for store failures."""


class StoreWriteError(StoreError):
    """An atomic write was rejected; nothing from it was persisted."""


class StoreQueryError(StoreError):
    """An existence query failed."""


class StoreUnavailableError(StoreError):
    """No store is configured or it cannot be reached at all. Aborts a run."""


@dataclass(frozen=True)
class WriteOperation:
    collection: str
    key: str
    record: dict[str, Any]


class StudentStore(ABC):
    max_write_operations: int = 500
    max_query_values: int = 10

    @abstractmethod
    def atomic_write(self, operations: Sequence[WriteOperation]) -> None:
        """Persist every operation or none of them.

        Raises:
            StoreWriteError: the write was rejected
        """

    @abstractmethod
    def existing_keys(self, collection: str, field: str, values: Iterable[str]) -> set[str]:
        """Subset of ``values`` already stored under ``field`` in ``collection``.

        Raises:
            StoreQueryError: the query failed
        """

    def close(self) -> None:  # pragma: no cover (trivial)
        pass
