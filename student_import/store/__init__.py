"""Persistence backends for committed students."""

from .base import (
    StoreError,
    StoreQueryError,
    StoreUnavailableError,
    StoreWriteError,
    StudentStore,
    WriteOperation,
)
from .memory import InMemoryStudentStore

__all__ = [
    "InMemoryStudentStore",
    "StoreError",
    "StoreQueryError",
    "StoreUnavailableError",
    "StoreWriteError",
    "StudentStore",
    "WriteOperation",
]
