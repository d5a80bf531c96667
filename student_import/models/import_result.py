from __future__ import annotations

from dataclasses import dataclass

from .student import ValidatedStudent

"""Import result models.

ImportResult is the terminal summary of one commit run. It is assembled by
ImportResultBuilder (owned by a single BatchCommitter run) and frozen once
the last group has been processed.

Invariant: total_attempted == success_count + duplicate_count + error_count.
"""

__all__ = [
    "DuplicateStudent",
    "StudentImportError",
    "BatchProgress",
    "ImportResult",
    "ImportResultBuilder",
]


@dataclass(frozen=True)
class DuplicateStudent:
    id_number: str
    name: str
    reason: str


@dataclass(frozen=True)
class StudentImportError:
    """A student that passed validation but failed to commit."""
    error: str
    id_number: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot emitted after every group. Not retained."""
    current_group: int  # 1-based
    total_groups: int
    imported_count: int  # committed + skipped as duplicate so far
    total_count: int
    percentage: int


@dataclass(frozen=True)
class ImportResult:
    total_attempted: int
    success_count: int
    duplicate_count: int
    error_count: int
    duplicate_students: tuple[DuplicateStudent, ...] = ()
    errors: tuple[StudentImportError, ...] = ()
    cancelled: bool = False

    @property
    def is_consistent(self) -> bool:
        return self.total_attempted == (
            self.success_count + self.duplicate_count + self.error_count
        )

    @staticmethod
    def empty() -> ImportResult:
        return ImportResult(
            total_attempted=0, success_count=0, duplicate_count=0, error_count=0
        )


class ImportResultBuilder:
    """Running accumulator for one commit run."""

    def __init__(self) -> None:
        self.attempted = 0
        self.success_count = 0
        self.duplicates: list[DuplicateStudent] = []
        self.errors: list[StudentImportError] = []

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def add_attempted(self, count: int) -> None:
        self.attempted += count

    def add_success(self, count: int) -> None:
        self.success_count += count

    def add_duplicate(self, student: ValidatedStudent, reason: str) -> None:
        self.duplicates.append(
            DuplicateStudent(id_number=student.id_number, name=student.full_name, reason=reason)
        )

    def add_error(self, student: ValidatedStudent, message: str) -> None:
        self.errors.append(
            StudentImportError(error=message, id_number=student.id_number, name=student.full_name)
        )

    def build(self, cancelled: bool = False) -> ImportResult:
        return ImportResult(
            total_attempted=self.attempted,
            success_count=self.success_count,
            duplicate_count=self.duplicate_count,
            error_count=self.error_count,
            duplicate_students=tuple(self.duplicates),
            errors=tuple(self.errors),
            cancelled=cancelled,
        )
