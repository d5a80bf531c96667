from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .student import RawRow

"""Validation result models.

FieldResult is the return value of every field validator. ParseResult is what
the File Validator hands back for one uploaded file: all rows, the per-row
error map and the valid/invalid split. Structural failures (missing columns,
unreadable bytes) are reported through ``structural_error`` rather than raised.
"""

__all__ = [
    "FieldResult",
    "ValidationError",
    "ParseResult",
]


@dataclass(frozen=True)
class FieldResult:
    valid: bool
    value: Any = None
    error: str | None = None

    @staticmethod
    def ok(value: Any = None) -> FieldResult:
        return FieldResult(valid=True, value=value)

    @staticmethod
    def fail(error: str) -> FieldResult:
        return FieldResult(valid=False, error=error)


@dataclass(frozen=True)
class ValidationError:
    """A single field diagnostic for one CSV line."""
    row: int  # 1-based line number in the file (header is line 1)
    field: str
    message: str


@dataclass(frozen=True)
class ParseResult:
    rows: list[RawRow]
    errors: dict[int, list[ValidationError]]  # row index (0-based) -> diagnostics
    valid_count: int
    invalid_count: int
    columns: list[str] = field(default_factory=list)
    structural_error: str | None = None
    missing_columns: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.structural_error is not None or bool(self.errors)

    @property
    def is_structurally_valid(self) -> bool:
        return self.structural_error is None

    def iter_errors(self):
        """Yield every ValidationError in row order."""
        for index in self.errors:
            yield from self.errors[index]

    @staticmethod
    def structural_failure(message: str, missing: list[str] | None = None,
                           columns: list[str] | None = None) -> ParseResult:
        return ParseResult(
            rows=[],
            errors={},
            valid_count=0,
            invalid_count=0,
            columns=list(columns or []),
            structural_error=message,
            missing_columns=list(missing or []),
        )
