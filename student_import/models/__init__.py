"""Domain models for the student bulk-import pipeline.

Rows read from the uploaded CSV, validation diagnostics, normalized student
entities and the per-run import result all live here.
"""

from .error_record import ErrorRecord
from .import_result import (
    BatchProgress,
    DuplicateStudent,
    ImportResult,
    ImportResultBuilder,
    StudentImportError,
)
from .student import CommittedStudent, HomeAddress, RawRow, ValidatedStudent
from .validation import FieldResult, ParseResult, ValidationError

__all__ = [
    # Input / entities
    "RawRow",
    "HomeAddress",
    "ValidatedStudent",
    "CommittedStudent",
    # Validation
    "FieldResult",
    "ValidationError",
    "ParseResult",
    # Results
    "DuplicateStudent",
    "StudentImportError",
    "BatchProgress",
    "ImportResult",
    "ImportResultBuilder",
    "ErrorRecord",
]
