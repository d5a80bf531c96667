from __future__ import annotations

import logging
from datetime import date

from ..csvfile.reader import CsvParseError, MissingColumnsError, read_student_csv
from ..csvfile.template import Column
from ..models.student import RawRow
from ..models.validation import ParseResult, ValidationError
from ..validation.row import DUPLICATE_IN_FILE_MESSAGE, SeenIdentifiers, validate_student_row

"""File validation: the entry point of an import run.

Turns uploaded bytes into a ParseResult. Nothing here raises for bad input:
structural problems come back as ``structural_error`` and row problems as the
error map, so callers can always render a report.

Row numbers in diagnostics are CSV line numbers (row index + 2, the header
being line 1).
"""

__all__ = [
    "row_number_for",
    "validate_rows",
    "validate_student_file",
]

logger = logging.getLogger(__name__)


def row_number_for(index: int) -> int:
    return index + 2


def validate_rows(rows: list[RawRow], today: date | None = None) -> dict[int, list[ValidationError]]:
    """Validate already-parsed rows; returns the error map ordered by row index.

    Every row whose normalized ID occurs more than once is flagged, the first
    occurrence included, with exactly one duplicate diagnostic.
    """
    seen = SeenIdentifiers()
    collected: dict[int, list[ValidationError]] = {}

    for index, row in enumerate(rows):
        row_number = row_number_for(index)
        row_errors: list[ValidationError] = []
        if seen.record(index, row.get(Column.ID_NUMBER)):
            row_errors.append(
                ValidationError(row=row_number, field=Column.ID_NUMBER, message=DUPLICATE_IN_FILE_MESSAGE)
            )
        row_errors.extend(validate_student_row(row, row_number, today=today))
        if row_errors:
            collected[index] = row_errors

    # earlier occurrences only become duplicates once a later row collides
    for index in seen.colliding_indexes():
        row_errors = collected.setdefault(index, [])
        already = any(
            e.field == Column.ID_NUMBER and e.message == DUPLICATE_IN_FILE_MESSAGE for e in row_errors
        )
        if not already:
            row_errors.insert(
                0,
                ValidationError(
                    row=row_number_for(index), field=Column.ID_NUMBER, message=DUPLICATE_IN_FILE_MESSAGE
                ),
            )

    return {index: collected[index] for index in sorted(collected)}


def validate_student_file(data: bytes, today: date | None = None) -> ParseResult:
    """Parse and validate one uploaded student CSV."""
    try:
        sheet = read_student_csv(data)
    except MissingColumnsError as e:
        logger.warning(f"file rejected: {e}")
        return ParseResult.structural_failure(str(e), missing=e.missing, columns=e.columns)
    except CsvParseError as e:
        logger.warning(f"file rejected: {e}")
        return ParseResult.structural_failure(str(e))

    errors = validate_rows(sheet.rows, today=today)
    invalid_count = len(errors)
    valid_count = len(sheet.rows) - invalid_count
    logger.info(f"validated rows={len(sheet.rows)} valid={valid_count} invalid={invalid_count}")
    return ParseResult(
        rows=sheet.rows,
        errors=errors,
        valid_count=valid_count,
        invalid_count=invalid_count,
        columns=sheet.columns,
    )
