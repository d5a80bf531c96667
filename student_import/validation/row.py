from __future__ import annotations

from collections.abc import Callable
from datetime import date

from ..csvfile.template import Column
from ..models.student import RawRow
from ..models.validation import FieldResult, ValidationError
from . import fields
from .sa_id import normalize_id_number, validate_id_number

"""Row-level validation.

``validate_student_row`` runs every field validator over one CSV row and
collects all diagnostics (it never stops at the first failure).
``SeenIdentifiers`` is the intra-file uniqueness bookkeeping; one instance is
created per file validation and never shared between runs.
"""

__all__ = [
    "DUPLICATE_IN_FILE_MESSAGE",
    "SeenIdentifiers",
    "validate_student_row",
]

DUPLICATE_IN_FILE_MESSAGE = "Duplicate ID number within this CSV file"


class SeenIdentifiers:
    """Tracks which row indexes carry each normalized ID number."""

    def __init__(self) -> None:
        self._rows_by_id: dict[str, list[int]] = {}

    def record(self, index: int, raw_id: str | None) -> bool:
        """Register a row; True when the ID was already seen in an earlier row."""
        cleaned = normalize_id_number(raw_id)
        if not cleaned:
            return False
        indexes = self._rows_by_id.setdefault(cleaned, [])
        indexes.append(index)
        return len(indexes) > 1

    def colliding_indexes(self) -> list[int]:
        """Every row index whose ID occurs more than once, first occurrences included."""
        found: list[int] = []
        for indexes in self._rows_by_id.values():
            if len(indexes) > 1:
                found.extend(indexes)
        return sorted(found)


def _check(
    errors: list[ValidationError],
    row_number: int,
    field: str,
    result: FieldResult,
) -> None:
    if not result.valid:
        errors.append(ValidationError(row=row_number, field=field, message=result.error or "Invalid value"))


def _required_address_part(
    errors: list[ValidationError], row: RawRow, row_number: int, column: str, message: str
) -> None:
    value = row.get(column)
    if value is None or value.strip() == "":
        errors.append(ValidationError(row=row_number, field=column, message=message))


def validate_student_row(row: RawRow, row_number: int, today: date | None = None) -> list[ValidationError]:
    """Return every field diagnostic for one row (empty list when valid)."""
    errors: list[ValidationError] = []
    get = row.get

    _check(errors, row_number, Column.ID_NUMBER, validate_id_number(get(Column.ID_NUMBER)))
    _check(errors, row_number, Column.FIRST_NAMES,
           fields.validate_required_string(get(Column.FIRST_NAMES), "First names"))
    _check(errors, row_number, Column.SURNAME,
           fields.validate_required_string(get(Column.SURNAME), "Surname"))
    _check(errors, row_number, Column.FUNDED, fields.validate_funded(get(Column.FUNDED)))

    optional: list[tuple[str, Callable[[str | None], FieldResult]]] = [
        (Column.EMAIL, fields.validate_email),
        (Column.PHONE_NUMBER, fields.validate_phone_number),
        (Column.DATE_OF_BIRTH, lambda v: fields.validate_date_of_birth(v, today=today)),
        (Column.GENDER, fields.validate_gender),
        (Column.YEAR_OF_STUDY, fields.validate_year_of_study),
        (Column.FUNDED_AMOUNT, fields.validate_funded_amount),
        (Column.FUNDING_YEAR, fields.validate_funding_year),
        (Column.PROVINCE, fields.validate_province),
    ]
    for column, validator in optional:
        _check(errors, row_number, column, validator(get(column)))

    _required_address_part(errors, row, row_number, Column.STREET, "Street address is required")
    _required_address_part(errors, row, row_number, Column.TOWN_CITY, "Town/City is required")
    _required_address_part(errors, row, row_number, Column.PROVINCE, "Province is required")
    return errors
