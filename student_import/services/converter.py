from __future__ import annotations

from collections.abc import Mapping
from datetime import date

from ..csvfile.template import Column
from ..models.student import HomeAddress, RawRow, ValidatedStudent
from ..models.validation import ValidationError
from ..validation import fields
from ..validation.sa_id import validate_id_number

"""Row-to-entity conversion.

Kept apart from validation: it re-runs the (idempotent) field validators only
to obtain normalized values, and assumes any row outside the error map is
valid.
"""

__all__ = [
    "convert_row",
    "convert_to_students",
]


def _optional(row: RawRow, column: str) -> str | None:
    return fields.validate_optional_string(row.get(column)).value


def convert_row(row: RawRow, today: date | None = None) -> ValidatedStudent:
    """Build a ValidatedStudent from a row that passed validation."""
    province = fields.validate_province(row.get(Column.PROVINCE)).value
    address = HomeAddress(
        street=row[Column.STREET].strip(),
        suburb=_optional(row, Column.SUBURB),
        town_city=row[Column.TOWN_CITY].strip(),
        province=province or row[Column.PROVINCE].strip(),
        postal_code=_optional(row, Column.POSTAL_CODE),
    )
    return ValidatedStudent(
        id_number=validate_id_number(row.get(Column.ID_NUMBER)).value,
        first_names=row[Column.FIRST_NAMES].strip(),
        surname=row[Column.SURNAME].strip(),
        funded=fields.validate_funded(row.get(Column.FUNDED)).value,
        home_address=address,
        email=fields.validate_email(row.get(Column.EMAIL)).value,
        phone_number=fields.validate_phone_number(row.get(Column.PHONE_NUMBER)).value,
        date_of_birth=fields.validate_date_of_birth(row.get(Column.DATE_OF_BIRTH), today=today).value,
        gender=fields.validate_gender(row.get(Column.GENDER)).value,
        institution=_optional(row, Column.INSTITUTION),
        student_number=_optional(row, Column.STUDENT_NUMBER),
        program=_optional(row, Column.PROGRAM),
        year_of_study=fields.validate_year_of_study(row.get(Column.YEAR_OF_STUDY)).value,
        nsfas_number=_optional(row, Column.NSFAS_NUMBER),
        funded_amount=fields.validate_funded_amount(row.get(Column.FUNDED_AMOUNT)).value,
        funding_year=fields.validate_funding_year(row.get(Column.FUNDING_YEAR)).value,
    )


def convert_to_students(
    rows: list[RawRow],
    error_map: Mapping[int, list[ValidationError]],
    today: date | None = None,
) -> list[ValidatedStudent]:
    """Convert every row not present in ``error_map``, preserving order."""
    return [convert_row(row, today=today) for index, row in enumerate(rows) if index not in error_map]
