from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

"""Column schema and downloadable template for the student import CSV.

The header is fixed and ordered. A file is rejected outright when any of these
columns is absent; extra columns are ignored. The sample row passes every
validator, the ID checksum included, so operators can use it as a reference.
"""

__all__ = [
    "Column",
    "REQUIRED_COLUMNS",
    "SAMPLE_ROW",
    "TEMPLATE_FILENAME",
    "missing_columns",
    "render_template",
    "write_template",
]

TEMPLATE_FILENAME = "student_import_template.csv"


class Column:
    ID_NUMBER = "idNumber"
    FIRST_NAMES = "firstNames"
    SURNAME = "surname"
    EMAIL = "email"
    PHONE_NUMBER = "phoneNumber"
    DATE_OF_BIRTH = "dateOfBirth"
    GENDER = "gender"
    INSTITUTION = "institution"
    STUDENT_NUMBER = "studentNumber"
    PROGRAM = "program"
    YEAR_OF_STUDY = "yearOfStudy"
    NSFAS_NUMBER = "nsfasNumber"
    FUNDED = "funded"
    FUNDED_AMOUNT = "fundedAmount"
    FUNDING_YEAR = "fundingYear"
    STREET = "homeAddress_street"
    SUBURB = "homeAddress_suburb"
    TOWN_CITY = "homeAddress_townCity"
    PROVINCE = "homeAddress_province"
    POSTAL_CODE = "homeAddress_postalCode"


REQUIRED_COLUMNS: tuple[str, ...] = (
    Column.ID_NUMBER,
    Column.FIRST_NAMES,
    Column.SURNAME,
    Column.EMAIL,
    Column.PHONE_NUMBER,
    Column.DATE_OF_BIRTH,
    Column.GENDER,
    Column.INSTITUTION,
    Column.STUDENT_NUMBER,
    Column.PROGRAM,
    Column.YEAR_OF_STUDY,
    Column.NSFAS_NUMBER,
    Column.FUNDED,
    Column.FUNDED_AMOUNT,
    Column.FUNDING_YEAR,
    Column.STREET,
    Column.SUBURB,
    Column.TOWN_CITY,
    Column.PROVINCE,
    Column.POSTAL_CODE,
)

SAMPLE_ROW: dict[str, str] = {
    Column.ID_NUMBER: "0001155800087",
    Column.FIRST_NAMES: "John Peter",
    Column.SURNAME: "Doe",
    Column.EMAIL: "john.doe@example.com",
    Column.PHONE_NUMBER: "0821234567",
    Column.DATE_OF_BIRTH: "2000-01-15",
    Column.GENDER: "Male",
    Column.INSTITUTION: "University of Cape Town",
    Column.STUDENT_NUMBER: "STU123456",
    Column.PROGRAM: "Computer Science",
    Column.YEAR_OF_STUDY: "2",
    Column.NSFAS_NUMBER: "NSFAS123456",
    Column.FUNDED: "Yes",
    Column.FUNDED_AMOUNT: "75000",
    Column.FUNDING_YEAR: "2025",
    Column.STREET: "123 Main Street",
    Column.SUBURB: "Rondebosch",
    Column.TOWN_CITY: "Cape Town",
    Column.PROVINCE: "Western Cape",
    Column.POSTAL_CODE: "7700",
}


def missing_columns(header: Iterable[str]) -> list[str]:
    """Required columns absent from ``header``, in template order."""
    present = {h.strip() for h in header}
    return [c for c in REQUIRED_COLUMNS if c not in present]


def _quote(cell: str) -> str:
    return '"' + cell.replace('"', '""') + '"'


def render_template() -> str:
    """Header plus one sample row, every cell quoted."""
    lines = [
        ",".join(_quote(c) for c in REQUIRED_COLUMNS),
        ",".join(_quote(SAMPLE_ROW[c]) for c in REQUIRED_COLUMNS),
    ]
    return "\n".join(lines) + "\n"


def write_template(path: Path) -> Path:
    if path.is_dir():
        path = path / TEMPLATE_FILENAME
    path.write_text(render_template(), encoding="utf-8")
    return path
