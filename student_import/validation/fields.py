from __future__ import annotations

import re
from datetime import date

from ..models.validation import FieldResult

"""Field validators for the student CSV.

One function per column. Each returns a FieldResult carrying either the
normalized value or a diagnostic that tells the operator what a correct value
looks like. Optional fields accept empty input and normalize it to None.
Validators are pure and idempotent so the converter can safely re-run them.
"""

__all__ = [
    "PROVINCES",
    "GENDERS",
    "MIN_AGE",
    "MAX_AGE",
    "validate_email",
    "validate_phone_number",
    "validate_gender",
    "validate_funded",
    "validate_year_of_study",
    "validate_date_of_birth",
    "validate_province",
    "validate_funded_amount",
    "validate_funding_year",
    "validate_required_string",
    "validate_optional_string",
]

PROVINCES = (
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "Northern Cape",
    "North West",
    "Western Cape",
)

GENDERS = ("Male", "Female", "Other")

MIN_AGE = 16
MAX_AGE = 70

MIN_YEAR_OF_STUDY = 1
MAX_YEAR_OF_STUDY = 10

MIN_FUNDING_YEAR = 2000
MAX_FUNDING_YEAR = 2100

_FUNDED_TRUE = {"yes", "y", "true"}
_FUNDED_FALSE = {"no", "n", "false"}

_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PHONE = re.compile(r"0[0-9]{9}")
_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")
_SEPARATORS = re.compile(r"[\s-]")


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _parse_int(value: str) -> int | None:
    text = value.strip()
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def validate_email(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    cleaned = value.strip()
    if not _EMAIL.fullmatch(cleaned):
        return FieldResult.fail("Invalid email format, e.g. john.doe@example.com")
    return FieldResult.ok(cleaned)


def validate_phone_number(value: str | None) -> FieldResult:
    """South African number: 10 digits starting with 0 once separators are removed."""
    if _blank(value):
        return FieldResult.ok(None)
    cleaned = _SEPARATORS.sub("", value)
    if not _PHONE.fullmatch(cleaned):
        return FieldResult.fail("Phone number must be 10 digits starting with 0, e.g. 0821234567")
    return FieldResult.ok(cleaned)


def validate_gender(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    wanted = value.strip().lower()
    for gender in GENDERS:
        if gender.lower() == wanted:
            return FieldResult.ok(gender)
    return FieldResult.fail("Gender must be Male, Female, or Other")


def validate_funded(value: str | None) -> FieldResult:
    """Required Yes/No flag resolved to a bool."""
    if _blank(value):
        return FieldResult.fail("Funded field is required (Yes or No)")
    normalized = value.strip().lower()
    if normalized in _FUNDED_TRUE:
        return FieldResult.ok(True)
    if normalized in _FUNDED_FALSE:
        return FieldResult.ok(False)
    return FieldResult.fail("Funded must be Yes or No (also accepted: Y/N, True/False)")


def validate_year_of_study(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    year = _parse_int(value)
    if year is None:
        return FieldResult.fail("Year of study must be a whole number, e.g. 2")
    if not MIN_YEAR_OF_STUDY <= year <= MAX_YEAR_OF_STUDY:
        return FieldResult.fail(
            f"Year of study must be between {MIN_YEAR_OF_STUDY} and {MAX_YEAR_OF_STUDY}"
        )
    return FieldResult.ok(year)


def _age_on(born: date, today: date) -> int:
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def validate_date_of_birth(value: str | None, today: date | None = None) -> FieldResult:
    """Strict YYYY-MM-DD, a real calendar date, and an age of 16-70 on ``today``."""
    if _blank(value):
        return FieldResult.ok(None)
    text = value.strip()
    if not _ISO_DATE.fullmatch(text):
        return FieldResult.fail("Date of birth must be in YYYY-MM-DD format, e.g. 2000-01-15")
    try:
        born = date.fromisoformat(text)
    except ValueError:
        return FieldResult.fail(f"Date of birth '{text}' is not a real calendar date")
    age = _age_on(born, today or date.today())
    if not MIN_AGE <= age <= MAX_AGE:
        return FieldResult.fail(f"Age must be between {MIN_AGE} and {MAX_AGE} (got {age})")
    return FieldResult.ok(text)


def validate_province(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    wanted = value.strip().lower()
    for province in PROVINCES:
        if province.lower() == wanted:
            return FieldResult.ok(province)
    return FieldResult.fail(f"Province must be one of: {', '.join(PROVINCES)}")


def validate_funded_amount(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    text = value.strip()
    if not _DECIMAL.fullmatch(text):
        return FieldResult.fail("Funded amount must be a number, e.g. 75000")
    amount = float(text)
    if amount < 0:
        return FieldResult.fail("Funded amount must be positive, e.g. 75000")
    return FieldResult.ok(amount)


def validate_funding_year(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    year = _parse_int(value)
    if year is None:
        return FieldResult.fail("Funding year must be a 4-digit year, e.g. 2025")
    if not MIN_FUNDING_YEAR <= year <= MAX_FUNDING_YEAR:
        return FieldResult.fail(
            f"Funding year must be between {MIN_FUNDING_YEAR} and {MAX_FUNDING_YEAR}"
        )
    return FieldResult.ok(year)


def validate_required_string(value: str | None, field_name: str) -> FieldResult:
    if _blank(value):
        return FieldResult.fail(f"{field_name} is required")
    return FieldResult.ok(value.strip())


def validate_optional_string(value: str | None) -> FieldResult:
    if _blank(value):
        return FieldResult.ok(None)
    return FieldResult.ok(value.strip())
