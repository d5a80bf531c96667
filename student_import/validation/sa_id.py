from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from ..models.validation import FieldResult

"""South African national ID number validation.

Format: YYMMDD SSSS C A Z (13 digits)

- YYMMDD: date of birth
- SSSS: sequence number (0000-4999 female, 5000-9999 male)
- C: citizenship (0 SA citizen, 1 permanent resident)
- A: historical race digit, now usually 8
- Z: Luhn check digit over the first 12 digits

``validate_id_number`` is what the import pipeline uses: it checks shape,
the YYMMDD month/day ranges and the check digit, and tells the operator which
final digit would have been correct. ``describe_id_number`` goes further and
resolves the full birth date (with century), gender and citizenship.
"""

__all__ = [
    "ID_LENGTH",
    "IdNumberDetails",
    "normalize_id_number",
    "luhn_check_digit",
    "validate_id_number",
    "describe_id_number",
    "format_id_number",
    "looks_like_id_number",
]

ID_LENGTH = 13

_SEPARATORS = re.compile(r"[\s-]")
_DIGITS = re.compile(r"[0-9]{13}")


@dataclass(frozen=True)
class IdNumberDetails:
    date_of_birth: date
    gender: str  # Male / Female
    citizenship: str  # SA Citizen / Permanent Resident


def normalize_id_number(value: str | None) -> str:
    """Strip whitespace and hyphens."""
    if not value:
        return ""
    return _SEPARATORS.sub("", value)


def luhn_check_digit(payload: str) -> int:
    """Compute the check digit for a 12-digit payload.

    Every second digit counted from the right of the payload is doubled (the
    rightmost payload digit included), 9 is subtracted from doubles above 9,
    and the check digit brings the total to a multiple of ten.
    """
    total = 0
    for offset, ch in enumerate(reversed(payload)):
        digit = int(ch)
        if offset % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - total % 10) % 10


def validate_id_number(value: str | None) -> FieldResult:
    cleaned = normalize_id_number(value)
    if not cleaned:
        return FieldResult.fail("ID number is required")

    if len(cleaned) != ID_LENGTH:
        return FieldResult.fail(
            f"ID number must be exactly 13 digits (got {len(cleaned)}), e.g. 8001015009087"
        )
    # str.isdigit() accepts non-ASCII digits, the regex does not
    if not _DIGITS.fullmatch(cleaned):
        return FieldResult.fail("ID number must contain only digits 0-9, e.g. 8001015009087")

    month = int(cleaned[2:4])
    day = int(cleaned[4:6])
    if not 1 <= month <= 12:
        return FieldResult.fail(
            f"Invalid month '{cleaned[2:4]}' in ID number: digits 3-4 must be 01-12 (YYMMDD)"
        )
    if not 1 <= day <= 31:
        return FieldResult.fail(
            f"Invalid day '{cleaned[4:6]}' in ID number: digits 5-6 must be 01-31 (YYMMDD)"
        )

    expected = luhn_check_digit(cleaned[:12])
    if expected != int(cleaned[12]):
        return FieldResult.fail(
            f"Invalid ID number checksum: final digit is {cleaned[12]}, "
            f"expected {expected} ({cleaned[:12]}{expected})"
        )
    return FieldResult.ok(cleaned)


def _resolve_birth_date(yymmdd: str, today: date) -> date | None:
    year = int(yymmdd[0:2])
    month = int(yymmdd[2:4])
    day = int(yymmdd[4:6])
    # YY greater than this year's two digits can only be last century
    full_year = 1900 + year if year > today.year % 100 else 2000 + year
    try:
        born = date(full_year, month, day)
    except ValueError:
        return None
    if born > today:
        return None
    return born


def describe_id_number(value: str | None, today: date | None = None) -> IdNumberDetails | None:
    """Return birth date, gender and citizenship for a valid ID, else None."""
    result = validate_id_number(value)
    if not result.valid:
        return None
    cleaned: str = result.value
    born = _resolve_birth_date(cleaned[:6], today or date.today())
    if born is None:
        return None
    gender = "Male" if int(cleaned[6:10]) >= 5000 else "Female"
    citizenship = "SA Citizen" if cleaned[10] == "0" else "Permanent Resident"
    return IdNumberDetails(date_of_birth=born, gender=gender, citizenship=citizenship)


def format_id_number(value: str) -> str:
    """Render as ``YYMMDD SSSS C A Z``; anything not 13 characters is returned as-is."""
    cleaned = normalize_id_number(value)
    if len(cleaned) != ID_LENGTH:
        return value
    return f"{cleaned[0:6]} {cleaned[6:10]} {cleaned[10]} {cleaned[11]} {cleaned[12]}"


def looks_like_id_number(value: str | None) -> bool:
    return bool(_DIGITS.fullmatch(normalize_id_number(value)))
