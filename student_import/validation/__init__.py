"""Field, row and national-ID validators."""

from .fields import (
    PROVINCES,
    validate_date_of_birth,
    validate_email,
    validate_funded,
    validate_funded_amount,
    validate_funding_year,
    validate_gender,
    validate_optional_string,
    validate_phone_number,
    validate_province,
    validate_required_string,
    validate_year_of_study,
)
from .row import SeenIdentifiers, validate_student_row
from .sa_id import (
    IdNumberDetails,
    describe_id_number,
    format_id_number,
    looks_like_id_number,
    luhn_check_digit,
    normalize_id_number,
    validate_id_number,
)

__all__ = [
    "PROVINCES",
    "IdNumberDetails",
    "SeenIdentifiers",
    "describe_id_number",
    "format_id_number",
    "looks_like_id_number",
    "luhn_check_digit",
    "normalize_id_number",
    "validate_date_of_birth",
    "validate_email",
    "validate_funded",
    "validate_funded_amount",
    "validate_funding_year",
    "validate_gender",
    "validate_id_number",
    "validate_optional_string",
    "validate_phone_number",
    "validate_province",
    "validate_required_string",
    "validate_student_row",
    "validate_year_of_study",
]
