from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Student entity models.

A RawRow is one CSV line keyed by column name. ValidatedStudent is only ever
built from a row with zero validation errors, so its invariants (13-digit
checksummed ID, resolved funded flag, in-range numbers) hold by construction.
"""

__all__ = [
    "RawRow",
    "HomeAddress",
    "ValidatedStudent",
    "CommittedStudent",
]

RawRow = dict[str, str]


@dataclass(frozen=True)
class HomeAddress:
    """Home address owned by exactly one ValidatedStudent."""
    street: str
    town_city: str
    province: str  # canonical province name
    suburb: str | None = None
    postal_code: str | None = None


@dataclass(frozen=True)
class ValidatedStudent:
    """Normalized student ready for persistence."""
    id_number: str  # 13 digits, checksum verified
    first_names: str
    surname: str
    funded: bool
    home_address: HomeAddress
    email: str | None = None
    phone_number: str | None = None  # 10 digits, leading 0
    date_of_birth: str | None = None  # YYYY-MM-DD
    gender: str | None = None  # Male / Female / Other
    institution: str | None = None
    student_number: str | None = None
    program: str | None = None
    year_of_study: int | None = None
    nsfas_number: str | None = None
    funded_amount: float | None = None
    funding_year: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_names} {self.surname}"

    def address_record(self, address_id: str) -> dict[str, Any]:
        """Document body for the address collection."""
        addr = self.home_address
        return {
            "addressId": address_id,
            "street": addr.street,
            "suburb": addr.suburb,
            "townCity": addr.town_city,
            "province": addr.province,
            "postalCode": addr.postal_code,
            "country": "South Africa",
        }

    def student_record(self, student_id: str, address_id: str) -> dict[str, Any]:
        """Document body for the student collection, linked to its address."""
        return {
            "studentId": student_id,
            "idNumber": self.id_number,
            "firstNames": self.first_names,
            "surname": self.surname,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender,
            "institution": self.institution,
            "studentNumber": self.student_number,
            "program": self.program,
            "yearOfStudy": self.year_of_study,
            "nsfasNumber": self.nsfas_number,
            "funded": self.funded,
            "fundedAmount": self.funded_amount,
            "fundingYear": self.funding_year,
            "homeAddressId": address_id,
            "status": "Pending",  # imported students always start pending
        }


@dataclass(frozen=True)
class CommittedStudent:
    """A student whose group write succeeded, with the keys it was stored under."""
    student_id: str
    address_id: str
    student: ValidatedStudent
