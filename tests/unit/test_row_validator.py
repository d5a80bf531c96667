from __future__ import annotations

from datetime import date

from student_import.csvfile.template import SAMPLE_ROW, Column
from student_import.validation.row import SeenIdentifiers, validate_student_row

TODAY = date(2026, 10, 19)


def test_sample_row_is_valid():
    assert validate_student_row(dict(SAMPLE_ROW), 2, today=TODAY) == []


def test_all_diagnostics_collected(make_row):
    row = make_row(
        idNumber="123",
        email="not-an-email",
        phoneNumber="12345",
        funded="perhaps",
        homeAddress_province="Atlantis",
    )
    errors = validate_student_row(row, 5, today=TODAY)
    assert {e.field for e in errors} == {
        Column.ID_NUMBER,
        Column.EMAIL,
        Column.PHONE_NUMBER,
        Column.FUNDED,
        Column.PROVINCE,
    }
    assert all(e.row == 5 for e in errors)


def test_required_fields(make_row):
    row = make_row(
        idNumber="",
        firstNames="",
        surname=" ",
        funded="",
        homeAddress_street="",
        homeAddress_townCity="",
        homeAddress_province="",
    )
    messages = {e.field: e.message for e in validate_student_row(row, 2, today=TODAY)}
    assert messages[Column.ID_NUMBER] == "ID number is required"
    assert messages[Column.FIRST_NAMES] == "First names is required"
    assert messages[Column.SURNAME] == "Surname is required"
    assert messages[Column.STREET] == "Street address is required"
    assert messages[Column.TOWN_CITY] == "Town/City is required"
    assert messages[Column.PROVINCE] == "Province is required"
    assert Column.FUNDED in messages


def test_optional_fields_may_be_blank(make_row):
    row = make_row(
        email="",
        phoneNumber="",
        dateOfBirth="",
        gender="",
        institution="",
        studentNumber="",
        program="",
        yearOfStudy="",
        nsfasNumber="",
        fundedAmount="",
        fundingYear="",
        homeAddress_suburb="",
        homeAddress_postalCode="",
    )
    assert validate_student_row(row, 2, today=TODAY) == []


def test_missing_keys_treated_as_blank():
    row = {Column.ID_NUMBER: "8001015009087"}
    fields_with_errors = {e.field for e in validate_student_row(row, 2, today=TODAY)}
    assert Column.ID_NUMBER not in fields_with_errors
    assert Column.FIRST_NAMES in fields_with_errors


def test_input_row_not_mutated(make_row):
    row = make_row(phoneNumber="082 123 4567", homeAddress_province="western cape")
    before = dict(row)
    validate_student_row(row, 2, today=TODAY)
    assert row == before


def test_seen_identifiers_flags_repeats():
    seen = SeenIdentifiers()
    assert seen.record(0, "8001015009087") is False
    assert seen.record(1, "9202204720083") is False
    assert seen.record(2, "800101 5009 087") is True
    assert seen.record(3, "") is False
    assert seen.record(4, "8001015009087") is True
    assert seen.colliding_indexes() == [0, 2, 4]
