from __future__ import annotations

from datetime import date

from student_import.csvfile.template import REQUIRED_COLUMNS, Column
from student_import.services.file_validator import row_number_for, validate_rows, validate_student_file
from student_import.validation.row import DUPLICATE_IN_FILE_MESSAGE

TODAY = date(2026, 10, 19)


def _dup_messages(errors):
    return [e for e in errors if e.field == Column.ID_NUMBER and e.message == DUPLICATE_IN_FILE_MESSAGE]


def test_row_numbers_offset_by_header():
    assert row_number_for(0) == 2
    assert row_number_for(9) == 11


def test_valid_file(make_row, make_id, csv_bytes):
    rows = [make_row(idNumber=make_id(i)) for i in range(3)]
    parsed = validate_student_file(csv_bytes(rows), today=TODAY)
    assert parsed.structural_error is None
    assert parsed.errors == {}
    assert parsed.valid_count == 3
    assert parsed.invalid_count == 0
    assert not parsed.has_errors
    assert parsed.columns == list(REQUIRED_COLUMNS)


def test_mixed_file_counts(make_row, make_id, csv_bytes):
    rows = [
        make_row(idNumber=make_id(1)),
        make_row(idNumber="8001015009088"),
        make_row(idNumber=make_id(2), email="bad"),
    ]
    parsed = validate_student_file(csv_bytes(rows), today=TODAY)
    assert parsed.valid_count == 1
    assert parsed.invalid_count == 2
    assert list(parsed.errors) == [1, 2]
    assert parsed.errors[1][0].row == 3
    assert "checksum" in parsed.errors[1][0].message
    assert parsed.errors[2][0].field == Column.EMAIL
    assert parsed.valid_count + parsed.invalid_count == len(parsed.rows)


def test_every_occurrence_of_duplicate_flagged(make_row, make_id):
    dup = make_id(7)
    rows = [
        make_row(idNumber=dup),
        make_row(idNumber=make_id(8)),
        make_row(idNumber=dup),
        make_row(idNumber=dup),
    ]
    errors = validate_rows(rows, today=TODAY)
    assert list(errors) == [0, 2, 3]
    for index in (0, 2, 3):
        assert len(_dup_messages(errors[index])) == 1
        assert errors[index][0].row == row_number_for(index)


def test_duplicate_detected_through_formatting(make_row):
    rows = [make_row(idNumber="8001015009087"), make_row(idNumber="800101 5009 087")]
    errors = validate_rows(rows, today=TODAY)
    assert list(errors) == [0, 1]


def test_first_occurrence_keeps_its_own_errors(make_row, make_id):
    dup = make_id(3)
    rows = [make_row(idNumber=dup, email="nope"), make_row(idNumber=dup)]
    errors = validate_rows(rows, today=TODAY)
    fields = [e.field for e in errors[0]]
    assert fields[0] == Column.ID_NUMBER
    assert Column.EMAIL in fields


def test_missing_columns_structural(make_row, csv_bytes):
    cols = [c for c in REQUIRED_COLUMNS if c != Column.SURNAME]
    parsed = validate_student_file(csv_bytes([make_row()], columns=cols), today=TODAY)
    assert parsed.structural_error == "Missing required columns: surname"
    assert parsed.missing_columns == [Column.SURNAME]
    assert parsed.rows == []
    assert not parsed.is_structurally_valid


def test_empty_file_structural():
    parsed = validate_student_file(b"", today=TODAY)
    assert parsed.structural_error is not None
    assert parsed.structural_error.startswith("Failed to parse CSV")
    assert parsed.valid_count == 0


def test_header_only_file(csv_bytes):
    parsed = validate_student_file(csv_bytes([]), today=TODAY)
    assert parsed.structural_error is None
    assert parsed.rows == []
    assert parsed.valid_count == 0


def test_iter_errors_in_row_order(make_row, csv_bytes):
    rows = [make_row(idNumber="x"), make_row(), make_row(email="bad", idNumber="9202204720083")]
    parsed = validate_student_file(csv_bytes(rows), today=TODAY)
    assert [e.row for e in parsed.iter_errors()] == sorted(e.row for e in parsed.iter_errors())
