from __future__ import annotations

import json
from pathlib import Path

from student_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from student_import.models.import_result import DuplicateStudent, ImportResult, StudentImportError
from student_import.models.validation import ParseResult, ValidationError

KEYS = {"timestamp", "file", "row", "field", "error_type", "message"}


def _lines(path: Path) -> list[dict]:
    return [json.loads(x) for x in path.read_text(encoding="utf-8").splitlines()]


def test_error_record_json_line():
    rec = ErrorRecord.create("students.csv", 4, "email", "VALIDATION_ERROR", "Invalid email format")
    data = json.loads(rec.to_json_line())
    assert set(data) == KEYS
    assert data["row"] == 4
    assert data["timestamp"].endswith("Z")


def test_flush_nothing_returns_none(temp_workdir: Path):
    assert ErrorLogBuffer().flush() is None
    assert list((temp_workdir / "logs").iterdir()) == []


def test_flush_writes_and_clears(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.csv", 2, "idNumber", "VALIDATION_ERROR", "bad"))
    buf.append(ErrorRecord.create("a.csv", 3, "email", "VALIDATION_ERROR", "bad"))
    path = buf.flush()
    assert path is not None
    assert path.parent == Path("./logs")
    assert path.name.startswith("errors-")
    assert len(_lines(path)) == 2
    assert len(buf) == 0

    buf.append(ErrorRecord.create("a.csv", 5, "email", "VALIDATION_ERROR", "bad"))
    assert buf.flush() == path
    assert len(_lines(path)) == 3


def test_record_parse_result(tmp_path: Path):
    parsed = ParseResult(
        rows=[{}, {}],
        errors={0: [ValidationError(2, "idNumber", "x"), ValidationError(2, "email", "y")]},
        valid_count=1,
        invalid_count=1,
    )
    buf = ErrorLogBuffer(tmp_path)
    buf.record_parse_result("s.csv", parsed)
    lines = _lines(buf.flush())
    assert [(r["row"], r["field"]) for r in lines] == [(2, "idNumber"), (2, "email")]
    assert {r["error_type"] for r in lines} == {"VALIDATION_ERROR"}


def test_record_structural_failures(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.record_parse_result("a.csv", ParseResult.structural_failure("Missing required columns: email", ["email"]))
    buf.record_parse_result("b.csv", ParseResult.structural_failure("Failed to parse CSV: file is empty"))
    lines = _lines(buf.flush())
    assert [r["error_type"] for r in lines] == ["MISSING_COLUMNS", "FILE_UNREADABLE"]
    assert all(r["row"] == -1 for r in lines)


def test_record_import_result(tmp_path: Path):
    result = ImportResult(
        total_attempted=2,
        success_count=0,
        duplicate_count=1,
        error_count=1,
        duplicate_students=(DuplicateStudent("8001015009087", "A B", "exists"),),
        errors=(StudentImportError("Network error", "9202204720083", "C D"),),
    )
    buf = ErrorLogBuffer(tmp_path)
    buf.record_import_result("s.csv", result)
    lines = _lines(buf.flush())
    assert [r["error_type"] for r in lines] == ["DUPLICATE", "COMMIT_ERROR"]
    assert lines[0]["message"] == "8001015009087 A B: exists"
