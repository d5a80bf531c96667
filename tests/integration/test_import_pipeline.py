from __future__ import annotations

import math
from datetime import date

from student_import.models.import_result import BatchProgress
from student_import.services.committer import BatchCommitter
from student_import.services.converter import convert_to_students
from student_import.services.crm_sync import CrmLinkage, CrmSyncDispatcher
from student_import.services.file_validator import validate_student_file
from student_import.store.memory import InMemoryStudentStore

"""End-to-end pipeline: bytes -> validation -> conversion -> grouped commit."""

TODAY = date(2026, 10, 19)


def _run(data: bytes, store: InMemoryStudentStore, group_size: int = 200, **kw):
    parsed = validate_student_file(data, today=TODAY)
    students = convert_to_students(parsed.rows, parsed.errors, today=TODAY)
    result = BatchCommitter(store, group_size=group_size).commit(students, **kw)
    return parsed, students, result


def test_three_row_example(make_row, csv_bytes):
    rows = [
        make_row(idNumber="9202204720083", homeAddress_province="Gondwana"),
        make_row(idNumber="8001015009088"),
        make_row(idNumber="8001015009087"),
    ]
    store = InMemoryStudentStore()
    parsed, students, result = _run(csv_bytes(rows), store, group_size=1)

    assert parsed.invalid_count == 2
    assert parsed.valid_count == 1
    assert [s.id_number for s in students] == ["8001015009087"]
    assert (result.success_count, result.duplicate_count, result.error_count) == (1, 0, 0)
    assert result.is_consistent


def test_large_file_grouped(make_row, make_id, csv_bytes):
    n = 450
    rows = [make_row(idNumber=make_id(i), firstNames=f"Student{i}") for i in range(n)]
    store = InMemoryStudentStore()
    seen: list[BatchProgress] = []
    parsed, students, result = _run(csv_bytes(rows), store, on_progress=seen.append)

    assert parsed.errors == {}
    assert [s.first_names for s in students] == [f"Student{i}" for i in range(n)]
    assert len(seen) == math.ceil(n / 200) == 3
    assert seen[-1].percentage == 100
    assert seen[-1].imported_count == n
    assert result.success_count == n
    assert store.write_calls == 3
    # 200 students per group -> 400 operations, within the 500 limit
    assert len(store.documents("students")) == n
    assert len(store.documents("addresses")) == n


def test_reimport_reports_duplicates(make_row, make_id, csv_bytes):
    data = csv_bytes([make_row(idNumber=make_id(i)) for i in range(30)])
    store = InMemoryStudentStore()
    _, _, first = _run(data, store, group_size=10)
    writes = store.write_calls
    _, _, second = _run(data, store, group_size=10)

    assert first.success_count == 30
    assert second.success_count == 0
    assert second.duplicate_count == 30
    assert store.write_calls == writes
    assert second.is_consistent


def test_in_file_duplicates_never_committed(make_row, make_id, csv_bytes):
    dup = make_id(1)
    rows = [make_row(idNumber=dup), make_row(idNumber=make_id(2)), make_row(idNumber=dup)]
    store = InMemoryStudentStore()
    parsed, students, result = _run(csv_bytes(rows), store)
    assert list(parsed.errors) == [0, 2]
    assert result.success_count == 1
    assert {d["idNumber"] for d in store.documents("students")} == {make_id(2)}


def test_committed_students_forwarded_to_crm(make_row, make_id, csv_bytes):
    class Sink:
        def __init__(self):
            self.payloads = []

        def send(self, payload):
            self.payloads.append(payload)
            return {}

    sink = Sink()
    store = InMemoryStudentStore()
    parsed = validate_student_file(csv_bytes([make_row(idNumber=make_id(i)) for i in range(4)]), today=TODAY)
    students = convert_to_students(parsed.rows, parsed.errors, today=TODAY)
    linkage = CrmLinkage(property_dataverse_id="p", provider_dataverse_id="v", provider_id="prov")
    with CrmSyncDispatcher(sink, workers=2) as dispatcher:
        result = BatchCommitter(store, group_size=3, dispatcher=dispatcher).commit(students, crm_linkage=linkage)

    assert result.success_count == 4
    assert dispatcher.sent == 4
    stored = {d["studentId"] for d in store.documents("students")}
    assert {p["firebaseStudentId"] for p in sink.payloads} == stored
