from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import uuid4

from ..models.import_result import BatchProgress, ImportResult, ImportResultBuilder
from ..models.student import CommittedStudent, ValidatedStudent
from ..store.base import StoreUnavailableError, StudentStore, WriteOperation
from .crm_sync import CrmLinkage, CrmSyncDispatcher
from .duplicates import DEFAULT_QUERY_CHUNK_SIZE, DuplicateDetector, chunked
from .error_classifier import describe_error

"""Grouped, atomic commit of validated students.

Students are split into groups of ``group_size``. Groups are processed strictly
one after another, because a group's duplicate check has to see what the
previous group wrote:

1. ask the store which of the group's ID numbers already exist
2. record those as duplicates (never retried), along with ID numbers an
   earlier student of this run already claimed
3. write an address document and a student document per remaining student,
   all in one atomic write
4. on success count them and hand each to the CRM dispatcher; on failure
   record one error per student, all with the same classified message
5. report progress

A failed group never aborts the run. Only a missing store does.
"""

__all__ = [
    "DEFAULT_GROUP_SIZE",
    "OPERATIONS_PER_STUDENT",
    "DUPLICATE_REASON",
    "DUPLICATE_IN_RUN_REASON",
    "BatchCommitter",
]

logger = logging.getLogger(__name__)

DEFAULT_GROUP_SIZE = 200
OPERATIONS_PER_STUDENT = 2  # address + student
DUPLICATE_REASON = "Student with this ID number already exists in the system"
DUPLICATE_IN_RUN_REASON = "Duplicate ID number within this import"

ProgressCallback = Callable[[BatchProgress], None]


def _new_id() -> str:
    return uuid4().hex


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class BatchCommitter:
    def __init__(
        self,
        store: StudentStore | None,
        group_size: int = DEFAULT_GROUP_SIZE,
        duplicate_chunk_size: int = DEFAULT_QUERY_CHUNK_SIZE,
        dispatcher: CrmSyncDispatcher | None = None,
        students_collection: str = "students",
        addresses_collection: str = "addresses",
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        if group_size < 1:
            raise ValueError(f"group size must be >= 1, got {group_size}")
        if store is not None and group_size * OPERATIONS_PER_STUDENT > store.max_write_operations:
            raise ValueError(
                f"group size {group_size} needs {group_size * OPERATIONS_PER_STUDENT} operations, "
                f"store allows {store.max_write_operations} per atomic write"
            )
        self.store = store
        self.group_size = group_size
        self.duplicate_chunk_size = duplicate_chunk_size
        self.dispatcher = dispatcher
        self.students_collection = students_collection
        self.addresses_collection = addresses_collection
        self._new_id = id_factory
        self._now = clock

    def commit(
        self,
        students: list[ValidatedStudent],
        on_progress: ProgressCallback | None = None,
        crm_linkage: CrmLinkage | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ImportResult:
        """Commit ``students`` group by group and return the terminal result.

        Raises:
            StoreUnavailableError: no store configured
        """
        if not students:
            return ImportResult.empty()
        if self.store is None:
            raise StoreUnavailableError("Database not initialized")

        detector = DuplicateDetector(
            self.store,
            collection=self.students_collection,
            field="idNumber",
            chunk_size=self.duplicate_chunk_size,
        )
        groups = chunked(students, self.group_size)
        result = ImportResultBuilder()
        cancelled = False
        seen: set[str] = set()  # ID numbers already claimed in this run

        for index, group in enumerate(groups):
            if should_cancel is not None and should_cancel():
                cancelled = True
                logger.info(f"import cancelled before group {index + 1}/{len(groups)}")
                break
            result.add_attempted(len(group))
            self._commit_group(group, detector, result, crm_linkage, seen)
            if on_progress is not None:
                on_progress(
                    BatchProgress(
                        current_group=index + 1,
                        total_groups=len(groups),
                        imported_count=result.success_count + result.duplicate_count,
                        total_count=len(students),
                        percentage=round((index + 1) / len(groups) * 100),
                    )
                )

        final = result.build(cancelled=cancelled)
        logger.info(
            f"commit finished attempted={final.total_attempted} success={final.success_count} "
            f"duplicates={final.duplicate_count} errors={final.error_count}"
        )
        return final

    def _commit_group(
        self,
        group: list[ValidatedStudent],
        detector: DuplicateDetector,
        result: ImportResultBuilder,
        crm_linkage: CrmLinkage | None,
        seen: set[str],
    ) -> None:
        try:
            existing = detector.find_existing(s.id_number for s in group)
        except Exception as e:  # backends may raise their own error types
            message = f"Batch processing failed: {describe_error(e)}"
            logger.error(f"duplicate check failed for group of {len(group)}: {e}")
            for student in group:
                result.add_error(student, message)
            return

        to_commit: list[ValidatedStudent] = []
        for student in group:
            if student.id_number in existing:
                result.add_duplicate(student, DUPLICATE_REASON)
            elif student.id_number in seen:
                result.add_duplicate(student, DUPLICATE_IN_RUN_REASON)
            else:
                seen.add(student.id_number)
                to_commit.append(student)

        if not to_commit:
            return

        operations: list[WriteOperation] = []
        committed: list[CommittedStudent] = []
        created_at = self._now()
        for student in to_commit:
            address_id = self._new_id()
            student_id = self._new_id()
            address = student.address_record(address_id)
            address["createdAt"] = created_at
            record = student.student_record(student_id, address_id)
            record["createdAt"] = created_at
            operations.append(WriteOperation(self.addresses_collection, address_id, address))
            operations.append(WriteOperation(self.students_collection, student_id, record))
            committed.append(CommittedStudent(student_id=student_id, address_id=address_id, student=student))

        try:
            self.store.atomic_write(operations)
        except Exception as e:  # backends may raise their own error types
            message = describe_error(e)
            logger.error(f"atomic write failed for group of {len(to_commit)}: {e}")
            for student in to_commit:
                result.add_error(student, message)
            return

        result.add_success(len(to_commit))
        if self.dispatcher is not None:
            for item in committed:
                self.dispatcher.notify(item, crm_linkage)
