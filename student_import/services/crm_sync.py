from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

import httpx

from ..models.student import CommittedStudent

"""Best-effort CRM synchronization for committed students.

The committer hands every committed student to ``CrmSyncDispatcher.notify``,
which only enqueues and returns. Worker threads drain the bounded queue and
post each payload to the CRM webhook. A full queue drops the notification and
a failed post is logged; neither is ever reported back to the import run.
"""

__all__ = [
    "CrmLinkage",
    "CrmSink",
    "CrmSyncDispatcher",
    "WebhookCrmSink",
    "build_student_payload",
]

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class CrmLinkage:
    """Identifiers linking imported students to existing CRM records."""
    property_dataverse_id: str | None = None
    provider_dataverse_id: str | None = None
    user_dataverse_id: str = ""
    provider_id: str = ""
    property_id: str | None = None  # set to create a pending property assignment

    @property
    def can_sync(self) -> bool:
        return bool(self.property_dataverse_id and self.provider_dataverse_id)


def _gender_code(gender: str | None) -> int:
    # CRM option set: 0 male, 1 female
    if gender and gender.lower() in ("female", "f"):
        return 1
    return 0


def build_student_payload(
    committed: CommittedStudent,
    linkage: CrmLinkage,
    today: date | None = None,
) -> dict[str, Any]:
    s = committed.student
    assigned = linkage.property_id is not None
    return {
        "propertyDataverseId": str(linkage.property_dataverse_id or ""),
        "providerDataverseId": str(linkage.provider_dataverse_id or ""),
        "userDataverseId": linkage.user_dataverse_id or "",
        "firebaseStudentId": committed.student_id,
        "firebasePropertyId": linkage.property_id or "",
        "firebaseProviderId": linkage.provider_id or "",
        "idNumber": s.id_number,
        "firstNames": s.first_names,
        "surname": s.surname,
        "email": s.email or "",
        "phoneNumber": s.phone_number or "",
        "dateOfBirth": s.date_of_birth or "",
        "gender": _gender_code(s.gender),
        "institution": s.institution or "",
        "studentNumber": s.student_number or "",
        "program": s.program or "",
        "yearOfStudy": s.year_of_study or 0,
        "nsfasNumber": s.nsfas_number or "",
        "funded": s.funded,
        "fundedAmount": s.funded_amount or 0,
        "fundingYear": s.funding_year or 0,
        "assignmentStatus": "Pending" if assigned else "",
        "startDate": (today or date.today()).isoformat() if assigned else "",
    }


class CrmSink(Protocol):
    def send(self, payload: dict[str, Any]) -> dict[str, Any]: ...


class WebhookCrmSink:
    """Posts student payloads as JSON to the CRM flow endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._client.post(self.url, json=payload)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            return {"message": "Sync completed"}

    def close(self) -> None:
        self._client.close()


class CrmSyncDispatcher:
    """Bounded work queue with background workers.

    ``notify`` never blocks the caller. ``on_linked`` receives the CRM record id
    when the endpoint returns one (``studentDataverseId``).
    """

    def __init__(
        self,
        sink: CrmSink,
        queue_size: int = 1000,
        workers: int = 1,
        on_linked: Callable[[CommittedStudent, str], None] | None = None,
    ) -> None:
        self._sink = sink
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=queue_size)
        self._workers = workers
        self._threads: list[threading.Thread] = []
        self._on_linked = on_linked
        self._lock = threading.Lock()
        self.sent = 0
        self.failed = 0
        self.dropped = 0
        self.skipped = 0

    def start(self) -> None:
        if self._threads:
            return
        for n in range(self._workers):
            t = threading.Thread(target=self._run, name=f"crm-sync-{n}", daemon=True)
            t.start()
            self._threads.append(t)

    def notify(self, committed: CommittedStudent, linkage: CrmLinkage | None) -> None:
        if linkage is None or not linkage.can_sync:
            with self._lock:
                self.skipped += 1
            return
        self.start()
        try:
            self._queue.put_nowait((committed, linkage))
        except queue.Full:
            with self._lock:
                self.dropped += 1
            logger.warning(f"crm sync queue full, dropped student {committed.student_id}")

    def close(self, timeout: float = 30.0) -> None:
        """Let queued notifications finish, then stop the workers.

        Never blocks longer than ``timeout`` per worker: a stop marker that
        cannot be queued in time is abandoned (workers are daemon threads).
        """
        alive = [t for t in self._threads if t.is_alive()]
        for _ in alive:
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.warning(f"crm sync queue still full on close, abandoned {self._queue.qsize()} notifications")
                break
        for t in alive:
            t.join(timeout=timeout)
        self._threads = []

    def __enter__(self) -> CrmSyncDispatcher:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                committed, linkage = item
                try:
                    self._deliver(committed, linkage)
                except Exception as e:
                    logger.error(f"crm sync worker error for student {committed.student_id}: {e}")
            finally:
                self._queue.task_done()

    def _deliver(self, committed: CommittedStudent, linkage: CrmLinkage) -> None:
        try:
            response = self._sink.send(build_student_payload(committed, linkage))
        except Exception as e:
            with self._lock:
                self.failed += 1
            logger.warning(f"crm sync failed for student {committed.student_id}: {e}")
            return
        with self._lock:
            self.sent += 1
        if not isinstance(response, dict):
            return
        dataverse_id = response.get("studentDataverseId")
        if dataverse_id and self._on_linked is not None:
            try:
                self._on_linked(committed, dataverse_id)
            except Exception as e:
                logger.warning(f"failed to record crm id for student {committed.student_id}: {e}")
