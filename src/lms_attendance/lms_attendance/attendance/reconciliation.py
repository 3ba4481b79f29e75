"""Diff a draft against the ledger and write the difference.

Each draft entry becomes at most one operation: ``Create`` when the student
has no record for the lecture, ``Update`` when the stored status differs,
nothing when it already matches. Operations for different students run in
parallel; operations for the same (lecture, student) pair are serialized
and re-read the ledger right before writing, so a pair never ends up with
two records. A failed operation is reported in its own result and does not
stop the others.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Hashable, Iterable, Optional, Sequence, Union

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_COMMIT_MAX_WORKERS
from ..core.enums import AttendanceStatus
from ..core.exceptions import PersistenceError
from .draft import AttendanceDraft
from .model import AttendanceRecord, LectureContext
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Create:
    student_id: int
    status: AttendanceStatus
    context: LectureContext
    marked_at: datetime

    @property
    def lecture_id(self) -> int:
        return self.context.lecture_id


@dataclass(frozen=True)
class Update:
    record_id: int
    lecture_id: int
    student_id: int
    status: AttendanceStatus


Operation = Union[Create, Update]


@dataclass(frozen=True)
class OperationResult:
    operation: Operation
    record: Optional[AttendanceRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def student_id(self) -> int:
        return self.operation.student_id

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "action": "create" if isinstance(self.operation, Create) else "update",
            "status": self.operation.status.value,
            "success": self.ok,
            "record": self.record.to_dict() if self.record else None,
            "error": self.error,
        }


class KeyedLocks:
    """A mutex per key, dropped again once nobody holds or waits for it."""

    def __init__(self):
        self._mutex = threading.Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._mutex:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._mutex:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class ReconciliationEngine:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        max_workers: int = DEFAULT_COMMIT_MAX_WORKERS,
        key_locks: KeyedLocks | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._max_workers = max(1, int(max_workers))
        self._key_locks = key_locks or KeyedLocks()
        self._clock = clock

    def diff(
        self,
        draft: AttendanceDraft,
        existing: Iterable[AttendanceRecord],
        context: LectureContext,
        *,
        student_ids: Iterable[int] | None = None,
    ) -> list[Operation]:
        by_student = {r.student_id: r for r in existing if r.lecture_id == context.lecture_id}
        entries = draft.entries()
        if student_ids is not None:
            wanted = {int(sid) for sid in student_ids}
            entries = {sid: status for sid, status in entries.items() if sid in wanted}

        marked_at = self._clock()
        operations: list[Operation] = []
        for student_id, status in entries.items():
            current = by_student.get(student_id)
            if current is None:
                operations.append(Create(student_id=student_id, status=status, context=context, marked_at=marked_at))
            elif current.status != status:
                operations.append(
                    Update(
                        record_id=current.record_id,
                        lecture_id=context.lecture_id,
                        student_id=student_id,
                        status=status,
                    )
                )
        return operations

    def commit(
        self,
        draft: AttendanceDraft,
        existing: Iterable[AttendanceRecord],
        context: LectureContext,
        *,
        student_ids: Iterable[int] | None = None,
    ) -> list[OperationResult]:
        # Checked once: a lock() arriving after this point lets the commit finish.
        draft.lock.guard()
        operations = self.diff(draft, existing, context, student_ids=student_ids)
        results = self.apply(operations)
        draft.mark_saved(r.record for r in results if r.ok and r.record is not None)

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Committed attendance for lecture %s: %d operations, %d failed",
            context.lecture_id,
            len(results),
            failed,
        )
        return results

    def retry(self, results: Sequence[OperationResult]) -> list[OperationResult]:
        """Re-run only the failed operations of an earlier commit."""
        return self.apply([r.operation for r in results if not r.ok])

    def apply(self, operations: Sequence[Operation]) -> list[OperationResult]:
        if not operations:
            return []
        if len(operations) == 1:
            return [self._apply_one(operations[0])]

        workers = min(self._max_workers, len(operations))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="attendance-commit") as pool:
            return list(pool.map(self._apply_one, operations))

    def _apply_one(self, op: Operation) -> OperationResult:
        with self._key_locks.hold((op.lecture_id, op.student_id)):
            try:
                record = self._write(op)
            except PersistenceError as exc:
                logger.warning("Attendance write failed for student %s: %s", op.student_id, exc)
                return OperationResult(operation=op, error=str(exc))
            except Exception as exc:
                logger.exception("Unexpected error writing attendance for student %s", op.student_id)
                return OperationResult(operation=op, error=str(exc) or exc.__class__.__name__)
        return OperationResult(operation=op, record=record)

    def _write(self, op: Operation) -> AttendanceRecord:
        current = self._attendance.get_for_lecture_and_student(op.lecture_id, op.student_id)

        if current is not None:
            if current.status == op.status:
                return current
            record = self._attendance.update_status(record_id=current.record_id, status=op.status)
            if record is None:
                raise PersistenceError(f"Attendance record {current.record_id} disappeared during update")
            return record

        if isinstance(op, Update):
            raise PersistenceError(f"Attendance record {op.record_id} no longer exists")

        ctx = op.context
        return self._attendance.create(
            lecture_id=ctx.lecture_id,
            student_id=op.student_id,
            course_id=ctx.course_id,
            offering_id=ctx.offering_id,
            lecture_date=ctx.lecture_date,
            status=op.status,
            marked_at=op.marked_at,
        )
