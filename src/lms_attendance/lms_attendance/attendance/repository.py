from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """The attendance ledger.

    Implementations must keep at most one record per (lecture_id, student_id):
    ``create`` on an existing pair updates that record instead of adding one.
    Write failures are raised as ``PersistenceError``.
    """

    def list_for_lecture(self, lecture_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_for_lecture_and_student(self, lecture_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_students(self, student_ids: Sequence[int]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[AttendanceRecord]:
        """Most recently created records first."""

        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        lecture_id: int,
        student_id: int,
        course_id: int,
        offering_id: int,
        lecture_date: date,
        status: AttendanceStatus,
        marked_at: datetime,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def update_status(self, *, record_id: int, status: AttendanceStatus) -> Optional[AttendanceRecord]:
        """Returns the updated record, or None when ``record_id`` no longer exists."""

        raise NotImplementedError
