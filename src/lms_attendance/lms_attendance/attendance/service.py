from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from ..common.validators import parse_id_list
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import StudentStatus
from ..core.exceptions import ValidationError
from ..lectures.model import Lecture
from ..lectures.service import LectureService
from ..offerings.model import CourseOffering
from ..offerings.repository import OfferingRepository
from ..students.model import Student
from ..students.repository import StudentRepository
from . import aggregator
from .draft import AttendanceDraft
from .model import AttendanceRecord, AttendanceStats, LectureContext, StudentAttendanceSummary
from .reconciliation import OperationResult, ReconciliationEngine
from .repository import AttendanceRepository
from .roster import RosterResolver, index_by_id

logger = logging.getLogger(__name__)


@dataclass
class MarkingSession:
    """Everything one marking screen works on for a single lecture."""

    lecture: Lecture
    offering: Optional[CourseOffering]
    roster: list[Student]
    students_by_id: dict[int, Student]
    draft: AttendanceDraft
    existing: list[AttendanceRecord] = field(default_factory=list)

    @property
    def context(self) -> LectureContext:
        return LectureContext.from_lecture(self.lecture)

    def absorb(self, results: Iterable[OperationResult]) -> None:
        """Fold successfully written records back into ``existing`` (read-after-write)."""
        by_student = {r.student_id: r for r in self.existing}
        for res in results:
            if res.ok and res.record is not None:
                by_student[res.record.student_id] = res.record
        self.existing = list(by_student.values())


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        offerings: OfferingRepository,
        lectures: LectureService,
        *,
        engine: ReconciliationEngine | None = None,
        roster_resolver: RosterResolver | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._attendance = attendance
        self._students = students
        self._offerings = offerings
        self._lectures = lectures
        self._engine = engine or ReconciliationEngine(attendance)
        self._roster = roster_resolver or RosterResolver()
        self._history_limit = int(history_limit)

    # Session lifecycle

    def open_session(self, lecture_id: int) -> MarkingSession:
        lecture = self._lectures.get(lecture_id)
        offering = self._offerings.get_by_id(lecture.offering_id)
        if offering is None:
            logger.warning("Lecture %s references missing offering %s", lecture.lecture_id, lecture.offering_id)

        if offering is not None and offering.enrolled_students:
            candidates = list(self._students.list_by_ids(sorted(offering.enrolled_students)))
        else:
            candidates = list(self._students.list_by_status(StudentStatus.ACTIVE))

        roster = self._roster.resolve(offering, candidates)
        existing = list(self._attendance.list_for_lecture(lecture.lecture_id))
        lock = self._lectures.lock_for(lecture)

        return MarkingSession(
            lecture=lecture,
            offering=offering,
            roster=roster,
            students_by_id=index_by_id(roster),
            draft=AttendanceDraft.seed(existing, lock),
            existing=existing,
        )

    def mark(self, session: MarkingSession, student_id: int, status) -> None:
        (student_id,) = self._on_roster(session, [student_id])
        session.draft.set_status(student_id, status)

    def bulk_mark(self, session: MarkingSession, student_ids: Iterable[int] | None, status) -> None:
        """Mark the given ids, or the whole roster when ``student_ids`` is None."""
        if student_ids is None:
            ids = [s.student_id for s in session.roster]
        else:
            ids = self._on_roster(session, student_ids)
        session.draft.bulk_set_status(ids, status)

    def apply_marks(self, session: MarkingSession, marks: Mapping[int, object]) -> None:
        ids = self._on_roster(session, marks.keys())
        session.draft.apply(dict(zip(ids, marks.values())))

    def save(self, session: MarkingSession, *, student_ids: Iterable[int] | None = None) -> list[OperationResult]:
        results = self._engine.commit(session.draft, session.existing, session.context, student_ids=student_ids)
        session.absorb(results)
        return results

    def retry(self, session: MarkingSession, results: Sequence[OperationResult]) -> list[OperationResult]:
        retried = self._engine.retry(results)
        session.draft.mark_saved(r.record for r in retried if r.ok and r.record is not None)
        session.absorb(retried)
        return retried

    # Immediate writes, one lecture at a time

    def mark_now(self, lecture_id: int, student_id: int, status) -> list[OperationResult]:
        session = self.open_session(lecture_id)
        (student_id,) = self._on_roster(session, [student_id])
        session.draft.set_status(student_id, status)
        return self.save(session, student_ids=[student_id])

    def bulk_mark_now(self, lecture_id: int, student_ids: Iterable[int], status) -> list[OperationResult]:
        session = self.open_session(lecture_id)
        ids = self._on_roster(session, student_ids)
        session.draft.bulk_set_status(ids, status)
        return self.save(session, student_ids=ids)

    def _on_roster(self, session: MarkingSession, student_ids: Iterable) -> list[int]:
        ids = parse_id_list(student_ids, "student_id")
        outside = [sid for sid in ids if sid not in session.students_by_id]
        if outside:
            raise ValidationError(
                f"Students {outside} are not on the roster of lecture {session.lecture.lecture_id}"
            )
        return ids

    # Read models

    def session_stats(self, session: MarkingSession) -> AttendanceStats:
        return aggregator.aggregate(session.draft, session.roster)

    def roster_view(self, session: MarkingSession, query: str = "") -> list[dict]:
        rows = []
        for s in session.roster:
            if not s.matches(query):
                continue
            rows.append(
                {
                    "student_id": s.student_id,
                    "full_name": s.full_name,
                    "roll_number": s.roll_number,
                    "status": session.draft.display_status(s.student_id).value,
                    "marked": s.student_id in session.draft,
                }
            )
        return rows

    def student_summaries(self, student_ids: Iterable[int]) -> list[StudentAttendanceSummary]:
        ids = parse_id_list(student_ids, "student_id")
        if not ids:
            return []
        records = self._attendance.list_for_students(ids)
        students = index_by_id(self._students.list_by_ids(ids))
        return aggregator.student_summaries(records, ids, students=students)

    def search_records(self, query: str = "", *, limit: int | None = None) -> list[dict]:
        records = list(self._attendance.list_recent(limit or self._history_limit))
        students = index_by_id(self._students.list_by_ids(sorted({r.student_id for r in records})))
        offerings = {o.offering_id: o for o in self._offerings.list_active()}

        rows = []
        for r in records:
            student = students.get(r.student_id)
            if query and (student is None or not student.matches(query)):
                continue
            offering = offerings.get(r.offering_id)
            rows.append(
                {
                    **r.to_dict(),
                    "full_name": student.full_name if student else "",
                    "roll_number": student.roll_number if student else "",
                    "course": offering.label if offering else "",
                }
            )
        return rows
