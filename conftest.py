from __future__ import annotations

import threading
import time as _time
from dataclasses import replace
from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Optional

import pytest

from src.lms_attendance.lms_attendance.attendance.model import AttendanceRecord
from src.lms_attendance.lms_attendance.container import wire_container
from src.lms_attendance.lms_attendance.core.enums import LectureStatus, LockState, StudentStatus
from src.lms_attendance.lms_attendance.core.exceptions import PersistenceError
from src.lms_attendance.lms_attendance.lectures.model import Lecture
from src.lms_attendance.lms_attendance.offerings.model import CourseOffering
from src.lms_attendance.lms_attendance.students.model import Student


class InMemoryStudents:
    def __init__(self, students):
        self._students = list(students)

    def get_by_id(self, student_id):
        return next((s for s in self._students if s.student_id == int(student_id)), None)

    def list_all(self):
        return list(self._students)

    def list_by_status(self, status):
        return [s for s in self._students if s.status == status]

    def list_by_ids(self, student_ids):
        wanted = {int(i) for i in student_ids}
        return [s for s in self._students if s.student_id in wanted]


class InMemoryOfferings:
    def __init__(self, offerings):
        self._by_id = {o.offering_id: o for o in offerings}

    def get_by_id(self, offering_id):
        return self._by_id.get(int(offering_id))

    def list_active(self):
        return [o for o in self._by_id.values() if o.status == "active"]


class InMemoryLectures:
    def __init__(self, lectures):
        self._by_id = {lec.lecture_id: lec for lec in lectures}
        self.lock_writes = 0

    def get_by_id(self, lecture_id):
        return self._by_id.get(int(lecture_id))

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda l: l.lecture_date)

    def set_attendance_locked(self, lecture_id, *, locked):
        lec = self._by_id.get(int(lecture_id))
        if not lec:
            return False
        self.lock_writes += 1
        self._by_id[lec.lecture_id] = replace(lec, lock_state=LockState.from_flag(locked))
        return True

    def set_status(self, lecture_id, *, status):
        lec = self._by_id.get(int(lecture_id))
        if not lec:
            return False
        self._by_id[lec.lecture_id] = replace(lec, status=status)
        return True


class InMemoryAttendance:
    """Ledger fake with no uniqueness constraint of its own.

    ``write_delay`` widens the check-then-insert window so races show up;
    ``fail_for`` makes writes for those student ids raise PersistenceError.
    """

    def __init__(self, records=(), *, write_delay: float = 0.0):
        self._records: list[AttendanceRecord] = list(records)
        self._next_id = max((r.record_id for r in self._records), default=0) + 1
        self._mutex = threading.Lock()
        self.write_delay = write_delay
        self.fail_for: set[int] = set()
        self.creates = 0
        self.updates = 0
        self.reads = 0

    def _maybe_fail(self, student_id):
        if student_id in self.fail_for:
            raise PersistenceError(f"store rejected student {student_id}")

    def list_for_lecture(self, lecture_id):
        return [r for r in self._records if r.lecture_id == lecture_id]

    def get_for_lecture_and_student(self, lecture_id, student_id) -> Optional[AttendanceRecord]:
        self.reads += 1
        return next((r for r in self._records if r.lecture_id == lecture_id and r.student_id == student_id), None)

    def list_for_students(self, student_ids):
        wanted = set(student_ids)
        return [r for r in self._records if r.student_id in wanted]

    def list_recent(self, limit):
        return list(reversed(self._records))[:limit]

    def list_all(self):
        return list(self._records)

    def records_for(self, lecture_id, student_id):
        return [r for r in self._records if r.lecture_id == lecture_id and r.student_id == student_id]

    def create(self, *, lecture_id, student_id, course_id, offering_id, lecture_date, status, marked_at):
        self._maybe_fail(student_id)
        if self.write_delay:
            _time.sleep(self.write_delay)
        with self._mutex:
            rec = AttendanceRecord(
                record_id=self._next_id,
                lecture_id=lecture_id,
                student_id=student_id,
                course_id=course_id,
                offering_id=offering_id,
                lecture_date=lecture_date,
                status=status,
                marked_at=marked_at,
            )
            self._next_id += 1
            self._records.append(rec)
            self.creates += 1
            return rec

    def update_status(self, *, record_id, status):
        with self._mutex:
            for i, r in enumerate(self._records):
                if r.record_id == record_id:
                    self._maybe_fail(r.student_id)
                    self._records[i] = replace(r, status=status)
                    self.updates += 1
                    return self._records[i]
        return None


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 15, tzinfo=timezone.utc)


@pytest.fixture
def students() -> list[Student]:
    return [
        Student(student_id=1, first_name="Asha", last_name="Rao", roll_number="CS-001"),
        Student(student_id=2, first_name="Ben", last_name="Okafor", roll_number="CS-002"),
        Student(student_id=3, first_name="Chen", last_name="Li", roll_number="CS-003"),
        Student(student_id=4, first_name="Dana", last_name="Novak", roll_number="CS-004", status=StudentStatus.GRADUATED),
    ]


@pytest.fixture
def world(students, fixed_now):
    """Two offerings (open roster and explicit enrollment) with one lecture each."""
    offerings = [
        CourseOffering(offering_id=1, course_id=101, course_code="CS101", course_name="Programming"),
        CourseOffering(
            offering_id=2,
            course_id=102,
            enrolled_students=frozenset({1, 3}),
            course_code="CS102",
            course_name="Data Structures",
        ),
    ]
    lectures = [
        Lecture(lecture_id=10, offering_id=1, course_id=101, lecture_date=date(2026, 2, 2), room="A-101"),
        Lecture(lecture_id=20, offering_id=2, course_id=102, lecture_date=date(2026, 2, 3), room="B-204"),
        Lecture(
            lecture_id=30,
            offering_id=1,
            course_id=101,
            lecture_date=date(2026, 1, 26),
            status=LectureStatus.COMPLETED,
            lock_state=LockState.LOCKED,
        ),
    ]

    students_repo = InMemoryStudents(students)
    offerings_repo = InMemoryOfferings(offerings)
    lectures_repo = InMemoryLectures(lectures)
    attendance_repo = InMemoryAttendance()

    container = wire_container(
        students_repo=students_repo,
        offerings_repo=offerings_repo,
        lectures_repo=lectures_repo,
        attendance_repo=attendance_repo,
    )
    return SimpleNamespace(
        students=students_repo,
        offerings=offerings_repo,
        lectures=lectures_repo,
        attendance=attendance_repo,
        container=container,
    )
