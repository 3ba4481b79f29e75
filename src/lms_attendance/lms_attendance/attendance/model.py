from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceBand, AttendanceStatus
from ..lectures.model import Lecture


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one mark for one (lecture, student) pair."""

    record_id: int
    lecture_id: int
    student_id: int
    course_id: int
    offering_id: int
    lecture_date: date
    status: AttendanceStatus
    marked_at: datetime

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "lecture_id": self.lecture_id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "offering_id": self.offering_id,
            "date": self.lecture_date.isoformat(),
            "status": self.status.value,
            "marked_at": self.marked_at.isoformat(),
        }


@dataclass(frozen=True)
class LectureContext:
    """Fields copied from the lecture onto every new record."""

    lecture_id: int
    course_id: int
    offering_id: int
    lecture_date: date

    @classmethod
    def from_lecture(cls, lecture: Lecture) -> "LectureContext":
        return cls(
            lecture_id=lecture.lecture_id,
            course_id=lecture.course_id,
            offering_id=lecture.offering_id,
            lecture_date=lecture.lecture_date,
        )


@dataclass(frozen=True)
class AttendanceStats:
    present: int
    absent: int
    late: int
    excused: int
    total: int
    percentage: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StudentAttendanceSummary:
    """Read-model for the per-student history view."""

    student_id: int
    attended: int
    total: int
    percentage: int
    band: AttendanceBand
    full_name: Optional[str] = None
    roll_number: Optional[str] = None

    def to_dict(self) -> dict:
        out = asdict(self)
        out["band"] = self.band.value
        return out
