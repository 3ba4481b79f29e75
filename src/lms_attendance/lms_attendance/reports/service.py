from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.aggregator import percent
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_start, shift_months
from ..core.constants import ATTENDED_STATUSES, DEFAULT_COURSE_PROGRESS_LIMIT, DEFAULT_TREND_MONTHS
from ..core.enums import LectureStatus
from ..lectures.repository import LectureRepository
from ..offerings.repository import OfferingRepository
from ..students.repository import StudentRepository


@dataclass(frozen=True)
class ReportData:
    summary: dict
    trend: list[dict]
    course_progress: list[dict]

    def to_dict(self) -> dict:
        return {"summary": self.summary, "trend": self.trend, "course_progress": self.course_progress}


class ReportService:
    """Institution-wide attendance and lecture completion figures."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        lectures: LectureRepository,
        offerings: OfferingRepository,
        students: StudentRepository,
    ):
        self._attendance = attendance
        self._lectures = lectures
        self._offerings = offerings
        self._students = students

    def build_summary(
        self,
        *,
        today: Optional[date] = None,
        months: int = DEFAULT_TREND_MONTHS,
        course_limit: int = DEFAULT_COURSE_PROGRESS_LIMIT,
    ) -> ReportData:
        today = today or date.today()
        records = list(self._attendance.list_all())
        lectures = list(self._lectures.list_all())
        offerings = list(self._offerings.list_active())

        attended = sum(1 for r in records if r.status in ATTENDED_STATUSES)
        completed = sum(1 for lec in lectures if lec.status == LectureStatus.COMPLETED)

        summary = {
            "total_students": len(self._students.list_all()),
            "total_courses": len(offerings),
            "total_lectures": len(lectures),
            "average_attendance": percent(attended, len(records)),
            "lecture_completion_rate": percent(completed, len(lectures)),
        }

        trend = []
        first = shift_months(month_start(today), -(months - 1))
        for i in range(months):
            start = shift_months(first, i)
            end = shift_months(first, i + 1)
            in_month = [r for r in records if start <= r.lecture_date < end]
            present = sum(1 for r in in_month if r.status in ATTENDED_STATUSES)
            trend.append(
                {
                    "month": start.strftime("%Y-%m"),
                    "name": start.strftime("%b"),
                    "present": present,
                    "total": len(in_month),
                    "attendance": percent(present, len(in_month)),
                }
            )

        lectures_by_offering: dict[int, list] = {}
        for lec in lectures:
            lectures_by_offering.setdefault(lec.offering_id, []).append(lec)

        course_progress = []
        for offering in offerings[:course_limit]:
            course_lectures = lectures_by_offering.get(offering.offering_id, [])
            done = sum(1 for lec in course_lectures if lec.status == LectureStatus.COMPLETED)
            course_progress.append(
                {
                    "offering_id": offering.offering_id,
                    "course_id": offering.course_id,
                    "name": offering.course_code or offering.label,
                    "completed": done,
                    "total": len(course_lectures),
                    "percentage": percent(done, len(course_lectures)),
                }
            )

        return ReportData(summary=summary, trend=trend, course_progress=course_progress)
