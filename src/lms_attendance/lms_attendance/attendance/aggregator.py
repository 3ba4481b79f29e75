from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping, Optional, Sequence, Union

from ..core.constants import ATTENDED_STATUSES, GOOD_ATTENDANCE_THRESHOLD, WARNING_ATTENDANCE_THRESHOLD
from ..core.enums import AttendanceBand, AttendanceStatus
from ..students.model import Student
from .draft import AttendanceDraft
from .model import AttendanceRecord, AttendanceStats, StudentAttendanceSummary


def percent(part: int, whole: int) -> int:
    """round(100 * part / whole) with halves rounded up, 0 when whole is 0, clamped to 0..100."""
    if whole <= 0:
        return 0
    value = (200 * part + whole) // (2 * whole)
    return max(0, min(100, value))


def band_for(percentage: int) -> AttendanceBand:
    if percentage >= GOOD_ATTENDANCE_THRESHOLD:
        return AttendanceBand.GOOD
    if percentage >= WARNING_ATTENDANCE_THRESHOLD:
        return AttendanceBand.WARNING
    return AttendanceBand.POOR


def aggregate(
    draft: Union[AttendanceDraft, Mapping[int, AttendanceStatus]],
    roster: Sequence[Student],
) -> AttendanceStats:
    """Live counts for a marking session.

    Only roster students are counted, and unmarked students count toward
    ``total`` but none of the four status counters.
    """
    entries = draft.entries() if isinstance(draft, AttendanceDraft) else dict(draft)
    roster_ids = {s.student_id for s in roster}
    counts = Counter(status for sid, status in entries.items() if sid in roster_ids)

    present = counts[AttendanceStatus.PRESENT]
    late = counts[AttendanceStatus.LATE]
    total = len(roster)
    return AttendanceStats(
        present=present,
        absent=counts[AttendanceStatus.ABSENT],
        late=late,
        excused=counts[AttendanceStatus.EXCUSED],
        total=total,
        percentage=percent(present + late, total),
    )


def historical(records: Iterable[AttendanceRecord]) -> int:
    """Share of records marked present or late, over every record given."""
    attended = 0
    total = 0
    for r in records:
        total += 1
        if r.status in ATTENDED_STATUSES:
            attended += 1
    return percent(attended, total)


def student_summaries(
    records: Iterable[AttendanceRecord],
    student_ids: Iterable[int],
    *,
    students: Optional[Mapping[int, Student]] = None,
) -> list[StudentAttendanceSummary]:
    by_student: dict[int, list[AttendanceRecord]] = {}
    for r in records:
        by_student.setdefault(r.student_id, []).append(r)

    out: list[StudentAttendanceSummary] = []
    for sid in student_ids:
        rows = by_student.get(sid, [])
        attended = sum(1 for r in rows if r.status in ATTENDED_STATUSES)
        pct = historical(rows)
        student = (students or {}).get(sid)
        out.append(
            StudentAttendanceSummary(
                student_id=sid,
                attended=attended,
                total=len(rows),
                percentage=pct,
                band=band_for(pct),
                full_name=student.full_name if student else None,
                roll_number=student.roll_number if student else None,
            )
        )
    return out
