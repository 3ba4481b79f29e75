from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Per-student mark stored on an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    GRADUATED = "graduated"
    DROPPED = "dropped"
    SUSPENDED = "suspended"


class LectureStatus(str, Enum):
    """Scheduling lifecycle of a lecture."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class LockState(str, Enum):
    """Whether attendance for a lecture may still be edited."""

    UNLOCKED = "unlocked"
    LOCKED = "locked"

    @classmethod
    def from_flag(cls, locked: bool) -> "LockState":
        return cls.LOCKED if locked else cls.UNLOCKED


class AttendanceBand(str, Enum):
    """Colour band used when showing an attendance percentage."""

    GOOD = "good"
    WARNING = "warning"
    POOR = "poor"
