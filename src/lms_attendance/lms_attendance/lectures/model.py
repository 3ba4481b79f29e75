from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..core.enums import LectureStatus, LockState


@dataclass(frozen=True)
class Lecture:
    lecture_id: int
    offering_id: int
    course_id: int
    lecture_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    room: Optional[str] = None
    status: LectureStatus = LectureStatus.SCHEDULED
    lock_state: LockState = LockState.UNLOCKED

    @property
    def is_locked(self) -> bool:
        return self.lock_state == LockState.LOCKED
