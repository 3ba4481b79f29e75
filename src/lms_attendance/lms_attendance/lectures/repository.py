from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import LectureStatus
from .model import Lecture


class LectureRepository(Protocol):
    def get_by_id(self, lecture_id: int) -> Optional[Lecture]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Lecture]:
        raise NotImplementedError

    def set_attendance_locked(self, lecture_id: int, *, locked: bool) -> bool:
        raise NotImplementedError

    def set_status(self, lecture_id: int, *, status: LectureStatus) -> bool:
        raise NotImplementedError
