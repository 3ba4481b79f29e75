from __future__ import annotations

import logging
from dataclasses import replace

from ..common.validators import parse_lecture_status, require_positive_id
from ..core.enums import LectureStatus, LockState
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from .lock import AttendanceLock, LockRegistry
from .model import Lecture
from .repository import LectureRepository

logger = logging.getLogger(__name__)


class LectureService:
    def __init__(self, lectures: LectureRepository, *, locks: LockRegistry | None = None):
        self._lectures = lectures
        self._locks = locks or LockRegistry()

    def get(self, lecture_id: int) -> Lecture:
        lecture = self._lectures.get_by_id(require_positive_id(lecture_id, "lecture_id"))
        if not lecture:
            raise NotFoundError(f"Lecture {lecture_id} does not exist")
        return lecture

    def lock_for(self, lecture: Lecture) -> AttendanceLock:
        """The shared lock for ``lecture``, with its state read from storage.

        The ``lock_state`` carried by ``lecture`` is not trusted: it may have
        been read before a concurrent lock or unlock.
        """
        lecture_id = lecture.lecture_id
        return self._locks.get(lecture_id, lambda: self.get(lecture_id).lock_state)

    def lock_attendance(self, lecture_id: int) -> Lecture:
        return self._set_locked(lecture_id, locked=True)

    def unlock_attendance(self, lecture_id: int) -> Lecture:
        return self._set_locked(lecture_id, locked=False)

    def _set_locked(self, lecture_id: int, *, locked: bool) -> Lecture:
        lecture = self.get(lecture_id)
        lock = self.lock_for(lecture)
        target = LockState.from_flag(locked)

        with lock.changing():
            if lock.state == target:
                logger.debug("Lecture %s attendance already %s", lecture.lecture_id, target.value)
                return replace(lecture, lock_state=target)

            if not self._lectures.set_attendance_locked(lecture.lecture_id, locked=locked):
                raise PersistenceError(f"Could not update lock for lecture {lecture.lecture_id}")

            if locked:
                lock.lock()
            else:
                lock.unlock()
        logger.info("Lecture %s attendance %s", lecture.lecture_id, target.value)
        return replace(lecture, lock_state=target)

    def change_status(self, lecture_id: int, status) -> Lecture:
        lecture = self.get(lecture_id)
        status = parse_lecture_status(status)

        if status == lecture.status and status in {LectureStatus.COMPLETED, LectureStatus.CANCELLED}:
            raise ValidationError(f"Lecture is already {status.value}")
        if status == lecture.status:
            return lecture

        if not self._lectures.set_status(lecture.lecture_id, status=status):
            raise PersistenceError(f"Could not update status for lecture {lecture.lecture_id}")

        logger.info("Lecture %s status %s -> %s", lecture.lecture_id, lecture.status.value, status.value)
        return replace(lecture, status=status)
