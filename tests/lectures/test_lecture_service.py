from __future__ import annotations

import pytest

from src.lms_attendance.lms_attendance.core.enums import LectureStatus
from src.lms_attendance.lms_attendance.core.exceptions import LockedError, NotFoundError, ValidationError


def test_lock_persists_and_is_idempotent(world):
    svc = world.container.lecture_service

    lecture = svc.lock_attendance(10)
    again = svc.lock_attendance(10)

    assert lecture.is_locked and again.is_locked
    assert world.lectures.get_by_id(10).is_locked
    assert world.lectures.lock_writes == 1


def test_unlock_reopens_marking(world):
    svc = world.container.lecture_service
    attendance = world.container.attendance_service

    lecture = svc.unlock_attendance(30)
    results = attendance.mark_now(30, 1, "present")

    assert not lecture.is_locked
    assert results[0].ok


def test_unknown_lecture(world):
    with pytest.raises(NotFoundError):
        world.container.lecture_service.lock_attendance(404)


def test_change_status(world):
    svc = world.container.lecture_service

    lecture = svc.change_status(10, "completed")

    assert lecture.status == LectureStatus.COMPLETED
    assert world.lectures.get_by_id(10).status == LectureStatus.COMPLETED


def test_completing_twice_or_unknown_status_is_rejected(world):
    svc = world.container.lecture_service

    with pytest.raises(ValidationError):
        svc.change_status(30, "completed")
    with pytest.raises(ValidationError):
        svc.change_status(10, "postponed")


def test_out_of_date_lecture_cannot_reopen_a_lock(world):
    svc = world.container.lecture_service
    attendance = world.container.attendance_service
    stale = world.lectures.get_by_id(10)
    session = attendance.open_session(10)

    svc.lock_attendance(10)
    lock = svc.lock_for(stale)

    assert not stale.is_locked
    assert lock.is_locked
    assert session.draft.lock is lock
    with pytest.raises(LockedError):
        attendance.mark(session, 1, "present")


def test_lock_for_without_open_sessions_reads_storage(world):
    svc = world.container.lecture_service
    stale = world.lectures.get_by_id(10)

    svc.lock_attendance(10)

    assert svc.lock_for(stale).is_locked
