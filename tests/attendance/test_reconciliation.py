from __future__ import annotations

import threading
from datetime import date

import pytest

from conftest import InMemoryAttendance
from src.lms_attendance.lms_attendance.attendance.draft import AttendanceDraft
from src.lms_attendance.lms_attendance.attendance.model import LectureContext
from src.lms_attendance.lms_attendance.attendance.reconciliation import (
    Create,
    KeyedLocks,
    ReconciliationEngine,
    Update,
)
from src.lms_attendance.lms_attendance.core.enums import AttendanceStatus
from src.lms_attendance.lms_attendance.core.exceptions import LockedError
from src.lms_attendance.lms_attendance.lectures.lock import AttendanceLock

CONTEXT = LectureContext(lecture_id=10, course_id=101, offering_id=1, lecture_date=date(2026, 2, 2))


def _engine(ledger, fixed_now, **kwargs):
    return ReconciliationEngine(ledger, clock=lambda: fixed_now, **kwargs)


def _seeded(ledger, lock=None):
    return AttendanceDraft.seed(ledger.list_for_lecture(10), lock or AttendanceLock(10))


def test_diff_creates_for_new_students_with_lecture_context(fixed_now):
    ledger = InMemoryAttendance()
    draft = _seeded(ledger)
    draft.set_status(1, "present")

    ops = _engine(ledger, fixed_now).diff(draft, ledger.list_for_lecture(10), CONTEXT)

    assert ops == [Create(student_id=1, status=AttendanceStatus.PRESENT, context=CONTEXT, marked_at=fixed_now)]


def test_diff_updates_only_changed_statuses(fixed_now):
    ledger = InMemoryAttendance()
    engine = _engine(ledger, fixed_now)
    draft = _seeded(ledger)
    draft.bulk_set_status([1, 2], "absent")
    engine.commit(draft, [], CONTEXT)

    draft = _seeded(ledger)
    draft.set_status(1, "absent")
    draft.set_status(2, "late")
    ops = engine.diff(draft, ledger.list_for_lecture(10), CONTEXT)

    assert len(ops) == 1
    assert isinstance(ops[0], Update)
    assert ops[0].student_id == 2
    assert ops[0].status == AttendanceStatus.LATE


def test_same_status_again_is_a_noop_diff(fixed_now):
    ledger = InMemoryAttendance()
    engine = _engine(ledger, fixed_now)
    draft = _seeded(ledger)
    draft.set_status(1, "absent")
    engine.commit(draft, ledger.list_for_lecture(10), CONTEXT)

    draft = _seeded(ledger)
    draft.set_status(1, "absent")

    assert engine.commit(draft, ledger.list_for_lecture(10), CONTEXT) == []


def test_second_commit_of_unchanged_draft_produces_no_operations(fixed_now):
    ledger = InMemoryAttendance()
    engine = _engine(ledger, fixed_now)
    draft = _seeded(ledger)
    draft.bulk_set_status([1, 2, 3], "present")

    first = engine.commit(draft, ledger.list_for_lecture(10), CONTEXT)
    second = engine.diff(draft, ledger.list_for_lecture(10), CONTEXT)

    assert len(first) == 3 and all(r.ok for r in first)
    assert second == []
    assert not draft.has_changes


def test_commit_returns_written_records(fixed_now):
    ledger = InMemoryAttendance()
    draft = _seeded(ledger)
    draft.set_status(2, "late")

    (result,) = _engine(ledger, fixed_now).commit(draft, [], CONTEXT)

    assert result.ok
    assert result.record.student_id == 2
    assert result.record.course_id == 101
    assert result.record.offering_id == 1
    assert result.record.lecture_date == date(2026, 2, 2)
    assert result.record.marked_at == fixed_now


def test_failure_of_one_student_does_not_block_others(fixed_now):
    ledger = InMemoryAttendance()
    ledger.fail_for = {2}
    draft = _seeded(ledger)
    draft.bulk_set_status([1, 2, 3], "present")

    results = _engine(ledger, fixed_now).commit(draft, [], CONTEXT)

    by_student = {r.student_id: r for r in results}
    assert by_student[1].ok and by_student[3].ok
    assert not by_student[2].ok
    assert "student 2" in by_student[2].error
    assert len(ledger.list_for_lecture(10)) == 2
    assert draft.changed_ids() == [2]


def test_retry_reruns_only_failed_operations(fixed_now):
    ledger = InMemoryAttendance()
    ledger.fail_for = {2}
    engine = _engine(ledger, fixed_now)
    draft = _seeded(ledger)
    draft.bulk_set_status([1, 2], "present")
    results = engine.commit(draft, [], CONTEXT)

    ledger.fail_for = set()
    retried = engine.retry(results)

    assert [r.student_id for r in retried] == [2]
    assert retried[0].ok
    assert ledger.creates == 2


def test_stale_create_becomes_update(fixed_now):
    ledger = InMemoryAttendance()
    engine = _engine(ledger, fixed_now)
    stale_view = []

    first = _seeded(ledger)
    first.set_status(1, "present")
    engine.commit(first, stale_view, CONTEXT)

    second = AttendanceDraft.seed(stale_view, AttendanceLock(10))
    second.set_status(1, "late")
    (result,) = engine.commit(second, stale_view, CONTEXT)

    assert isinstance(result.operation, Create)
    assert result.ok
    assert [r.status for r in ledger.records_for(10, 1)] == [AttendanceStatus.LATE]


def test_commit_on_locked_lecture_is_rejected(fixed_now):
    ledger = InMemoryAttendance()
    lock = AttendanceLock(10)
    draft = _seeded(ledger, lock)
    draft.set_status(1, "present")
    lock.lock()

    with pytest.raises(LockedError):
        _engine(ledger, fixed_now).commit(draft, [], CONTEXT)

    assert ledger.list_all() == []


def test_commit_in_flight_finishes_after_lock(fixed_now):
    ledger = InMemoryAttendance()
    lock = AttendanceLock(10)
    draft = _seeded(ledger, lock)
    draft.bulk_set_status([1, 2], "present")

    original_create = ledger.create

    def create_then_lock(**kwargs):
        lock.lock()
        return original_create(**kwargs)

    ledger.create = create_then_lock
    results = _engine(ledger, fixed_now, max_workers=1).commit(draft, [], CONTEXT)

    assert all(r.ok for r in results)
    assert len(ledger.list_for_lecture(10)) == 2
    assert lock.is_locked


def test_concurrent_commits_never_duplicate_a_pair(fixed_now):
    ledger = InMemoryAttendance(write_delay=0.01)
    engine = _engine(ledger, fixed_now)
    workers = 8
    barrier = threading.Barrier(workers)
    statuses = ["present", "late"] * (workers // 2)

    def commit(status):
        draft = AttendanceDraft.seed([], AttendanceLock(10))
        draft.set_status(1, status)
        barrier.wait()
        engine.commit(draft, [], CONTEXT)

    threads = [threading.Thread(target=commit, args=(s,)) for s in statuses]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(ledger.records_for(10, 1)) == 1
    assert ledger.creates == 1


def test_bulk_commit_spreads_students_over_workers(fixed_now):
    ledger = InMemoryAttendance(write_delay=0.005)
    draft = _seeded(ledger)
    draft.bulk_set_status(range(1, 21), "present")

    results = _engine(ledger, fixed_now, max_workers=4).commit(draft, [], CONTEXT)

    assert len(results) == 20
    assert sorted(r.student_id for r in results) == list(range(1, 21))
    assert len(ledger.list_for_lecture(10)) == 20


def test_keyed_locks_release_entries():
    locks = KeyedLocks()

    with locks.hold((10, 1)):
        assert len(locks) == 1

    assert len(locks) == 0
