"""Unsaved attendance marks for one lecture.

The draft is seeded from the ledger and mutated by the marking UI. It is
never the system of record: nothing is written until the reconciliation
engine commits it. Mutations go through the lecture's
:class:`~..lectures.lock.AttendanceLock`; a locked lecture rejects them
with ``LockedError`` and leaves the draft untouched.
"""

from __future__ import annotations

import threading
from typing import Iterable, Iterator, Mapping, Optional

from ..common.validators import parse_attendance_status, require_positive_id
from ..core.constants import DEFAULT_DISPLAY_STATUS
from ..core.enums import AttendanceStatus
from ..lectures.lock import AttendanceLock
from .model import AttendanceRecord


class AttendanceDraft:
    def __init__(
        self,
        lock: AttendanceLock,
        entries: Optional[Mapping[int, AttendanceStatus]] = None,
    ):
        self._lock = lock
        self._entries: dict[int, AttendanceStatus] = dict(entries or {})
        self._seeded: dict[int, AttendanceStatus] = dict(self._entries)
        self._write_mutex = threading.Lock()

    @classmethod
    def seed(cls, records: Iterable[AttendanceRecord], lock: AttendanceLock) -> "AttendanceDraft":
        """Start from the stored marks of ``lock.lecture_id``; unmarked students stay unset."""
        entries = {r.student_id: r.status for r in records if r.lecture_id == lock.lecture_id}
        return cls(lock, entries)

    @property
    def lecture_id(self) -> int:
        return self._lock.lecture_id

    @property
    def lock(self) -> AttendanceLock:
        return self._lock

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    # Reads never take the write mutex: writers swap in a new dict.

    def status_of(self, student_id: int) -> Optional[AttendanceStatus]:
        return self._entries.get(int(student_id))

    def display_status(self, student_id: int) -> AttendanceStatus:
        return self._entries.get(int(student_id), DEFAULT_DISPLAY_STATUS)

    def entries(self) -> dict[int, AttendanceStatus]:
        return dict(self._entries)

    def changed_ids(self) -> list[int]:
        entries = self._entries
        return [sid for sid, status in entries.items() if self._seeded.get(sid) != status]

    @property
    def has_changes(self) -> bool:
        return bool(self.changed_ids())

    def __contains__(self, student_id) -> bool:
        return student_id in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(dict(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def set_status(self, student_id: int, status) -> None:
        self.apply({student_id: status})

    def bulk_set_status(self, student_ids: Iterable[int], status) -> None:
        """Give every id the same status, all or nothing."""
        self._lock.guard()
        status = parse_attendance_status(status)
        self._write({require_positive_id(sid, "student_id"): status for sid in student_ids})

    def apply(self, marks: Mapping[int, object]) -> None:
        """Set several statuses at once under one lock check, all or nothing."""
        self._lock.guard()
        parsed = {
            require_positive_id(sid, "student_id"): parse_attendance_status(status)
            for sid, status in marks.items()
        }
        self._write(parsed)

    def mark_saved(self, records: Iterable[AttendanceRecord]) -> None:
        """Record that these statuses are now in the ledger."""
        with self._write_mutex:
            seeded = dict(self._seeded)
            for r in records:
                seeded[r.student_id] = r.status
            self._seeded = seeded

    def _write(self, updates: dict[int, AttendanceStatus]) -> None:
        if not updates:
            return
        with self._write_mutex:
            # Re-check under the mutex so a lock() racing this write wins.
            self._lock.guard()
            merged = dict(self._entries)
            merged.update(updates)
            self._entries = merged
