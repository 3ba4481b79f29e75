"""Attendance lock state machine.

Two states, ``UNLOCKED`` and ``LOCKED``. ``lock()`` and ``unlock()`` are
idempotent. While locked every draft mutation and every new commit is
rejected through :meth:`AttendanceLock.guard`; reads stay available. A
commit that passed its guard before ``lock()`` is allowed to finish.
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Callable

from ..core.enums import LockState
from ..core.exceptions import LockedError


class AttendanceLock:
    def __init__(self, lecture_id: int, state: LockState = LockState.UNLOCKED):
        self.lecture_id = int(lecture_id)
        self._state = state
        self._mutex = threading.Lock()
        # Held across persist-then-flip and across refresh, so a read of the
        # persisted state never overtakes an in-process change.
        self._changing = threading.Lock()

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._state == LockState.LOCKED

    def lock(self) -> bool:
        """Move to LOCKED. Returns True when the state changed."""
        return self._transition(LockState.LOCKED)

    def unlock(self) -> bool:
        """Move to UNLOCKED. Returns True when the state changed."""
        return self._transition(LockState.UNLOCKED)

    @contextmanager
    def changing(self):
        with self._changing:
            yield self

    def refresh(self, load_state: Callable[[], LockState]) -> None:
        """Adopt the persisted state (another process may have changed it)."""
        with self._changing:
            self._transition(load_state())

    def guard(self) -> None:
        if self.is_locked:
            raise LockedError(self.lecture_id)

    def _transition(self, target: LockState) -> bool:
        with self._mutex:
            if self._state == target:
                return False
            self._state = target
            return True


class LockRegistry:
    """One :class:`AttendanceLock` per lecture, shared by every session in the process.

    Entries are weak: a lecture's lock is dropped once no draft or service
    call holds it, and the next caller builds it again from storage.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, AttendanceLock]" = weakref.WeakValueDictionary()
        self._mutex = threading.Lock()

    def get(self, lecture_id: int, load_state: Callable[[], LockState]) -> AttendanceLock:
        """Return the shared lock, brought up to date with ``load_state()``."""
        lecture_id = int(lecture_id)
        with self._mutex:
            lock = self._locks.get(lecture_id)
            if lock is None:
                lock = AttendanceLock(lecture_id, load_state())
                self._locks[lecture_id] = lock
                return lock
        lock.refresh(load_state)
        return lock

    def __len__(self) -> int:
        return len(self._locks)
