from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import LectureStatus, LockState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Lecture
from .repository import LectureRepository

_COLUMNS = """
    lecture_id, offering_id, course_id, lecture_date, start_time, end_time,
    room, status, attendance_locked
"""


def _to_lecture(r: dict) -> Lecture:
    return Lecture(
        lecture_id=int(r["lecture_id"]),
        offering_id=int(r["offering_id"]),
        course_id=int(r["course_id"]),
        lecture_date=r["lecture_date"],
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        room=r.get("room"),
        status=LectureStatus(r["status"]),
        lock_state=LockState.from_flag(bool(r.get("attendance_locked"))),
    )


class MySQLLectureRepository(LectureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, lecture_id: int) -> Optional[Lecture]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM lectures WHERE lecture_id=%s", (int(lecture_id),))
            r = fetchone(cur)
            return _to_lecture(r) if r else None

    def list_all(self) -> Sequence[Lecture]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM lectures ORDER BY lecture_date, start_time")
            return [_to_lecture(r) for r in fetchall(cur)]

    def set_attendance_locked(self, lecture_id: int, *, locked: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE lectures SET attendance_locked=%s WHERE lecture_id=%s",
                (1 if locked else 0, int(lecture_id)),
            )
            return cur.rowcount > 0

    def set_status(self, lecture_id: int, *, status: LectureStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE lectures SET status=%s WHERE lecture_id=%s",
                (status.value, int(lecture_id)),
            )
            return cur.rowcount > 0
