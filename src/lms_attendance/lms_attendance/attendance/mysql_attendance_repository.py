from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "record_id, lecture_id, student_id, course_id, offering_id, lecture_date, status, marked_at"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        lecture_id=int(r["lecture_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        offering_id=int(r["offering_id"]),
        lecture_date=r["lecture_date"],
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_lecture(self, lecture_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE lecture_id=%s ORDER BY student_id",
                (int(lecture_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_for_lecture_and_student(self, lecture_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE lecture_id=%s AND student_id=%s",
                (int(lecture_id), int(student_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_students(self, student_ids: Sequence[int]) -> Sequence[AttendanceRecord]:
        ids = [int(i) for i in student_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id IN ({in_clause(ids)})
                ORDER BY lecture_date DESC
                """,
                tuple(ids),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_recent(self, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records ORDER BY created_at DESC, record_id DESC LIMIT %s",
                (int(limit),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ORDER BY lecture_date")
            return [_to_record(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        lecture_id: int,
        student_id: int,
        course_id: int,
        offering_id: int,
        lecture_date: date,
        status: AttendanceStatus,
        marked_at: datetime,
    ) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                # The unique (lecture_id, student_id) key turns a racing second insert into an update.
                cur.execute(
                    """
                    INSERT INTO attendance_records
                        (lecture_id, student_id, course_id, offering_id, lecture_date, status, marked_at)
                    VALUES (%s,%s,%s,%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE status=VALUES(status)
                    """,
                    (
                        int(lecture_id),
                        int(student_id),
                        int(course_id),
                        int(offering_id),
                        lecture_date,
                        status.value,
                        marked_at.replace(tzinfo=None),
                    ),
                )
                cur.execute(
                    f"SELECT {_COLUMNS} FROM attendance_records WHERE lecture_id=%s AND student_id=%s",
                    (int(lecture_id), int(student_id)),
                )
                r = fetchone(cur)
        except mysql.connector.Error as exc:
            raise PersistenceError(f"Could not save attendance for student {student_id}: {exc}") from exc

        if not r:
            raise PersistenceError(f"Attendance for student {student_id} was not stored")
        return _to_record(r)

    def update_status(self, *, record_id: int, status: AttendanceStatus) -> Optional[AttendanceRecord]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE attendance_records SET status=%s WHERE record_id=%s",
                    (status.value, int(record_id)),
                )
                cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
                r = fetchone(cur)
        except mysql.connector.Error as exc:
            raise PersistenceError(f"Could not update attendance record {record_id}: {exc}") from exc

        return _to_record(r) if r else None
