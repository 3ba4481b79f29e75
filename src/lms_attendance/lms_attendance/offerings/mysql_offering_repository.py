from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import CourseOffering
from .repository import OfferingRepository


class MySQLOfferingRepository(OfferingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _enrollments(cur, offering_ids: list[int]) -> dict[int, set[int]]:
        out: dict[int, set[int]] = {oid: set() for oid in offering_ids}
        if not offering_ids:
            return out
        cur.execute(
            f"""
            SELECT offering_id, student_id
            FROM offering_enrollments
            WHERE offering_id IN ({in_clause(offering_ids)})
            """,
            tuple(offering_ids),
        )
        for r in fetchall(cur):
            out[int(r["offering_id"])].add(int(r["student_id"]))
        return out

    @staticmethod
    def _to_offering(r: dict, enrolled: set[int]) -> CourseOffering:
        return CourseOffering(
            offering_id=int(r["offering_id"]),
            course_id=int(r["course_id"]),
            enrolled_students=frozenset(enrolled),
            course_code=r.get("course_code") or "",
            course_name=r.get("course_name") or "",
            status=r.get("status") or "active",
        )

    def get_by_id(self, offering_id: int) -> Optional[CourseOffering]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT offering_id, course_id, course_code, course_name, status
                FROM course_offerings
                WHERE offering_id=%s
                """,
                (int(offering_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            enrolled = self._enrollments(cur, [int(r["offering_id"])])
            return self._to_offering(r, enrolled[int(r["offering_id"])])

    def list_active(self) -> Sequence[CourseOffering]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT offering_id, course_id, course_code, course_name, status
                FROM course_offerings
                WHERE status='active'
                ORDER BY course_code
                """
            )
            rows = fetchall(cur)
            enrolled = self._enrollments(cur, [int(r["offering_id"]) for r in rows])
            return [self._to_offering(r, enrolled[int(r["offering_id"])]) for r in rows]
