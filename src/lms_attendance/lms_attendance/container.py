from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciliation import ReconciliationEngine
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_COMMIT_MAX_WORKERS, DEFAULT_HISTORY_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .lectures.mysql_lecture_repository import MySQLLectureRepository
from .lectures.repository import LectureRepository
from .lectures.service import LectureService
from .offerings.mysql_offering_repository import MySQLOfferingRepository
from .offerings.repository import OfferingRepository
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    students_repo: StudentRepository
    offerings_repo: OfferingRepository
    lectures_repo: LectureRepository
    attendance_repo: AttendanceRepository

    lecture_service: LectureService
    attendance_service: AttendanceService
    report_service: ReportService


def wire_container(
    *,
    students_repo: StudentRepository,
    offerings_repo: OfferingRepository,
    lectures_repo: LectureRepository,
    attendance_repo: AttendanceRepository,
    conn: Optional[DatabaseConnection] = None,
    commit_max_workers: int = DEFAULT_COMMIT_MAX_WORKERS,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Container:
    lecture_service = LectureService(lectures_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        students_repo,
        offerings_repo,
        lecture_service,
        engine=ReconciliationEngine(attendance_repo, max_workers=commit_max_workers),
        history_limit=history_limit,
    )
    report_service = ReportService(attendance_repo, lectures_repo, offerings_repo, students_repo)

    return Container(
        conn=conn,
        students_repo=students_repo,
        offerings_repo=offerings_repo,
        lectures_repo=lectures_repo,
        attendance_repo=attendance_repo,
        lecture_service=lecture_service,
        attendance_service=attendance_service,
        report_service=report_service,
    )


def build_container(
    *,
    db_config: dict,
    commit_max_workers: int = DEFAULT_COMMIT_MAX_WORKERS,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        conn=conn,
        students_repo=MySQLStudentRepository(conn),
        offerings_repo=MySQLOfferingRepository(conn),
        lectures_repo=MySQLLectureRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        commit_max_workers=commit_max_workers,
        history_limit=history_limit,
    )
