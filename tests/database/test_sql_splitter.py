from __future__ import annotations

from pathlib import Path

from src.lms_attendance.lms_attendance.database.bootstrap import iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splits_on_semicolons_outside_quotes_and_comments():
    sql = """
    -- leading comment; not a statement
    INSERT INTO t VALUES ('a;b', "c;d");
    INSERT INTO t VALUES ('it''s');  -- trailing; comment
    SELECT 1
    """

    stmts = list(iter_sql_statements(sql))

    assert stmts == [
        "INSERT INTO t VALUES ('a;b', \"c;d\")",
        "INSERT INTO t VALUES ('it''s')",
        "SELECT 1",
    ]


def test_schema_file_declares_unique_attendance_key():
    stmts = list(iter_sql_statements(SCHEMA.read_text(encoding="utf-8")))

    creates = [s for s in stmts if s.upper().startswith("CREATE TABLE")]
    attendance = next(s for s in creates if "attendance_records" in s)

    assert len(creates) == 5
    assert "UNIQUE KEY uq_attendance_lecture_student (lecture_id, student_id)" in attendance
