from __future__ import annotations

import csv
import io
from datetime import date

from flask import Flask, jsonify, request

from ..common.responses import domain_error_response, json_error
from ..common.validators import parse_id_list
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    lectures = container.lecture_service

    def _lecture_payload(session, query: str = "") -> dict:
        lecture = session.lecture
        return {
            "lecture": {
                "lecture_id": lecture.lecture_id,
                "offering_id": lecture.offering_id,
                "course_id": lecture.course_id,
                "date": lecture.lecture_date.isoformat(),
                "room": lecture.room,
                "status": lecture.status.value,
                "locked": lecture.is_locked,
            },
            "course": session.offering.label if session.offering else None,
            "students": attendance.roster_view(session, query),
            "stats": attendance.session_stats(session).to_dict(),
        }

    def _parse_ids_arg(value: str) -> list[int]:
        parts = [p for p in (value or "").split(",") if p.strip()]
        return parse_id_list(parts, "ids")

    @app.route("/api/lectures/<int:lecture_id>/attendance", methods=["GET"], endpoint="lecture_attendance")
    def lecture_attendance(lecture_id: int):
        try:
            session = attendance.open_session(lecture_id)
            return jsonify({"success": True, **_lecture_payload(session, request.args.get("q", ""))})
        except Exception as e:
            return domain_error_response(e)

    @app.route("/api/lectures/<int:lecture_id>/attendance", methods=["POST"], endpoint="mark_attendance")
    def mark_attendance(lecture_id: int):
        """Mark one or many students and commit immediately.

        Body is either ``{"marks": {"<student_id>": "<status>"}}`` or
        ``{"student_ids": [...], "status": "<status>"}``.
        """
        data = request.get_json(silent=True) or {}
        try:
            session = attendance.open_session(lecture_id)
            if "marks" in data:
                marks = data.get("marks")
                if not isinstance(marks, dict) or not marks:
                    raise ValidationError("marks must be a non-empty object")
                attendance.apply_marks(session, marks)
                ids = parse_id_list(marks.keys(), "student_id")
            elif "student_ids" in data:
                ids = parse_id_list(data.get("student_ids") or [], "student_id")
                if not ids:
                    raise ValidationError("student_ids must not be empty")
                attendance.bulk_mark(session, ids, data.get("status"))
            else:
                raise ValidationError("Provide marks or student_ids")

            results = attendance.save(session, student_ids=ids)
        except Exception as e:
            return domain_error_response(e)

        return jsonify(
            {
                "success": all(r.ok for r in results),
                "results": [r.to_dict() for r in results],
                "stats": attendance.session_stats(session).to_dict(),
            }
        )

    @app.route("/api/lectures/<int:lecture_id>/lock", methods=["POST"], endpoint="lock_attendance")
    def lock_attendance(lecture_id: int):
        try:
            lecture = lectures.lock_attendance(lecture_id)
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, "lecture_id": lecture.lecture_id, "locked": lecture.is_locked})

    @app.route("/api/lectures/<int:lecture_id>/unlock", methods=["POST"], endpoint="unlock_attendance")
    def unlock_attendance(lecture_id: int):
        try:
            lecture = lectures.unlock_attendance(lecture_id)
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, "lecture_id": lecture.lecture_id, "locked": lecture.is_locked})

    @app.route("/api/lectures/<int:lecture_id>/status", methods=["POST"], endpoint="lecture_status")
    def lecture_status(lecture_id: int):
        data = request.get_json(silent=True) or {}
        try:
            lecture = lectures.change_status(lecture_id, data.get("status"))
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, "lecture_id": lecture.lecture_id, "status": lecture.status.value})

    @app.route("/api/students/attendance-summary", methods=["GET"], endpoint="student_attendance_summary")
    def student_attendance_summary():
        try:
            ids = _parse_ids_arg(request.args.get("ids", ""))
            if not ids:
                return json_error("ids is required", 400)
            summaries = attendance.student_summaries(ids)
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, "students": [s.to_dict() for s in summaries]})

    @app.route("/api/attendance/records", methods=["GET"], endpoint="attendance_records")
    def attendance_records():
        try:
            rows = attendance.search_records(request.args.get("q", ""))
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, "records": rows})

    @app.route("/api/attendance/records.csv", methods=["GET"], endpoint="attendance_records_csv")
    def attendance_records_csv():
        try:
            rows = attendance.search_records(request.args.get("q", ""))
        except Exception as e:
            return domain_error_response(e)

        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=["date", "lecture_id", "student_id", "full_name", "roll_number", "course", "status", "marked_at"],
            extrasaction="ignore",
        )
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        filename = f"attendance-records-{date.today().strftime('%Y-%m-%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
