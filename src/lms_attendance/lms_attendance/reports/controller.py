from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import domain_error_response, json_error
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports/summary", methods=["GET"], endpoint="report_summary")
    def report_summary():
        today_s = request.args.get("today")
        try:
            today = parse_iso_date(today_s) if today_s else None
        except ValueError:
            return json_error("today must be YYYY-MM-DD", 400)

        try:
            data = container.report_service.build_summary(today=today)
        except Exception as e:
            return domain_error_response(e)
        return jsonify({"success": True, **data.to_dict()})
