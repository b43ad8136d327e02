from __future__ import annotations

from flask import Flask, jsonify, request, send_file

from ..common.web import admin_required
from ..container import Container
from .service import XLSX_MIMETYPE, frame_records, summarize_statuses


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/report/users", methods=["GET"], endpoint="report_users")
    @admin_required
    def report_users():
        if request.args.get("format") == "json":
            frame = reports.users_frame()
            return jsonify({"success": True, "rows": frame_records(frame)})
        return send_file(
            reports.users_workbook(),
            download_name="users_report.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )

    @app.route("/api/report/tasks", methods=["GET"], endpoint="report_tasks")
    @admin_required
    def report_tasks():
        if request.args.get("format") == "json":
            frame = reports.tasks_frame()
            return jsonify(
                {
                    "success": True,
                    "rows": frame_records(frame),
                    "byStatus": summarize_statuses(frame),
                }
            )
        return send_file(
            reports.tasks_workbook(),
            download_name="tasks_report.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )
