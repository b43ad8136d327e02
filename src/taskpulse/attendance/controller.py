from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import admin_required, current_user_id, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/me", methods=["GET"], endpoint="attendance_me")
    @login_required
    def attendance_me():
        try:
            limit = int(request.args.get("limit") or 30)
        except ValueError:
            raise ValidationError("limit must be an integer")

        user_id = current_user_id()
        user = container.auth_service.get_profile(user_id)
        history = container.attendance_service.get_history(user_id, limit=max(1, min(limit, 366)))
        today = container.attendance_service.get_today_record(user_id)
        return jsonify(
            {
                "success": True,
                "loginStreak": user.login_streak,
                "absentDays": user.absent_days,
                "lastLoginDate": user.last_login_at.isoformat() if user.last_login_at else None,
                "today": today.to_dict() if today else None,
                "history": [r.to_dict() for r in history],
            }
        )

    @app.route("/api/admin/attendance/run", methods=["POST"], endpoint="attendance_run")
    @admin_required
    def attendance_run():
        summary = container.attendance_service.run_daily_check()
        return jsonify({"success": True, "summary": summary.as_dict()})

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="attendance_all")
    @admin_required
    def attendance_all():
        try:
            days = int(request.args.get("days") or 7)
        except ValueError:
            raise ValidationError("days must be an integer")

        overview = container.attendance_service.team_overview(recent_days=max(1, min(days, 366)))
        return jsonify({"success": True, "users": [o.to_dict() for o in overview]})
