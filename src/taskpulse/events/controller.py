from __future__ import annotations

from flask import Flask, current_app, jsonify, request

from ..common.validators import parse_page_args
from ..common.web import admin_required, current_role, current_user_id, json_body, login_required
from ..container import Container


def _page_args() -> tuple[int, int]:
    return parse_page_args(
        request.args.get("page"),
        request.args.get("limit"),
        default_size=current_app.config["DEFAULT_PAGE_SIZE"],
        max_size=current_app.config["MAX_PAGE_SIZE"],
    )


def register(app: Flask, container: Container) -> None:
    events = container.event_service

    @app.route("/logs/user", methods=["GET"], endpoint="logs_user")
    @login_required
    def logs_user():
        page, limit = _page_args()
        user_id = current_user_id()
        result = events.list_for_user(user_id, page=page, page_size=limit)
        return jsonify(
            {
                "success": True,
                "logs": [e.to_dict(viewer_id=user_id) for e in result.items],
                "pagination": result.pagination(),
            }
        )

    @app.route("/logs/admin", methods=["GET"], endpoint="logs_admin")
    @admin_required
    def logs_admin():
        page, limit = _page_args()
        result = events.list_all(current_role=current_role(), page=page, page_size=limit)
        user_id = current_user_id()
        return jsonify(
            {
                "success": True,
                "logs": [e.to_dict(viewer_id=user_id) for e in result.items],
                "pagination": result.pagination(),
            }
        )

    @app.route("/logs/user/unread-count", methods=["GET"], endpoint="logs_unread_count")
    @login_required
    def unread_count():
        return jsonify({"success": True, "unreadCount": events.unread_count(current_user_id())})

    @app.route("/logs/<int:event_id>/read", methods=["PUT"], endpoint="logs_mark_read")
    @login_required
    def mark_read(event_id: int):
        event = events.mark_read(event_id, current_user_id())
        return jsonify({"success": True, "log": event.to_dict(viewer_id=current_user_id())})

    @app.route("/logs/user/read-all", methods=["PUT"], endpoint="logs_read_all")
    @login_required
    def read_all():
        marked = events.mark_all_read(current_user_id())
        return jsonify({"success": True, "modifiedCount": marked})

    @app.route("/logs/<int:event_id>", methods=["DELETE"], endpoint="logs_delete")
    @login_required
    def delete(event_id: int):
        events.delete(event_id, user_id=current_user_id(), current_role=current_role())
        return jsonify({"success": True, "message": "Log deleted"})

    @app.route("/logs/admin/bulk-delete", methods=["POST"], endpoint="logs_bulk_delete")
    @admin_required
    def bulk_delete():
        deleted = events.bulk_delete(json_body().get("logIds"), current_role=current_role())
        return jsonify({"success": True, "deletedCount": deleted})

    @app.route("/logs/admin/bulk-read", methods=["POST"], endpoint="logs_bulk_read")
    @admin_required
    def bulk_read():
        marked = events.bulk_mark_read(
            json_body().get("logIds"),
            user_id=current_user_id(),
            current_role=current_role(),
        )
        return jsonify({"success": True, "modifiedCount": marked})
