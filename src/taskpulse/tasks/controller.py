from __future__ import annotations

from flask import Flask, current_app, jsonify, request

from ..common.datetime_utils import get_zone, parse_iso_datetime
from ..common.web import admin_required, current_role, current_user_id, json_body, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    tasks = container.task_service

    @app.route("/api/tasks", methods=["POST"], endpoint="create_task")
    @admin_required
    def create_task():
        data = json_body()
        due_date = None
        if data.get("dueDate"):
            try:
                due_date = parse_iso_datetime(str(data["dueDate"]), get_zone(current_app.config["TIMEZONE"]))
            except ValueError:
                raise ValidationError("dueDate must be an ISO date or datetime")

        task = tasks.create_task(
            title=data.get("title", ""),
            description=data.get("description"),
            priority=data.get("priority", "medium"),
            due_date=due_date,
            assigned_to=data.get("assignedTo") or [],
            created_by=current_user_id(),
            current_role=current_role(),
        )
        return jsonify({"success": True, "task": task.to_dict()}), 201

    @app.route("/api/tasks/<int:task_id>/status", methods=["PUT"], endpoint="update_task_status")
    @login_required
    def update_status(task_id: int):
        task = tasks.update_status(
            task_id,
            json_body().get("status"),
            user_id=current_user_id(),
            current_role=current_role(),
        )
        return jsonify({"success": True, "task": task.to_dict()})

    @app.route("/api/tasks", methods=["GET"], endpoint="list_tasks")
    @login_required
    def list_tasks():
        found = tasks.list_tasks(
            user_id=current_user_id(),
            current_role=current_role(),
            status=request.args.get("status") or None,
        )
        return jsonify({"success": True, "tasks": [t.to_dict() for t in found]})

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="get_task")
    @login_required
    def get_task(task_id: int):
        return jsonify({"success": True, "task": tasks.get_task(task_id).to_dict()})

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="delete_task")
    @admin_required
    def delete_task(task_id: int):
        tasks.delete_task(task_id, current_role=current_role())
        return jsonify({"success": True, "message": "Task deleted"})

    @app.route("/api/tasks/<int:task_id>/todo", methods=["PUT"], endpoint="update_task_checklist")
    @login_required
    def update_checklist(task_id: int):
        task = tasks.update_checklist(
            task_id,
            json_body().get("todoChecklist"),
            user_id=current_user_id(),
            current_role=current_role(),
        )
        return jsonify({"success": True, "task": task.to_dict()})

    @app.route("/api/tasks/<int:task_id>/comments", methods=["POST"], endpoint="add_task_comment")
    @login_required
    def add_comment(task_id: int):
        data = json_body()
        comment_id = tasks.add_comment(
            task_id,
            author_id=current_user_id(),
            content=data.get("text", ""),
            mentions=data.get("mentions") or [],
        )
        return jsonify({"success": True, "commentId": comment_id}), 201

    @app.route("/api/admin/tasks/check-overdue", methods=["POST"], endpoint="check_overdue")
    @admin_required
    def check_overdue():
        notified = container.overdue_scanner.check_overdue()
        return jsonify({"success": True, "notified": notified})
