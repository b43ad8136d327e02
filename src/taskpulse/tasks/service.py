from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.validators import normalize_user_ids, require_non_empty
from ..core.enums import EventType, Role, TaskPriority, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..events.service import EventService
from ..users.repository import UserRepository
from .model import ChecklistItem, Task
from .repository import TaskRepository

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"@(\d+)\b")


def extract_mentions(content: str) -> list[int]:
    """``@<user id>`` tokens in a comment body."""
    return normalize_user_ids(_MENTION_RE.findall(content or ""))


def checklist_progress(items: Sequence[ChecklistItem]) -> tuple[int, TaskStatus]:
    """Percent of items done (half rounds up) and the status that percentage implies."""

    if not items:
        return 0, TaskStatus.PENDING
    done = sum(1 for item in items if item.completed)
    progress = int(math.floor(done * 100 / len(items) + 0.5))
    if progress == 100:
        return progress, TaskStatus.COMPLETED
    if progress > 0:
        return progress, TaskStatus.IN_PROGRESS
    return progress, TaskStatus.PENDING


def _clean_checklist(items: Any) -> list[ChecklistItem]:
    if not isinstance(items, (list, tuple)):
        raise ValidationError("todoChecklist must be an array")
    cleaned = []
    for raw in items:
        if not isinstance(raw, dict):
            continue
        text = str(raw.get("text") or "").strip()
        if text:
            cleaned.append(ChecklistItem(text=text, completed=bool(raw.get("completed"))))
    return cleaned


def _parse_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


class TaskService:
    """Task writes that produce events. Event logging never fails the write."""

    def __init__(self, tasks: TaskRepository, users: UserRepository, events: EventService):
        self._tasks = tasks
        self._users = users
        self._events = events

    def create_task(
        self,
        *,
        title: str,
        created_by: int,
        current_role: Role,
        description: Optional[str] = None,
        priority: Any = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
        assigned_to: Optional[Sequence[Any]] = None,
    ) -> Task:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        title = require_non_empty(title, "Title")
        priority = _parse_enum(TaskPriority, priority, "priority")
        assignees = normalize_user_ids(assigned_to)

        task_id = self._tasks.create_task(
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            assigned_to=assignees,
            created_by=int(created_by),
        )
        task = self._require(task_id)
        logger.info("task %s created by %s assignees=%s", task.task_id, created_by, assignees)

        meta = {"title": task.title, "priority": task.priority.value}
        if task.due_date:
            meta["dueDate"] = task.due_date.isoformat()

        other_admins = [a for a in self._safe_admin_ids() if a != int(created_by)]
        self._events.create_event(
            EventType.TASK_CREATED,
            actor_id=int(created_by),
            targets=other_admins,
            task_id=task.task_id,
            meta=meta,
        )

        recipients = [u for u in assignees if u != int(created_by)]
        if recipients:
            self._events.create_event(
                EventType.TASK_ASSIGNED,
                actor_id=int(created_by),
                targets=recipients,
                task_id=task.task_id,
                meta=meta,
            )
        return task

    def update_status(self, task_id: int, status: Any, *, user_id: int, current_role: Role) -> Task:
        new_status = _parse_enum(TaskStatus, status, "status")
        task = self._require(task_id)
        if current_role != Role.ADMIN and int(user_id) not in task.assigned_to:
            raise AuthorizationError("Only assignees or admins can update this task")

        if task.status == new_status:
            return task

        if new_status == TaskStatus.COMPLETED:
            # completing a task ticks off every checklist item
            done = [replace(item, completed=True) for item in task.checklist]
            self._tasks.replace_checklist(task.task_id, done, progress=100, status=new_status)
        else:
            self._tasks.update_status(task.task_id, new_status)
        updated = self._require(task.task_id)

        if new_status == TaskStatus.COMPLETED:
            self._announce_completion(task, actor_id=int(user_id))
        return updated

    def update_checklist(self, task_id: int, items: Any, *, user_id: int, current_role: Role) -> Task:
        task = self._require(task_id)
        if current_role != Role.ADMIN and int(user_id) not in task.assigned_to:
            raise AuthorizationError("Not authorized to update checklist")

        checklist = _clean_checklist(items)
        progress, status = checklist_progress(checklist)
        self._tasks.replace_checklist(task.task_id, checklist, progress=progress, status=status)
        updated = self._require(task.task_id)
        logger.info("checklist for task %s: %d items, progress=%s", task.task_id, len(checklist), progress)

        if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
            self._announce_completion(task, actor_id=int(user_id))
        return updated

    # -- reads and removal ------------------------------------------------

    def list_tasks(self, *, user_id: int, current_role: Role, status: Any = None) -> list[Task]:
        """Admins see every task; everyone else only the tasks assigned to them."""

        wanted = _parse_enum(TaskStatus, status, "status") if status else None
        if current_role == Role.ADMIN:
            return list(self._tasks.list_all(wanted))
        return list(self._tasks.list_assigned_to(int(user_id), wanted))

    def get_task(self, task_id: int) -> Task:
        return self._require(task_id)

    def delete_task(self, task_id: int, *, current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        task = self._require(task_id)
        self._tasks.delete_task(task.task_id)
        logger.info("task %s deleted", task.task_id)

    def add_comment(
        self,
        task_id: int,
        *,
        author_id: int,
        content: str,
        mentions: Optional[Sequence[Any]] = None,
    ) -> int:
        content = require_non_empty(content, "Comment")
        task = self._require(task_id)

        mentioned = normalize_user_ids([*(mentions or []), *extract_mentions(content)])
        comment_id = self._tasks.add_comment(
            task_id=task.task_id,
            author_id=int(author_id),
            content=content,
            mentions=mentioned,
        )

        targets = [u for u in mentioned if u != int(author_id)]
        if targets:
            self._events.create_event(
                EventType.USER_MENTIONED,
                actor_id=int(author_id),
                targets=targets,
                task_id=task.task_id,
                meta={"comment": content, "taskTitle": task.title},
            )
        return comment_id

    def _announce_completion(self, task: Task, *, actor_id: int) -> None:
        targets = [u for u in [*self._safe_admin_ids(), task.created_by] if u != actor_id]
        self._events.create_event(
            EventType.TASK_COMPLETED,
            actor_id=actor_id,
            targets=targets,
            task_id=task.task_id,
            meta={"title": task.title, "previousStatus": task.status.value},
        )

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _safe_admin_ids(self) -> list[int]:
        try:
            return list(self._users.list_admin_ids())
        except Exception:
            logger.exception("could not load admins for task event")
            return []
