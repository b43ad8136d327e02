from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TaskPriority, TaskStatus


@dataclass(frozen=True)
class ChecklistItem:
    text: str
    completed: bool = False

    def to_dict(self) -> dict:
        return {"text": self.text, "completed": self.completed}


@dataclass(frozen=True)
class Task:
    """Domain entity: Task."""

    task_id: int
    title: str
    status: TaskStatus
    created_by: int
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    overdue_notified: bool = False
    assigned_to: tuple[int, ...] = ()
    checklist: tuple[ChecklistItem, ...] = ()
    progress: int = 0
    created_at: Optional[datetime] = None

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.due_date is not None
            and self.due_date < now
            and self.status != TaskStatus.COMPLETED
            and not self.overdue_notified
        )

    def to_dict(self) -> dict:
        return {
            "id": self.task_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "overdueNotified": self.overdue_notified,
            "assignedTo": list(self.assigned_to),
            "todoChecklist": [item.to_dict() for item in self.checklist],
            "progress": self.progress,
            "createdBy": self.created_by,
        }


@dataclass(frozen=True)
class Comment:
    comment_id: int
    task_id: int
    author_id: int
    content: str
    mentions: tuple[int, ...] = ()
    created_at: Optional[datetime] = None
