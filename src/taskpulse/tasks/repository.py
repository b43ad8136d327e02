from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TaskPriority, TaskStatus
from .model import ChecklistItem, Task


class TaskRepository(Protocol):
    def create_task(
        self,
        *,
        title: str,
        description: Optional[str],
        priority: TaskPriority,
        due_date: Optional[datetime],
        assigned_to: Sequence[int],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def update_status(self, task_id: int, status: TaskStatus) -> bool:
        raise NotImplementedError

    def list_overdue_candidates(self, now: datetime) -> Sequence[Task]:
        """Tasks past due, not completed and not yet notified."""
        raise NotImplementedError

    def mark_overdue_notified(self, task_id: int) -> bool:
        raise NotImplementedError

    def list_all(self, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        raise NotImplementedError

    def list_assigned_to(self, user_id: int, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        raise NotImplementedError

    def delete_task(self, task_id: int) -> bool:
        raise NotImplementedError

    def replace_checklist(
        self, task_id: int, items: Sequence[ChecklistItem], *, progress: int, status: TaskStatus
    ) -> bool:
        """Swap the whole checklist and store the progress and status derived from it."""
        raise NotImplementedError

    def add_comment(self, *, task_id: int, author_id: int, content: str, mentions: Sequence[int]) -> int:
        raise NotImplementedError
