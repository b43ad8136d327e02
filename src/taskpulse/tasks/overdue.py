from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.enums import EventType
from ..events.service import EventService
from ..users.repository import UserRepository
from .repository import TaskRepository

logger = logging.getLogger(__name__)


class OverdueScanner:
    """Announces each overdue task once.

    The ``overdue_notified`` latch is set right after the event is written and
    is never cleared, so moving the due date later does not re-arm it.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        events: EventService,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._tasks = tasks
        self._users = users
        self._events = events
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def check_overdue(self, *, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        candidates = self._tasks.list_overdue_candidates(now)
        if not candidates:
            return 0

        admin_ids = self._users.list_admin_ids()
        notified = 0
        for task in candidates:
            try:
                self._events.create_event(
                    EventType.TASK_OVERDUE,
                    actor_id=None,
                    targets=admin_ids,
                    task_id=task.task_id,
                    meta={
                        "title": task.title,
                        "dueDate": task.due_date.isoformat() if task.due_date else None,
                    },
                    now=now,
                )
                self._tasks.mark_overdue_notified(task.task_id)
                notified += 1
            except Exception:
                logger.exception("overdue check failed for task %s", task.task_id)

        logger.info("overdue scan: %d candidate(s), %d notified", len(candidates), notified)
        return notified
