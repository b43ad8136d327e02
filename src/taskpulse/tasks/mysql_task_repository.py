from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, in_clause, split_ids, to_db_datetime
from .model import ChecklistItem, Task
from .repository import TaskRepository

_SELECT = """
    SELECT t.task_id, t.title, t.description, t.status, t.priority, t.due_date,
           t.overdue_notified, t.progress, t.created_by, t.created_at,
           (SELECT GROUP_CONCAT(a.user_id ORDER BY a.user_id) FROM task_assignees a WHERE a.task_id = t.task_id) AS assigned_to
    FROM tasks t
"""


def _row_to_task(r: dict) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        title=r["title"],
        description=r.get("description"),
        status=TaskStatus(r["status"]),
        priority=TaskPriority(r.get("priority") or TaskPriority.MEDIUM.value),
        due_date=from_db_datetime(r.get("due_date")),
        overdue_notified=bool(r.get("overdue_notified")),
        assigned_to=tuple(split_ids(r.get("assigned_to"))),
        progress=int(r.get("progress") or 0),
        created_by=int(r["created_by"]),
        created_at=from_db_datetime(r.get("created_at")),
    )


def _with_checklists(cur, rows: Sequence[dict]) -> list[Task]:
    tasks = [_row_to_task(r) for r in rows]
    if not tasks:
        return tasks

    ids = [t.task_id for t in tasks]
    cur.execute(
        f"""
        SELECT task_id, text, completed
        FROM task_checklist_items
        WHERE task_id IN ({in_clause(ids)})
        ORDER BY task_id, position
        """,
        tuple(ids),
    )
    items: dict[int, list[ChecklistItem]] = {}
    for r in fetchall(cur):
        items.setdefault(int(r["task_id"]), []).append(ChecklistItem(text=r["text"], completed=bool(r["completed"])))
    return [replace(t, checklist=tuple(items.get(t.task_id, ()))) for t in tasks]


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(title, description, status, priority, due_date, overdue_notified, created_by)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                """,
                (title, description, TaskStatus.PENDING.value, priority.value, to_db_datetime(due_date), int(created_by)),
            )
            task_id = int(cur.lastrowid)
            if assigned_to:
                cur.executemany(
                    "INSERT INTO task_assignees(task_id, user_id) VALUES(%s,%s)",
                    [(task_id, int(u)) for u in assigned_to],
                )
            return task_id

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE t.task_id=%s", (int(task_id),))
            r = fetchone(cur)
            if not r:
                return None
            return _with_checklists(cur, [r])[0]

    def update_status(self, task_id: int, status: TaskStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE tasks SET status=%s WHERE task_id=%s", (status.value, int(task_id)))
            return cur.rowcount > 0

    def list_overdue_candidates(self, now: datetime) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE t.due_date < %s AND t.status <> %s AND t.overdue_notified = 0
                ORDER BY t.due_date
                """,
                (to_db_datetime(now), TaskStatus.COMPLETED.value),
            )
            return [_row_to_task(r) for r in fetchall(cur)]

    def mark_overdue_notified(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE tasks SET overdue_notified=1 WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def list_all(self, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        where, params = self._status_filter(status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + where + " ORDER BY t.created_at DESC", params)
            return _with_checklists(cur, fetchall(cur))

    def list_assigned_to(self, user_id: int, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        where, params = self._status_filter(status)
        where += (" AND " if where else " WHERE ") + (
            "EXISTS (SELECT 1 FROM task_assignees x WHERE x.task_id = t.task_id AND x.user_id = %s)"
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + where + " ORDER BY t.created_at DESC", (*params, int(user_id)))
            return _with_checklists(cur, fetchall(cur))

    def delete_task(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def replace_checklist(
        self, task_id: int, items: Sequence[ChecklistItem], *, progress: int, status: TaskStatus
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE tasks SET progress=%s, status=%s WHERE task_id=%s",
                (int(progress), status.value, int(task_id)),
            )
            cur.execute("DELETE FROM task_checklist_items WHERE task_id=%s", (int(task_id),))
            if items:
                cur.executemany(
                    "INSERT INTO task_checklist_items(task_id, position, text, completed) VALUES(%s,%s,%s,%s)",
                    [(int(task_id), pos, item.text, 1 if item.completed else 0) for pos, item in enumerate(items)],
                )
            return True

    def add_comment(self, *, task_id: int, author_id: int, content: str, mentions: Sequence[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO comments(task_id, author_id, content) VALUES(%s,%s,%s)",
                (int(task_id), int(author_id), content),
            )
            comment_id = int(cur.lastrowid)
            if mentions:
                cur.executemany(
                    "INSERT IGNORE INTO comment_mentions(comment_id, user_id) VALUES(%s,%s)",
                    [(comment_id, int(u)) for u in mentions],
                )
            return comment_id

    @staticmethod
    def _status_filter(status: Optional[TaskStatus]) -> tuple[str, tuple[Any, ...]]:
        if status is None:
            return "", ()
        return " WHERE t.status = %s", (status.value,)
