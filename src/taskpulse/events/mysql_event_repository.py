from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    dump_json,
    fetchall,
    fetchone,
    from_db_datetime,
    in_clause,
    load_json,
    split_ids,
    to_db_datetime,
)
from .model import Event
from .repository import EventRepository

_SELECT = """
    SELECT e.event_id, e.type, e.actor_id, e.task_id, e.meta, e.created_at,
           (SELECT GROUP_CONCAT(t.user_id ORDER BY t.user_id) FROM event_targets t WHERE t.event_id = e.event_id) AS targets,
           (SELECT GROUP_CONCAT(r.user_id ORDER BY r.user_id) FROM event_reads r WHERE r.event_id = e.event_id) AS read_by
    FROM events e
"""


def _row_to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        type=EventType(r["type"]),
        actor_id=int(r["actor_id"]) if r.get("actor_id") is not None else None,
        targets=tuple(split_ids(r.get("targets"))),
        task_id=int(r["task_id"]) if r.get("task_id") is not None else None,
        meta=load_json(r.get("meta")),
        read_by=tuple(split_ids(r.get("read_by"))),
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        type: EventType,
        actor_id: Optional[int],
        targets: Sequence[int],
        task_id: Optional[int],
        meta: dict[str, Any],
        created_at: datetime,
    ) -> Event:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(type, actor_id, task_id, meta, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (type.value, actor_id, task_id, dump_json(meta), to_db_datetime(created_at)),
            )
            event_id = int(cur.lastrowid)
            if targets:
                cur.executemany(
                    "INSERT INTO event_targets(event_id, user_id) VALUES(%s,%s)",
                    [(event_id, int(t)) for t in targets],
                )

        return Event(
            event_id=event_id,
            type=type,
            actor_id=actor_id,
            targets=tuple(int(t) for t in targets),
            task_id=task_id,
            meta=dict(meta),
            read_by=(),
            created_at=created_at,
        )

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.event_id=%s", (int(event_id),))
            row = fetchone(cur)
            return _row_to_event(row) if row else None

    def get_many(self, event_ids: Sequence[int]) -> Sequence[Event]:
        if not event_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE e.event_id IN ({in_clause(event_ids)}) ORDER BY e.event_id",
                tuple(int(i) for i in event_ids),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def count_unread(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM event_targets t
                LEFT JOIN event_reads r ON r.event_id = t.event_id AND r.user_id = t.user_id
                WHERE t.user_id=%s AND r.event_id IS NULL
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def add_reader(self, event_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO event_reads(event_id, user_id) VALUES(%s,%s)",
                (int(event_id), int(user_id)),
            )
            return cur.rowcount > 0

    def add_reader_to_targeted(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO event_reads(event_id, user_id)
                SELECT t.event_id, t.user_id FROM event_targets t WHERE t.user_id=%s
                """,
                (int(user_id),),
            )
            return int(cur.rowcount)

    def add_reader_bulk(self, event_ids: Sequence[int], user_id: int) -> int:
        if not event_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT IGNORE INTO event_reads(event_id, user_id)
                SELECT e.event_id, %s FROM events e WHERE e.event_id IN ({in_clause(event_ids)})
                """,
                (int(user_id), *[int(i) for i in event_ids]),
            )
            return int(cur.rowcount)

    def delete(self, event_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM events WHERE event_id=%s", (int(event_id),))
            return cur.rowcount > 0

    def delete_many(self, event_ids: Sequence[int]) -> int:
        if not event_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM events WHERE event_id IN ({in_clause(event_ids)})",
                tuple(int(i) for i in event_ids),
            )
            return int(cur.rowcount)

    def list_for_target(self, user_id: int, *, offset: int, limit: int) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                JOIN event_targets me ON me.event_id = e.event_id AND me.user_id=%s
                ORDER BY e.created_at DESC, e.event_id DESC
                LIMIT %s OFFSET %s
                """,
                (int(user_id), int(limit), int(offset)),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def count_for_target(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM event_targets WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def list_all(self, *, offset: int, limit: int) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " ORDER BY e.created_at DESC, e.event_id DESC LIMIT %s OFFSET %s",
                (int(limit), int(offset)),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM events")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
