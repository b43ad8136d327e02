from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, full_name, email, password_hash, role, last_login_at, login_streak, absent_days, is_active"


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        last_login_at=from_db_datetime(row.get("last_login_at")),
        login_streak=int(row.get("login_streak") or 0),
        absent_days=int(row.get("absent_days") or 0),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create_user(self, *, full_name: str, email: str, password_hash: str, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(full_name, email, password_hash, role, login_streak, absent_days, is_active)
                VALUES(%s,%s,%s,%s,0,0,1)
                """,
                (full_name, email, password_hash, role.value),
            )
            return int(cur.lastrowid)

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE role=%s AND is_active=1 ORDER BY user_id",
                (role.value,),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_admin_ids(self) -> list[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE role=%s AND is_active=1", (Role.ADMIN.value,))
            return [int(r["user_id"]) for r in fetchall(cur)]

    def update_login(self, user_id: int, *, last_login_at: datetime, login_streak: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET last_login_at=%s, login_streak=%s WHERE user_id=%s",
                (to_db_datetime(last_login_at), int(login_streak), int(user_id)),
            )
            return cur.rowcount > 0
