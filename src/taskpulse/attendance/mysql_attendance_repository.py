from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceTotals
from .repository import AttendanceRepository


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        record_date=r["record_date"],
        day_name=r["day_name"],
        status=AttendanceStatus(r["status"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, record_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, record_date, day_name, status
                FROM attendance_records
                WHERE user_id=%s AND record_date=%s
                """,
                (int(user_id), record_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, record_date, day_name, status
                FROM attendance_records
                WHERE user_id=%s
                ORDER BY record_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def record_present(self, *, user_id: int, record_date: date, day_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(user_id, record_date, day_name, status)
                VALUES(%s,%s,%s,%s)
                """,
                (int(user_id), record_date, day_name, AttendanceStatus.PRESENT.value),
            )
            return cur.rowcount > 0

    def record_absent(self, *, user_id: int, record_date: date, day_name: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(user_id, record_date, day_name, status)
                VALUES(%s,%s,%s,%s)
                """,
                (int(user_id), record_date, day_name, AttendanceStatus.ABSENT.value),
            )
            if cur.rowcount == 0:
                return None

            cur.execute("UPDATE users SET absent_days = absent_days + 1 WHERE user_id=%s", (int(user_id),))
            cur.execute("SELECT absent_days FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return int(row["absent_days"]) if row else None

    def totals_by_user(self) -> Sequence[AttendanceTotals]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id,
                       SUM(status = 'present') AS present_days,
                       SUM(status = 'absent') AS absent_days
                FROM attendance_records
                GROUP BY user_id
                """
            )
            return [
                AttendanceTotals(
                    user_id=int(r["user_id"]),
                    present_days=int(r.get("present_days") or 0),
                    absent_days=int(r.get("absent_days") or 0),
                )
                for r in fetchall(cur)
            ]
