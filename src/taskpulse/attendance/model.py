from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus
from ..users.model import User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's verdict for one calendar day."""

    user_id: int
    record_date: date
    day_name: str
    status: AttendanceStatus
    attendance_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "date": self.record_date.isoformat(),
            "day": self.day_name,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class AttendanceTotals:
    """Read-model for reports: per-user counts of each verdict."""

    user_id: int
    present_days: int = 0
    absent_days: int = 0


@dataclass(frozen=True)
class UserAttendanceOverview:
    """Admin view of one user: counters, totals and the latest verdicts."""

    user: User
    totals: AttendanceTotals
    recent: tuple[AttendanceRecord, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.user.user_id,
            "name": self.user.full_name,
            "email": self.user.email,
            "loginStreak": self.user.login_streak,
            "absentDays": self.user.absent_days,
            "presentDays": self.totals.present_days,
            "lastLoginDate": self.user.last_login_at.isoformat() if self.user.last_login_at else None,
            "recent": [r.to_dict() for r in self.recent],
        }
