from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object (no database access). Attendance state lives on the
    user row; the per-day verdicts are in the attendance module.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    last_login_at: Optional[datetime] = None
    login_streak: int = 0
    absent_days: int = 0
    is_active: bool = True

    def public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "lastLoginDate": self.last_login_at.isoformat() if self.last_login_at else None,
            "loginStreak": self.login_streak,
            "absentDays": self.absent_days,
        }
