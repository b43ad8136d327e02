from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceTotals


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, record_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def record_present(self, *, user_id: int, record_date: date, day_name: str) -> bool:
        """Append a present verdict; False when the day already has one."""
        raise NotImplementedError

    def record_absent(self, *, user_id: int, record_date: date, day_name: str) -> Optional[int]:
        """Append an absent verdict and bump the user's absent-day counter together.

        Returns the new absent-day total, or None when the day already has a verdict.
        """
        raise NotImplementedError

    def totals_by_user(self) -> Sequence[AttendanceTotals]:
        raise NotImplementedError
