from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import ATTENDANCE_GRACE_HOURS
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    grace_hours: float = ATTENDANCE_GRACE_HOURS

    def for_last_login(self, *, hours_since_last_login: float) -> AttendanceStrategy:
        # Boundary is inclusive: exactly grace_hours still counts as present.
        if hours_since_last_login <= self.grace_hours:
            return PresentStrategy()
        return AbsentStrategy()
