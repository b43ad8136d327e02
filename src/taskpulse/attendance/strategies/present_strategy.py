from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """Last login falls inside the grace window, even if it was yesterday evening."""

    def decide(self, *, hours_since_last_login: float) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.PRESENT,
            note=f"last login {hours_since_last_login:.2f} hours ago",
        )
