from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """No login inside the grace window."""

    def decide(self, *, hours_since_last_login: float) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.ABSENT,
            note=f"no login for {hours_since_last_login:.2f} hours",
        )
