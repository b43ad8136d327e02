"""Login streak arithmetic, kept free of I/O so it can be tested with fixed clocks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from ..common.datetime_utils import calendar_day, days_between


class CreditOutcome(str, Enum):
    FIRST_LOGIN = "first_login"
    CONTINUED = "continued"
    RESET = "reset"
    ALREADY_CREDITED = "already_credited"
    CLOCK_SKEW = "clock_skew"


@dataclass(frozen=True)
class LoginCredit:
    outcome: CreditOutcome
    login_streak: int
    days_since_last: Optional[int] = None

    @property
    def changed(self) -> bool:
        """Whether the user row must be written (streak and last-login timestamp)."""
        return self.outcome in {CreditOutcome.FIRST_LOGIN, CreditOutcome.CONTINUED, CreditOutcome.RESET}


def credit_login(*, last_login_at: Optional[datetime], login_streak: int, now: datetime, tz: ZoneInfo) -> LoginCredit:
    today = calendar_day(now, tz)
    if last_login_at is None:
        return LoginCredit(CreditOutcome.FIRST_LOGIN, 1)

    diff = days_between(calendar_day(last_login_at, tz), today)
    if diff == 0:
        return LoginCredit(CreditOutcome.ALREADY_CREDITED, login_streak, 0)
    if diff < 0:
        return LoginCredit(CreditOutcome.CLOCK_SKEW, login_streak, diff)
    if diff == 1:
        return LoginCredit(CreditOutcome.CONTINUED, login_streak + 1, diff)
    return LoginCredit(CreditOutcome.RESET, 1, diff)
