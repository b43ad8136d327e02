from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import calendar_day, day_name, hours_between, now_local
from ..core.constants import ABSENCE_PUSH_MESSAGE, ABSENCE_REMINDER
from ..core.enums import AttendanceStatus, EventType, PushKind, Role
from ..events.service import EventService
from ..notifications.notifier import Notifier, fan_out
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceTotals, UserAttendanceOverview
from .repository import AttendanceRepository
from .streak import CreditOutcome, LoginCredit, credit_login

logger = logging.getLogger(__name__)

PRESENT = "present"
ABSENT = "absent"
SKIPPED = "skipped"


@dataclass
class AttendanceRunSummary:
    checked: int = 0
    present: int = 0
    absent: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class AttendanceService:
    """Login streak credit and the daily present/absent judgement.

    Both paths are idempotent per user and calendar day: a same-day re-login
    changes nothing and a second tracker run finds today's record and skips.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        events: EventService,
        notifier: Notifier,
        *,
        tz: ZoneInfo,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._events = events
        self._notifier = notifier
        self._tz = tz
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock or (lambda: now_local(tz))

    # -- login path -------------------------------------------------------

    def record_login(self, user: User, *, now: Optional[datetime] = None) -> LoginCredit:
        now = now or self._clock()
        credit = credit_login(
            last_login_at=user.last_login_at,
            login_streak=user.login_streak,
            now=now,
            tz=self._tz,
        )

        if credit.outcome == CreditOutcome.CLOCK_SKEW:
            logger.warning(
                "login for user %s predates last login (%s days); streak left at %s",
                user.user_id,
                credit.days_since_last,
                user.login_streak,
            )
            return credit
        if not credit.changed:
            return credit

        self._users.update_login(user.user_id, last_login_at=now, login_streak=credit.login_streak)
        logger.info("login credited user=%s outcome=%s streak=%s", user.user_id, credit.outcome.value, credit.login_streak)

        self._push_login(user, now=now, login_streak=credit.login_streak)
        return credit

    def _push_login(self, user: User, *, now: datetime, login_streak: int) -> None:
        try:
            admin_ids = self._users.list_admin_ids()
        except Exception:
            logger.exception("could not load admins for login push")
            return

        fan_out(
            self._notifier,
            admin_ids,
            PushKind.USER_LOGIN,
            {
                "userId": user.user_id,
                "userName": user.full_name,
                "loginTime": now.isoformat(),
                "loginStreak": login_streak,
            },
        )

    # -- daily tracker ----------------------------------------------------

    def run_daily_check(self, *, now: Optional[datetime] = None) -> AttendanceRunSummary:
        now = now or self._clock()
        today = calendar_day(now, self._tz)
        today_name = day_name(today)

        users = self._users.list_by_role(Role.USER)
        admin_ids = self._users.list_admin_ids()

        summary = AttendanceRunSummary()
        for user in users:
            summary.checked += 1
            try:
                outcome = self._check_user(user, now=now, today=today, today_name=today_name, admin_ids=admin_ids)
            except Exception:
                summary.failed += 1
                logger.exception("attendance check failed for user %s", user.user_id)
                continue

            if outcome == PRESENT:
                summary.present += 1
            elif outcome == ABSENT:
                summary.absent += 1
            else:
                summary.skipped += 1

        logger.info("attendance check for %s (%s): %s", today.isoformat(), today_name, summary.as_dict())
        return summary

    def _check_user(
        self,
        user: User,
        *,
        now: datetime,
        today: date,
        today_name: str,
        admin_ids: Sequence[int],
    ) -> str:
        if user.last_login_at is None:
            logger.debug("skipping user %s: no login history yet", user.user_id)
            return SKIPPED

        if self._attendance.get_for_user_and_date(user.user_id, today):
            return SKIPPED

        hours = hours_between(user.last_login_at, now, self._tz)
        strategy = self._factory.for_last_login(hours_since_last_login=hours)
        decision = strategy.decide(hours_since_last_login=hours)

        if decision.status == AttendanceStatus.PRESENT:
            if not self._attendance.record_present(user_id=user.user_id, record_date=today, day_name=today_name):
                return SKIPPED
            logger.info("user %s present for %s: %s", user.user_id, today_name, decision.note)
            return PRESENT

        total = self._attendance.record_absent(user_id=user.user_id, record_date=today, day_name=today_name)
        if total is None:
            return SKIPPED
        logger.info("user %s absent for %s: %s", user.user_id, today_name, decision.note)

        self._announce_absence(user, today=today, today_name=today_name, absent_days=total, admin_ids=admin_ids)
        return ABSENT

    def _announce_absence(
        self,
        user: User,
        *,
        today: date,
        today_name: str,
        absent_days: int,
        admin_ids: Sequence[int],
    ) -> None:
        if admin_ids:
            self._events.create_event(
                EventType.USER_ABSENT,
                actor_id=user.user_id,
                targets=admin_ids,
                meta={
                    "userName": user.full_name,
                    "userEmail": user.email,
                    "absentDate": today.isoformat(),
                    "absentDay": today_name,
                    "totalAbsentDays": absent_days,
                    "streakBroken": True,
                },
            )

        self._events.create_event(
            EventType.USER_ABSENT,
            actor_id=None,
            targets=[user.user_id],
            meta={
                "userName": user.full_name,
                "absentDate": today.isoformat(),
                "absentDay": today_name,
                "totalAbsentDays": absent_days,
                "message": ABSENCE_REMINDER,
            },
        )

        update = {
            "userId": user.user_id,
            "status": AttendanceStatus.ABSENT.value,
            "date": today.isoformat(),
            "day": today_name,
            "absentDays": absent_days,
        }
        fan_out(self._notifier, admin_ids, PushKind.ATTENDANCE_UPDATE, {**update, "userName": user.full_name})
        fan_out(self._notifier, [user.user_id], PushKind.ATTENDANCE_UPDATE, {**update, "message": ABSENCE_PUSH_MESSAGE})

    # -- queries ----------------------------------------------------------

    def get_history(self, user_id: int, *, limit: int = 30) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(int(user_id), int(limit))

    def get_today_record(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        today = calendar_day(now or self._clock(), self._tz)
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def team_overview(self, *, recent_days: int = 7) -> list[UserAttendanceOverview]:
        totals = {t.user_id: t for t in self._attendance.totals_by_user()}
        return [
            UserAttendanceOverview(
                user=user,
                totals=totals.get(user.user_id, AttendanceTotals(user_id=user.user_id)),
                recent=tuple(self._attendance.get_recent_for_user(user.user_id, int(recent_days))),
            )
            for user in self._users.list_by_role(Role.USER)
        ]
