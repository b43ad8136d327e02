"""Recurring background jobs.

Each process that starts the scheduler runs its own copy of the jobs; running
several instances against one database would announce absences and overdue
tasks more than once.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from ..attendance.service import AttendanceService
from ..core.constants import ATTENDANCE_INTERVAL_HOURS, OVERDUE_INTERVAL_MINUTES
from ..tasks.overdue import OverdueScanner

logger = logging.getLogger(__name__)

ATTENDANCE_JOB_ID = "attendance-check"
OVERDUE_JOB_ID = "overdue-check"


def run_attendance_job(attendance: AttendanceService) -> None:
    try:
        summary = attendance.run_daily_check()
        logger.info("job %s finished: %s", ATTENDANCE_JOB_ID, summary.as_dict())
    except Exception:
        logger.exception("job %s failed", ATTENDANCE_JOB_ID)


def run_overdue_job(scanner: OverdueScanner) -> None:
    try:
        notified = scanner.check_overdue()
        logger.info("job %s finished: %d task(s) notified", OVERDUE_JOB_ID, notified)
    except Exception:
        logger.exception("job %s failed", OVERDUE_JOB_ID)


def build_scheduler(
    attendance: AttendanceService,
    scanner: OverdueScanner,
    *,
    attendance_interval_hours: float = ATTENDANCE_INTERVAL_HOURS,
    overdue_interval_minutes: float = OVERDUE_INTERVAL_MINUTES,
    scheduler: BackgroundScheduler | None = None,
) -> BackgroundScheduler:
    """Register both jobs; each also runs once right away when the scheduler starts."""

    scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
    start = datetime.now(timezone.utc)

    scheduler.add_job(
        run_attendance_job,
        "interval",
        hours=attendance_interval_hours,
        args=[attendance],
        id=ATTENDANCE_JOB_ID,
        next_run_time=start,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        run_overdue_job,
        "interval",
        minutes=overdue_interval_minutes,
        args=[scanner],
        id=OVERDUE_JOB_ID,
        next_run_time=start,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
