from __future__ import annotations

from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from taskpulse.scheduler.jobs import (
    ATTENDANCE_JOB_ID,
    OVERDUE_JOB_ID,
    build_scheduler,
    run_attendance_job,
    run_overdue_job,
)


class ExplodingService:
    def run_daily_check(self, *, now=None):
        raise RuntimeError("database down")

    def check_overdue(self, *, now=None):
        raise RuntimeError("database down")


class CountingScanner:
    def __init__(self):
        self.calls = 0

    def check_overdue(self, *, now=None):
        self.calls += 1
        return 0


def test_build_scheduler_registers_both_jobs(attendance_service, overdue_scanner):
    scheduler = build_scheduler(
        attendance_service,
        overdue_scanner,
        scheduler=BackgroundScheduler(),
        overdue_interval_minutes=30,
    )

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {ATTENDANCE_JOB_ID, OVERDUE_JOB_ID}
    assert jobs[ATTENDANCE_JOB_ID].trigger.interval == timedelta(hours=24)
    assert jobs[OVERDUE_JOB_ID].trigger.interval == timedelta(minutes=30)
    assert not scheduler.running


def test_jobs_never_raise(caplog):
    run_attendance_job(ExplodingService())
    run_overdue_job(ExplodingService())

    assert "job attendance-check failed" in caplog.text
    assert "job overdue-check failed" in caplog.text


def test_overdue_job_runs_the_scanner():
    scanner = CountingScanner()

    run_overdue_job(scanner)

    assert scanner.calls == 1
