from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from taskpulse.core.constants import ABSENCE_REMINDER
from taskpulse.core.enums import AttendanceStatus, EventType, PushKind, Role

TODAY = date(2025, 3, 12)


def _setup_users(make_user, fixed_now):
    make_user(1, role=Role.ADMIN, last_login_at=fixed_now - timedelta(days=10))
    make_user(2, last_login_at=fixed_now - timedelta(hours=22))
    make_user(3, last_login_at=fixed_now - timedelta(hours=24))
    make_user(4, full_name="Quang", last_login_at=fixed_now - timedelta(hours=49), login_streak=7)
    make_user(5)


def test_daily_check_judges_each_user(attendance_service, attendance_repo, make_user, fixed_now):
    _setup_users(make_user, fixed_now)

    summary = attendance_service.run_daily_check(now=fixed_now)

    assert summary.as_dict() == {"checked": 4, "present": 2, "absent": 1, "skipped": 1, "failed": 0}
    assert attendance_repo.get_for_user_and_date(2, TODAY).status == AttendanceStatus.PRESENT
    # exactly 24 hours is still inside the grace window
    assert attendance_repo.get_for_user_and_date(3, TODAY).status == AttendanceStatus.PRESENT
    assert attendance_repo.get_for_user_and_date(4, TODAY).status == AttendanceStatus.ABSENT
    assert attendance_repo.get_for_user_and_date(5, TODAY) is None
    # admins are never judged
    assert attendance_repo.get_for_user_and_date(1, TODAY) is None
    assert attendance_repo.get_for_user_and_date(2, TODAY).day_name == "Wednesday"


def test_absence_bumps_counter_and_creates_two_events(attendance_service, users_repo, events_repo, make_user, fixed_now):
    _setup_users(make_user, fixed_now)

    attendance_service.run_daily_check(now=fixed_now)

    assert users_repo.get_by_id(4).absent_days == 1
    # the tracker does not touch the streak; the next login resets it
    assert users_repo.get_by_id(4).login_streak == 7

    events = events_repo.of_type(EventType.USER_ABSENT)
    assert len(events) == 2
    admin_event = next(e for e in events if e.targets == (1,))
    self_event = next(e for e in events if e.targets == (4,))

    assert admin_event.actor_id == 4
    assert admin_event.meta["streakBroken"] is True
    assert admin_event.meta["totalAbsentDays"] == 1
    assert admin_event.meta["absentDate"] == "2025-03-12"
    assert admin_event.meta["absentDay"] == "Wednesday"
    assert self_event.actor_id is None
    assert self_event.meta["message"] == ABSENCE_REMINDER


def test_absence_pushes_attendance_update(attendance_service, notifier, make_user, fixed_now):
    _setup_users(make_user, fixed_now)

    attendance_service.run_daily_check(now=fixed_now)

    assert sorted(notifier.recipients(PushKind.ATTENDANCE_UPDATE)) == [1, 4]
    for payload in notifier.payloads(PushKind.ATTENDANCE_UPDATE):
        assert payload["userId"] == 4
        assert payload["status"] == "absent"
        assert payload["date"] == "2025-03-12"
        assert payload["day"] == "Wednesday"
        assert payload["absentDays"] == 1


def test_second_run_same_day_is_a_no_op(attendance_service, attendance_repo, users_repo, events_repo, make_user, fixed_now):
    _setup_users(make_user, fixed_now)
    attendance_service.run_daily_check(now=fixed_now)
    events_before = events_repo.count_all()
    records_before = len(attendance_repo.records)

    summary = attendance_service.run_daily_check(now=fixed_now + timedelta(hours=5))

    assert summary.present == 0
    assert summary.absent == 0
    assert summary.skipped == 4
    assert len(attendance_repo.records) == records_before
    assert events_repo.count_all() == events_before
    assert users_repo.get_by_id(4).absent_days == 1


def test_absence_without_admins_still_tells_the_user(attendance_service, events_repo, make_user, fixed_now):
    make_user(4, last_login_at=fixed_now - timedelta(days=3))

    summary = attendance_service.run_daily_check(now=fixed_now)

    assert summary.absent == 1
    [event] = events_repo.of_type(EventType.USER_ABSENT)
    assert event.targets == (4,)


def test_one_failing_user_does_not_stop_the_run(attendance_service, attendance_repo, make_user, monkeypatch, fixed_now):
    _setup_users(make_user, fixed_now)
    original = attendance_repo.get_for_user_and_date

    def flaky(user_id, record_date):
        if user_id == 2:
            raise RuntimeError("db hiccup")
        return original(user_id, record_date)

    monkeypatch.setattr(attendance_repo, "get_for_user_and_date", flaky)

    summary = attendance_service.run_daily_check(now=fixed_now)

    assert summary.failed == 1
    assert summary.present == 1
    assert summary.absent == 1
    assert original(4, TODAY) is not None


def test_present_user_gets_no_events(attendance_service, events_repo, notifier, make_user, fixed_now):
    make_user(1, role=Role.ADMIN)
    make_user(2, last_login_at=fixed_now - timedelta(hours=1))

    attendance_service.run_daily_check(now=fixed_now)

    assert events_repo.count_all() == 0
    assert notifier.pushes == []


def test_history_and_today(attendance_service, make_user, fixed_now):
    make_user(2, last_login_at=datetime(2025, 3, 12, 8, 0, tzinfo=timezone.utc))
    attendance_service.run_daily_check(now=fixed_now)

    today = attendance_service.get_today_record(2, now=fixed_now)
    history = attendance_service.get_history(2)

    assert today.to_dict() == {"date": "2025-03-12", "day": "Wednesday", "status": "present"}
    assert [r.record_date for r in history] == [TODAY]


def test_team_overview_lists_plain_users_with_totals(attendance_service, make_user, fixed_now):
    _setup_users(make_user, fixed_now)
    attendance_service.run_daily_check(now=fixed_now)

    overview = {o.user.user_id: o for o in attendance_service.team_overview(recent_days=3)}

    assert sorted(overview) == [2, 3, 4, 5]
    assert overview[2].totals.present_days == 1
    assert overview[4].to_dict()["absentDays"] == 1
    assert overview[4].to_dict()["recent"] == [{"date": "2025-03-12", "day": "Wednesday", "status": "absent"}]
    assert overview[5].to_dict()["lastLoginDate"] is None
    assert overview[5].recent == ()
