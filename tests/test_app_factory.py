from __future__ import annotations

from datetime import timedelta

import pytest

from taskpulse.core.constants import DEFAULT_SESSION_DAYS
from taskpulse.database.connection import DatabaseConnection
from taskpulse.main import create_app


@pytest.fixture()
def testing_app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setattr(DatabaseConnection, "_instance", None)
    return create_app()


def test_session_lifetime_is_set_at_startup(testing_app):
    assert testing_app.permanent_session_lifetime == timedelta(days=DEFAULT_SESSION_DAYS)
    assert testing_app.config["TESTING"] is True


def test_every_route_group_is_registered(testing_app):
    rules = {rule.rule for rule in testing_app.url_map.iter_rules()}

    assert {"/api/auth/login", "/logs/user", "/api/tasks", "/api/admin/attendance"} <= rules
    assert "taskpulse" in testing_app.extensions
