from __future__ import annotations

import atexit
import importlib
import logging
import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .container import build_container
from .core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SESSION_DAYS, MAX_PAGE_SIZE
from .database.bootstrap import apply_schema, list_tables
from .events.controller import register as register_events
from .extensions import socketio
from .notifications.notifier import SocketIONotifier
from .notifications.socket_handlers import register as register_socket_handlers
from .reports.controller import register as register_reports
from .scheduler.jobs import build_scheduler
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["TIMEZONE"] = getattr(settings, "TIMEZONE", "UTC")
    app.config["DEFAULT_PAGE_SIZE"] = int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE))
    app.config["MAX_PAGE_SIZE"] = int(getattr(settings, "MAX_PAGE_SIZE", MAX_PAGE_SIZE))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    socketio.init_app(app)

    container = build_container(
        db_config=db_config,
        notifier=SocketIONotifier(socketio),
        timezone_name=app.config["TIMEZONE"],
        admin_join_code=getattr(settings, "ADMIN_JOIN_CODE", None),
        cache_ttl=float(getattr(settings, "CACHE_TTL_SECONDS", 300)),
    )
    app.extensions["taskpulse"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_events(app, container)
    register_attendance(app, container)
    register_tasks(app, container)
    register_reports(app, container)
    register_socket_handlers(socketio)

    if bool(getattr(settings, "ENABLE_SCHEDULER", False)) and not app.config["TESTING"]:
        scheduler = build_scheduler(
            container.attendance_service,
            container.overdue_scanner,
            attendance_interval_hours=float(getattr(settings, "ATTENDANCE_INTERVAL_HOURS", 24)),
            overdue_interval_minutes=float(getattr(settings, "OVERDUE_INTERVAL_MINUTES", 60)),
        )
        scheduler.start()
        atexit.register(lambda: scheduler.shutdown(wait=False))
        logger.info("scheduler started: %s", [job.id for job in scheduler.get_jobs()])

    return app


def run() -> None:
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    # The reloader would start a second scheduler in the child process.
    socketio.run(app, host="0.0.0.0", port=port, debug=app.config["DEBUG"], use_reloader=False, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    run()
