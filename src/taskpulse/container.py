from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.cache import TTLCache
from .common.datetime_utils import get_zone
from .core.constants import ATTENDANCE_GRACE_HOURS, DEFAULT_CACHE_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .events.service import EventService
from .notifications.notifier import Notifier, NullNotifier
from .reports.service import ReportService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.overdue import OverdueScanner
from .tasks.service import TaskService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    events_repo: MySQLEventRepository
    tasks_repo: MySQLTaskRepository

    notifier: Notifier
    cache: TTLCache

    event_service: EventService
    attendance_service: AttendanceService
    auth_service: AuthService
    task_service: TaskService
    overdue_scanner: OverdueScanner
    report_service: ReportService


def build_container(
    *,
    db_config: dict,
    notifier: Optional[Notifier] = None,
    timezone_name: str = "UTC",
    admin_join_code: Optional[str] = None,
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    tz = get_zone(timezone_name)
    notifier = notifier or NullNotifier()
    cache = TTLCache(default_ttl=cache_ttl)

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    events_repo = MySQLEventRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)

    event_service = EventService(events_repo, users_repo, notifier, cache=cache, cache_ttl=cache_ttl)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        event_service,
        notifier,
        tz=tz,
        strategy_factory=AttendanceStrategyFactory(grace_hours=ATTENDANCE_GRACE_HOURS),
    )
    auth_service = AuthService(users_repo, attendance_service, event_service, admin_join_code=admin_join_code)
    task_service = TaskService(tasks_repo, users_repo, event_service)
    overdue_scanner = OverdueScanner(tasks_repo, users_repo, event_service)
    report_service = ReportService(users_repo, attendance_repo, tasks_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        events_repo=events_repo,
        tasks_repo=tasks_repo,
        notifier=notifier,
        cache=cache,
        event_service=event_service,
        attendance_service=attendance_service,
        auth_service=auth_service,
        task_service=task_service,
        overdue_scanner=overdue_scanner,
        report_service=report_service,
    )
