from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence
from zoneinfo import ZoneInfo

import pytest
from werkzeug.security import generate_password_hash

from taskpulse.attendance.model import AttendanceRecord, AttendanceTotals
from taskpulse.attendance.service import AttendanceService
from taskpulse.common.cache import TTLCache
from taskpulse.core.enums import AttendanceStatus, EventType, PushKind, Role, TaskPriority, TaskStatus
from taskpulse.events.model import Event
from taskpulse.events.service import EventService
from taskpulse.tasks.model import Comment, Task
from taskpulse.tasks.overdue import OverdueScanner
from taskpulse.tasks.service import TaskService
from taskpulse.users.model import User
from taskpulse.users.service import AuthService

UTC = ZoneInfo("UTC")


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[int, User] = {}
        self._id = 0

    def add(self, user: User) -> User:
        self.by_id[user.user_id] = user
        self._id = max(self._id, user.user_id)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)

    def create_user(self, *, full_name: str, email: str, password_hash: str, role: Role) -> int:
        self._id += 1
        self.by_id[self._id] = User(
            user_id=self._id, full_name=full_name, email=email, password_hash=password_hash, role=role
        )
        return self._id

    def list_by_role(self, role: Role) -> Sequence[User]:
        return [u for u in self.by_id.values() if u.role == role and u.is_active]

    def list_admin_ids(self) -> list[int]:
        return [u.user_id for u in self.list_by_role(Role.ADMIN)]

    def update_login(self, user_id: int, *, last_login_at: datetime, login_streak: int) -> bool:
        self.by_id[user_id] = replace(self.by_id[user_id], last_login_at=last_login_at, login_streak=login_streak)
        return True


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.records: list[AttendanceRecord] = []

    def get_for_user_and_date(self, user_id: int, record_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self.records if r.user_id == user_id and r.record_date == record_date), None)

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        items = [r for r in self.records if r.user_id == user_id]
        items.sort(key=lambda r: r.record_date, reverse=True)
        return items[:limit]

    def _append(self, user_id: int, record_date: date, day_name: str, status: AttendanceStatus) -> bool:
        if self.get_for_user_and_date(user_id, record_date):
            return False
        self.records.append(
            AttendanceRecord(
                user_id=user_id,
                record_date=record_date,
                day_name=day_name,
                status=status,
                attendance_id=len(self.records) + 1,
            )
        )
        return True

    def record_present(self, *, user_id: int, record_date: date, day_name: str) -> bool:
        return self._append(user_id, record_date, day_name, AttendanceStatus.PRESENT)

    def record_absent(self, *, user_id: int, record_date: date, day_name: str) -> Optional[int]:
        if not self._append(user_id, record_date, day_name, AttendanceStatus.ABSENT):
            return None
        user = self._users.by_id[user_id]
        self._users.by_id[user_id] = replace(user, absent_days=user.absent_days + 1)
        return user.absent_days + 1

    def totals_by_user(self) -> Sequence[AttendanceTotals]:
        out: dict[int, AttendanceTotals] = {}
        for r in self.records:
            t = out.get(r.user_id, AttendanceTotals(user_id=r.user_id))
            if r.status == AttendanceStatus.PRESENT:
                t = replace(t, present_days=t.present_days + 1)
            else:
                t = replace(t, absent_days=t.absent_days + 1)
            out[r.user_id] = t
        return list(out.values())


class InMemoryEvents:
    def __init__(self):
        self.by_id: dict[int, Event] = {}
        self._id = 0
        self.fail_creates = False

    def create(self, *, type: EventType, actor_id, targets, task_id, meta, created_at) -> Event:
        if self.fail_creates:
            raise RuntimeError("store unavailable")
        self._id += 1
        event = Event(
            event_id=self._id,
            type=type,
            actor_id=actor_id,
            targets=tuple(targets),
            task_id=task_id,
            meta=dict(meta),
            read_by=(),
            created_at=created_at,
        )
        self.by_id[self._id] = event
        return event

    def get_by_id(self, event_id: int) -> Optional[Event]:
        return self.by_id.get(event_id)

    def get_many(self, event_ids: Sequence[int]) -> Sequence[Event]:
        return [self.by_id[i] for i in event_ids if i in self.by_id]

    def count_unread(self, user_id: int) -> int:
        return sum(1 for e in self.by_id.values() if e.is_target(user_id) and not e.is_read_by(user_id))

    def add_reader(self, event_id: int, user_id: int) -> bool:
        event = self.by_id.get(event_id)
        if event is None or event.is_read_by(user_id):
            return False
        self.by_id[event_id] = replace(event, read_by=event.read_by + (user_id,))
        return True

    def add_reader_to_targeted(self, user_id: int) -> int:
        ids = [e.event_id for e in self.by_id.values() if e.is_target(user_id)]
        return self.add_reader_bulk(ids, user_id)

    def add_reader_bulk(self, event_ids: Sequence[int], user_id: int) -> int:
        return sum(1 for i in event_ids if self.add_reader(i, user_id))

    def delete(self, event_id: int) -> bool:
        return self.by_id.pop(event_id, None) is not None

    def delete_many(self, event_ids: Sequence[int]) -> int:
        return sum(1 for i in event_ids if self.delete(i))

    def _newest_first(self, events) -> list[Event]:
        return sorted(events, key=lambda e: (e.created_at, e.event_id), reverse=True)

    def list_for_target(self, user_id: int, *, offset: int, limit: int) -> Sequence[Event]:
        items = self._newest_first(e for e in self.by_id.values() if e.is_target(user_id))
        return items[offset : offset + limit]

    def count_for_target(self, user_id: int) -> int:
        return sum(1 for e in self.by_id.values() if e.is_target(user_id))

    def list_all(self, *, offset: int, limit: int) -> Sequence[Event]:
        return self._newest_first(self.by_id.values())[offset : offset + limit]

    def count_all(self) -> int:
        return len(self.by_id)

    def of_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.by_id.values() if e.type == event_type]


class InMemoryTasks:
    def __init__(self):
        self.by_id: dict[int, Task] = {}
        self.comments: list[Comment] = []
        self._id = 0
        self.fail_latch_for: set[int] = set()

    def add(self, task: Task) -> Task:
        self.by_id[task.task_id] = task
        self._id = max(self._id, task.task_id)
        return task

    def create_task(self, *, title, description, priority, due_date, assigned_to, created_by) -> int:
        self._id += 1
        self.by_id[self._id] = Task(
            task_id=self._id,
            title=title,
            description=description,
            status=TaskStatus.PENDING,
            priority=priority,
            due_date=due_date,
            assigned_to=tuple(assigned_to),
            created_by=created_by,
        )
        return self._id

    def get_by_id(self, task_id: int) -> Optional[Task]:
        return self.by_id.get(task_id)

    def update_status(self, task_id: int, status: TaskStatus) -> bool:
        self.by_id[task_id] = replace(self.by_id[task_id], status=status)
        return True

    def list_overdue_candidates(self, now: datetime) -> Sequence[Task]:
        return [t for t in self.by_id.values() if t.is_overdue(now)]

    def mark_overdue_notified(self, task_id: int) -> bool:
        if task_id in self.fail_latch_for:
            raise RuntimeError("latch write failed")
        self.by_id[task_id] = replace(self.by_id[task_id], overdue_notified=True)
        return True

    def list_all(self, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        return [t for t in self.by_id.values() if status is None or t.status == status]

    def list_assigned_to(self, user_id: int, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        return [t for t in self.list_all(status) if user_id in t.assigned_to]

    def delete_task(self, task_id: int) -> bool:
        return self.by_id.pop(task_id, None) is not None

    def replace_checklist(self, task_id: int, items, *, progress: int, status: TaskStatus) -> bool:
        self.by_id[task_id] = replace(self.by_id[task_id], checklist=tuple(items), progress=progress, status=status)
        return True

    def add_comment(self, *, task_id: int, author_id: int, content: str, mentions: Sequence[int]) -> int:
        comment = Comment(
            comment_id=len(self.comments) + 1,
            task_id=task_id,
            author_id=author_id,
            content=content,
            mentions=tuple(mentions),
        )
        self.comments.append(comment)
        return comment.comment_id


class RecordingNotifier:
    def __init__(self, fail_for: Sequence[int] = ()):
        self.pushes: list[tuple[int, PushKind, dict[str, Any]]] = []
        self.fail_for = set(fail_for)

    def push_to_user(self, user_id: int, kind: PushKind, payload: dict[str, Any]) -> None:
        if user_id in self.fail_for:
            raise ConnectionError(f"user {user_id} unreachable")
        self.pushes.append((user_id, kind, payload))

    def recipients(self, kind: PushKind) -> list[int]:
        return [u for u, k, _ in self.pushes if k == kind]

    def payloads(self, kind: PushKind) -> list[dict[str, Any]]:
        return [p for _, k, p in self.pushes if k == kind]


@pytest.fixture()
def fixed_now() -> datetime:
    # Wednesday
    return datetime(2025, 3, 12, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def tz() -> ZoneInfo:
    return UTC


@pytest.fixture()
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture()
def make_user(users_repo):
    def _make(user_id: int, *, role: Role = Role.USER, password: str = "secret1", **kwargs) -> User:
        user = User(
            user_id=user_id,
            full_name=kwargs.pop("full_name", f"User {user_id}"),
            email=kwargs.pop("email", f"user{user_id}@example.com"),
            password_hash=generate_password_hash(password),
            role=role,
            **kwargs,
        )
        return users_repo.add(user)

    return _make


@pytest.fixture()
def attendance_repo(users_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture()
def events_repo() -> InMemoryEvents:
    return InMemoryEvents()


@pytest.fixture()
def tasks_repo() -> InMemoryTasks:
    return InMemoryTasks()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def cache() -> TTLCache:
    return TTLCache(default_ttl=300)


@pytest.fixture()
def event_service(events_repo, users_repo, notifier, cache, fixed_now) -> EventService:
    return EventService(events_repo, users_repo, notifier, cache=cache, clock=lambda: fixed_now)


@pytest.fixture()
def attendance_service(attendance_repo, users_repo, event_service, notifier, tz, fixed_now) -> AttendanceService:
    return AttendanceService(attendance_repo, users_repo, event_service, notifier, tz=tz, clock=lambda: fixed_now)


@pytest.fixture()
def auth_service(users_repo, attendance_service, event_service) -> AuthService:
    return AuthService(users_repo, attendance_service, event_service, admin_join_code="join-me")


@pytest.fixture()
def task_service(tasks_repo, users_repo, event_service) -> TaskService:
    return TaskService(tasks_repo, users_repo, event_service)


@pytest.fixture()
def overdue_scanner(tasks_repo, users_repo, event_service, fixed_now) -> OverdueScanner:
    return OverdueScanner(tasks_repo, users_repo, event_service, clock=lambda: fixed_now)


@pytest.fixture()
def make_task(tasks_repo):
    def _make(task_id: int, **kwargs) -> Task:
        kwargs.setdefault("title", f"Task {task_id}")
        kwargs.setdefault("status", TaskStatus.PENDING)
        kwargs.setdefault("created_by", 1)
        kwargs.setdefault("priority", TaskPriority.MEDIUM)
        return tasks_repo.add(Task(task_id=task_id, **kwargs))

    return _make
