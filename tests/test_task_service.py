from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskpulse.core.enums import EventType, Role, TaskPriority, TaskStatus
from taskpulse.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from taskpulse.tasks.model import ChecklistItem
from taskpulse.tasks.service import checklist_progress, extract_mentions


@pytest.fixture()
def team(make_user):
    make_user(1, role=Role.ADMIN)
    make_user(9, role=Role.ADMIN)
    make_user(2)
    make_user(3)
    make_user(4)


def test_create_task_requires_admin(task_service, team):
    with pytest.raises(AuthorizationError):
        task_service.create_task(title="Nope", created_by=2, current_role=Role.USER)


def test_create_task_logs_creation_and_assignment(task_service, events_repo, team):
    due = datetime(2025, 3, 20, 17, 0, tzinfo=timezone.utc)

    task = task_service.create_task(
        title=" Landing page ",
        created_by=1,
        current_role=Role.ADMIN,
        priority="high",
        due_date=due,
        assigned_to=[2, "3", 3],
    )

    assert task.title == "Landing page"
    assert task.priority == TaskPriority.HIGH
    assert task.status == TaskStatus.PENDING
    assert task.assigned_to == (2, 3)

    [created] = events_repo.of_type(EventType.TASK_CREATED)
    [assigned] = events_repo.of_type(EventType.TASK_ASSIGNED)
    assert created.targets == (9,)
    assert assigned.targets == (2, 3)
    assert assigned.actor_id == 1
    assert assigned.task_id == task.task_id
    assert assigned.meta == {"title": "Landing page", "priority": "high", "dueDate": due.isoformat()}


def test_create_task_by_sole_admin_leaves_audit_entry(task_service, events_repo, make_user):
    make_user(1, role=Role.ADMIN)

    task_service.create_task(title="Solo", created_by=1, current_role=Role.ADMIN)

    [created] = events_repo.of_type(EventType.TASK_CREATED)
    assert created.targets == ()
    assert events_repo.of_type(EventType.TASK_ASSIGNED) == []


def test_create_task_rejects_unknown_priority(task_service, team):
    with pytest.raises(ValidationError):
        task_service.create_task(title="T", created_by=1, current_role=Role.ADMIN, priority="urgent")


def test_create_task_survives_event_store_failure(task_service, tasks_repo, events_repo, team):
    events_repo.fail_creates = True

    task = task_service.create_task(title="T", created_by=1, current_role=Role.ADMIN, assigned_to=[2])

    assert tasks_repo.get_by_id(task.task_id) is not None


def test_completing_a_task_notifies_admins_and_creator(task_service, events_repo, make_task, team):
    make_task(1, title="Docs", created_by=9, assigned_to=(2,), status=TaskStatus.IN_PROGRESS)

    task = task_service.update_status(1, "completed", user_id=2, current_role=Role.USER)

    assert task.status == TaskStatus.COMPLETED
    [event] = events_repo.of_type(EventType.TASK_COMPLETED)
    assert event.targets == (1, 9)
    assert event.actor_id == 2
    assert event.meta == {"title": "Docs", "previousStatus": "in-progress"}


def test_completion_by_admin_excludes_the_actor(task_service, events_repo, make_task, team):
    make_task(1, created_by=1, assigned_to=(2,))

    task_service.update_status(1, "completed", user_id=1, current_role=Role.ADMIN)

    [event] = events_repo.of_type(EventType.TASK_COMPLETED)
    assert event.targets == (9,)


def test_other_status_changes_create_no_event(task_service, events_repo, make_task, team):
    make_task(1, assigned_to=(2,))

    task_service.update_status(1, "in-progress", user_id=2, current_role=Role.USER)
    task_service.update_status(1, "in-progress", user_id=2, current_role=Role.USER)

    assert events_repo.count_all() == 0


def test_only_assignees_or_admins_change_status(task_service, make_task, team):
    make_task(1, assigned_to=(2,))

    with pytest.raises(AuthorizationError):
        task_service.update_status(1, "completed", user_id=3, current_role=Role.USER)


def test_update_status_validates(task_service, make_task, team):
    make_task(1, assigned_to=(2,))

    with pytest.raises(ValidationError):
        task_service.update_status(1, "done", user_id=2, current_role=Role.USER)
    with pytest.raises(NotFoundError):
        task_service.update_status(99, "completed", user_id=1, current_role=Role.ADMIN)


def test_comment_mentions_notify_everyone_but_the_author(task_service, tasks_repo, events_repo, make_task, team):
    make_task(1, title="API review", assigned_to=(2, 3))

    task_service.add_comment(1, author_id=2, content="@3 and @2 please check", mentions=[4])

    [comment] = tasks_repo.comments
    assert comment.mentions == (4, 3, 2)
    [event] = events_repo.of_type(EventType.USER_MENTIONED)
    assert event.targets == (4, 3)
    assert event.actor_id == 2
    assert event.meta == {"comment": "@3 and @2 please check", "taskTitle": "API review"}


def test_comment_without_mentions_creates_no_event(task_service, events_repo, make_task, team):
    make_task(1)

    task_service.add_comment(1, author_id=2, content="looks good")

    assert events_repo.count_all() == 0


def test_comment_validation(task_service, make_task, team):
    make_task(1)

    with pytest.raises(ValidationError):
        task_service.add_comment(1, author_id=2, content="   ")
    with pytest.raises(NotFoundError):
        task_service.add_comment(77, author_id=2, content="hi")


def test_extract_mentions():
    assert extract_mentions("ping @12, @7 and @12 again; mail a@b.c") == [12, 7]
    assert extract_mentions("") == []


def test_admins_list_every_task_users_only_their_own(task_service, make_task, team):
    make_task(1, assigned_to=(2,))
    make_task(2, assigned_to=(3,), status=TaskStatus.COMPLETED)
    make_task(3, assigned_to=(2, 3), status=TaskStatus.COMPLETED)

    assert [t.task_id for t in task_service.list_tasks(user_id=1, current_role=Role.ADMIN)] == [1, 2, 3]
    assert [t.task_id for t in task_service.list_tasks(user_id=2, current_role=Role.USER)] == [1, 3]
    done = task_service.list_tasks(user_id=3, current_role=Role.USER, status="completed")
    assert [t.task_id for t in done] == [2, 3]

    with pytest.raises(ValidationError):
        task_service.list_tasks(user_id=1, current_role=Role.ADMIN, status="archived")


def test_get_task_missing(task_service, make_task, team):
    make_task(1)

    assert task_service.get_task(1).title == "Task 1"
    with pytest.raises(NotFoundError):
        task_service.get_task(2)


def test_delete_task_is_admin_only(task_service, tasks_repo, make_task, team):
    make_task(1, assigned_to=(2,))

    with pytest.raises(AuthorizationError):
        task_service.delete_task(1, current_role=Role.USER)
    task_service.delete_task(1, current_role=Role.ADMIN)

    assert tasks_repo.get_by_id(1) is None
    with pytest.raises(NotFoundError):
        task_service.delete_task(1, current_role=Role.ADMIN)


@pytest.mark.parametrize(
    "flags,expected",
    [
        ([], (0, TaskStatus.PENDING)),
        ([False, False], (0, TaskStatus.PENDING)),
        ([True, False, False], (33, TaskStatus.IN_PROGRESS)),
        ([True] + [False] * 7, (13, TaskStatus.IN_PROGRESS)),
        ([True, True], (100, TaskStatus.COMPLETED)),
    ],
)
def test_checklist_progress(flags, expected):
    items = [ChecklistItem(text=f"step {i}", completed=f) for i, f in enumerate(flags)]

    assert checklist_progress(items) == expected


def test_update_checklist_cleans_items_and_derives_status(task_service, events_repo, make_task, team):
    make_task(1, assigned_to=(2,))

    task = task_service.update_checklist(
        1,
        [{"text": " Draft ", "completed": True}, {"text": "  "}, "junk", {"text": "Review"}],
        user_id=2,
        current_role=Role.USER,
    )

    assert task.checklist == (ChecklistItem("Draft", True), ChecklistItem("Review", False))
    assert task.progress == 50
    assert task.status == TaskStatus.IN_PROGRESS
    assert events_repo.of_type(EventType.TASK_COMPLETED) == []


def test_finishing_the_checklist_completes_the_task_once(task_service, events_repo, make_task, team):
    make_task(1, title="Docs", created_by=9, assigned_to=(2,), status=TaskStatus.IN_PROGRESS)
    items = [{"text": "Draft", "completed": True}, {"text": "Review", "completed": True}]

    task = task_service.update_checklist(1, items, user_id=2, current_role=Role.USER)
    task_service.update_checklist(1, items, user_id=2, current_role=Role.USER)

    assert task.status == TaskStatus.COMPLETED
    assert task.progress == 100
    [event] = events_repo.of_type(EventType.TASK_COMPLETED)
    assert event.targets == (1, 9)
    assert event.meta == {"title": "Docs", "previousStatus": "in-progress"}


def test_update_checklist_guards(task_service, make_task, team):
    make_task(1, assigned_to=(2,))

    with pytest.raises(AuthorizationError):
        task_service.update_checklist(1, [], user_id=3, current_role=Role.USER)
    with pytest.raises(ValidationError):
        task_service.update_checklist(1, {"text": "x"}, user_id=2, current_role=Role.USER)


def test_completing_by_status_ticks_off_the_checklist(task_service, make_task, team):
    make_task(1, assigned_to=(2,), checklist=(ChecklistItem("a"), ChecklistItem("b", True)), progress=50)

    task = task_service.update_status(1, "completed", user_id=2, current_role=Role.USER)

    assert all(item.completed for item in task.checklist)
    assert task.progress == 100
