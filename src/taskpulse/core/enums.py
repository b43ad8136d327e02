from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization checks."""

    ADMIN = "admin"
    USER = "user"


class AttendanceStatus(str, Enum):
    """Daily attendance verdict stored per user and calendar day."""

    PRESENT = "present"
    ABSENT = "absent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EventType(str, Enum):
    """Kinds of entries in the activity/notification log."""

    TASK_CREATED = "task_created"
    TASK_ASSIGNED = "task_assigned"
    TASK_COMPLETED = "task_completed"
    USER_MENTIONED = "user_mentioned"
    USER_SIGNUP = "user_signup"
    TASK_OVERDUE = "task_overdue"
    USER_ABSENT = "user_absent"


class PushKind(str, Enum):
    """Message names on the per-user real-time channel."""

    NOTIFICATION_NEW = "notification:new"
    NOTIFICATION_DELETED = "notification:deleted"
    NOTIFICATION_BULK_DELETED = "notification:bulk-deleted"
    USER_LOGIN = "user:login"
    ATTENDANCE_UPDATE = "user:attendance-update"
