from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..attendance.service import AttendanceService
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import EventType, Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..events.service import EventService
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    login_streak: int


class AuthService:
    """Use cases: sign up and log in."""

    def __init__(
        self,
        users: UserRepository,
        attendance: AttendanceService,
        events: EventService,
        *,
        admin_join_code: Optional[str] = None,
    ):
        self._users = users
        self._attendance = attendance
        self._events = events
        self._admin_join_code = admin_join_code or None

    def signup(self, *, full_name: str, email: str, password: str, admin_join_code: Optional[str] = None) -> User:
        full_name = require_non_empty(full_name, "Name")
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", 6)
        if "@" not in email:
            raise ValidationError("Email is not valid")

        if self._users.get_by_email(email):
            raise ValidationError("User already exists")

        role = Role.USER
        if self._admin_join_code and admin_join_code and hmac.compare_digest(admin_join_code, self._admin_join_code):
            role = Role.ADMIN

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        self._events.notify_admins(
            EventType.USER_SIGNUP,
            actor_id=user.user_id,
            exclude=[user.user_id],
            meta={"userName": user.full_name, "userEmail": user.email},
        )
        logger.info("signup user=%s role=%s", user.user_id, role.value)
        return user

    def authenticate(self, email: str, password: str, *, now: Optional[datetime] = None) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except Exception:
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        credit = self._attendance.record_login(user, now=now)

        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            role=user.role,
            login_streak=credit.login_streak,
        )

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user
