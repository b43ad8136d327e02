"""Real-time push to per-user private channels.

Push is fire-and-forget: no acknowledgement and no retry. A client that is
offline misses the message and catches up through the paginated log API.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from ..core.constants import USER_ROOM_PREFIX
from ..core.enums import PushKind

logger = logging.getLogger(__name__)


def user_room(user_id: int | str) -> str:
    return f"{USER_ROOM_PREFIX}{user_id}"


class Notifier(Protocol):
    def push_to_user(self, user_id: int, kind: PushKind, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class SocketIONotifier(Notifier):
    """Emit to the ``user:<id>`` room of a Flask-SocketIO server."""

    def __init__(self, socketio):
        self._socketio = socketio

    def push_to_user(self, user_id: int, kind: PushKind, payload: dict[str, Any]) -> None:
        self._socketio.emit(kind.value, payload, to=user_room(user_id))


class NullNotifier(Notifier):
    def push_to_user(self, user_id: int, kind: PushKind, payload: dict[str, Any]) -> None:
        return None


def fan_out(notifier: Notifier, user_ids: Iterable[int], kind: PushKind, payload: dict[str, Any]) -> int:
    """Push ``payload`` to each user once; one failed recipient never blocks the rest.

    Returns the number of pushes that did not raise.
    """

    delivered = 0
    seen: set[int] = set()
    for user_id in user_ids:
        if user_id in seen:
            continue
        seen.add(user_id)
        try:
            notifier.push_to_user(user_id, kind, payload)
            delivered += 1
        except Exception:
            logger.warning("push %s to user %s failed", kind.value, user_id, exc_info=True)
    return delivered
