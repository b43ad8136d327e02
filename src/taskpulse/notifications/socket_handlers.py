from __future__ import annotations

import logging

from flask import request, session
from flask_socketio import SocketIO, join_room, leave_room

from .notifier import user_room

logger = logging.getLogger(__name__)


def register(socketio: SocketIO) -> None:
    """Attach connect/disconnect handlers: each session joins its private room."""

    @socketio.on("connect")
    def handle_connect(auth=None):
        user_id = session.get("user_id")
        if not user_id:
            logger.info("socket refused (no session) sid=%s", request.sid)
            return False

        join_room(user_room(user_id))
        logger.debug("socket connected user=%s sid=%s", user_id, request.sid)
        return True

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        user_id = session.get("user_id")
        if user_id:
            leave_room(user_room(user_id))
        logger.debug("socket disconnected user=%s sid=%s", user_id, request.sid)
