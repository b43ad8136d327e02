from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from ..common.cache import Cache, NoopCache
from ..common.pagination import Page, offset_for
from ..common.validators import normalize_user_ids, require_id_list
from ..core.constants import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_PAGE_SIZE, EVENTS_CACHE_PREFIX
from ..core.enums import EventType, PushKind, Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..notifications.notifier import Notifier, fan_out
from ..users.repository import UserRepository
from .model import Event
from .repository import EventRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventService:
    """Append-only event log with per-user read state and push fan-out.

    Creating an event is best-effort: a store failure is logged and ``None``
    is returned so the business operation that triggered it still succeeds.
    """

    def __init__(
        self,
        events: EventRepository,
        users: UserRepository,
        notifier: Notifier,
        *,
        cache: Optional[Cache] = None,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._events = events
        self._users = users
        self._notifier = notifier
        self._cache = cache if cache is not None else NoopCache()
        self._cache_ttl = cache_ttl
        self._clock = clock

    # -- write side -------------------------------------------------------

    def create_event(
        self,
        event_type: EventType,
        *,
        actor_id: Optional[int] = None,
        targets: Optional[Sequence[Any]] = None,
        task_id: Optional[int] = None,
        meta: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Event]:
        target_ids = normalize_user_ids(targets)
        try:
            event = self._events.create(
                type=event_type,
                actor_id=actor_id,
                targets=target_ids,
                task_id=task_id,
                meta=dict(meta or {}),
                created_at=now or self._clock(),
            )
        except Exception:
            logger.exception("create_event failed type=%s actor=%s task=%s", event_type.value, actor_id, task_id)
            return None

        self._invalidate()
        if target_ids:
            fan_out(self._notifier, target_ids, PushKind.NOTIFICATION_NEW, event.push_payload())
        return event

    def notify_admins(
        self,
        event_type: EventType,
        *,
        actor_id: Optional[int] = None,
        task_id: Optional[int] = None,
        meta: Optional[dict[str, Any]] = None,
        exclude: Sequence[int] = (),
        now: Optional[datetime] = None,
    ) -> Optional[Event]:
        """Create an event addressed to every admin not in ``exclude``; skipped when none are left."""

        try:
            skip = set(exclude)
            admin_ids = [a for a in self._users.list_admin_ids() if a not in skip]
        except Exception:
            logger.exception("could not load admins for %s event", event_type.value)
            return None
        if not admin_ids:
            return None
        return self.create_event(
            event_type,
            actor_id=actor_id,
            targets=admin_ids,
            task_id=task_id,
            meta=meta,
            now=now,
        )

    def mark_read(self, event_id: int, user_id: int) -> Event:
        event = self._require(event_id)
        if not event.is_read_by(user_id) and self._events.add_reader(event.event_id, int(user_id)):
            self._invalidate()
            event = Event(
                event_id=event.event_id,
                type=event.type,
                actor_id=event.actor_id,
                targets=event.targets,
                task_id=event.task_id,
                meta=event.meta,
                read_by=event.read_by + (int(user_id),),
                created_at=event.created_at,
            )
        return event

    def mark_all_read(self, user_id: int) -> int:
        marked = self._events.add_reader_to_targeted(int(user_id))
        if marked:
            self._invalidate()
        return marked

    def bulk_mark_read(self, event_ids: Any, *, user_id: int, current_role: Role) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        ids = require_id_list(event_ids)
        marked = self._events.add_reader_bulk(ids, int(user_id))
        if marked:
            self._invalidate()
        return marked

    def delete(self, event_id: int, *, user_id: int, current_role: Role) -> None:
        event = self._require(event_id)
        if not event.is_target(user_id) and current_role != Role.ADMIN:
            raise AuthorizationError("Unauthorized")

        if not self._events.delete(event.event_id):
            raise NotFoundError("Event not found")
        self._invalidate()

        recipients = [int(user_id), *event.targets]
        fan_out(self._notifier, recipients, PushKind.NOTIFICATION_DELETED, {"id": event.event_id})

    def bulk_delete(self, event_ids: Any, *, current_role: Role) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        ids = require_id_list(event_ids)

        # Targets are gone once the rows are deleted, so collect them first.
        affected: list[int] = []
        for event in self._events.get_many(ids):
            for target in event.targets:
                if target not in affected:
                    affected.append(target)

        deleted = self._events.delete_many(ids)
        self._invalidate()
        logger.info("bulk delete requested=%d deleted=%d notify=%d", len(ids), deleted, len(affected))

        fan_out(self._notifier, affected, PushKind.NOTIFICATION_BULK_DELETED, {"ids": ids})
        return deleted

    # -- read side --------------------------------------------------------

    def unread_count(self, user_id: int) -> int:
        key = f"{EVENTS_CACHE_PREFIX}unread:{int(user_id)}"
        cached = self._cache.get(key)
        if cached is not None:
            return int(cached)
        count = self._events.count_unread(int(user_id))
        self._cache.set(key, count, self._cache_ttl)
        return count

    def list_for_user(self, user_id: int, *, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[Event]:
        total = self._events.count_for_target(int(user_id))
        items = self._events.list_for_target(int(user_id), offset=offset_for(page, page_size), limit=page_size)
        return Page(items=list(items), current_page=page, page_size=page_size, total_items=total)

    def list_all(self, *, current_role: Role, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[Event]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        key = f"{EVENTS_CACHE_PREFIX}admin:{page}:{page_size}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        total = self._events.count_all()
        items = self._events.list_all(offset=offset_for(page, page_size), limit=page_size)
        result = Page(items=list(items), current_page=page, page_size=page_size, total_items=total)
        self._cache.set(key, result, self._cache_ttl)
        return result

    # -- helpers ----------------------------------------------------------

    def _require(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def _invalidate(self) -> None:
        self._cache.invalidate_prefix(EVENTS_CACHE_PREFIX)
