from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import EventType
from .model import Event


class EventRepository(Protocol):
    def create(
        self,
        *,
        type: EventType,
        actor_id: Optional[int],
        targets: Sequence[int],
        task_id: Optional[int],
        meta: dict[str, Any],
        created_at: datetime,
    ) -> Event:
        raise NotImplementedError

    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def get_many(self, event_ids: Sequence[int]) -> Sequence[Event]:
        raise NotImplementedError

    def count_unread(self, user_id: int) -> int:
        raise NotImplementedError

    def add_reader(self, event_id: int, user_id: int) -> bool:
        """Record that ``user_id`` read the event; False when already recorded."""
        raise NotImplementedError

    def add_reader_to_targeted(self, user_id: int) -> int:
        """Mark every event targeting ``user_id`` as read by them; returns rows added."""
        raise NotImplementedError

    def add_reader_bulk(self, event_ids: Sequence[int], user_id: int) -> int:
        raise NotImplementedError

    def delete(self, event_id: int) -> bool:
        raise NotImplementedError

    def delete_many(self, event_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def list_for_target(self, user_id: int, *, offset: int, limit: int) -> Sequence[Event]:
        raise NotImplementedError

    def count_for_target(self, user_id: int) -> int:
        raise NotImplementedError

    def list_all(self, *, offset: int, limit: int) -> Sequence[Event]:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError
