from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import EventType


@dataclass(frozen=True)
class Event:
    """Domain entity: one entry of the append-only activity log.

    After creation only ``read_by`` may grow (mark-read) or the whole entry
    may be deleted.
    """

    event_id: int
    type: EventType
    actor_id: Optional[int]
    targets: tuple[int, ...]
    task_id: Optional[int]
    meta: dict[str, Any] = field(default_factory=dict)
    read_by: tuple[int, ...] = ()
    created_at: Optional[datetime] = None

    def is_target(self, user_id: int) -> bool:
        return int(user_id) in self.targets

    def is_read_by(self, user_id: int) -> bool:
        return int(user_id) in self.read_by

    def push_payload(self) -> dict[str, Any]:
        """Body of a ``notification:new`` message."""
        return {
            "id": self.event_id,
            "type": self.type.value,
            "actor": self.actor_id,
            "task": self.task_id,
            "meta": self.meta,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "read": False,
        }

    def to_dict(self, *, viewer_id: Optional[int] = None) -> dict[str, Any]:
        out = {
            "id": self.event_id,
            "type": self.type.value,
            "actor": self.actor_id,
            "targets": list(self.targets),
            "task": self.task_id,
            "meta": self.meta,
            "readBy": list(self.read_by),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if viewer_id is not None:
            out["read"] = self.is_read_by(viewer_id)
        return out
