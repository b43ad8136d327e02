"""Process-local TTL cache.

Entries live only in this process: they are lost on restart and are not
shared between instances, so a horizontally scaled deployment must not rely
on one instance seeing another's invalidations.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        raise NotImplementedError

    def invalidate_prefix(self, prefix: str) -> int:
        raise NotImplementedError


class TTLCache(Cache):
    def __init__(self, default_ttl: float = 300, *, clock: Callable[[], float] = time.monotonic):
        self._default_ttl = float(default_ttl)
        self._clock = clock
        self._data: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl is None else float(ttl)
        with self._lock:
            self._data[key] = (self._clock() + ttl, value)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._data if k.startswith(prefix)]
            for k in keys:
                del self._data[k]
        if keys:
            logger.debug("cache invalidated prefix=%s keys=%d", prefix, len(keys))
        return len(keys)


class NoopCache(Cache):
    """Cache that never stores anything (used when caching is disabled)."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        return None

    def invalidate_prefix(self, prefix: str) -> int:
        return 0
