# league_standings/cache.py
"""
Simple in-memory TTL cache.

This is per-process cache. If you run multiple gunicorn workers, each worker has its own cache.
Only lookups that tolerate staleness (team id -> name) go through it; standings
inputs are always read fresh.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cached value and the timestamp when it was set."""
    ts: float
    value: Optional[T]


class TTLCache:
    """A small key/value TTL cache with lazy loading."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get_or_set(self, key: str, ttl_seconds: int, loader: Callable[[], T]) -> T:
        """
        Retrieve a cached value if not expired, otherwise compute & store a new value.

        The loader runs outside the lock; two concurrent misses may both load,
        and the later one wins.
        """
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
        if entry and entry.value is not None and (now - entry.ts) < ttl_seconds:
            return entry.value

        value = loader()
        with self._lock:
            self._store[key] = CacheEntry(ts=now, value=value)
        return value
