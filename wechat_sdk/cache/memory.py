"""
In-process cache backend.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[float]

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class MemoryCache:
    """Dict-backed cache, safe for concurrent threads and tasks.

    Entries expire lazily: an expired entry is dropped on the next access.
    A ttl of zero or less stores the entry without expiry.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._lookup(key)
            return entry.value if entry else None

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds > 0 else None
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    async def is_exist(self, key: str) -> bool:
        with self._lock:
            return self._lookup(key) is not None

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for e in self._store.values() if not e.expired(now))

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        # Caller holds the lock
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._store[key]
            return None
        return entry
