"""Small in-process TTL cache for extraction results."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

__all__ = ["TTLCache"]

DEFAULT_MAX_ENTRIES = 256


class TTLCache:
    """Expiring key/value store bounded to ``max_entries`` items.

    Expired entries are swept on every ``set``; when the cache is still full
    the oldest insertion is evicted.
    """

    def __init__(
        self,
        ttl: timedelta,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl.total_seconds()
        self.max_entries = max(1, max_entries)
        self._clock = clock
        # dicts keep insertion order, so the first key is the oldest entry.
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]

            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (now + self.ttl_seconds, value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
