"""
Reporting - TTL Cache.

============================================================
PURPOSE
============================================================
Process-local key/value store with per-entry expiry, used for:

- performance summaries (1 hour, busted when a new SQS lands)
- LLM feedback results (24 hours)
- LLM request counters (per-tutor daily rate limit)

Expiry is measured with the injected clock so tests can advance
time deterministically. Thread-safe; LRU eviction at max_size.

============================================================
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from core.clock import ClockFactory, ClockProtocol

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[datetime]

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class TTLCache:
    """
    In-memory cache with TTL and size limits.

    Thread-safe implementation using OrderedDict.
    """

    def __init__(
        self,
        default_ttl_seconds: Optional[float] = 3600,
        max_size: int = 10000,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Args:
            default_ttl_seconds: Expiry for set() without ttl (None = never)
            max_size: Maximum number of entries
            clock: Time source (defaults to the global clock)
        """
        self.default_ttl_seconds = default_ttl_seconds
        self.max_size = max_size
        self._clock = clock or ClockFactory.get_clock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock.now()):
                del self._entries[key]
                return default
            self._entries.move_to_end(key)
            return entry.value

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        expires_at = self._clock.now() + timedelta(seconds=ttl) if ttl is not None else None

        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def fetch(self, key: str, compute: Callable[[], Any], ttl_seconds: Optional[float] = None) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = compute()
        self.set(key, value, ttl_seconds)
        return value

    def increment(self, key: str, ttl_seconds: Optional[float] = None) -> int:
        """
        Add one to a counter.

        A new counter expires ttl_seconds after its first increment;
        later increments keep that expiry.
        """
        with self._lock:
            now = self._clock.now()
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now):
                self.set(key, 1, ttl_seconds)
                return 1
            entry.value += 1
            return entry.value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def cleanup_expired(self) -> int:
        """Remove expired entries. Returns count removed."""
        now = self._clock.now()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)


__all__ = ["TTLCache", "CacheEntry"]
