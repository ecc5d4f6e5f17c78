"""Time-boxed in-memory cache of query answers.

Entries are keyed by the normalized query (trimmed, lowercased) and expire
``ttl_seconds`` after they were computed. Expired entries are dropped lazily
on the next lookup of the same key; there is no background sweep. The cache
is owned by one :class:`~finance_tracker.query.QueryAnsweringPipeline` and is
safe to share across threads.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .settings import DEFAULT_QUERY_CACHE_TTL_SECONDS


def normalize_query(query: str) -> str:
    return query.strip().lower()


@dataclass(frozen=True, slots=True)
class CachedResponse:
    text: str
    computed_at: float


class ResponseCache:
    """Key to :class:`CachedResponse` map with TTL checked at lookup time.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of an entry. ``0`` disables caching (every lookup misses).
    clock:
        Monotonic seconds source; injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_QUERY_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CachedResponse] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.computed_at < self.ttl_seconds:
                return entry.text
            del self._entries[key]
            return None

    def put(self, key: str, text: str) -> None:
        with self._lock:
            self._entries[key] = CachedResponse(text=text, computed_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["CachedResponse", "ResponseCache", "normalize_query"]
