"""In-memory LRU cache for exploration results, keyed by navigation path."""

from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .models import ExplorationResult

DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL_SECONDS = 3600.0


def make_cache_key(topic: str, parent_context: str, path_titles: Iterable[str]) -> str:
    """Derive the cache key for a navigation.

    Topic, parent context and every ancestor title are encoded in order as
    a JSON array, so the same topic reached through different chains gets
    different keys whatever characters the titles contain.
    """
    return json.dumps([topic, parent_context, *path_titles], ensure_ascii=False)


@dataclass
class CacheEntry:
    """A cached result plus its absolute expiry (clock seconds)."""

    value: ExplorationResult
    expires_at: float


class ExplorationCache:
    """Thread-safe LRU cache with per-entry time-to-live.

    Entries are evicted in least-recently-used order once *max_entries* is
    exceeded, and lazily on ``get`` once older than *ttl_seconds*.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(1, max_entries)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> ExplorationResult | None:
        """Return the cached result, or None on a miss or stale entry."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._store[key]
                return None
            self._store.move_to_end(key)
            return entry.value

    def set(self, key: str, value: ExplorationResult) -> None:
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)
            self._store.move_to_end(key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: object) -> bool:
        # Membership check only; does not refresh recency.
        with self._lock:
            entry = self._store.get(key)  # type: ignore[arg-type]
            return entry is not None and self._clock() < entry.expires_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
