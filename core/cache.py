"""In-memory aggregation cache for meme batches."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from core.models import CacheEntry, ContentItem


def is_fresh(entry: CacheEntry, now: float, ttl: float) -> bool:
    return now - entry.fetched_at < ttl


class MemeCache:
    """Holds one published batch per cache key.

    Entries are frozen and replaced on every ``put``, so readers never see
    a half-written batch. There is no eviction beyond overwrite.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, key: str, items: Iterable[ContentItem]) -> CacheEntry:
        entry = CacheEntry(items=tuple(items), fetched_at=self._clock())
        self._entries[key] = entry
        return entry

    def is_fresh(self, entry: CacheEntry, now: float | None = None) -> bool:
        return is_fresh(entry, self._clock() if now is None else now, self.ttl_seconds)

    def age(self, entry: CacheEntry) -> float:
        return max(0.0, self._clock() - entry.fetched_at)

    def clear(self) -> None:
        self._entries.clear()
