"""Batch orchestration: refresh cycles, retry policy, single-flight refresh."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from config.settings import Settings
from core.cache import MemeCache
from core.models import DEFAULT_CACHE_KEY, BatchUnavailable, ContentItem
from scrapers.base import BaseSourceFetcher
from scrapers.client import UpstreamClient
from scrapers.reddit import RedditMemeFetcher
from scrapers.transports import build_transports

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 1.0
    backoff_factor: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Backoff to sleep after ``attempt`` (1-based) came up short."""
        return min(self.delay * self.backoff_factor ** (attempt - 1), self.max_delay)


class BatchOrchestrator:
    """Serves the current meme batch, rebuilding it from upstream when stale.

    Only one refresh per cache key runs at a time. Callers arriving while a
    refresh is in flight wait on that refresh instead of starting their own,
    and a caller giving up does not cancel it.
    """

    def __init__(
        self,
        cache: MemeCache,
        fetcher: BaseSourceFetcher,
        sources: Sequence[str],
        batch_size: int = 50,
        sources_per_cycle: int = 3,
        min_items: int = 1,
        source_delay: float = 1.0,
        retry: RetryPolicy | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if not sources:
            raise ValueError("at least one source is required")
        self._cache = cache
        self._fetcher = fetcher
        self._sources = list(sources)
        self._batch_size = batch_size
        self._sources_per_cycle = max(1, sources_per_cycle)
        self._min_items = max(1, min_items)
        self._source_delay = source_delay
        self._retry = retry or RetryPolicy()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._inflight: dict[str, asyncio.Task[list[ContentItem]]] = {}

    @property
    def cache(self) -> MemeCache:
        return self._cache

    async def get_batch(self, key: str = DEFAULT_CACHE_KEY) -> list[ContentItem]:
        entry = self._cache.get(key)
        if entry is not None and entry.items and self._cache.is_fresh(entry):
            return list(entry.items)
        return await self.refresh(key)

    async def refresh(self, key: str = DEFAULT_CACHE_KEY) -> list[ContentItem]:
        """Rebuild the batch for ``key``, joining a refresh already in flight."""
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._refresh(key))
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome as retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()

    async def _refresh(self, key: str) -> list[ContentItem]:
        t0 = time.monotonic()
        collected: dict[tuple[str, str], ContentItem] = {}

        for attempt in range(1, self._retry.max_attempts + 1):
            await self._run_cycle(collected)
            if len(collected) >= self._min_items:
                break
            if attempt < self._retry.max_attempts:
                delay = self._retry.delay_for(attempt)
                log.warning(
                    "Refresh cycle %d/%d yielded %d memes, retrying in %.1fs",
                    attempt,
                    self._retry.max_attempts,
                    len(collected),
                    delay,
                )
                await self._sleep(delay)

        if not collected:
            log.error(
                "No memes after %d refresh attempts for %r", self._retry.max_attempts, key
            )
            raise BatchUnavailable(self._retry.max_attempts)

        items = list(collected.values())
        self._rng.shuffle(items)
        batch = items[: self._batch_size]
        self._cache.put(key, batch)

        log.info(
            "Refreshed %r: %d memes cached (%d collected) in %.1fs",
            key,
            len(batch),
            len(items),
            time.monotonic() - t0,
        )
        return batch

    async def _run_cycle(self, collected: dict[tuple[str, str], ContentItem]) -> None:
        """One pass over a fresh random subset of sources, fetched one at a time."""
        k = min(self._sources_per_cycle, len(self._sources))
        selected = self._rng.sample(self._sources, k)

        for i, source in enumerate(selected):
            if len(collected) >= self._batch_size:
                break
            if i:
                await self._sleep(self._source_delay)
            for item in await self._fetcher.fetch_source(source):
                collected.setdefault(item.dedup_key, item)


def build_orchestrator(
    settings: Settings, http: httpx.AsyncClient, cache: MemeCache
) -> BatchOrchestrator:
    """Wire the client, fetcher and orchestrator from settings."""
    client = UpstreamClient(
        http,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        sort=settings.REDDIT_SORT,
        limit=settings.REDDIT_LIMIT,
    )
    fetcher = RedditMemeFetcher(
        client,
        build_transports(settings.TRANSPORTS),
        fallback_delay=settings.TRANSPORT_FALLBACK_DELAY,
        media_extensions=settings.media_extensions,
        media_hosts=settings.media_hosts,
    )
    return BatchOrchestrator(
        cache,
        fetcher,
        settings.subreddits,
        batch_size=settings.BATCH_SIZE,
        sources_per_cycle=settings.SOURCES_PER_CYCLE,
        min_items=settings.MIN_BATCH_ITEMS,
        source_delay=settings.SOURCE_REQUEST_DELAY,
        retry=RetryPolicy(
            max_attempts=settings.REFRESH_MAX_ATTEMPTS,
            delay=settings.REFRESH_RETRY_DELAY,
            backoff_factor=settings.REFRESH_BACKOFF_FACTOR,
            max_delay=settings.REFRESH_MAX_DELAY,
        ),
    )
