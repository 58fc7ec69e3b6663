from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.models import DEFAULT_CACHE_KEY, BatchUnavailable
from scrapers.orchestrator import BatchOrchestrator

log = logging.getLogger(__name__)


class CacheWarmer:
    """Periodically refreshes the meme cache so requests rarely wait on upstream."""

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        interval_minutes: int,
        key: str = DEFAULT_CACHE_KEY,
    ) -> None:
        self._orchestrator = orchestrator
        self._interval = interval_minutes
        self._key = key
        self._scheduler = AsyncIOScheduler()
        self._last_run: datetime | None = None
        self._last_count: int | None = None
        self._last_error: str | None = None

    def start(self) -> None:
        self._scheduler.add_job(
            self.warm,
            "interval",
            minutes=self._interval,
            id=f"warm_{self._key}",
            replace_existing=True,
        )
        # Also warm once at startup
        self._scheduler.add_job(
            self.warm,
            "date",
            run_date=datetime.now(timezone.utc),
            id=f"warm_{self._key}_init",
        )
        self._scheduler.start()
        log.info("Cache warmer started, every %d minutes", self._interval)

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def get_status(self) -> dict:
        """Scheduler state, pending jobs and the outcome of the last warm-up."""
        return {
            "running": self._scheduler.running,
            "jobs": [
                {
                    "id": job.id,
                    "next_run": job.next_run_time.isoformat()
                    if getattr(job, "next_run_time", None)
                    else None,
                }
                for job in self._scheduler.get_jobs()
            ],
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "last_items": self._last_count,
            "last_error": self._last_error,
        }

    async def warm(self) -> int:
        """Run one forced refresh. Returns the number of memes cached."""
        self._last_run = datetime.now(timezone.utc)
        try:
            batch = await self._orchestrator.refresh(self._key)
        except BatchUnavailable as e:
            log.warning("Cache warm-up for %r found nothing: %s", self._key, e)
            self._last_count, self._last_error = 0, str(e)
            return 0

        self._last_count, self._last_error = len(batch), None
        return len(batch)
