"""Meme Feed entry point."""

from __future__ import annotations

import logging

import httpx
import uvicorn

from api.app import create_app
from config.settings import settings
from core.cache import MemeCache
from scrapers.orchestrator import build_orchestrator
from scrapers.scheduler import CacheWarmer

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
log = logging.getLogger(__name__)

app = create_app(request_deadline=settings.REQUEST_DEADLINE_SECONDS)


@app.on_event("startup")
async def on_startup() -> None:
    log.info("Building meme aggregator…")
    http = httpx.AsyncClient(follow_redirects=True, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    cache = MemeCache(ttl_seconds=settings.CACHE_TTL_SECONDS)
    app.state.http = http
    app.state.orchestrator = build_orchestrator(settings, http, cache)
    app.state.warmer = None

    if settings.CACHE_WARM_INTERVAL_MINUTES > 0:
        log.info("Starting cache warmer…")
        warmer = CacheWarmer(
            app.state.orchestrator, interval_minutes=settings.CACHE_WARM_INTERVAL_MINUTES
        )
        app.state.warmer = warmer
        warmer.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    if app.state.warmer is not None:
        app.state.warmer.stop()
        app.state.warmer = None
        log.info("Cache warmer stopped.")
    if hasattr(app.state, "http"):
        await app.state.http.aclose()
    if hasattr(app.state, "orchestrator"):
        app.state.orchestrator.cache.clear()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.API_PORT,
        reload=False,
    )
