from __future__ import annotations

import logging

from fastapi import FastAPI

from api.routers import cache_control, memes
from scrapers.orchestrator import BatchOrchestrator
from scrapers.scheduler import CacheWarmer

log = logging.getLogger(__name__)


def create_app(
    orchestrator: BatchOrchestrator | None = None,
    warmer: CacheWarmer | None = None,
    request_deadline: float = 45.0,
) -> FastAPI:
    app = FastAPI(title="Meme Feed", version="0.1.0")

    # Services are normally attached at startup by main.py
    if orchestrator is not None:
        app.state.orchestrator = orchestrator
    app.state.warmer = warmer
    app.state.request_deadline = request_deadline

    app.include_router(memes.router)
    app.include_router(cache_control.router)

    # Health check
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
