from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from core.models import DEFAULT_CACHE_KEY, BatchUnavailable

router = APIRouter(prefix="/api/cache", tags=["cache"])

_NO_WARMER = {"running": False, "jobs": [], "last_run": None, "last_items": None, "last_error": None}


def _orchestrator(request: Request):
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(503, "Orchestrator not initialized")
    return orchestrator


@router.post("/refresh")
async def force_refresh(request: Request):
    orchestrator = _orchestrator(request)

    t0 = time.monotonic()
    try:
        batch = await orchestrator.refresh(DEFAULT_CACHE_KEY)
    except BatchUnavailable as e:
        raise HTTPException(503, str(e))

    return {
        "items": len(batch),
        "duration_seconds": round(time.monotonic() - t0, 2),
    }


@router.get("/status")
async def cache_status(request: Request):
    cache = _orchestrator(request).cache
    warmer = request.app.state.warmer

    entry = cache.get(DEFAULT_CACHE_KEY)
    return {
        "key": DEFAULT_CACHE_KEY,
        "items": len(entry.items) if entry else 0,
        "fetched_at": datetime.fromtimestamp(entry.fetched_at, tz=timezone.utc).isoformat()
        if entry
        else None,
        "age_seconds": round(cache.age(entry), 1) if entry else None,
        "fresh": cache.is_fresh(entry) if entry else False,
        "ttl_seconds": cache.ttl_seconds,
        "warmer": warmer.get_status() if warmer else _NO_WARMER,
    }
