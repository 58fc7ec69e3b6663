from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from core.models import BatchUnavailable, ContentItem

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memes", tags=["memes"])

# Browser clients call this endpoint cross-origin
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
}


def _respond(status_code: int, content: dict, **headers: str) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers={**CORS_HEADERS, **headers})


def _items_to_dict(items: list[ContentItem]) -> dict:
    return {"items": [item.to_dict() for item in items]}


@router.get("")
async def get_memes(request: Request):
    try:
        orchestrator = request.app.state.orchestrator
        items = await asyncio.wait_for(
            orchestrator.get_batch(), timeout=request.app.state.request_deadline
        )
    except BatchUnavailable as e:
        return _respond(
            503,
            {
                "error": "Unable to fetch memes at this time. Please try again later.",
                "details": str(e),
            },
        )
    except asyncio.TimeoutError:
        return _respond(
            503,
            {
                "error": "Unable to fetch memes at this time. Please try again later.",
                "details": "Refresh is still in progress",
            },
        )
    except Exception as e:
        log.exception("Error serving memes")
        return _respond(
            500,
            {
                "error": "Failed to fetch memes. Please try again later.",
                "details": type(e).__name__,
            },
        )

    return _respond(200, _items_to_dict(items))


@router.api_route("", methods=["POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"])
async def method_not_allowed(request: Request):
    return _respond(405, {"error": "Method not allowed"}, Allow="GET")
