"""Single upstream fetch over one transport, using httpx."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from core.models import EnvelopeError, FetchAttemptResult, TransportDescriptor

log = logging.getLogger(__name__)


class UpstreamClient:
    """Fetches one listing over one transport.

    Stateless apart from the shared ``httpx.AsyncClient``. Every failure is
    returned as a ``FetchAttemptResult`` with a reason; nothing is raised.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        timeout: float = 10.0,
        sort: str = "hot",
        limit: int = 50,
    ) -> None:
        self._http = http
        self._timeout = timeout
        self._sort = sort
        self._limit = limit

    async def fetch(
        self, transport: TransportDescriptor, source_name: str
    ) -> FetchAttemptResult:
        try:
            url = transport.build_url(
                quote(source_name, safe=""), sort=self._sort, limit=self._limit
            )
            resp = await self._http.get(
                url, headers=dict(transport.headers), timeout=self._timeout
            )
        except (KeyError, IndexError, ValueError, httpx.InvalidURL) as exc:
            # Misconfigured endpoint template
            return self._failed(transport, source_name, "invalid_url", detail=exc)
        except httpx.TimeoutException:
            return self._failed(transport, source_name, "timeout")
        except httpx.HTTPError as exc:
            return self._failed(transport, source_name, "connection_error", detail=exc)

        if not resp.is_success:
            return self._failed(
                transport, source_name, f"http_{resp.status_code}", status=resp.status_code
            )

        # Challenge and error pages come back as HTML with a 200
        content_type = resp.headers.get("content-type", "")
        if "json" not in content_type.lower():
            return self._failed(
                transport,
                source_name,
                "content_type",
                status=resp.status_code,
                detail=content_type or "missing",
            )

        try:
            body = resp.json()
        except ValueError as exc:
            return self._failed(
                transport, source_name, "invalid_json", status=resp.status_code, detail=exc
            )

        try:
            payload = transport.unwrap(body)
        except EnvelopeError as exc:
            return self._failed(
                transport, source_name, "malformed_envelope", status=resp.status_code, detail=exc
            )

        return FetchAttemptResult(
            transport=transport.name, payload=payload, status_code=resp.status_code
        )

    @staticmethod
    def _failed(
        transport: TransportDescriptor,
        source_name: str,
        reason: str,
        status: int | None = None,
        detail: object = None,
    ) -> FetchAttemptResult:
        log.debug(
            "Transport %s failed for r/%s: %s%s",
            transport.name,
            source_name,
            reason,
            f" ({detail})" if detail else "",
        )
        return FetchAttemptResult(
            transport=transport.name, failure=reason, status_code=status
        )
