"""Reddit meme fetcher with ordered transport fallback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any
from urllib.parse import urlsplit

from core.models import ContentItem, TransportDescriptor
from scrapers.base import BaseSourceFetcher
from scrapers.client import UpstreamClient

log = logging.getLogger(__name__)

DEFAULT_MEDIA_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
DEFAULT_MEDIA_HOSTS = ("i.redd.it", "imgur.com")


def is_media_url(
    url: str,
    extensions: Sequence[str] = DEFAULT_MEDIA_EXTENSIONS,
    hosts: Sequence[str] = DEFAULT_MEDIA_HOSTS,
) -> bool:
    """True when ``url`` is an absolute http(s) URL pointing at an image asset."""
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not host:
        return False

    if parts.path.lower().endswith(tuple(extensions)):
        return True
    return any(host == h or host.endswith("." + h) for h in hosts)


class RedditMemeFetcher(BaseSourceFetcher):
    """Fetches one subreddit's listing, trying each transport in priority order.

    The first transport that yields at least one usable meme wins; later
    transports are not tried. A subreddit that no transport can reach
    contributes an empty list.
    """

    def __init__(
        self,
        client: UpstreamClient,
        transports: Sequence[TransportDescriptor],
        fallback_delay: float = 0.5,
        media_extensions: Sequence[str] = DEFAULT_MEDIA_EXTENSIONS,
        media_hosts: Sequence[str] = DEFAULT_MEDIA_HOSTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._transports = list(transports)
        self._fallback_delay = fallback_delay
        self._extensions = tuple(media_extensions)
        self._hosts = tuple(media_hosts)
        self._sleep = sleep

    async def fetch_source(self, source_name: str) -> list[ContentItem]:
        for i, transport in enumerate(self._transports):
            result = await self._client.fetch(transport, source_name)
            if result.ok:
                items = self.normalize(result.payload, source_name)
                if items:
                    log.info(
                        "r/%s: %d memes via %s", source_name, len(items), transport.name
                    )
                    return items
                log.debug("r/%s: no usable memes via %s", source_name, transport.name)

            if i < len(self._transports) - 1:
                await self._sleep(self._fallback_delay)

        log.warning("r/%s: all %d transports exhausted", source_name, len(self._transports))
        return []

    def normalize(self, payload: Any, source_name: str) -> list[ContentItem]:
        """Turn a Reddit listing into memes, dropping NSFW and non-image posts."""
        if not isinstance(payload, dict):
            return []
        data = payload.get("data")
        children = data.get("children") if isinstance(data, dict) else None
        if not isinstance(children, list):
            log.debug("r/%s: unexpected listing structure", source_name)
            return []

        items: list[ContentItem] = []
        for child in children:
            post = child.get("data") if isinstance(child, dict) else None
            if not isinstance(post, dict):
                continue
            item = self._to_item(post, source_name)
            if item is not None:
                items.append(item)
        return items

    def _to_item(self, post: dict[str, Any], source_name: str) -> ContentItem | None:
        if post.get("over_18"):
            return None

        post_id = post.get("id")
        url = post.get("url_overridden_by_dest") or post.get("url")
        if not post_id or not isinstance(url, str):
            return None
        if not is_media_url(url, self._extensions, self._hosts):
            return None

        try:
            score = int(post.get("score") or 0)
        except (TypeError, ValueError):
            score = 0

        return ContentItem(
            id=str(post_id),
            title=str(post.get("title") or ""),
            media_url=url,
            author=str(post.get("author") or ""),
            source_name=str(post.get("subreddit") or source_name),
            popularity=score,
        )
