from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

DEFAULT_CACHE_KEY = "memes"

# Takes the decoded JSON body of a transport response, returns the listing payload.
Unwrapper = Callable[[Any], Any]


@dataclass(frozen=True)
class ContentItem:
    """A single meme normalised from an upstream listing."""

    id: str
    title: str
    media_url: str
    author: str
    source_name: str  # subreddit the post came from
    popularity: int

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.source_name, self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "mediaUrl": self.media_url,
            "author": self.author,
            "sourceName": self.source_name,
            "popularity": self.popularity,
        }


@dataclass(frozen=True)
class CacheEntry:
    """A published batch. Replaced wholesale, never mutated."""

    items: tuple[ContentItem, ...]
    fetched_at: float


@dataclass(frozen=True)
class TransportDescriptor:
    name: str
    endpoint_template: str
    headers: Mapping[str, str]
    unwrap: Unwrapper

    def build_url(self, source_name: str, **params: Any) -> str:
        return self.endpoint_template.format(source=source_name, **params)


@dataclass
class FetchAttemptResult:
    """Outcome of one upstream call. Exactly one of payload/failure is set."""

    transport: str
    payload: Any = None
    failure: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class EnvelopeError(ValueError):
    """A relay response did not contain the expected wrapped payload."""


class BatchUnavailable(Exception):
    """Every refresh attempt finished without a single usable item."""

    def __init__(self, attempts: int, message: str | None = None) -> None:
        self.attempts = attempts
        super().__init__(
            message or f"No memes could be fetched after {attempts} attempts"
        )
