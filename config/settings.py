from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class TransportConfig(BaseModel):
    """One network path to a subreddit listing, as configured."""

    name: str
    endpoint_template: str
    headers: dict[str, str] = Field(default_factory=dict)
    unwrapper: Literal["raw", "contents", "base64"] = "raw"
    envelope_field: str = "contents"


def default_transports() -> list[TransportConfig]:
    return [
        TransportConfig(
            name="reddit",
            endpoint_template="https://www.reddit.com/r/{source}/{sort}.json?limit={limit}&raw_json=1",
            headers=_BROWSER_HEADERS,
        ),
        TransportConfig(
            name="old-reddit",
            endpoint_template="https://old.reddit.com/r/{source}/{sort}/.json?limit={limit}&raw_json=1",
            headers={"Accept": "application/json"},
        ),
        TransportConfig(
            name="allorigins",
            endpoint_template=(
                "https://api.allorigins.win/get?url="
                "https%3A%2F%2Fwww.reddit.com%2Fr%2F{source}%2F{sort}.json"
                "%3Flimit%3D{limit}%26raw_json%3D1"
            ),
            headers={"Accept": "application/json"},
            unwrapper="contents",
        ),
    ]


class Settings(BaseSettings):
    # Server
    API_PORT: int = 8001
    LOG_LEVEL: str = "INFO"

    # Reddit
    REDDIT_SUBREDDITS: str = "memes,dankmemes,wholesomememes,funny,me_irl,ProgrammerHumor,memeeconomy"
    REDDIT_SORT: str = "hot"
    REDDIT_LIMIT: int = 50

    # Batch
    SOURCES_PER_CYCLE: int = 3
    BATCH_SIZE: int = 50
    MIN_BATCH_ITEMS: int = 1

    # Cache
    CACHE_TTL_SECONDS: float = 300.0
    CACHE_WARM_INTERVAL_MINUTES: int = 0

    # Refresh retry policy
    REFRESH_MAX_ATTEMPTS: int = 3
    REFRESH_RETRY_DELAY: float = 1.0
    REFRESH_BACKOFF_FACTOR: float = 1.0
    REFRESH_MAX_DELAY: float = 30.0

    # Fetching behaviour
    SOURCE_REQUEST_DELAY: float = 1.0
    TRANSPORT_FALLBACK_DELAY: float = 0.5
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    REQUEST_DEADLINE_SECONDS: float = 45.0

    # Media filter
    MEDIA_EXTENSIONS: str = ".jpg,.jpeg,.png,.gif"
    MEDIA_HOSTS: str = "i.redd.it,imgur.com"

    TRANSPORTS: list[TransportConfig] = Field(default_factory=default_transports)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @staticmethod
    def split(value: str) -> list[str]:
        return [v.strip() for v in value.split(",") if v.strip()]

    @property
    def subreddits(self) -> list[str]:
        return self.split(self.REDDIT_SUBREDDITS)

    @property
    def media_extensions(self) -> tuple[str, ...]:
        return tuple(e.lower() for e in self.split(self.MEDIA_EXTENSIONS))

    @property
    def media_hosts(self) -> tuple[str, ...]:
        return tuple(h.lower() for h in self.split(self.MEDIA_HOSTS))


settings = Settings()
