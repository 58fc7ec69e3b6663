"""Tests for settings parsing and transport construction."""

import json

import pytest

from config.settings import Settings, TransportConfig, default_transports
from core.models import EnvelopeError
from scrapers.transports import (
    build_transports,
    make_base64_unwrapper,
    make_contents_unwrapper,
    unwrap_raw,
)


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self) -> None:
        s = Settings(_env_file=None)

        assert s.BATCH_SIZE == 50
        assert s.CACHE_TTL_SECONDS == 300
        assert "memes" in s.subreddits
        assert s.media_extensions == (".jpg", ".jpeg", ".png", ".gif")
        assert [t.name for t in s.TRANSPORTS] == ["reddit", "old-reddit", "allorigins"]

    def test_lists_from_env(self, monkeypatch) -> None:
        """Comma-separated lists are trimmed and split."""
        monkeypatch.setenv("REDDIT_SUBREDDITS", " memes , funny,,")
        monkeypatch.setenv("MEDIA_HOSTS", "I.REDD.IT")

        s = Settings(_env_file=None)

        assert s.subreddits == ["memes", "funny"]
        assert s.media_hosts == ("i.redd.it",)

    def test_transports_from_env_json(self, monkeypatch) -> None:
        """Transports are configured as a JSON list."""
        monkeypatch.setenv(
            "TRANSPORTS",
            json.dumps(
                [
                    {
                        "name": "mirror",
                        "endpoint_template": "https://mirror.example/r/{source}.json",
                        "headers": {"User-Agent": "x"},
                    },
                    {
                        "name": "relay",
                        "endpoint_template": "https://relay.example/?u={source}",
                        "unwrapper": "base64",
                        "envelope_field": "body",
                    },
                ]
            ),
        )

        s = Settings(_env_file=None)

        assert [t.name for t in s.TRANSPORTS] == ["mirror", "relay"]
        assert s.TRANSPORTS[0].unwrapper == "raw"
        assert s.TRANSPORTS[1].envelope_field == "body"


class TestTransports:
    """Descriptor construction and unwrappers."""

    def test_build_default_transports(self) -> None:
        """Default transports resolve in priority order with their unwrappers."""
        transports = build_transports(default_transports())

        assert [t.name for t in transports] == ["reddit", "old-reddit", "allorigins"]
        assert transports[0].unwrap is unwrap_raw
        assert transports[0].headers["User-Agent"].startswith("Mozilla/5.0")
        assert transports[2].unwrap({"contents": '{"data": {}}'}) == {"data": {}}

    def test_build_url(self) -> None:
        """Templates are filled with source, sort and limit."""
        [reddit] = build_transports(default_transports()[:1])

        url = reddit.build_url("memes", sort="hot", limit=50)

        assert url == "https://www.reddit.com/r/memes/hot.json?limit=50&raw_json=1"

    def test_custom_envelope_field(self) -> None:
        [relay] = build_transports(
            [TransportConfig(name="r", endpoint_template="x", unwrapper="contents", envelope_field="body")]
        )

        assert relay.unwrap({"body": "[1, 2]"}) == [1, 2]

    def test_contents_unwrapper_errors(self) -> None:
        unwrap = make_contents_unwrapper()

        with pytest.raises(EnvelopeError):
            unwrap({"contents": "<html>"})
        with pytest.raises(EnvelopeError):
            unwrap("plain string")

    def test_base64_unwrapper(self) -> None:
        """Accepts bare base64 and data URLs, rejects garbage."""
        unwrap = make_base64_unwrapper()

        assert unwrap({"contents": "eyJhIjogMX0="}) == {"a": 1}
        assert unwrap({"contents": "data:application/json;base64,eyJhIjogMX0="}) == {"a": 1}
        with pytest.raises(EnvelopeError):
            unwrap({"contents": "!!not base64!!"})
