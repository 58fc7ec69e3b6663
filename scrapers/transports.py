"""Transport descriptors and relay envelope unwrappers.

Relays that proxy Reddit for us wrap the real listing inside a JSON envelope.
Each transport names how its envelope is unwrapped instead of the client
guessing from the URL.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Callable
from typing import Any

from config.settings import TransportConfig
from core.models import EnvelopeError, TransportDescriptor, Unwrapper


def unwrap_raw(body: Any) -> Any:
    return body


def _envelope_value(body: Any, field: str) -> str:
    if not isinstance(body, dict):
        raise EnvelopeError(f"expected a JSON object envelope, got {type(body).__name__}")
    value = body.get(field)
    if not isinstance(value, str) or not value:
        raise EnvelopeError(f"envelope field {field!r} is missing or empty")
    return value


def make_contents_unwrapper(field: str = "contents") -> Unwrapper:
    """Envelope field holds the target's JSON body as a string."""

    def unwrap(body: Any) -> Any:
        value = _envelope_value(body, field)
        try:
            return json.loads(value)
        except ValueError as e:
            raise EnvelopeError(f"envelope field {field!r} is not JSON: {e}") from e

    return unwrap


def make_base64_unwrapper(field: str = "contents") -> Unwrapper:
    """Envelope field holds base64 JSON, optionally as a ``data:`` URL."""

    def unwrap(body: Any) -> Any:
        value = _envelope_value(body, field)
        if value.startswith("data:"):
            _, _, value = value.partition(",")
        try:
            return json.loads(base64.b64decode(value, validate=True))
        except (binascii.Error, ValueError) as e:
            raise EnvelopeError(f"envelope field {field!r} is not base64 JSON: {e}") from e

    return unwrap


_UNWRAPPERS: dict[str, Callable[[str], Unwrapper]] = {
    "raw": lambda field: unwrap_raw,
    "contents": make_contents_unwrapper,
    "base64": make_base64_unwrapper,
}


def build_transport(config: TransportConfig) -> TransportDescriptor:
    return TransportDescriptor(
        name=config.name,
        endpoint_template=config.endpoint_template,
        headers=dict(config.headers),
        unwrap=_UNWRAPPERS[config.unwrapper](config.envelope_field),
    )


def build_transports(configs: list[TransportConfig]) -> list[TransportDescriptor]:
    return [build_transport(c) for c in configs]
