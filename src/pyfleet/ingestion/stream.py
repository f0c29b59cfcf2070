"""Live stream ingestion.

Translates the backend's Server-Sent Events feed into normalized
:class:`pyfleet.models.update.UpdateEvent` objects.  Only the state store is
allowed to merge them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError

from pyfleet.exceptions import MalformedEventError
from pyfleet.models.update import UpdateEvent

_logger = logging.getLogger(__name__)


class SseDecoder:
    """Incremental decoder for the ``text/event-stream`` wire format.

    Only the ``data`` field matters for the live feed; ``event``, ``id`` and
    ``retry`` fields are accepted and ignored.  Lines starting with ``:``
    are keep-alive comments.
    """

    def __init__(self) -> None:
        self._data: list[str] = []

    def feed(self, line: str) -> str | None:
        """Feed one line; return the event data when an event completes."""
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data.append(value)
        return None

    def flush(self) -> str | None:
        """Dispatch any event left pending when the stream ends."""
        return self._dispatch()

    def _dispatch(self) -> str | None:
        if not self._data:
            return None
        data = "\n".join(self._data)
        self._data = []
        return data


async def iter_event_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Yield the non-empty ``data`` payload of every event on the stream."""
    decoder = SseDecoder()
    async for line in lines:
        data = decoder.feed(line)
        if data is not None and data.strip():
            yield data
    tail = decoder.flush()
    if tail is not None and tail.strip():
        yield tail


def decode_update(data: str | dict[str, Any]) -> UpdateEvent:
    """Decode one stream payload into a canonical update event.

    Raises
    ------
    MalformedEventError
        If the payload is a comment, is not JSON, is not an object, or has
        no usable entity id.
    """
    payload: Any = data
    if isinstance(data, str):
        text = data.strip()
        if not text or text.startswith(":"):
            raise MalformedEventError("Empty or comment payload")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedEventError(f"Payload is not JSON: {text[:64]}") from exc

    if not isinstance(payload, dict):
        raise MalformedEventError(f"Payload is not an object: {type(payload).__name__}")

    try:
        return UpdateEvent.model_validate(payload)
    except ValidationError as exc:
        raise MalformedEventError(f"Payload does not match the update shape: {exc.error_count()} error(s)") from exc


async def iter_updates(lines: AsyncIterator[str]) -> AsyncIterator[UpdateEvent]:
    """Yield decoded updates, dropping malformed payloads.

    The feed is high-frequency and loss-tolerant, so a bad payload is logged
    at DEBUG level and skipped rather than surfaced.
    """
    async for data in iter_event_data(lines):
        try:
            yield decode_update(data)
        except MalformedEventError:
            _logger.debug("Dropping malformed stream event", exc_info=True)
