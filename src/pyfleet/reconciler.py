"""Live state reconciliation.

Owns:
- the canonical entity store (snapshot + live updates)
- the stream connection and its health signal
- change notifications for the presentation layer

Everything runs on one asyncio loop; merges never run concurrently, so no
locking is involved.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from pyfleet._constants import LIVE_STREAM_ENDPOINT
from pyfleet._transport import Transport
from pyfleet.exceptions import MalformedEventError, NetworkError, UnknownEntityError
from pyfleet.ingestion.snapshot import fetch_latest_positions
from pyfleet.ingestion.stream import decode_update, iter_updates
from pyfleet.models.entity import Entity
from pyfleet.models.update import UpdateEvent
from pyfleet.state.events import ConnectionState
from pyfleet.state.store import EntityStore

_logger = logging.getLogger(__name__)

ChangeListener = Callable[[str | None], None]
StateListener = Callable[[ConnectionState], None]


class LiveReconciler:
    """Merge a snapshot and a stream of partial updates into live entity state.

    Usage::

        async with LiveReconciler(transport) as live:
            await live.load_snapshot()
            ...
            live.entities()

    Entering the context opens the stream in a background task; leaving it
    closes the connection.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        store: EntityStore | None = None,
        reconnect_delay: float | None = None,
        stream_endpoint: str = LIVE_STREAM_ENDPOINT,
    ) -> None:
        self._transport = transport
        self._store = store if store is not None else EntityStore()
        self._reconnect_delay = reconnect_delay
        self._stream_endpoint = stream_endpoint
        self._state = ConnectionState.CONNECTING
        self._task: asyncio.Task[None] | None = None
        self._change_listeners: list[ChangeListener] = []
        self._state_listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LiveReconciler:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def start(self) -> None:
        """Open the stream in a background task (no-op if already running)."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self.run(), name="pyfleet-live-stream")

    async def stop(self) -> None:
        """Close the stream and wait for the background task to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    def entities(self) -> dict[str, Entity]:
        """A consistent point-in-time copy of every entity."""
        return self._store.snapshot()

    def get(self, entity_id: str) -> Entity | None:
        return self._store.get(entity_id)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Call *listener* with the entity id after every accepted change.

        A snapshot load notifies with ``None``.  Returns an unsubscribe
        callable.
        """
        self._change_listeners.append(listener)
        return lambda: self._remove(self._change_listeners, listener)

    def add_state_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* on every connection-state transition."""
        self._state_listeners.append(listener)
        return lambda: self._remove(self._state_listeners, listener)

    @staticmethod
    def _remove(listeners: list[Any], listener: Any) -> None:
        with contextlib.suppress(ValueError):
            listeners.remove(listener)

    def _notify_change(self, entity_id: str | None) -> None:
        for listener in list(self._change_listeners):
            try:
                listener(entity_id)
            except Exception:
                _logger.exception("Change listener failed for entity %s", entity_id)

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        _logger.debug("Connection state %s -> %s", self._state, state)
        self._state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                _logger.exception("State listener failed for %s", state)

    # ------------------------------------------------------------------
    # Snapshot + updates
    # ------------------------------------------------------------------

    async def load_snapshot(self) -> dict[str, Entity]:
        """Fetch the full current state and replace the store wholesale.

        Raises
        ------
        NetworkError
            If the fetch fails.  The previous state is kept and no retry is
            attempted.
        """
        entities = await fetch_latest_positions(self._transport)
        self._store.replace_all(entities)
        _logger.debug("Snapshot loaded: %d entities", len(entities))
        self._notify_change(None)
        return self._store.snapshot()

    def apply_update(self, event: UpdateEvent | str | dict[str, Any]) -> bool:
        """Merge one update into the store.

        Raw payloads are decoded first.  Malformed payloads and updates for
        unknown entities are dropped silently.  Returns whether the state
        changed.
        """
        if not isinstance(event, UpdateEvent):
            try:
                event = decode_update(event)
            except MalformedEventError:
                _logger.debug("Dropping malformed update", exc_info=True)
                return False

        try:
            outcome = self._store.apply(event)
        except UnknownEntityError:
            _logger.debug("Dropping update for unknown entity %s", event.entity_id)
            return False

        if not outcome.changed:
            _logger.debug("Update for %s not applied: %s", event.entity_id, outcome)
            return False
        self._notify_change(event.entity_id)
        return True

    # ------------------------------------------------------------------
    # Stream loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Consume the live stream until cancelled.

        Stream failures only move the connection state to ``error``; entity
        state is kept.  With a reconnect delay configured the stream is
        reopened, and the snapshot is reloaded before updates resume since
        events may have been missed during the outage.
        """
        reconnecting = False
        while True:
            try:
                async with self._transport.open_stream(self._stream_endpoint) as lines:
                    if reconnecting:
                        await self.load_snapshot()
                    self._set_state(ConnectionState.LIVE)
                    async for event in iter_updates(lines):
                        self.apply_update(event)
                _logger.warning("Live stream closed by server")
            except NetworkError as exc:
                _logger.warning("Live stream failed: %s", exc)
            self._set_state(ConnectionState.ERROR)

            if self._reconnect_delay is None:
                return
            await asyncio.sleep(self._reconnect_delay)
            reconnecting = True
