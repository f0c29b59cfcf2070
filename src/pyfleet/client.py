"""High-level async client for the fleet-tracking backend."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyfleet._transport import HttpTransport
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetError
from pyfleet.ingestion.history import HistoryRange, HistoryWindow, fetch_position_history
from pyfleet.ingestion.snapshot import fetch_latest_positions
from pyfleet.models.entity import Entity
from pyfleet.models.ping import Ping
from pyfleet.models.track import ProcessedTrack
from pyfleet.reconciler import LiveReconciler
from pyfleet.state.store import EntityStore
from pyfleet.track.loader import TrackLoader
from pyfleet.track.processing import process_track

_logger = logging.getLogger(__name__)


class FleetClient:
    """Async client for the fleet backend.

    Usage::

        async with FleetClient(config) as client:
            async with client.live() as live:
                await live.load_snapshot()
                ...
            track = await client.get_track("vehicle-1", HistoryRange.LAST_HOUR)
    """

    def __init__(
        self,
        config: FleetConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or FleetConfig.from_env()
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None

    @property
    def config(self) -> FleetConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise FleetError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_latest_positions(self) -> list[Entity]:
        """Fetch the full current state of every entity."""
        return await fetch_latest_positions(self._require_transport())

    async def get_position_history(
        self,
        entity_id: str,
        window: HistoryWindow | HistoryRange | str,
        *,
        limit: int | None = None,
    ) -> list[Ping]:
        """Fetch raw history pings for one entity.

        *window* is either an explicit :class:`HistoryWindow` or a range
        preset (``"1h"``, ``"6h"``, ``"24h"``) ending now.
        """
        if not isinstance(window, HistoryWindow):
            window = HistoryWindow.ending_now(window)
        return await fetch_position_history(
            self._require_transport(),
            entity_id,
            window,
            limit=limit if limit is not None else self._config.history_limit,
        )

    async def get_track(
        self,
        entity_id: str,
        window: HistoryWindow | HistoryRange | str = HistoryRange.LAST_24_HOURS,
    ) -> ProcessedTrack:
        """Fetch and process the history track of one entity."""
        pings = await self.get_position_history(entity_id, window)
        return process_track(
            pings,
            min_distance_m=self._config.track.min_distance_m,
            tolerance=self._config.track.simplify_tolerance,
        )

    # ------------------------------------------------------------------
    # Live state
    # ------------------------------------------------------------------

    def live(self, *, reconnect_delay: float | None = None) -> LiveReconciler:
        """Create a reconciler bound to this client's transport.

        Use it as an async context manager so the stream is closed when the
        owning view goes away.
        """
        delay = reconnect_delay if reconnect_delay is not None else self._config.reconnect_delay
        return LiveReconciler(
            self._require_transport(),
            store=EntityStore(skew_allowance_seconds=self._config.skew_allowance_seconds),
            reconnect_delay=delay,
        )

    def track_loader(self) -> TrackLoader:
        """Create a loader that discards history responses for stale selections."""

        async def _fetch(entity_id: str, window: HistoryWindow) -> list[Ping]:
            return await self.get_position_history(entity_id, window)

        return TrackLoader(
            _fetch,
            min_distance_m=self._config.track.min_distance_m,
            tolerance=self._config.track.simplify_tolerance,
        )
