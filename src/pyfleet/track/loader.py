"""History requests for the currently selected entity.

A new request never waits for an older one to finish.  Each request is
keyed by entity id and time window; when a response arrives for a key that
is no longer selected it is discarded so it cannot overwrite the track of
the entity the user is now looking at.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pyfleet._constants import DEFAULT_MIN_DISTANCE_M, DEFAULT_SIMPLIFY_TOLERANCE
from pyfleet.exceptions import NetworkError
from pyfleet.ingestion.history import HistoryWindow
from pyfleet.models.ping import Ping
from pyfleet.models.track import ProcessedTrack
from pyfleet.track.processing import process_track

_logger = logging.getLogger(__name__)

HistoryFetcher = Callable[[str, HistoryWindow], Awaitable[list[Ping]]]


@dataclass(frozen=True, slots=True)
class TrackRequest:
    entity_id: str
    window: HistoryWindow


class TrackLoader:
    """Load and process tracks, keeping only the latest selection's result."""

    def __init__(
        self,
        fetch: HistoryFetcher,
        *,
        min_distance_m: float = DEFAULT_MIN_DISTANCE_M,
        tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
    ) -> None:
        self._fetch = fetch
        self._min_distance_m = min_distance_m
        self._tolerance = tolerance
        self._selected: TrackRequest | None = None
        self._track: ProcessedTrack | None = None

    @property
    def selected(self) -> TrackRequest | None:
        return self._selected

    @property
    def track(self) -> ProcessedTrack | None:
        """Track for the current selection, once loaded."""
        return self._track

    def clear(self) -> None:
        """Forget the selection; any in-flight response will be discarded."""
        self._selected = None
        self._track = None

    async def load(self, entity_id: str, window: HistoryWindow) -> ProcessedTrack | None:
        """Fetch and process the track for *entity_id* over *window*.

        Returns ``None`` if the selection changed while the request was in
        flight.

        Raises
        ------
        NetworkError
            If the fetch fails and the request is still the current one.
        """
        request = TrackRequest(entity_id=entity_id, window=window)
        if request != self._selected:
            self._selected = request
            self._track = None

        try:
            pings = await self._fetch(entity_id, window)
        except NetworkError:
            if request != self._selected:
                _logger.debug("Ignoring failure of superseded history request for %s", entity_id, exc_info=True)
                return None
            raise

        if request != self._selected:
            _logger.debug("Discarding stale history response for %s", entity_id)
            return None

        track = process_track(pings, min_distance_m=self._min_distance_m, tolerance=self._tolerance)
        self._track = track
        return track
