from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from pyfleet.exceptions import NetworkError
from pyfleet.ingestion.history import HistoryRange, HistoryWindow
from pyfleet.models.ping import Ping
from pyfleet.track.loader import TrackLoader

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
_WINDOW = HistoryWindow.ending_now(HistoryRange.LAST_HOUR, now=_NOW)


def _pings(lng_step: float) -> list[Ping]:
    return [
        Ping(lat=0.0, lng=i * lng_step, speed_kmh=20.0, timestamp=_NOW - timedelta(minutes=10 - i)) for i in range(3)
    ]


class GatedFetcher:
    """History fetcher whose responses are released by the test."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.responses: dict[str, list[Ping] | NetworkError] = {}

    async def __call__(self, entity_id: str, window: HistoryWindow) -> list[Ping]:
        gate = self.gates.setdefault(entity_id, asyncio.Event())
        await gate.wait()
        response = self.responses[entity_id]
        if isinstance(response, NetworkError):
            raise response
        return response


@pytest.mark.asyncio
async def test_load_processes_track() -> None:
    fetcher = GatedFetcher()
    fetcher.responses["v1"] = _pings(0.01)
    fetcher.gates["v1"] = asyncio.Event()
    fetcher.gates["v1"].set()
    loader = TrackLoader(fetcher)

    track = await loader.load("v1", _WINDOW)

    assert track is not None
    assert track.has_path
    assert loader.track is track
    assert loader.selected is not None and loader.selected.entity_id == "v1"


@pytest.mark.asyncio
async def test_stale_response_is_discarded() -> None:
    fetcher = GatedFetcher()
    fetcher.responses["slow"] = _pings(0.01)
    fetcher.responses["fast"] = _pings(0.02)
    loader = TrackLoader(fetcher)

    slow = asyncio.create_task(loader.load("slow", _WINDOW))
    await asyncio.sleep(0)
    fast = asyncio.create_task(loader.load("fast", _WINDOW))
    await asyncio.sleep(0)

    fetcher.gates["fast"].set()
    fast_track = await fast
    fetcher.gates["slow"].set()
    slow_track = await slow

    assert slow_track is None
    assert fast_track is not None
    assert loader.track is fast_track
    assert loader.selected is not None and loader.selected.entity_id == "fast"


@pytest.mark.asyncio
async def test_failure_of_current_request_propagates() -> None:
    fetcher = GatedFetcher()
    fetcher.responses["v1"] = NetworkError("boom", status_code=500)
    fetcher.gates["v1"] = asyncio.Event()
    fetcher.gates["v1"].set()
    loader = TrackLoader(fetcher)

    with pytest.raises(NetworkError):
        await loader.load("v1", _WINDOW)
    assert loader.track is None


@pytest.mark.asyncio
async def test_failure_after_clear_is_ignored() -> None:
    fetcher = GatedFetcher()
    fetcher.responses["v1"] = NetworkError("boom")
    loader = TrackLoader(fetcher)

    pending = asyncio.create_task(loader.load("v1", _WINDOW))
    await asyncio.sleep(0)
    loader.clear()
    fetcher.gates["v1"].set()

    assert await pending is None
    assert loader.selected is None
