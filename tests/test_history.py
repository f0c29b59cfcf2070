from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pyfleet.exceptions import NetworkError
from pyfleet.ingestion.history import (
    HistoryRange,
    HistoryWindow,
    fetch_position_history,
    format_timestamp,
    parse_pings,
)

_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class RecordingTransport:
    def __init__(self, body: Any) -> None:
        self.body = body
        self.calls: list[tuple[str, dict[str, str]]] = []

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        self.calls.append((endpoint, dict(params or {})))
        return self.body


def test_range_presets() -> None:
    assert HistoryRange("6h").duration == timedelta(hours=6)
    window = HistoryWindow.ending_now("24h", now=_NOW)
    assert window.end - window.start == timedelta(hours=24)


def test_window_rejects_naive_or_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        HistoryWindow(start=datetime(2026, 1, 1), end=_NOW)
    with pytest.raises(ValueError):
        HistoryWindow(start=_NOW, end=_NOW - timedelta(seconds=1))


def test_format_timestamp_uses_z_suffix() -> None:
    assert format_timestamp(_NOW) == "2026-01-01T12:00:00.000Z"


def test_parse_pings_skips_invalid_entries() -> None:
    pings = parse_pings(
        [
            {"lat": 1, "lng": 2, "speedKmh": 10, "timestamp": "2026-01-01T11:00:00Z"},
            {"lat": None, "lng": 2, "timestamp": "2026-01-01T11:00:01Z"},
            {"lat": 1, "lng": 2},
            "junk",
        ]
    )
    assert len(pings) == 1
    assert pings[0].speed_kmh == 10.0


def test_parse_pings_rejects_non_list() -> None:
    with pytest.raises(NetworkError):
        parse_pings({"error": "nope"}, endpoint="/x")


@pytest.mark.asyncio
async def test_fetch_position_history_builds_query() -> None:
    transport = RecordingTransport([])
    window = HistoryWindow.ending_now(HistoryRange.LAST_HOUR, now=_NOW)

    assert await fetch_position_history(transport, "veh/1", window, limit=500) == []

    [(endpoint, params)] = transport.calls
    assert endpoint == "/api/locations/veh%2F1/history"
    assert params == {"from": "2026-01-01T11:00:00.000Z", "to": "2026-01-01T12:00:00.000Z", "limit": "500"}
