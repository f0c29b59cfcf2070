"""Position-history ingestion.

The history endpoint returns pings in no guaranteed order; sorting is the
track processor's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from pyfleet._constants import DEFAULT_HISTORY_LIMIT, HISTORY_ENDPOINT_TEMPLATE
from pyfleet._transport import Transport
from pyfleet.exceptions import NetworkError
from pyfleet.models.ping import Ping

_logger = logging.getLogger(__name__)


class HistoryRange(StrEnum):
    """Look-back presets offered by the trip history panel."""

    LAST_HOUR = "1h"
    LAST_6_HOURS = "6h"
    LAST_24_HOURS = "24h"

    @property
    def duration(self) -> timedelta:
        return timedelta(hours=_RANGE_HOURS[self])


_RANGE_HOURS: dict[HistoryRange, int] = {
    HistoryRange.LAST_HOUR: 1,
    HistoryRange.LAST_6_HOURS: 6,
    HistoryRange.LAST_24_HOURS: 24,
}


@dataclass(frozen=True, slots=True)
class HistoryWindow:
    """A closed time interval ``[start, end]`` in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("history window bounds must be timezone-aware")
        if self.start > self.end:
            raise ValueError("history window start must not be after its end")

    @classmethod
    def ending_now(cls, history_range: HistoryRange | str, *, now: datetime | None = None) -> HistoryWindow:
        end = now or datetime.now(UTC)
        return cls(start=end - HistoryRange(history_range).duration, end=end)


def format_timestamp(value: datetime) -> str:
    """Render a datetime the way the backend expects (ISO-8601, ms, ``Z``)."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_pings(decoded: Any, *, endpoint: str = "") -> list[Ping]:
    """Parse a history body, skipping pings without coordinates or timestamp."""
    if not isinstance(decoded, list):
        raise NetworkError(
            f"Unexpected history body: expected a list, got {type(decoded).__name__}",
            endpoint=endpoint,
        )

    pings: list[Ping] = []
    skipped = 0
    for item in decoded:
        try:
            pings.append(Ping.model_validate(item))
        except ValidationError:
            skipped += 1
    if skipped:
        _logger.debug("Skipped %d invalid ping(s) from %s", skipped, endpoint)
    return pings


async def fetch_position_history(
    transport: Transport,
    entity_id: str,
    window: HistoryWindow,
    *,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[Ping]:
    """Fetch the raw pings of one entity over *window*.

    Raises
    ------
    NetworkError
        If the request fails or the body is not a list.
    """
    endpoint = HISTORY_ENDPOINT_TEMPLATE.format(entity_id=quote(entity_id, safe=""))
    params = {
        "from": format_timestamp(window.start),
        "to": format_timestamp(window.end),
        "limit": str(limit),
    }
    decoded = await transport.get_json(endpoint, params)
    return parse_pings(decoded, endpoint=endpoint)
