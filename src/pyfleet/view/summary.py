"""Fleet-level summary and per-entity freshness for the dashboard header/list."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from pyfleet._constants import EXPIRED_AFTER_S, MOVING_SPEED_KMH, STALE_AFTER_S
from pyfleet.models.entity import Entity


@dataclass(frozen=True, slots=True)
class FleetSummary:
    total: int
    online: int
    moving: int
    top_speed_kmh: float


def summarize_fleet(entities: Iterable[Entity]) -> FleetSummary:
    """Count active and moving entities and find the top speed."""
    total = online = moving = 0
    top_speed = 0.0
    for entity in entities:
        total += 1
        if entity.active:
            online += 1
        speed = (entity.last_seen.speed if entity.last_seen is not None else None) or 0.0
        if speed > MOVING_SPEED_KMH:
            moving += 1
        top_speed = max(top_speed, speed)
    return FleetSummary(total=total, online=online, moving=moving, top_speed_kmh=top_speed)


@dataclass(frozen=True, slots=True)
class Freshness:
    age_seconds: int | None
    stale: bool
    label: str


def freshness(entity: Entity, *, now: datetime | None = None) -> Freshness:
    """How recently an entity reported, as shown in the fleet list.

    Reports older than two minutes are flagged stale; after five minutes
    the label collapses to ``STALE``.
    """
    timestamp = entity.last_seen.timestamp if entity.last_seen is not None else None
    if timestamp is None:
        return Freshness(age_seconds=None, stale=False, label="NO DATA")

    current = now or datetime.now(UTC)
    age = math.floor((current - timestamp).total_seconds())
    stale = age > STALE_AFTER_S
    if stale and age >= EXPIRED_AFTER_S:
        return Freshness(age_seconds=age, stale=True, label="STALE")
    return Freshness(age_seconds=age, stale=stale, label=f"{age}s ago")
