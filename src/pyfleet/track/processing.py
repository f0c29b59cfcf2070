"""GPS track processing pipeline.

Turns a noisy, unordered list of history pings into a clean trajectory:

1. sort by timestamp
2. drop jitter closer than ``min_distance_m`` to the last kept ping
3. Douglas-Peucker simplification in degree space
4. classify every surviving point into a speed band
5. aggregate stats over the noise-filtered (not simplified) sequence
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pyfleet._constants import (
    DEFAULT_MIN_DISTANCE_M,
    DEFAULT_SIMPLIFY_TOLERANCE,
    LOW_SPEED_LIMIT_KMH,
    MEDIUM_SPEED_LIMIT_KMH,
)
from pyfleet.models.ping import Ping
from pyfleet.models.track import ProcessedTrack, SpeedBand, TrackPoint, TrackStats
from pyfleet.track.geo import haversine_m, sq_segment_distance

_logger = logging.getLogger(__name__)


def sort_pings(pings: Iterable[Ping]) -> list[Ping]:
    """Order pings by timestamp; ties keep their input order."""
    return sorted(pings, key=lambda p: p.timestamp)


def filter_noise(pings: Sequence[Ping], min_distance_m: float = DEFAULT_MIN_DISTANCE_M) -> list[Ping]:
    """Keep a ping only if it is at least *min_distance_m* from the last kept one.

    The first ping is always kept.  Input must already be time-ordered.
    """
    if not pings:
        return []

    kept: list[Ping] = [pings[0]]
    for ping in pings[1:]:
        last = kept[-1]
        if haversine_m(last.lat, last.lng, ping.lat, ping.lng) >= min_distance_m:
            kept.append(ping)
    return kept


def simplify(pings: Sequence[Ping], tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE) -> list[Ping]:
    """Douglas-Peucker simplification of an open path.

    Distances are measured in (lng, lat) degree space against *tolerance*.
    The first and last points always survive.
    """
    count = len(pings)
    if count <= 2:
        return list(pings)

    sq_tolerance = tolerance * tolerance
    keep = [False] * count
    keep[0] = keep[-1] = True

    stack: list[tuple[int, int]] = [(0, count - 1)]
    while stack:
        first, last = stack.pop()
        a, b = pings[first], pings[last]
        max_sq_dist = sq_tolerance
        index = -1

        for i in range(first + 1, last):
            p = pings[i]
            sq_dist = sq_segment_distance(p.lng, p.lat, a.lng, a.lat, b.lng, b.lat)
            if sq_dist > max_sq_dist:
                index = i
                max_sq_dist = sq_dist

        if index != -1:
            keep[index] = True
            if index - first > 1:
                stack.append((first, index))
            if last - index > 1:
                stack.append((index, last))

    return [p for p, k in zip(pings, keep) if k]


def classify_speed(speed_kmh: float | None) -> SpeedBand:
    """Map a speed to its rendering band; unknown speed counts as stationary."""
    speed = speed_kmh or 0.0
    if speed < LOW_SPEED_LIMIT_KMH:
        return SpeedBand.LOW
    if speed < MEDIUM_SPEED_LIMIT_KMH:
        return SpeedBand.MEDIUM
    return SpeedBand.HIGH


def path_distance_km(pings: Sequence[Ping]) -> float:
    """Sum of consecutive haversine distances, in kilometers."""
    total_m = sum(haversine_m(a.lat, a.lng, b.lat, b.lng) for a, b in zip(pings, pings[1:]))
    return total_m / 1000.0


def compute_stats(filtered: Sequence[Ping]) -> TrackStats:
    """Aggregate statistics over the noise-filtered sequence."""
    if not filtered:
        return TrackStats()
    speeds = [p.speed_kmh or 0.0 for p in filtered]
    return TrackStats(
        ping_count=len(filtered),
        avg_speed_kmh=sum(speeds) / len(speeds),
        total_distance_km=path_distance_km(filtered),
    )


def process_track(
    pings: Iterable[Ping],
    *,
    min_distance_m: float = DEFAULT_MIN_DISTANCE_M,
    tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
) -> ProcessedTrack:
    """Run the full pipeline over one entity's pings.

    Fewer than two pings yield an empty track with zeroed stats.  When every
    ping sits within the noise threshold the track keeps a single point: no
    drawable path, zero distance.
    """
    ordered = sort_pings(pings)
    if len(ordered) < 2:
        return ProcessedTrack()

    filtered = filter_noise(ordered, min_distance_m)
    simplified = simplify(filtered, tolerance)

    _logger.debug(
        "Processed track: raw=%d filtered=%d simplified=%d",
        len(ordered),
        len(filtered),
        len(simplified),
    )

    points = tuple(
        TrackPoint(
            lat=p.lat,
            lng=p.lng,
            speed_kmh=p.speed_kmh,
            timestamp=p.timestamp,
            band=classify_speed(p.speed_kmh),
        )
        for p in simplified
    )
    return ProcessedTrack(points=points, stats=compute_stats(filtered))
