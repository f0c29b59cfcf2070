"""GPS track processing: noise filtering, simplification, speed bands, stats."""

from pyfleet.track.geo import haversine_m
from pyfleet.track.loader import TrackLoader, TrackRequest
from pyfleet.track.processing import (
    classify_speed,
    compute_stats,
    filter_noise,
    process_track,
    simplify,
    sort_pings,
)

__all__ = [
    "TrackLoader",
    "TrackRequest",
    "classify_speed",
    "compute_stats",
    "filter_noise",
    "haversine_m",
    "process_track",
    "simplify",
    "sort_pings",
]
