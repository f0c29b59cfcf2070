"""Data models for fleet backend payloads and processed output."""

from pyfleet.models.entity import Assignment, Entity, LastSeen
from pyfleet.models.ping import Ping
from pyfleet.models.track import ProcessedTrack, SpeedBand, TrackPoint, TrackSegment, TrackStats
from pyfleet.models.update import UpdateEvent

__all__ = [
    "Assignment",
    "Entity",
    "LastSeen",
    "Ping",
    "ProcessedTrack",
    "SpeedBand",
    "TrackPoint",
    "TrackSegment",
    "TrackStats",
    "UpdateEvent",
]
