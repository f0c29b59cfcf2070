"""Processed track models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SpeedBand(StrEnum):
    """Discrete speed classes, used only for rendering."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def color(self) -> str:
        return _BAND_COLORS[self]


_BAND_COLORS: dict[SpeedBand, str] = {
    SpeedBand.LOW: "#00ff99",
    SpeedBand.MEDIUM: "#ffd000",
    SpeedBand.HIGH: "#ff4d4d",
}


class TrackPoint(BaseModel):
    """A surviving point of a simplified track."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    speed_kmh: float | None = None
    timestamp: datetime
    band: SpeedBand


class TrackSegment(BaseModel):
    """Two consecutive track points drawn in one color.

    The band comes from the segment's end point.
    """

    model_config = ConfigDict(frozen=True)

    start: TrackPoint
    end: TrackPoint

    @property
    def band(self) -> SpeedBand:
        return self.end.band


class TrackStats(BaseModel):
    """Aggregate statistics over the noise-filtered ping sequence."""

    model_config = ConfigDict(frozen=True)

    ping_count: int = 0
    avg_speed_kmh: float = 0.0
    total_distance_km: float = 0.0


class ProcessedTrack(BaseModel):
    """Output of :func:`pyfleet.track.processing.process_track`."""

    model_config = ConfigDict(frozen=True)

    points: tuple[TrackPoint, ...] = ()
    stats: TrackStats = Field(default_factory=TrackStats)

    @property
    def has_path(self) -> bool:
        """Whether there are at least two points to draw."""
        return len(self.points) >= 2

    @property
    def start(self) -> TrackPoint | None:
        return self.points[0] if self.points else None

    @property
    def end(self) -> TrackPoint | None:
        return self.points[-1] if self.points else None

    @property
    def segments(self) -> list[TrackSegment]:
        return [TrackSegment(start=a, end=b) for a, b in zip(self.points, self.points[1:])]
