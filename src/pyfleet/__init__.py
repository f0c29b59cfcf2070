"""pyfleet - Async Python client for live fleet tracking."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfleet.client import FleetClient
from pyfleet.config import FleetConfig, TrackSettings
from pyfleet.exceptions import (
    FleetConfigError,
    FleetError,
    MalformedEventError,
    NetworkError,
    UnknownEntityError,
)
from pyfleet.ingestion.history import HistoryRange, HistoryWindow
from pyfleet.models import (
    Assignment,
    Entity,
    LastSeen,
    Ping,
    ProcessedTrack,
    SpeedBand,
    TrackPoint,
    TrackSegment,
    TrackStats,
    UpdateEvent,
)
from pyfleet.reconciler import LiveReconciler
from pyfleet.state.events import ConnectionState
from pyfleet.state.store import EntityStore
from pyfleet.track import TrackLoader, process_track
from pyfleet.view import MarkerSynchronizer, RenderContext, mounted

__all__ = [
    "__version__",
    "Assignment",
    "ConnectionState",
    "Entity",
    "EntityStore",
    "FleetClient",
    "FleetConfig",
    "FleetConfigError",
    "FleetError",
    "HistoryRange",
    "HistoryWindow",
    "LastSeen",
    "LiveReconciler",
    "MalformedEventError",
    "MarkerSynchronizer",
    "NetworkError",
    "Ping",
    "ProcessedTrack",
    "RenderContext",
    "SpeedBand",
    "TrackLoader",
    "TrackPoint",
    "TrackSegment",
    "TrackSettings",
    "TrackStats",
    "UnknownEntityError",
    "UpdateEvent",
    "mounted",
    "process_track",
]
