"""Presentation-side synchronization: markers, camera focus, fleet summary."""

from pyfleet.view.context import MarkerHandle, MarkerPopup, MarkerStyle, RenderContext, mounted
from pyfleet.view.markers import MarkerSynchronizer, SyncResult, color_for_entity, marker_style
from pyfleet.view.summary import FleetSummary, Freshness, freshness, summarize_fleet

__all__ = [
    "FleetSummary",
    "Freshness",
    "MarkerHandle",
    "MarkerPopup",
    "MarkerStyle",
    "MarkerSynchronizer",
    "RenderContext",
    "SyncResult",
    "color_for_entity",
    "freshness",
    "marker_style",
    "mounted",
    "summarize_fleet",
]
