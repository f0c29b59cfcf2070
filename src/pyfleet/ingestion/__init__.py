"""Ingestion layer.

This package contains adapters that fetch/receive data from the fleet
backend (snapshot, live stream, position history) and emit normalized
domain objects/events.
"""

__all__: list[str] = []
