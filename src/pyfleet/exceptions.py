"""Custom exception hierarchy for pyfleet."""

from __future__ import annotations


class FleetError(Exception):
    """Base exception for all pyfleet errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class NetworkError(FleetError):
    """HTTP-level failure (network, non-2xx, invalid JSON).

    Raised by snapshot and history fetches. The stream never raises this to
    the caller; stream failures are reported through the connection state.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MalformedEventError(FleetError):
    """A stream payload could not be decoded into an update event.

    Recovered inside the reconciler: the event is dropped.
    """


class UnknownEntityError(FleetError):
    """An update referenced an entity id absent from the current state.

    Recovered inside the reconciler: the update is dropped.
    """

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(f"Unknown entity id {entity_id!r}")
