"""Connection and change notifications emitted by the state layer."""

from __future__ import annotations

from enum import StrEnum


class ConnectionState(StrEnum):
    """Health of the live update stream, as shown to the presentation layer."""

    CONNECTING = "connecting"
    LIVE = "live"
    ERROR = "error"


class MergeOutcome(StrEnum):
    """What the store did with an update event."""

    APPLIED = "applied"
    FILLED = "filled"
    UNCHANGED = "unchanged"
    STALE = "stale"

    @property
    def changed(self) -> bool:
        return self in (MergeOutcome.APPLIED, MergeOutcome.FILLED)
