"""Deterministic merge policy for out-of-order updates.

This module intentionally contains *no* payload parsing.  The ingestion
boundary is responsible for producing normalized events and timestamps.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum


class MergeMode(StrEnum):
    OVERWRITE = "overwrite"
    FILL_MISSING = "fill_missing"
    REJECT = "reject"


def decide_merge_mode(
    *,
    cached_ts: datetime | None,
    incoming_ts: datetime | None,
    skew_allowance_seconds: float,
) -> MergeMode:
    """Decide how an incoming update should be merged.

    Policy:
    - Either timestamp missing: arrival order wins (overwrite).
    - Incoming not older than cached: overwrite.
    - Incoming older but within the skew allowance: fill missing fields only.
    - Incoming older beyond the allowance: reject as stale.
    """
    if cached_ts is None or incoming_ts is None:
        return MergeMode.OVERWRITE
    if incoming_ts >= cached_ts:
        return MergeMode.OVERWRITE
    lag = (cached_ts - incoming_ts).total_seconds()
    if lag <= skew_allowance_seconds:
        return MergeMode.FILL_MISSING
    return MergeMode.REJECT
