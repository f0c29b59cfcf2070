"""Client configuration for pyfleet."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from pyfleet._constants import (
    BASE_URL,
    DEFAULT_HEADERS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_MIN_DISTANCE_M,
    DEFAULT_SIMPLIFY_TOLERANCE,
)
from pyfleet.exceptions import FleetConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TrackSettings:
    """Tunables for GPS track processing.

    Both values are fixed constants per session; they do not scale with
    zoom level or speed.
    """

    min_distance_m: float = DEFAULT_MIN_DISTANCE_M
    simplify_tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend base URL (no trailing slash).
    headers : dict
        Extra headers sent with every request.
    request_timeout : float
        Total timeout in seconds for snapshot and history requests.
    history_limit : int
        Default ``limit`` passed to the history endpoint.
    reconnect_delay : float or None
        Seconds to wait before reopening a failed stream.  ``None`` disables
        reconnecting; the stream then stays in the ``error`` state.
    skew_allowance_seconds : float
        How far behind the cached timestamp an update may be and still
        fill in missing fields.  Older updates are dropped as stale.
    api_trace_enabled : bool
        Log (redacted) response payloads at DEBUG level.
    track : TrackSettings
        Noise-filter and simplification tunables.
    """

    base_url: str = BASE_URL
    headers: dict[str, str] = dataclasses.field(default_factory=lambda: dict(DEFAULT_HEADERS))
    request_timeout: float = 30.0
    history_limit: int = DEFAULT_HISTORY_LIMIT
    reconnect_delay: float | None = None
    skew_allowance_seconds: float = 60.0
    api_trace_enabled: bool = False
    track: TrackSettings = dataclasses.field(default_factory=TrackSettings)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise FleetConfigError("base_url must be non-empty")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.request_timeout <= 0:
            raise FleetConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.history_limit <= 0:
            raise FleetConfigError(f"history_limit must be positive, got {self.history_limit}")
        if self.reconnect_delay is not None and self.reconnect_delay < 0:
            raise FleetConfigError(f"reconnect_delay must be >= 0, got {self.reconnect_delay}")
        if self.skew_allowance_seconds < 0:
            raise FleetConfigError(f"skew_allowance_seconds must be >= 0, got {self.skew_allowance_seconds}")
        if self.track.min_distance_m < 0 or self.track.simplify_tolerance < 0:
            raise FleetConfigError("track thresholds must be >= 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from environment variables.

        Reads ``FLEET_API_URL`` and optional ``FLEET_*`` variables.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FleetConfig
            Populated configuration.

        Raises
        ------
        FleetConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("FLEET_API_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "FLEET_REQUEST_TIMEOUT": ("request_timeout", float),
            "FLEET_HISTORY_LIMIT": ("history_limit", int),
            "FLEET_RECONNECT_DELAY": ("reconnect_delay", float),
            "FLEET_SKEW_ALLOWANCE": ("skew_allowance_seconds", float),
        }
        for env_key, (field_name, parse) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = parse(val)
            except ValueError as exc:
                raise FleetConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        track_kwargs: dict[str, float] = {}
        _ENV_TRACK_MAP = {
            "FLEET_MIN_DISTANCE_M": "min_distance_m",
            "FLEET_SIMPLIFY_TOLERANCE": "simplify_tolerance",
        }
        for env_key, field_name in _ENV_TRACK_MAP.items():
            val = env.get(env_key)
            if val is None:
                continue
            try:
                track_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise FleetConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        # Allow overriding track fields via a nested dict
        track_overrides = overrides.pop("track", None)
        if isinstance(track_overrides, dict):
            track_kwargs.update(track_overrides)
        elif isinstance(track_overrides, TrackSettings):
            track_kwargs = dataclasses.asdict(track_overrides)
        config_kwargs["track"] = TrackSettings(**track_kwargs)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("FLEET_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
