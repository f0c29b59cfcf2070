"""Historical GPS ping model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pyfleet.ingestion.normalize import parse_timestamp, safe_float


class Ping(BaseModel):
    """One raw sample of a position-history track.

    Parameters
    ----------
    lat : float
        Latitude in degrees.
    lng : float
        Longitude in degrees.
    speed_kmh : float or None
        Speed reported by the device, in km/h.
    timestamp : datetime
        UTC time of the sample.  History is fetched in bulk, so this (and
        not arrival order) defines the ordering.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(validation_alias=AliasChoices("lng", "lon", "longitude"))
    speed_kmh: float | None = Field(default=None, validation_alias=AliasChoices("speed_kmh", "speedKmh", "speed"))
    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "time", "ts", "recordedAt"))

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _coerce_coordinates(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError("coordinate must be numeric")
        return parsed

    @field_validator("speed_kmh", mode="before")
    @classmethod
    def _coerce_speed(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime:
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ValueError("timestamp must be an ISO string or epoch number")
        return parsed
