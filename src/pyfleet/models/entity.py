"""Tracked entity model (vehicle or technician)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pyfleet.ingestion.normalize import parse_timestamp, safe_bool, safe_float, safe_str

ENTITY_ID_ALIASES = ("id", "_id", "entityId", "vehicleId", "technicianId")


class LastSeen(BaseModel):
    """Most recent known position of an entity.

    Every field is independently optional: a live update may refresh only
    ``lat``/``lng`` while ``speed``/``heading`` keep their previous value.

    Parameters
    ----------
    lat : float or None
        Latitude in degrees.
    lng : float or None
        Longitude in degrees.
    speed : float or None
        Reported speed in km/h.
    heading : float or None
        Heading in degrees clockwise from north.
    timestamp : datetime or None
        UTC time of the fix.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    lat: float | None = Field(default=None, validation_alias=AliasChoices("lat", "latitude"))
    lng: float | None = Field(default=None, validation_alias=AliasChoices("lng", "lon", "longitude"))
    speed: float | None = Field(default=None, validation_alias=AliasChoices("speed", "speedKmh", "speed_kmh"))
    heading: float | None = Field(default=None, validation_alias=AliasChoices("heading", "direction", "course"))
    timestamp: datetime | None = Field(default=None, validation_alias=AliasChoices("timestamp", "time", "ts"))

    @property
    def has_position(self) -> bool:
        """Whether both coordinates are known."""
        return self.lat is not None and self.lng is not None

    @field_validator("lat", "lng", "speed", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)


class Assignment(BaseModel):
    """The driver/device currently assigned to an entity.

    The backend sends either a bare id string or a populated user document;
    both forms normalize to this model.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(validation_alias=AliasChoices("id", "_id", "userId", "driverId"))
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "driverName"))
    device_id: str | None = Field(default=None, validation_alias=AliasChoices("deviceId", "device_id"))

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, values: Any) -> Any:
        if isinstance(values, (str, int)):
            return {"id": str(values)}
        return values

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("assignment id must be non-empty")
        return text

    @field_validator("name", "device_id", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)


class Entity(BaseModel):
    """A tracked vehicle or technician.

    Fields are mapped from the ``latest-positions`` response.  Both the
    vehicle and the technician document shapes are accepted.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(validation_alias=AliasChoices(*ENTITY_ID_ALIASES))
    """Backend identifier."""
    name: str = Field(default="", validation_alias=AliasChoices("name", "Name"))
    """Display name."""
    kind: str | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    """Classification tag (``"truck"``, ``"van"``, ``"technician"``...)."""
    reference: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reference", "plateNumber", "employeeId"),
    )
    """External reference code (plate number or employee id)."""
    device_id: str | None = Field(default=None, validation_alias=AliasChoices("deviceId", "device_id"))
    """Tracker device bound to the entity, when the backend reports one."""
    speed_limit_kmh: float | None = Field(
        default=None,
        validation_alias=AliasChoices("speedLimitKmh", "speed_limit_kmh"),
    )
    """Configured speed limit."""
    assignment: Assignment | None = Field(
        default=None,
        validation_alias=AliasChoices("assignment", "userId", "driverId"),
    )
    """Assigned driver/device, if any."""
    active: bool = Field(default=False, validation_alias=AliasChoices("active", "inShift", "inUse", "isActive"))
    """Whether the entity is currently in use / on shift."""
    last_seen: LastSeen | None = Field(default=None, validation_alias=AliasChoices("lastSeen", "last_seen"))
    """Most recent position snapshot."""

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload for access to additional fields."""

    @property
    def has_position(self) -> bool:
        return self.last_seen is not None and self.last_seen.has_position

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("entity id must be non-empty")
        return text

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("kind", "reference", "device_id", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("speed_limit_kmh", mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("assignment", mode="before")
    @classmethod
    def _drop_empty_assignment(cls, value: Any) -> Any:
        if value is None or value == "" or value == {}:
            return None
        return value

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        parsed = safe_bool(value)
        return bool(parsed)

    @field_validator("last_seen", mode="before")
    @classmethod
    def _drop_empty_last_seen(cls, value: Any) -> Any:
        if not isinstance(value, (dict, LastSeen)) or value == {}:
            return None
        return value
