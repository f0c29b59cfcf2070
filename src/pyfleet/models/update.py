"""Canonical partial update event.

Every producer on the live stream names its fields a little differently
(``vehicleId`` vs ``technicianId``, ``inUse`` vs ``inShift``, flat vs nested
``lastSeen``...).  :class:`UpdateEvent` absorbs that variance so the state
store only ever sees one shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pyfleet.ingestion.normalize import parse_timestamp, prune_patch, safe_bool, safe_float, safe_str
from pyfleet.models.entity import ENTITY_ID_ALIASES, Assignment

#: Update fields that belong to ``Entity.last_seen``.
LAST_SEEN_FIELDS: tuple[str, ...] = ("lat", "lng", "speed", "heading", "timestamp")
#: Update fields that belong to the top level of ``Entity``.
ENTITY_FIELDS: tuple[str, ...] = ("name", "reference", "assignment", "active")


class UpdateEvent(BaseModel):
    """A flat, partial update for a single entity.

    A field left as ``None`` means "not present in the update" and must
    never overwrite known state.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    entity_id: str = Field(validation_alias=AliasChoices("entity_id", *ENTITY_ID_ALIASES))
    lat: float | None = Field(default=None, validation_alias=AliasChoices("lat", "latitude"))
    lng: float | None = Field(default=None, validation_alias=AliasChoices("lng", "lon", "longitude"))
    speed: float | None = Field(default=None, validation_alias=AliasChoices("speed", "speedKmh", "speed_kmh"))
    heading: float | None = Field(default=None, validation_alias=AliasChoices("heading", "direction", "course"))
    timestamp: datetime | None = Field(default=None, validation_alias=AliasChoices("timestamp", "time", "ts"))
    assignment: Assignment | None = Field(
        default=None,
        validation_alias=AliasChoices("assignment", "userId", "driverId"),
    )
    active: bool | None = Field(default=None, validation_alias=AliasChoices("active", "inUse", "inShift", "isActive"))
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "Name", "vehicleName"))
    reference: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reference", "plateNumber", "employeeId", "vehicleemployeeId"),
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_last_seen(cls, values: Any) -> Any:
        """Lift a nested ``lastSeen`` object to the top level.

        Top-level keys win when a producer sends both.
        """
        if not isinstance(values, dict):
            return values
        nested = values.get("lastSeen", values.get("last_seen"))
        if not isinstance(nested, dict):
            return values
        merged = dict(nested)
        merged.update({k: v for k, v in values.items() if k not in ("lastSeen", "last_seen")})
        return merged

    @field_validator("entity_id", mode="before")
    @classmethod
    def _coerce_entity_id(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("entity id must be non-empty")
        return text

    @field_validator("lat", "lng", "speed", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("assignment", mode="before")
    @classmethod
    def _drop_empty_assignment(cls, value: Any) -> Any:
        if value is None or value == "" or value == {}:
            return None
        return value

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool | None:
        return safe_bool(value)

    @field_validator("name", "reference", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)

    def last_seen_patch(self) -> dict[str, Any]:
        """Position fields explicitly present in this update."""
        dumped = self.model_dump(include=set(LAST_SEEN_FIELDS), exclude_none=True)
        return prune_patch(dumped)

    def entity_patch(self) -> dict[str, Any]:
        """Top-level entity fields explicitly present in this update.

        ``assignment`` stays a model instance so it can be placed on the
        entity without re-validation.
        """
        patch: dict[str, Any] = {}
        for field_name in ENTITY_FIELDS:
            value = getattr(self, field_name)
            if value is not None:
                patch[field_name] = value
        return patch

    @property
    def is_empty(self) -> bool:
        """Whether the update carries nothing beyond the entity id."""
        return not self.last_seen_patch() and not self.entity_patch()
