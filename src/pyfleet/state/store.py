"""Deterministic in-memory entity store.

This is the only component allowed to merge incoming update events.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pyfleet.exceptions import UnknownEntityError
from pyfleet.models.entity import Entity, LastSeen
from pyfleet.models.update import UpdateEvent
from pyfleet.state.events import MergeOutcome
from pyfleet.state.policy import MergeMode, decide_merge_mode


def _is_unset(value: Any) -> bool:
    return value is None or value == ""


def _merge_fields(current: Mapping[str, Any], patch: Mapping[str, Any], *, fill_only: bool) -> dict[str, Any]:
    """Select the patch keys that should be written onto *current*.

    Patches are pruned at the ingestion boundary, so every key present is a
    real value.  In fill-only mode keys that already hold a value are kept.
    """

    if not fill_only:
        return dict(patch)
    return {key: value for key, value in patch.items() if _is_unset(current.get(key))}


def merge_entity(entity: Entity, event: UpdateEvent, *, mode: MergeMode = MergeMode.OVERWRITE) -> Entity:
    """Return a new entity with the fields present in *event* applied.

    Fields the event does not carry are never touched, and ``last_seen`` is
    merged field by field rather than replaced.
    """

    if mode == MergeMode.REJECT:
        return entity
    fill_only = mode == MergeMode.FILL_MISSING

    top_level = _merge_fields(
        {name: getattr(entity, name) for name in event.entity_patch()},
        event.entity_patch(),
        fill_only=fill_only,
    )

    position_patch = event.last_seen_patch()
    if position_patch:
        previous = entity.last_seen or LastSeen()
        position_update = _merge_fields(
            {name: getattr(previous, name) for name in position_patch},
            position_patch,
            fill_only=fill_only,
        )
        if position_update:
            top_level["last_seen"] = previous.model_copy(update=position_update)

    if not top_level:
        return entity
    return entity.model_copy(update=top_level)


class EntityStore:
    """In-memory map of entity id to current :class:`Entity`.

    Entities are immutable; every accepted update swaps a freshly built value
    into the map in a single assignment, so readers never observe a
    half-merged entity.  Given the same snapshot and sequence of events the
    store always ends in the same state.
    """

    def __init__(self, *, skew_allowance_seconds: float = 60.0) -> None:
        self._skew_allowance_seconds = skew_allowance_seconds
        self._entities: dict[str, Entity] = {}

    def replace_all(self, entities: Iterable[Entity]) -> None:
        """Replace the whole state with a fresh snapshot."""
        self._entities = {entity.id: entity for entity in entities}

    def apply(self, event: UpdateEvent) -> MergeOutcome:
        """Merge a normalized update event.

        Raises
        ------
        UnknownEntityError
            If the event references an entity that is not in the store.
            Entities are only ever created by :meth:`replace_all`.
        """
        entity = self._entities.get(event.entity_id)
        if entity is None:
            raise UnknownEntityError(event.entity_id)

        cached_ts = entity.last_seen.timestamp if entity.last_seen is not None else None
        mode = decide_merge_mode(
            cached_ts=cached_ts,
            incoming_ts=event.timestamp,
            skew_allowance_seconds=self._skew_allowance_seconds,
        )
        if mode == MergeMode.REJECT:
            return MergeOutcome.STALE

        merged = merge_entity(entity, event, mode=mode)
        if merged == entity:
            return MergeOutcome.UNCHANGED
        self._entities[entity.id] = merged
        return MergeOutcome.FILLED if mode == MergeMode.FILL_MISSING else MergeOutcome.APPLIED

    def get(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def snapshot(self) -> dict[str, Entity]:
        """A consistent point-in-time copy of the state."""
        return dict(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))
