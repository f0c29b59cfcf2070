"""Marker synchronization.

Given the reconciled entity set, compute the minimal create/update/remove
operations against a persistent set of marker handles.  Existing handles are
mutated in place, never recreated, so animations stay smooth and attached
listeners survive updates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from pyfleet._constants import (
    FOCUS_DURATION_S,
    FOCUS_ZOOM,
    MARKER_COLORS,
    MARKER_SIZE,
    SELECTED_MARKER_SIZE,
)
from pyfleet.models.entity import Entity
from pyfleet.view.context import MarkerHandle, MarkerPopup, MarkerStyle, RenderContext

_logger = logging.getLogger(__name__)


def stable_hash(text: str) -> int:
    """32-bit signed string hash (``h = h * 31 + unit`` over UTF-16 units).

    Matches the hash the web dashboard uses, so an entity keeps the same
    color across sessions and front ends.
    """
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def color_for_entity(entity_id: str, palette: tuple[str, ...] = MARKER_COLORS) -> str:
    return palette[abs(stable_hash(entity_id)) % len(palette)]


def marker_style(entity: Entity, selected: bool) -> MarkerStyle:
    heading = entity.last_seen.heading if entity.last_seen is not None else None
    return MarkerStyle(
        color=color_for_entity(entity.id),
        size=SELECTED_MARKER_SIZE if selected else MARKER_SIZE,
        halo=selected,
        heading=heading or 0.0,
    )


def build_popup(entity: Entity) -> MarkerPopup:
    last_seen = entity.last_seen
    speed = last_seen.speed if last_seen is not None else None
    heading = last_seen.heading if last_seen is not None else None
    timestamp = last_seen.timestamp if last_seen is not None else None

    if entity.assignment is None:
        assignment_text = "No driver"
    elif entity.assignment.device_id:
        assignment_text = f"Device: {entity.assignment.device_id}"
    else:
        assignment_text = f"Assigned: {entity.assignment.name or entity.assignment.id}"

    return MarkerPopup(
        title=entity.name,
        color=color_for_entity(entity.id),
        reference=entity.reference,
        speed_text=f"{speed or 0:.0f} km/h",
        heading_text=f"{heading:.0f}°" if heading is not None else "—°",
        assignment_text=assignment_text,
        last_seen_text=timestamp.strftime("%H:%M:%S") if timestamp is not None else "",
    )


@dataclass(frozen=True, slots=True)
class SyncResult:
    created: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not (self.created or self.updated or self.removed)


@dataclass(slots=True)
class _Rendered:
    handle: MarkerHandle
    position: tuple[float, float]
    style: MarkerStyle
    popup: MarkerPopup
    detach_click: Callable[[], None] = field(default=lambda: None)


class MarkerSynchronizer:
    """Keep one marker handle per positioned entity in a render context.

    Parameters
    ----------
    context : RenderContext
        The owned rendering surface.  The synchronizer does not open or close
        it; scope it with :func:`pyfleet.view.context.mounted`.
    on_select : callable, optional
        Invoked with the entity id when a marker is clicked.
    """

    def __init__(self, context: RenderContext, *, on_select: Callable[[str], None] | None = None) -> None:
        self._context = context
        self._on_select = on_select
        self._rendered: dict[str, _Rendered] = {}
        self._focused_id: str | None = None

    @property
    def handles(self) -> dict[str, MarkerHandle]:
        return {entity_id: rendered.handle for entity_id, rendered in self._rendered.items()}

    def _click_callback(self, entity_id: str) -> Callable[[], None]:
        def _clicked() -> None:
            if self._on_select is not None:
                self._on_select(entity_id)

        return _clicked

    def sync(self, entities: Mapping[str, Entity] | Iterable[Entity], selected_id: str | None = None) -> SyncResult:
        """Bring marker handles in line with *entities*.

        Entities without a known position get no marker; if one already
        exists it stays where it was last seen.
        """
        current = dict(entities) if isinstance(entities, Mapping) else {e.id: e for e in entities}

        created: list[str] = []
        updated: list[str] = []
        removed: list[str] = []

        for entity_id, entity in current.items():
            last_seen = entity.last_seen
            if last_seen is None or last_seen.lat is None or last_seen.lng is None:
                continue

            position = (last_seen.lat, last_seen.lng)
            style = marker_style(entity, entity_id == selected_id)
            popup = build_popup(entity)
            rendered = self._rendered.get(entity_id)

            if rendered is None:
                handle = self._context.create_marker(position[0], position[1], style)
                handle.set_popup(popup)
                detach = handle.on_click(self._click_callback(entity_id))
                self._rendered[entity_id] = _Rendered(
                    handle=handle,
                    position=position,
                    style=style,
                    popup=popup,
                    detach_click=detach,
                )
                created.append(entity_id)
                continue

            changed = False
            if rendered.position != position:
                rendered.handle.set_position(*position)
                rendered.position = position
                changed = True
            if rendered.style != style:
                rendered.handle.set_style(style)
                rendered.style = style
                changed = True
            if rendered.popup != popup:
                rendered.handle.set_popup(popup)
                rendered.popup = popup
                changed = True
            if changed:
                updated.append(entity_id)

        for entity_id in [eid for eid in self._rendered if eid not in current]:
            self._destroy(entity_id)
            removed.append(entity_id)

        if created or removed:
            _logger.debug("Markers synced: created=%d updated=%d removed=%d", len(created), len(updated), len(removed))
        return SyncResult(created=tuple(created), updated=tuple(updated), removed=tuple(removed))

    def focus(self, entities: Mapping[str, Entity], selected_id: str | None) -> bool:
        """Fly the camera to a newly selected entity.

        Only a change of selection moves the camera.  An entity with no known
        position leaves the camera where it is.  Returns whether the camera
        moved.
        """
        if selected_id == self._focused_id:
            return False
        self._focused_id = selected_id
        if selected_id is None:
            return False

        entity = entities.get(selected_id)
        if entity is None or entity.last_seen is None or not entity.last_seen.has_position:
            return False

        lat, lng = entity.last_seen.lat, entity.last_seen.lng
        assert lat is not None and lng is not None  # noqa: S101
        self._context.fly_to(lat, lng, zoom=FOCUS_ZOOM, duration=FOCUS_DURATION_S)
        return True

    def clear(self) -> None:
        """Destroy every handle (view teardown)."""
        for entity_id in list(self._rendered):
            self._destroy(entity_id)
        self._focused_id = None

    def _destroy(self, entity_id: str) -> None:
        rendered = self._rendered.pop(entity_id)
        rendered.detach_click()
        rendered.handle.remove()
