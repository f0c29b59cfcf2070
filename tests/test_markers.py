from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pyfleet.models.entity import Entity
from pyfleet.view.context import MarkerPopup, MarkerStyle, mounted
from pyfleet.view.markers import MarkerSynchronizer, build_popup, color_for_entity, marker_style, stable_hash


class FakeHandle:
    def __init__(self, lat: float, lng: float, style: MarkerStyle) -> None:
        self.position = (lat, lng)
        self.style = style
        self.popup: MarkerPopup | None = None
        self.click_listeners: list[Callable[[], None]] = []
        self.removed = False
        self.position_updates = 0

    def set_position(self, lat: float, lng: float) -> None:
        self.position = (lat, lng)
        self.position_updates += 1

    def set_style(self, style: MarkerStyle) -> None:
        self.style = style

    def set_popup(self, popup: MarkerPopup) -> None:
        self.popup = popup

    def on_click(self, callback: Callable[[], None]) -> Callable[[], None]:
        self.click_listeners.append(callback)
        return lambda: self.click_listeners.remove(callback)

    def remove(self) -> None:
        self.removed = True

    def click(self) -> None:
        for callback in list(self.click_listeners):
            callback()


class FakeContext:
    def __init__(self) -> None:
        self.is_open = False
        self.created: list[FakeHandle] = []
        self.flights: list[tuple[float, float, int, float]] = []

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def create_marker(self, lat: float, lng: float, style: MarkerStyle) -> FakeHandle:
        handle = FakeHandle(lat, lng, style)
        self.created.append(handle)
        return handle

    def fly_to(self, lat: float, lng: float, *, zoom: int, duration: float) -> None:
        self.flights.append((lat, lng, zoom, duration))


def _entity(entity_id: str, **last_seen: Any) -> Entity:
    return Entity.model_validate({"id": entity_id, "name": entity_id.upper(), "lastSeen": last_seen or None})


def _fleet(*entities: Entity) -> dict[str, Entity]:
    return {e.id: e for e in entities}


def test_stable_hash_and_colors() -> None:
    assert stable_hash("") == 0
    assert stable_hash("a") == 97
    assert stable_hash("ab") == 3105
    assert color_for_entity("a") == "#EAB308"
    assert color_for_entity("ab") == "#F97316"
    long_id = "65a1f0c2e4b0a1b2c3d4e5f6"
    assert color_for_entity(long_id) == color_for_entity(long_id)


def test_stable_hash_wraps_to_signed_32_bit() -> None:
    value = stable_hash("a-fairly-long-identifier-that-overflows")
    assert -(2**31) <= value < 2**31


def test_selected_marker_style() -> None:
    entity = _entity("v1", lat=1, lng=1, heading=270)
    normal = marker_style(entity, selected=False)
    selected = marker_style(entity, selected=True)

    assert normal.size == 36 and not normal.halo
    assert selected.size == 44 and selected.halo
    assert selected.heading == 270.0
    assert normal.color == selected.color


def test_popup_content() -> None:
    entity = Entity.model_validate(
        {
            "id": "v1",
            "name": "Truck 7",
            "plateNumber": "KDA 123A",
            "driverId": "drv-1",
            "lastSeen": {"lat": 1, "lng": 1, "speed": 12.4, "timestamp": "2026-01-01T10:00:05Z"},
        }
    )

    popup = build_popup(entity)

    assert popup.title == "Truck 7"
    assert popup.reference == "KDA 123A"
    assert popup.speed_text == "12 km/h"
    assert popup.heading_text == "—°"
    assert popup.assignment_text == "Assigned: drv-1"
    assert popup.last_seen_text == "10:00:05"


def test_popup_assignment_variants() -> None:
    with_device = Entity.model_validate({"id": "t1", "userId": {"_id": "u1", "deviceId": "phone-1"}})
    unassigned = Entity(id="t2")

    assert build_popup(with_device).assignment_text == "Device: phone-1"
    assert build_popup(unassigned).assignment_text == "No driver"
    assert build_popup(unassigned).speed_text == "0 km/h"


def test_sync_creates_then_updates_in_place() -> None:
    context = FakeContext()
    sync = MarkerSynchronizer(context)

    first = sync.sync(_fleet(_entity("v1", lat=1, lng=1)))
    handle = sync.handles["v1"]
    second = sync.sync(_fleet(_entity("v1", lat=2, lng=3)))

    assert first.created == ("v1",)
    assert second.updated == ("v1",)
    assert sync.handles["v1"] is handle
    assert len(context.created) == 1
    assert context.created[0].position == (2.0, 3.0)


def test_unchanged_entities_are_noop() -> None:
    sync = MarkerSynchronizer(FakeContext())
    fleet = _fleet(_entity("v1", lat=1, lng=1, speed=5))

    sync.sync(fleet)
    result = sync.sync(fleet)

    assert result.is_noop
    handle = sync.handles["v1"]
    assert isinstance(handle, FakeHandle) and handle.position_updates == 0


def test_click_listener_bound_once_and_selects() -> None:
    selected: list[str] = []
    context = FakeContext()
    sync = MarkerSynchronizer(context, on_select=selected.append)

    sync.sync(_fleet(_entity("v1", lat=1, lng=1)))
    sync.sync(_fleet(_entity("v1", lat=1.5, lng=1)))
    sync.sync(_fleet(_entity("v1", lat=1.5, lng=1)), selected_id="v1")

    handle = context.created[0]
    assert len(handle.click_listeners) == 1
    handle.click()
    assert selected == ["v1"]
    assert handle.style.halo


def test_removed_entity_detaches_and_destroys_handle() -> None:
    context = FakeContext()
    sync = MarkerSynchronizer(context)
    sync.sync(_fleet(_entity("v1", lat=1, lng=1), _entity("v2", lat=2, lng=2)))

    result = sync.sync(_fleet(_entity("v2", lat=2, lng=2)))

    removed = context.created[0]
    assert result.removed == ("v1",)
    assert removed.removed
    assert removed.click_listeners == []
    assert set(sync.handles) == {"v2"}


def test_entity_without_position_gets_no_marker() -> None:
    context = FakeContext()
    sync = MarkerSynchronizer(context)

    result = sync.sync(_fleet(_entity("t1")))

    assert result.is_noop
    assert context.created == []


def test_focus_only_on_selection_change() -> None:
    context = FakeContext()
    sync = MarkerSynchronizer(context)
    fleet = _fleet(_entity("v1", lat=1, lng=2), _entity("t1"))

    assert sync.focus(fleet, "v1") is True
    assert sync.focus(fleet, "v1") is False
    assert sync.focus(fleet, "t1") is False
    assert sync.focus(fleet, None) is False
    assert context.flights == [(1.0, 2.0, 15, 0.8)]


def test_clear_removes_everything() -> None:
    context = FakeContext()
    sync = MarkerSynchronizer(context)
    sync.sync(_fleet(_entity("v1", lat=1, lng=1)))

    sync.clear()

    assert sync.handles == {}
    assert context.created[0].removed


def test_mounted_always_closes() -> None:
    context = FakeContext()

    with pytest.raises(RuntimeError), mounted(context) as ctx:
        assert ctx.is_open
        raise RuntimeError("view crashed")

    assert not context.is_open
