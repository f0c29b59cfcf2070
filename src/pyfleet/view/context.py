"""Rendering-context interfaces.

The map widget itself lives outside this library.  A front end implements
:class:`RenderContext` (creating markers and moving the camera) and hands it
to :class:`pyfleet.view.markers.MarkerSynchronizer`.  There is no module-level
map handle: the context is created when the view mounts and released when it
unmounts, see :func:`mounted`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol, TypeVar


@dataclass(frozen=True, slots=True)
class MarkerStyle:
    """Appearance of one entity marker."""

    color: str
    size: int
    halo: bool = False
    heading: float = 0.0


@dataclass(frozen=True, slots=True)
class MarkerPopup:
    """Plain-data content of a marker's detail popup."""

    title: str
    color: str
    reference: str | None
    speed_text: str
    heading_text: str
    assignment_text: str
    last_seen_text: str


class MarkerHandle(Protocol):
    """A persistent rendering object for one entity."""

    def set_position(self, lat: float, lng: float) -> None: ...

    def set_style(self, style: MarkerStyle) -> None: ...

    def set_popup(self, popup: MarkerPopup) -> None: ...

    def on_click(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Attach a click listener; return a callable that detaches it."""
        ...

    def remove(self) -> None: ...


class RenderContext(Protocol):
    """An owned map-rendering surface."""

    def open(self) -> None: ...

    def close(self) -> None: ...

    def create_marker(self, lat: float, lng: float, style: MarkerStyle) -> MarkerHandle: ...

    def fly_to(self, lat: float, lng: float, *, zoom: int, duration: float) -> None: ...


TContext = TypeVar("TContext", bound=RenderContext)


@contextmanager
def mounted(context: TContext) -> Iterator[TContext]:
    """Open *context* for the lifetime of a view and always close it."""
    context.open()
    try:
        yield context
    finally:
        context.close()
