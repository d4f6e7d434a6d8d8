"""
Map widget interface.

The controller only talks to the map through ``MapWidget``.  A browser
map (Mapbox GL, MapLibre) is driven by a thin adapter implementing it;
``HeadlessMapWidget`` keeps the same state in process and is what the
HTTP service and the tests use.

Restyle semantics
-----------------
``set_style`` replaces the whole style definition: every attached source,
layer and paint override is discarded, and a ``styledata`` event carrying
the new style id is emitted once the new style is ready.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Optional

from flightarcs.domain.geomath import Coordinate

logger = logging.getLogger(__name__)

Event = dict[str, Any]
Handler = Callable[[Event], None]
Unsubscribe = Callable[[], None]


class MapWidget(ABC):
    @abstractmethod
    def loaded(self) -> bool: ...

    @abstractmethod
    def set_style(self, style: str) -> None: ...

    @abstractmethod
    def set_source_data(self, source_id: str, data: dict[str, Any]) -> None:
        """Replace the data of *source_id*, attaching the source if missing."""

    @abstractmethod
    def get_source_data(self, source_id: str) -> Optional[dict[str, Any]]: ...

    @abstractmethod
    def set_layer(self, layer: dict[str, Any]) -> None:
        """Replace or attach the layer with id ``layer["id"]``."""

    @abstractmethod
    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None: ...

    @abstractmethod
    def on(self, event: str, handler: Handler, layer: Optional[str] = None) -> Unsubscribe: ...

    @abstractmethod
    def once(self, event: str, handler: Handler, layer: Optional[str] = None) -> Unsubscribe: ...

    @abstractmethod
    def fly_to(self, center: Coordinate, speed: float) -> None: ...

    @abstractmethod
    def show_popup(self, html: str, coordinates: Coordinate) -> None: ...

    @abstractmethod
    def hide_popup(self) -> None: ...


class HeadlessMapWidget(MapWidget):
    """In-process map state with the same restyle behaviour as a browser map.

    With ``auto_style_ready`` the ``styledata`` event is scheduled on the
    running loop after ``style_reload_delay`` seconds; without it the
    caller emits it explicitly via :meth:`emit`.
    """

    def __init__(
        self,
        style: str,
        *,
        loaded: bool = True,
        auto_style_ready: bool = True,
        style_reload_delay: float = 0.0,
    ):
        self.style = style
        self.sources: dict[str, dict[str, Any]] = {}
        self.layers: dict[str, dict[str, Any]] = {}
        self.paint: dict[tuple[str, str], Any] = {}
        self.center: Optional[Coordinate] = None
        self.popup: Optional[tuple[str, Coordinate]] = None
        self.auto_style_ready = auto_style_ready
        self.style_reload_delay = style_reload_delay
        self._loaded = loaded
        self._listeners: dict[tuple[str, Optional[str]], list[tuple[Handler, bool]]] = defaultdict(list)

    # ── Events ────────────────────────────────────────────────────────

    def on(self, event: str, handler: Handler, layer: Optional[str] = None) -> Unsubscribe:
        return self._subscribe(event, handler, layer, once=False)

    def once(self, event: str, handler: Handler, layer: Optional[str] = None) -> Unsubscribe:
        return self._subscribe(event, handler, layer, once=True)

    def _subscribe(self, event, handler, layer, once) -> Unsubscribe:
        key = (event, layer)
        entry = (handler, once)
        self._listeners[key].append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners[key]:
                self._listeners[key].remove(entry)

        return unsubscribe

    def emit(self, event: str, payload: Optional[Event] = None, layer: Optional[str] = None) -> None:
        """Dispatch *event* to the listeners registered at emission time."""
        key = (event, layer)
        for entry in list(self._listeners[key]):
            handler, once = entry
            if once and entry in self._listeners[key]:
                self._listeners[key].remove(entry)
            handler(dict(payload or {}))

    def listener_count(self, event: str, layer: Optional[str] = None) -> int:
        return len(self._listeners[(event, layer)])

    def mark_loaded(self) -> None:
        self._loaded = True
        self.emit("load")

    # ── Map state ─────────────────────────────────────────────────────

    def loaded(self) -> bool:
        return self._loaded

    def set_style(self, style: str) -> None:
        logger.debug("Restyle %s -> %s", self.style, style)
        self.style = style
        self.sources.clear()
        self.layers.clear()
        self.paint.clear()
        if self.auto_style_ready:
            asyncio.get_running_loop().call_later(
                self.style_reload_delay, self.emit, "styledata", {"style": style}
            )

    def set_source_data(self, source_id: str, data: dict[str, Any]) -> None:
        self.sources[source_id] = copy.deepcopy(data)

    def get_source_data(self, source_id: str) -> Optional[dict[str, Any]]:
        data = self.sources.get(source_id)
        return copy.deepcopy(data) if data is not None else None

    def set_layer(self, layer: dict[str, Any]) -> None:
        self.layers[layer["id"]] = copy.deepcopy(layer)

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None:
        if layer_id not in self.layers:
            raise KeyError(f"Layer {layer_id!r} is not attached")
        self.paint[(layer_id, name)] = copy.deepcopy(value)

    def paint_value(self, layer_id: str, name: str) -> Any:
        """Effective paint value: override if set, else the layer definition."""
        if (layer_id, name) in self.paint:
            return self.paint[(layer_id, name)]
        return self.layers[layer_id]["paint"].get(name)

    def fly_to(self, center: Coordinate, speed: float) -> None:
        self.center = center

    def show_popup(self, html: str, coordinates: Coordinate) -> None:
        self.popup = (html, coordinates)

    def hide_popup(self) -> None:
        self.popup = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "style": self.style,
            "loaded": self._loaded,
            "center": list(self.center) if self.center else None,
            "sources": sorted(self.sources),
            "layers": sorted(self.layers),
            "paint": {f"{layer}.{name}": value for (layer, name), value in self.paint.items()},
        }
