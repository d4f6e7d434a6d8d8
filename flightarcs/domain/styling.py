"""
Typed style records and the static layer definitions handed to the map.

Per-feature values (``color``, ``width``, ``opacity``) are written into the
route features' properties and read back by the layer's paint expressions,
so a restyle only needs to rewrite feature properties.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .enums import Theme

ROUTE_LAYER = "route"
CAPITALS_LAYER = "capitals"
ORIGIN_LAYER = "origin"

HIGHLIGHT_OPACITY = 1.0
DIMMED_OPACITY = 0.08


@dataclass(frozen=True)
class LineStyle:
    width: float
    color: str
    opacity: float

    def as_properties(self) -> dict[str, Any]:
        return {"width": self.width, "color": self.color, "opacity": self.opacity}


@dataclass(frozen=True)
class PaintProperty:
    """One ``set_paint_property`` call: *value* may be a map expression."""

    layer: str
    name: str
    value: Any


DEFAULT_ROUTE_OPACITY = PaintProperty(ROUTE_LAYER, "line-opacity", ["get", "opacity"])


# Category colours per theme; dark backgrounds need brighter strokes.
THEME_PALETTES: dict[Theme, dict[str, str]] = {
    Theme.STREETS: {"short": "#2b83ba", "medium": "#fdae61", "long": "#d7191c"},
    Theme.LIGHT: {"short": "#3182bd", "medium": "#e6550d", "long": "#a50f15"},
    Theme.DARK: {"short": "#7fdbff", "medium": "#ffdc00", "long": "#ff4136"},
    Theme.OUTDOORS: {"short": "#1a9850", "medium": "#fc8d59", "long": "#762a83"},
    Theme.SATELLITE: {"short": "#39cccc", "medium": "#ffd700", "long": "#ff851b"},
}

MARKER_COLORS: dict[Theme, str] = {
    Theme.STREETS: "#333333",
    Theme.LIGHT: "#444444",
    Theme.DARK: "#f0f0f0",
    Theme.OUTDOORS: "#2d2d2d",
    Theme.SATELLITE: "#ffffff",
}


def route_layer() -> dict[str, Any]:
    return {
        "id": ROUTE_LAYER,
        "type": "line",
        "source": ROUTE_LAYER,
        "layout": {"line-join": "round", "line-cap": "round"},
        "paint": {
            "line-color": ["get", "color"],
            "line-width": ["get", "width"],
            "line-opacity": ["get", "opacity"],
        },
    }


def capitals_layer(theme: Theme) -> dict[str, Any]:
    return {
        "id": CAPITALS_LAYER,
        "type": "circle",
        "source": CAPITALS_LAYER,
        "paint": {
            "circle-radius": 4,
            "circle-color": MARKER_COLORS.get(theme, "#444444"),
            "circle-stroke-width": 1,
            "circle-stroke-color": "#ffffff",
        },
    }


def origin_layer(theme: Theme) -> dict[str, Any]:
    return {
        "id": ORIGIN_LAYER,
        "type": "circle",
        "source": ORIGIN_LAYER,
        "paint": {
            "circle-radius": 8,
            "circle-color": THEME_PALETTES.get(theme, {}).get("long", "#d7191c"),
            "circle-stroke-width": 2,
            "circle-stroke-color": MARKER_COLORS.get(theme, "#444444"),
        },
    }
