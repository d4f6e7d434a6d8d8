"""Renderer-agnostic GeoJSON builders."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from .geomath import Coordinate


def point(coordinates: Coordinate, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": list(coordinates)},
        "properties": properties,
    }


def line(segments: Sequence[Sequence[Coordinate]], properties: dict[str, Any]) -> dict[str, Any]:
    """LineString for a single segment, MultiLineString otherwise."""
    if len(segments) == 1:
        geometry = {
            "type": "LineString",
            "coordinates": [list(c) for c in segments[0]],
        }
    else:
        geometry = {
            "type": "MultiLineString",
            "coordinates": [[list(c) for c in seg] for seg in segments],
        }
    return {"type": "Feature", "geometry": geometry, "properties": properties}


def feature_collection(features: Iterable[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}
