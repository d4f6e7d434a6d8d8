"""
Route model
===========

Owns the selected origin and the arcs radiating from it.

Per origin change, for every other capital:

1. **Distance**      -- haversine great-circle distance.
2. **Category**      -- distance bucket from the classifier.
3. **Polyline**      -- ``steps + 1`` points along the great circle.
4. **Split**         -- cut at the antimeridian so straight segments never
   span the whole map.

Complexity
----------
Let N = capitals, S = interpolation steps.

* ``set_origin``:     O(N x S) when the origin changes, O(1) otherwise
* projections:        O(N x S)

Capital counts are small (tens to low hundreds), so arcs are rebuilt
wholesale rather than diffed.
"""

from __future__ import annotations

from typing import Any, Optional

from . import geojson
from .catalog import CapitalCatalog
from .classifier import DistanceClassifier
from .entities import ArcFeature, Capital
from .enums import Theme
from .geomath import distance_km, interpolate_great_circle, split_at_antimeridian

DEFAULT_STEPS = 100


class RouteModel:
    def __init__(
        self,
        catalog: CapitalCatalog,
        classifier: DistanceClassifier,
        origin: Optional[str] = None,
        steps: int = DEFAULT_STEPS,
    ):
        self.catalog = catalog
        self.classifier = classifier
        self.steps = steps
        self._selected_origin = catalog.find(origin) if origin else catalog.first
        self._arc_features = self._build_arcs(self._selected_origin)

    @property
    def selected_origin(self) -> Capital:
        return self._selected_origin

    @property
    def arc_features(self) -> tuple[ArcFeature, ...]:
        return self._arc_features

    def set_origin(self, name: str) -> bool:
        """Select *name* as origin.  Returns False (and rebuilds nothing) if unchanged.

        Raises ``NotFound`` for names outside the catalog.
        """
        capital = self.catalog.find(name)
        if capital == self._selected_origin:
            return False
        self._selected_origin = capital
        self._arc_features = self._build_arcs(capital)
        return True

    def build_arc(self, origin: Capital, destination: Capital) -> ArcFeature:
        dist = distance_km(origin.coordinates, destination.coordinates)
        path = interpolate_great_circle(origin.coordinates, destination.coordinates, self.steps)
        return ArcFeature(
            origin_name=origin.name,
            destination_name=destination.name,
            distance_km=dist,
            category=self.classifier.classify(dist),
            path=tuple(path),
            segments=tuple(tuple(seg) for seg in split_at_antimeridian(path)),
        )

    def _build_arcs(self, origin: Capital) -> tuple[ArcFeature, ...]:
        return tuple(
            self.build_arc(origin, capital)
            for capital in self.catalog
            if capital.name != origin.name
        )

    # ── Projections ───────────────────────────────────────────────────

    def arc_feature_collection(self, theme: Theme = Theme.LIGHT) -> dict[str, Any]:
        return geojson.feature_collection(
            geojson.line(arc.segments, self.arc_properties(arc, theme))
            for arc in self._arc_features
        )

    def arc_properties(self, arc: ArcFeature, theme: Theme) -> dict[str, Any]:
        style = self.classifier.style_for(arc.category, theme)
        return {
            "origin": arc.origin_name,
            "destination": arc.destination_name,
            "distance": arc.distance_km,
            "category": arc.category.id,
            "label": arc.category.label,
            **style.as_properties(),
        }

    def capital_feature_collection(self) -> dict[str, Any]:
        origin_name = self._selected_origin.name
        return geojson.feature_collection(
            geojson.point(
                capital.coordinates,
                {
                    "name": capital.name,
                    "description": capital.description,
                    "selected": capital.name == origin_name,
                },
            )
            for capital in self.catalog
        )

    def origin_feature_collection(self) -> dict[str, Any]:
        origin = self._selected_origin
        return geojson.feature_collection(
            [geojson.point(origin.coordinates, {"name": origin.name, "description": origin.description})]
        )
