"""
Distance categories
===================

Routes are bucketed by great-circle distance into a fixed, ordered set of
categories, each with its own stroke.  The categories must partition
``[0, inf)``:

* the first starts at 0,
* each upper bound (exclusive) equals the next lower bound,
* only the last is unbounded.

The table is validated once when the classifier is built; a malformed
table is a startup failure, never an interaction-time one.

Complexity: ``classify`` is O(log k) for k categories (binary search).
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .enums import Theme
from .errors import ConfigurationError, InvalidArgument, NotFound
from .styling import (
    DEFAULT_ROUTE_OPACITY,
    DIMMED_OPACITY,
    HIGHLIGHT_OPACITY,
    ROUTE_LAYER,
    THEME_PALETTES,
    LineStyle,
    PaintProperty,
)


@dataclass(frozen=True)
class DistanceCategory:
    id: str
    label: str
    min_km: float
    max_km: Optional[float]  # exclusive; None = unbounded
    width: float = 1.5
    opacity: float = 0.7
    color: str = "#3182bd"

    def contains(self, distance_km: float) -> bool:
        return distance_km >= self.min_km and (
            self.max_km is None or distance_km < self.max_km
        )


DEFAULT_CATEGORIES: tuple[DistanceCategory, ...] = (
    DistanceCategory("short", "Short haul (< 1,500 km)", 0.0, 1_500.0, 1.0, 0.55, "#3182bd"),
    DistanceCategory("medium", "Medium haul (1,500 - 4,000 km)", 1_500.0, 4_000.0, 1.5, 0.65, "#e6550d"),
    DistanceCategory("long", "Long haul (>= 4,000 km)", 4_000.0, None, 2.0, 0.75, "#a50f15"),
)


class DistanceClassifier:
    """Maps distances to categories and categories to paint attributes."""

    def __init__(self, categories: Iterable[DistanceCategory] = DEFAULT_CATEGORIES):
        self.categories: tuple[DistanceCategory, ...] = tuple(categories)
        _check_partition(self.categories)
        self._lower_bounds = [c.min_km for c in self.categories]
        self._by_id = {c.id: c for c in self.categories}

    @classmethod
    def from_settings(cls, rows: Sequence) -> "DistanceClassifier":
        """Build from ``Settings.distance_categories`` rows (pydantic models)."""
        return cls(
            DistanceCategory(
                id=row.id,
                label=row.label,
                min_km=row.min_km,
                max_km=row.max_km,
                width=row.width,
                opacity=row.opacity,
                color=row.color,
            )
            for row in rows
        )

    def classify(self, distance_km: float) -> DistanceCategory:
        if math.isnan(distance_km) or distance_km < 0:
            raise InvalidArgument(f"distance must be >= 0 km, got {distance_km!r}")
        idx = bisect.bisect_right(self._lower_bounds, distance_km) - 1
        return self.categories[idx]

    def get(self, category_id: str) -> DistanceCategory:
        try:
            return self._by_id[category_id]
        except KeyError:
            raise NotFound(f"Unknown distance category: {category_id!r}") from None

    def style_for(self, category: DistanceCategory, theme: Theme = Theme.LIGHT) -> LineStyle:
        color = THEME_PALETTES.get(theme, {}).get(category.id, category.color)
        return LineStyle(width=category.width, color=color, opacity=category.opacity)

    @staticmethod
    def highlight_expression_for(category: Optional[DistanceCategory]) -> PaintProperty:
        """Opacity paint for the route layer with *category* emphasised."""
        if category is None:
            return DEFAULT_ROUTE_OPACITY
        return PaintProperty(
            ROUTE_LAYER,
            "line-opacity",
            [
                "case",
                ["==", ["get", "category"], category.id],
                HIGHLIGHT_OPACITY,
                DIMMED_OPACITY,
            ],
        )

    def legend(self, theme: Theme = Theme.LIGHT) -> list[tuple[DistanceCategory, LineStyle]]:
        return [(c, self.style_for(c, theme)) for c in self.categories]


def _check_partition(categories: Sequence[DistanceCategory]) -> None:
    if not categories:
        raise ConfigurationError("At least one distance category is required")

    ids = [c.id for c in categories]
    if len(set(ids)) != len(ids):
        raise ConfigurationError(f"Duplicate distance category ids: {ids}")

    if categories[0].min_km != 0:
        raise ConfigurationError(
            f"First category {categories[0].id!r} must start at 0 km, "
            f"starts at {categories[0].min_km}"
        )

    for current, following in zip(categories, categories[1:]):
        if current.max_km is None:
            raise ConfigurationError(
                f"Only the last category may be unbounded, {current.id!r} is not last"
            )
        if current.max_km <= current.min_km:
            raise ConfigurationError(f"Category {current.id!r} has an empty range")
        if following.min_km != current.max_km:
            raise ConfigurationError(
                f"Gap or overlap between {current.id!r} (< {current.max_km}) "
                f"and {following.id!r} (>= {following.min_km})"
            )

    if categories[-1].max_km is not None:
        raise ConfigurationError(
            f"Last category {categories[-1].id!r} must be unbounded"
        )
