"""
Domain entities.

Patterns used
-------------
- **Value objects** ``Capital`` and ``ArcFeature`` are frozen; an origin
  change rebuilds every arc instead of patching existing ones.
- **State Pattern** on ``AxisState``: each interaction axis moves through
  its own transition table (see ``enums.AXIS_TRANSITIONS``).
- ``InteractionState`` mutators report whether anything changed so the
  caller can skip redraw work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .classifier import DistanceCategory
from .enums import AXIS_TRANSITIONS, Axis, SyncPhase, Theme
from .geomath import Coordinate


class InvalidStateTransition(Exception):
    """Raised when an axis phase change violates its state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Capital:
    name: str
    coordinates: Coordinate  # (longitude, latitude)
    description: str = ""

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


@dataclass(frozen=True)
class ArcFeature:
    origin_name: str
    destination_name: str
    distance_km: float
    category: DistanceCategory
    path: tuple[Coordinate, ...]
    segments: tuple[tuple[Coordinate, ...], ...]

    @property
    def crosses_antimeridian(self) -> bool:
        return len(self.segments) > 1


# ── State holders ─────────────────────────────────────────────────────


@dataclass
class AxisState:
    axis: Axis
    phase: SyncPhase = SyncPhase.IDLE

    def transition_to(self, new_phase: SyncPhase) -> None:
        """Move to *new_phase* if the transition is legal, else raise."""
        allowed = AXIS_TRANSITIONS[self.axis].get(self.phase, set())
        if new_phase not in allowed:
            raise InvalidStateTransition(
                f"{self.axis.value} axis cannot go from {self.phase} to {new_phase}"
            )
        self.phase = new_phase

    @property
    def busy(self) -> bool:
        return self.phase is not SyncPhase.IDLE


@dataclass
class InteractionState:
    theme: Theme = Theme.LIGHT
    highlighted_category: Optional[DistanceCategory] = field(default=None)

    def set_theme(self, theme: Theme) -> bool:
        if theme == self.theme:
            return False
        self.theme = theme
        return True

    def set_highlight(self, category: Optional[DistanceCategory]) -> bool:
        if category == self.highlighted_category:
            return False
        self.highlighted_category = category
        return True
