"""Domain enumerations and axis state-transition rules."""

import enum


class Theme(str, enum.Enum):
    """Map style identifiers offered to the user."""

    STREETS = "streets-v11"
    LIGHT = "light-v10"
    DARK = "dark-v10"
    OUTDOORS = "outdoors-v11"
    SATELLITE = "satellite-v9"


class SyncPhase(str, enum.Enum):
    IDLE = "IDLE"
    ORIGIN_CHANGING = "ORIGIN_CHANGING"
    THEME_CHANGING = "THEME_CHANGING"


class Axis(str, enum.Enum):
    ORIGIN = "origin"
    THEME = "theme"


# State machines: maps current phase -> set of valid next phases.
# A theme change may supersede one that is still waiting for the restyle.
AXIS_TRANSITIONS: dict[Axis, dict[SyncPhase, set[SyncPhase]]] = {
    Axis.ORIGIN: {
        SyncPhase.IDLE: {SyncPhase.ORIGIN_CHANGING},
        SyncPhase.ORIGIN_CHANGING: {SyncPhase.IDLE},
    },
    Axis.THEME: {
        SyncPhase.IDLE: {SyncPhase.THEME_CHANGING},
        SyncPhase.THEME_CHANGING: {SyncPhase.IDLE, SyncPhase.THEME_CHANGING},
    },
}
