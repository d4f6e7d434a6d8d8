"""
Great-circle geometry on a spherical Earth.

Coordinates are ``(longitude, latitude)`` pairs in degrees, the same order
GeoJSON uses, so polylines produced here can be handed to the map widget
without reordering.

Complexity
----------
* ``distance_km``:            O(1)
* ``interpolate_great_circle``: O(steps)
* ``split_at_antimeridian``:  O(n) in the number of points
"""

from __future__ import annotations

import math

from .errors import InvalidArgument

EARTH_RADIUS_KM = 6_371.0

# Below this central angle (radians) two points are treated as the same
# point, and above ``pi - _EPSILON`` as antipodal.
_EPSILON = 1e-12

Coordinate = tuple[float, float]
Polyline = list[Coordinate]


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Return the haversine great-circle distance in **km** between two points."""
    lng1, lat1 = a
    lng2, lat2 = b
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def interpolate_great_circle(a: Coordinate, b: Coordinate, steps: int) -> Polyline:
    """
    Return ``steps + 1`` points along the shortest great circle from *a* to *b*.

    Spherical linear interpolation between the unit vectors of the two
    endpoints.  The first point is exactly *a* and the last exactly *b*.

    Antipodal endpoints have infinitely many shortest paths; the one picked
    lies in the plane through *a* and the north pole (or, when *a* is a
    pole, through the prime meridian), so the result is deterministic.
    """
    if not isinstance(steps, int) or isinstance(steps, bool) or steps < 1:
        raise InvalidArgument(f"steps must be an integer >= 1, got {steps!r}")

    va = _to_vector(a)
    vb = _to_vector(b)
    cos_omega = max(-1.0, min(1.0, _dot(va, vb)))
    omega = math.acos(cos_omega)

    if omega < _EPSILON:
        return [a] * (steps + 1)

    points: Polyline = [a]
    if math.pi - omega < _EPSILON:
        u = _orthogonal_reference(va)
        for i in range(1, steps):
            theta = math.pi * i / steps
            points.append(
                _to_coordinate(_add(_scale(va, math.cos(theta)), _scale(u, math.sin(theta))))
            )
    else:
        sin_omega = math.sin(omega)
        for i in range(1, steps):
            t = i / steps
            wa = math.sin((1 - t) * omega) / sin_omega
            wb = math.sin(t * omega) / sin_omega
            points.append(_to_coordinate(_add(_scale(va, wa), _scale(vb, wb))))
    points.append(b)
    return points


def split_at_antimeridian(polyline: Polyline) -> list[Polyline]:
    """
    Split *polyline* wherever it wraps around the ±180° meridian.

    A wrap is a pair of consecutive points whose longitudes differ by more
    than 180°.  The segment before the wrap is closed on the meridian and
    the next one opens on the opposite side at the same (linearly
    interpolated) latitude, so neither segment has a visible gap.
    """
    if not polyline:
        return []

    segments: list[Polyline] = []
    current: Polyline = [polyline[0]]
    for prev, point in zip(polyline, polyline[1:]):
        dlng = point[0] - prev[0]
        if abs(dlng) <= 180.0:
            current.append(point)
            continue

        # Eastward wrap goes 180 -> -180, westward -180 -> 180.
        edge = 180.0 if dlng < 0 else -180.0
        unwrapped = point[0] + 360.0 if dlng < 0 else point[0] - 360.0
        span = unwrapped - prev[0]
        fraction = (edge - prev[0]) / span if span else 0.0
        lat = prev[1] + fraction * (point[1] - prev[1])

        if prev[0] != edge:
            current.append((edge, lat))
        segments.append(current)
        current = [(-edge, lat)] if point[0] != -edge else []
        current.append(point)

    segments.append(current)
    return segments


# ── Vector helpers ────────────────────────────────────────────────────


def _to_vector(c: Coordinate) -> tuple[float, float, float]:
    lng, lat = math.radians(c[0]), math.radians(c[1])
    return (
        math.cos(lat) * math.cos(lng),
        math.cos(lat) * math.sin(lng),
        math.sin(lat),
    )


def _to_coordinate(v: tuple[float, float, float]) -> Coordinate:
    x, y, z = v
    return (
        math.degrees(math.atan2(y, x)),
        math.degrees(math.atan2(z, math.hypot(x, y))),
    )


def _orthogonal_reference(v: tuple[float, float, float]) -> tuple[float, float, float]:
    """Unit vector perpendicular to *v*, towards the north pole when possible."""
    ref = (0.0, 0.0, 1.0)
    if abs(_dot(v, ref)) > 1 - 1e-9:
        ref = (1.0, 0.0, 0.0)
    u = _add(ref, _scale(v, -_dot(v, ref)))
    norm = math.sqrt(_dot(u, u))
    return _scale(u, 1 / norm)


def _dot(a, b) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _add(a, b):
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _scale(a, k: float):
    return (a[0] * k, a[1] * k, a[2] * k)
