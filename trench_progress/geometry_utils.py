#!/usr/bin/env python3
"""
Geometry Utility Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Pure geometry computations for the progress engine.
No knowledge of ranges, undo history or HTTP.

Key Functions:
1. Point-to-segment and point-to-polyline distance in a flat 2D space
2. Bounding boxes over all vertices of a Polyline / MultiPolyline
3. Geodesic lengths on the WGS84 ellipsoid (pyproj Geod)
4. Meter radius -> degree half-widths for spatial index queries

Dependencies:
- numpy (vectorised per-part segment distances)
- pyproj (geodesic lengths)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import math
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from pyproj import Geod

# Ellipsoid used for every physical length in the engine
GEOD = Geod(ellps="WGS84")

# Degree lengths used by the index query box approximation
METERS_PER_DEG_LAT = 110540.0
METERS_PER_DEG_LON_EQUATOR = 111320.0

XYTransform = Callable[[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]


# ===========================================================================
# DISTANCE UTILITIES
# ===========================================================================


def distance_point_to_segment(
    p: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> float:
    """
    Clamped perpendicular distance from p to segment ab.

    The projection parameter is clamped to [0, 1] so the distance is never
    measured past the segment ends. A degenerate segment (a == b) returns the
    distance to a.

    Args:
        p: Query point (x, y)
        a: Segment start (x, y)
        b: Segment end (x, y)

    Returns:
        Euclidean distance in the units of the inputs
    """
    vx, vy = b[0] - a[0], b[1] - a[1]
    wx, wy = p[0] - a[0], p[1] - a[1]
    len2 = vx * vx + vy * vy
    if len2 == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])

    t = (wx * vx + wy * vy) / len2
    t = max(0.0, min(1.0, t))
    proj_x = a[0] + t * vx
    proj_y = a[1] + t * vy
    return math.hypot(p[0] - proj_x, p[1] - proj_y)


def _segment_distances(p: Sequence[float], xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Vectorised clamped distances from p to every segment of one vertex run."""
    ax, ay = xs[:-1], ys[:-1]
    vx, vy = xs[1:] - ax, ys[1:] - ay
    wx, wy = p[0] - ax, p[1] - ay
    len2 = vx * vx + vy * vy

    with np.errstate(invalid="ignore", divide="ignore"):
        t = np.where(len2 > 0, (wx * vx + wy * vy) / len2, 0.0)
    t = np.clip(t, 0.0, 1.0)

    return np.hypot(p[0] - (ax + t * vx), p[1] - (ay + t * vy))


def distance_point_to_polyline(
    p: Sequence[float],
    geometry,
    tolerance: Optional[float] = None,
    to_xy: Optional[XYTransform] = None,
) -> float:
    """
    Minimum distance from p to any segment of a Polyline or MultiPolyline.

    When ``tolerance`` is given, the search stops at the first part whose
    minimum is at or below it; such a result is only guaranteed to be
    ``<= tolerance``. Without a hit under tolerance, the exact minimum is
    returned.

    Args:
        p: Query point, already in the flat space produced by ``to_xy``
        geometry: Polyline or MultiPolyline with (lon, lat) vertices
        tolerance: Optional early-exit distance
        to_xy: Vectorised (lons, lats) -> (xs, ys) transform; identity if None

    Returns:
        Minimum distance, or +inf for geometry without segments
    """
    best = math.inf

    for part in geometry.parts:
        if len(part) < 2:
            continue

        coords = np.asarray(part, dtype=float)
        xs, ys = coords[:, 0], coords[:, 1]
        if to_xy is not None:
            xs, ys = to_xy(xs, ys)
            xs, ys = np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)

        part_min = float(_segment_distances(p, xs, ys).min())
        if part_min < best:
            best = part_min
        if tolerance is not None and best <= tolerance:
            return best

    return best


# ===========================================================================
# BOUNDS UTILITIES
# ===========================================================================


def bounding_box(geometry) -> Optional[Tuple[float, float, float, float]]:
    """
    Axis-aligned bounding box over all vertices.

    Args:
        geometry: Polyline or MultiPolyline

    Returns:
        (minx, miny, maxx, maxy), or None when there are no vertices
    """
    vertices = [c for part in geometry.parts for c in part]
    if not vertices:
        return None

    arr = np.asarray(vertices, dtype=float)
    return (
        float(arr[:, 0].min()),
        float(arr[:, 1].min()),
        float(arr[:, 0].max()),
        float(arr[:, 1].max()),
    )


def meters_to_degree_box(
    center_lat: float,
    radius_m: float,
    inflate: float = 2.2,
) -> Tuple[float, float]:
    """
    Convert a meter radius to (lat_deg, lon_deg) half-widths.

    The inflation keeps the query box larger than the true circular search
    radius despite the coarse degree approximation. cos(lat) is floored at
    0.01 near the poles.

    Returns:
        Tuple of (lat_deg, lon_deg)
    """
    lat_deg = (radius_m / METERS_PER_DEG_LAT) * inflate
    cos_lat = max(math.cos(math.radians(center_lat)), 0.01)
    lon_deg = (radius_m / (METERS_PER_DEG_LON_EQUATOR * cos_lat)) * inflate
    return lat_deg, lon_deg


# ===========================================================================
# LENGTH UTILITIES
# ===========================================================================


def geodesic_length_m(coords: Sequence[Sequence[float]]) -> float:
    """Geodesic length in meters of one (lon, lat) vertex run."""
    if len(coords) < 2:
        return 0.0
    lons = [c[0] for c in coords]
    lats = [c[1] for c in coords]
    return float(GEOD.line_length(lons, lats))


def geometry_length_m(geometry) -> float:
    """Geodesic length in meters summed over all parts."""
    return sum(geodesic_length_m(part) for part in geometry.parts)


def geodesic_distance_m(a: Sequence[float], b: Sequence[float]) -> float:
    """Geodesic distance in meters between two (lon, lat) points."""
    _, _, dist = GEOD.inv(a[0], a[1], b[0], b[1])
    return float(dist)
