"""
Progress projection: geographic point -> fraction of line length.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Express a cursor position (or a box selection) as positions
along a feature, in fraction-of-length units.

Key Features:
- project: nearest point on the polyline, arc length from the start vertex,
  divided by the feature's meters and clamped to [0, 1]
- clip_fraction_ranges: ranges of a feature lying inside a rectangle

Nearest points are found in a locally scaled equirectangular plane
(x = lon * cos(lat)) so longitude degrees are not over-weighted; arc lengths
are geodesic meters. Multi-polyline parts are counted in order.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from typing import List, Sequence, Tuple

from shapely.geometry import LineString, Point, box
from shapely.ops import substring

from trench_progress.geometry_utils import geodesic_length_m
from trench_progress.interval_algebra import Range, merge_ranges
from trench_progress.models import Feature

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 LOCAL PLANE HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


def _lon_scale(lat: float) -> float:
    return max(math.cos(math.radians(lat)), 0.01)


def _scaled_line(part: Sequence[Sequence[float]], k: float) -> LineString:
    return LineString([(c[0] * k, c[1]) for c in part])


def _arc_length_to(
    part: Sequence[Sequence[float]],
    lon: float,
    lat: float,
    k: float,
) -> float:
    """Geodesic meters from the part's start to the point on it nearest (lon, lat)."""
    line = _scaled_line(part, k)
    along = line.project(Point(lon * k, lat))
    if along <= 0:
        return 0.0

    head = substring(line, 0, along)
    coords = [(x / k, y) for x, y in head.coords]
    return geodesic_length_m(coords)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 POINT PROJECTION
# ═══════════════════════════════════════════════════════════════════════════════


def project(feature: Feature, point: Tuple[float, float]) -> float:
    """
    Fraction of the feature's length at the point nearest ``point``.

    Args:
        feature: Hit feature
        point: (lon, lat) query point

    Returns:
        Fraction in [0, 1]; 0 for geometry without segments
    """
    lon, lat = point
    k = _lon_scale(lat)
    parts = [p for p in feature.geometry.parts if len(p) >= 2]
    if not parts:
        return 0.0

    scaled_point = Point(lon * k, lat)
    best_index = 0
    best_d = math.inf
    for i, part in enumerate(parts):
        d = _scaled_line(part, k).distance(scaled_point)
        if d < best_d:
            best_d = d
            best_index = i

    before_m = sum(geodesic_length_m(p) for p in parts[:best_index])
    along_m = _arc_length_to(parts[best_index], lon, lat, k)

    return _clamp01((before_m + along_m) / feature.effective_meters)


# ═══════════════════════════════════════════════════════════════════════════════
# ⬜ BOX CLIPPING
# ═══════════════════════════════════════════════════════════════════════════════


def _line_pieces(geom) -> List[LineString]:
    """Flatten an intersection result to its non-empty line pieces."""
    if geom.is_empty:
        return []
    if geom.geom_type == "LineString":
        return [geom] if geom.length > 0 else []
    if hasattr(geom, "geoms"):
        pieces: List[LineString] = []
        for sub in geom.geoms:
            pieces.extend(_line_pieces(sub))
        return pieces
    return []


def clip_fraction_ranges(
    feature: Feature,
    bbox: Tuple[float, float, float, float],
) -> List[Range]:
    """
    Ranges of a feature that lie inside a rectangular selection.

    The polyline is clipped to the box and each resulting piece contributes
    the arc-length span between its two ends.

    Args:
        feature: Feature to clip
        bbox: (minx, miny, maxx, maxy) selection in lon/lat

    Returns:
        Normalized ranges (possibly empty)
    """
    minx, miny, maxx, maxy = bbox
    if maxx <= minx or maxy <= miny:
        return []

    clip_box = box(minx, miny, maxx, maxy)
    k = _lon_scale((miny + maxy) / 2.0)
    total = feature.effective_meters

    ranges: List[Range] = []
    before_m = 0.0
    for part in feature.geometry.parts:
        if len(part) < 2:
            continue

        for piece in _line_pieces(LineString(part).intersection(clip_box)):
            start = piece.coords[0]
            end = piece.coords[-1]
            a = before_m + _arc_length_to(part, start[0], start[1], k)
            b = before_m + _arc_length_to(part, end[0], end[1], k)
            lo, hi = sorted((a, b))
            ranges.append((_clamp01(lo / total), _clamp01(hi / total)))

        before_m += geodesic_length_m(part)

    logger.debug(f"Clip {feature.id}: {len(ranges)} pieces inside selection")
    return merge_ranges(ranges)
