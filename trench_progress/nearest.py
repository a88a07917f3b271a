"""
Nearest-feature resolver.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Find the single feature closest (in pixels) to the cursor.

Pipeline:
1. Pixel tolerance -> meter radius at the cursor -> inflated degree box
2. Spatial index query; no hits or no index -> full feature list
3. Exact pixel distance per candidate, first candidate wins ties

Never raises for empty input: returns NearestResult(None, inf).

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from trench_progress.geometry_utils import distance_point_to_polyline, meters_to_degree_box
from trench_progress.models import Feature
from trench_progress.spatial_index import FeatureIndex
from trench_progress.viewport import Viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NearestResult:
    """Best candidate and its pixel distance (inf when nothing was found)."""

    feature: Optional[Feature]
    distance: float = math.inf

    def is_hit(self, tolerance_px: float) -> bool:
        return self.feature is not None and self.distance <= tolerance_px


NO_FEATURE = NearestResult(None, math.inf)


def query_box_for_point(
    point: Tuple[float, float],
    tolerance_px: float,
    viewport: Viewport,
    inflate: float = 2.2,
) -> Tuple[float, float, float, float]:
    """Degree box around ``point`` covering the pixel tolerance at this zoom."""
    lon, lat = point
    radius_m = viewport.pixels_to_meters(lon, lat, tolerance_px)
    lat_deg, lon_deg = meters_to_degree_box(lat, radius_m, inflate)
    return (lon - lon_deg, lat - lat_deg, lon + lon_deg, lat + lat_deg)


def resolve_nearest(
    point: Tuple[float, float],
    tolerance_px: float,
    features: Optional[Sequence[Feature]],
    index: Optional[FeatureIndex],
    viewport: Viewport,
    inflate: float = 2.2,
) -> NearestResult:
    """
    Resolve the feature nearest to a geographic point, measured in pixels.

    Args:
        point: (lon, lat) of the cursor
        tolerance_px: Hit tolerance in pixels (also the early-exit distance)
        features: Full candidate list used as fallback
        index: Spatial index over the same features, or None
        viewport: Current map viewport
        inflate: Index query box inflation

    Returns:
        NearestResult with the best feature and its pixel distance
    """
    if not features:
        return NO_FEATURE

    candidates: Sequence[Feature] = features
    if index is not None and not index.is_empty:
        hits = index.query(query_box_for_point(point, tolerance_px, viewport, inflate))
        if hits:
            candidates = hits

    p = viewport.to_pixel(point[0], point[1])

    best: Optional[Feature] = None
    best_d = math.inf
    for feature in candidates:
        d = distance_point_to_polyline(
            p, feature.geometry, tolerance=tolerance_px, to_xy=viewport.to_pixels
        )
        if d < best_d:
            best_d = d
            best = feature

    logger.debug(
        f"Nearest: {len(candidates)} candidates, "
        f"best={best.id if best else None} d={best_d:.2f}px"
    )
    return NearestResult(best, best_d)
