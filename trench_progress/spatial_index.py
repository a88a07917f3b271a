"""
Spatial index over feature bounding boxes.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Shortlist the features near a query point in sub-linear time
so the exact pixel distance only runs on a handful of candidates.

Key Features:
- Bulk-loaded Shapely STRtree over bounding boxes
- Conservative box queries (envelope intersection, no ordering guarantee)
- Fails open: an empty index or degenerate query returns no hits and the
  caller scans the full feature list instead

Rebuild only when the feature set's membership changes; progress edits never
move a bounding box.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import List, Optional, Sequence, Tuple

from shapely import STRtree, box

from trench_progress.models import Feature

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# 🌳 FEATURE INDEX
# ═══════════════════════════════════════════════════════════════════════════════


class FeatureIndex:
    """
    STRtree of feature bounding boxes.

    The index keeps the feature instances it was built from; after a progress
    edit, callers should resolve hits back to the live feature by id.
    """

    def __init__(self, features: Sequence[Feature]) -> None:
        self._features: List[Feature] = []
        boxes = []
        skipped = 0

        for feature in features or []:
            bbox = feature.bbox
            if bbox is None or len(bbox) != 4:
                skipped += 1
                continue
            boxes.append(box(*bbox))
            self._features.append(feature)

        self._tree: Optional[STRtree] = STRtree(boxes) if boxes else None

        if skipped:
            logger.warning(f"⚠️ Spatial index skipped {skipped} features without bbox")
        logger.info(f"🌳 Spatial index built with {len(self._features)} features")

    @classmethod
    def build(cls, features: Sequence[Feature]) -> "FeatureIndex":
        """Bulk-load all feature boxes."""
        return cls(features)

    @property
    def is_empty(self) -> bool:
        return self._tree is None

    def __len__(self) -> int:
        return len(self._features)

    def query(self, query_box: Tuple[float, float, float, float]) -> List[Feature]:
        """
        Features whose bounding boxes intersect the query box.

        Args:
            query_box: (minx, miny, maxx, maxy)

        Returns:
            Matching features in build order; empty for an empty index or a
            zero-size query box
        """
        if self._tree is None:
            return []

        minx, miny, maxx, maxy = query_box
        if maxx <= minx or maxy <= miny:
            return []

        hits = self._tree.query(box(minx, miny, maxx, maxy))
        return [self._features[int(i)] for i in sorted(hits)]
