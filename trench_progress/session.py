#!/usr/bin/env python3
"""
Trench Progress - Session

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Own the live feature set for one map view and orchestrate
the pure engine functions around it.

Key Features:
1. Spatial index rebuilt only when the set's membership changes
2. Undo/redo history, one snapshot per gesture
3. Brush gestures (paint / erase), box selection, hover, reset
4. FeatureUpdated events pushed to subscribers after every change

The engine functions never keep a reference to the set; the session hands
them the current list and stores the list they return.

Navigation Guide:
- ProgressSession: Main session class
- pointer_*: Gesture entry points (container pixels)

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from trench_progress.config_types import ENGINE_CONFIG, EngineConfig
from trench_progress.coverage import clear_progress, summarize
from trench_progress.data_loader import feature_set_to_geojson
from trench_progress.gesture import (
    DESELECT,
    SELECT,
    BrushController,
    BrushSettings,
    IDLE,
    FeatureUpdated,
    line_updated_event,
    apply_box_selection,
)
from trench_progress.models import Feature
from trench_progress.nearest import resolve_nearest
from trench_progress.spatial_index import FeatureIndex
from trench_progress.undo_stack import UndoStack
from trench_progress.viewport import Viewport

logger = logging.getLogger(__name__)

Listener = Callable[[FeatureUpdated], None]


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 PROGRESS SESSION
# ═══════════════════════════════════════════════════════════════════════════


class ProgressSession:
    """
    Live feature set plus everything needed to edit it interactively.

    Single-threaded: callers deliver pointer events in arrival order.
    """

    def __init__(
        self,
        features: Optional[Sequence[Feature]] = None,
        config: EngineConfig = ENGINE_CONFIG,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self.config = config
        self.settings = BrushSettings.from_config(config)
        vp = config.viewport
        self.viewport: Viewport = viewport or Viewport(
            center_lon=vp.center_lon,
            center_lat=vp.center_lat,
            zoom=vp.zoom,
            width=vp.width,
            height=vp.height,
        )

        self.undo_stack = UndoStack(config.history.capacity)
        self.brush = BrushController(self, self.settings)

        self._features: List[Feature] = []
        self._index: Optional[FeatureIndex] = None
        self._membership: Tuple[str, ...] = ()
        self._positions: Dict[str, int] = {}
        self._listeners: List[Listener] = []

        self.load(features or [])

    # ═══════════════════════════════════════════════════════════════════════
    # 📦 FEATURE SET
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def features(self) -> List[Feature]:
        return self._features

    @property
    def index(self) -> Optional[FeatureIndex]:
        return self._index

    @property
    def positions(self) -> Dict[str, int]:
        return self._positions

    def load(self, features: Sequence[Feature]) -> None:
        """Replace the whole feature set (bulk reload); history is discarded."""
        self.undo_stack.clear()
        self.brush.state = IDLE
        self._set_features(list(features))
        logger.info(f"📂 Session loaded {len(self._features)} features")

    def _set_features(self, features: List[Feature]) -> None:
        self._features = features
        membership = tuple(f.id for f in features)
        if membership != self._membership or self._index is None:
            self._membership = membership
            self._positions = {fid: i for i, fid in enumerate(membership)}
            self._index = FeatureIndex.build(features) if features else None

    def commit(self, features: List[Feature], events: Sequence[FeatureUpdated]) -> None:
        """Store an engine result and notify listeners."""
        self._set_features(features)
        for event in events:
            self._emit(event)

    def feature(self, feature_id: str) -> Optional[Feature]:
        pos = self._positions.get(feature_id)
        return self._features[pos] if pos is not None else None

    # ═══════════════════════════════════════════════════════════════════════
    # 📣 EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: FeatureUpdated) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _diff_events(
        self, old: Sequence[Feature], new: Sequence[Feature]
    ) -> List[FeatureUpdated]:
        """One event per line whose ranges differ between two sets."""
        old_ranges: Dict[str, Tuple] = {}
        for f in old:
            old_ranges.setdefault(f.line_id, f.ranges)

        events: List[FeatureUpdated] = []
        seen = set()
        for f in new:
            if f.line_id in seen:
                continue
            seen.add(f.line_id)
            if old_ranges.get(f.line_id) != f.ranges:
                events.append(
                    line_updated_event(f.line_id, f.ranges, self.settings.done_threshold)
                )
        return events

    def _replace_with_events(self, features: List[Feature]) -> List[FeatureUpdated]:
        events = self._diff_events(self._features, features)
        self.commit(features, events)
        return events

    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ GESTURES
    # ═══════════════════════════════════════════════════════════════════════

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def begin_gesture(self) -> bool:
        return self.undo_stack.begin_gesture(self._features)

    def end_gesture(self) -> None:
        self.undo_stack.end_gesture()

    def pointer_down(self, x: float, y: float, button: int) -> List[FeatureUpdated]:
        return self.brush.pointer_down(x, y, button)

    def pointer_move(self, x: float, y: float) -> List[FeatureUpdated]:
        return self.brush.pointer_move(x, y)

    def pointer_up(self) -> FrozenSet[str]:
        return self.brush.pointer_up()

    def pointer_leave(self) -> FrozenSet[str]:
        return self.brush.pointer_leave()

    def hover(self, x: float, y: float) -> Optional[str]:
        """Id of the feature under the cursor within tolerance, else None."""
        result = resolve_nearest(
            self.viewport.to_lonlat(x, y),
            self.settings.tolerance_px,
            self._features,
            self._index,
            self.viewport,
            self.settings.inflate,
        )
        return result.feature.id if result.is_hit(self.settings.tolerance_px) else None

    def select_box(
        self,
        bbox: Tuple[float, float, float, float],
        mode: str = SELECT,
    ) -> List[FeatureUpdated]:
        """
        Mark (select) or unmark (deselect) every line span inside a lon/lat box.

        Raises:
            ValueError: For an unknown mode
        """
        if mode not in (SELECT, DESELECT):
            raise ValueError(f"Unknown selection mode {mode!r}")

        if self._index is not None and not self._index.is_empty:
            candidates = self._index.query(bbox)
        else:
            candidates = list(self._features)
        # Index entries may be older than the live set
        candidates = [self._features[self._positions[c.id]] for c in candidates]
        candidates.sort(key=lambda f: self._positions[f.id])

        features, events = apply_box_selection(
            self._features, candidates, bbox, mode, self.settings
        )
        if events:
            self.undo_stack.push_snapshot(self._features)
            self.commit(features, events)
        return events

    # ═══════════════════════════════════════════════════════════════════════
    # ↩️ HISTORY
    # ═══════════════════════════════════════════════════════════════════════

    def undo(self) -> Optional[List[FeatureUpdated]]:
        """Restore the previous snapshot; None when there is nothing to undo."""
        restored = self.undo_stack.undo(self._features)
        if restored is None:
            return None
        logger.info(f"↩️ Undo ({len(self.undo_stack)} snapshots left)")
        return self._replace_with_events(restored)

    def redo(self) -> Optional[List[FeatureUpdated]]:
        """Re-apply the last undone change; None when there is nothing to redo."""
        restored = self.undo_stack.redo(self._features)
        if restored is None:
            return None
        logger.info("↪️ Redo")
        return self._replace_with_events(restored)

    def reset_progress(self) -> List[FeatureUpdated]:
        """Clear all progress as one undoable action."""
        if not any(f.ranges for f in self._features):
            return []
        self.undo_stack.push_snapshot(self._features)
        events = self._replace_with_events(clear_progress(self._features))
        logger.info(f"🧹 Progress reset on {len(events)} lines")
        return events

    # ═══════════════════════════════════════════════════════════════════════
    # 📊 STATS
    # ═══════════════════════════════════════════════════════════════════════

    def summary(self) -> Dict[str, Any]:
        stats = summarize(self._features, self.settings.done_threshold)
        stats["can_undo"] = self.undo_stack.can_undo
        stats["can_redo"] = self.undo_stack.can_redo
        return stats

    def as_geojson(self) -> Dict[str, Any]:
        """Live set as a FeatureCollection, statuses at the configured threshold."""
        return feature_set_to_geojson(self._features, self.settings.done_threshold)
