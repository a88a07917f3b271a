"""
Pointer gesture pipeline: paint / erase brushing and box selection.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Turn pointer events into progress edits.

Pipeline per query point:
    resolve_nearest -> project -> interval algebra -> coverage/status

State machine (explicit, replaced on every transition):
    idle --pointer_down(hit)--> dragging(button, last_px, touched_lines)
    dragging --pointer_move--> dragging
    dragging --pointer_up / pointer_leave--> idle

Drag samples further apart than the step size are filled with interpolated
pixel points, each run through the full pipeline in order.

Key Interactions:
- BrushController reads/writes the feature set through a ProgressSession
- Listeners receive FeatureUpdated events instead of reading shared fields

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from trench_progress.config_types import EngineConfig
from trench_progress.coverage import coverage_of, set_progress_for_line, status_of
from trench_progress.interval_algebra import (
    apply_erase,
    apply_paint,
    apply_scalar_erase,
    apply_scalar_paint,
    merge_ranges,
    subtract_range,
)
from trench_progress.models import Feature
from trench_progress.nearest import resolve_nearest
from trench_progress.projection import clip_fraction_ranges, project
from trench_progress.spatial_index import FeatureIndex
from trench_progress.viewport import Viewport

logger = logging.getLogger(__name__)

PAINT = "paint"
ERASE = "erase"
SELECT = "select"
DESELECT = "deselect"


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 SETTINGS, STATE & EVENTS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BrushSettings:
    """Primitive settings extracted from EngineConfig for the pipeline."""

    tolerance_px: float = 15.0
    step_px: float = 5.0
    inflate: float = 2.2
    brush_m: float = 2.0
    epsilon: float = 0.001
    done_threshold: float = 0.99
    scalar_mode: bool = False
    paint_button: int = 0
    erase_button: int = 2

    @classmethod
    def from_config(cls, config: EngineConfig) -> "BrushSettings":
        return cls(
            tolerance_px=config.interaction.pixel_tolerance,
            step_px=config.interaction.drag_step_px,
            inflate=config.interaction.index_inflate,
            brush_m=config.brush.length_m,
            epsilon=config.ranges.merge_epsilon,
            done_threshold=config.ranges.done_threshold,
            scalar_mode=config.progress.mode == "scalar",
            paint_button=config.interaction.paint_button,
            erase_button=config.interaction.erase_button,
        )

    def action_for_button(self, button: int) -> Optional[str]:
        if button == self.paint_button:
            return PAINT
        if button == self.erase_button:
            return ERASE
        return None


@dataclass(frozen=True)
class GestureState:
    """Per-gesture state; ``action`` is None while idle."""

    action: Optional[str] = None
    last_px: Optional[Tuple[float, float]] = None
    touched_lines: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_dragging(self) -> bool:
        return self.action is not None


IDLE = GestureState()


@dataclass(frozen=True)
class FeatureUpdated:
    """Emitted when a logical line's ranges change."""

    line_id: str
    ranges: Tuple[Tuple[float, float], ...]
    coverage: float
    status: str

    def as_dict(self) -> Dict[str, object]:
        return {
            "lineId": self.line_id,
            "ranges": [list(r) for r in self.ranges],
            "coverage": self.coverage,
            "status": self.status,
        }


def line_updated_event(
    line_id: str,
    ranges: Sequence[Tuple[float, float]],
    done_threshold: float,
) -> FeatureUpdated:
    """Event describing a line's new ranges and derived status."""
    cov = coverage_of(ranges)
    return FeatureUpdated(
        line_id=line_id,
        ranges=tuple(ranges),
        coverage=cov,
        status=status_of(cov, done_threshold).value,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 🧮 PURE PIPELINE STEPS
# ═══════════════════════════════════════════════════════════════════════════════


def interpolate_pixels(
    start: Tuple[float, float],
    end: Tuple[float, float],
    step_px: float = 5.0,
) -> List[Tuple[float, float]]:
    """
    Points from ``start`` (exclusive) to ``end`` (inclusive), at most
    ``step_px`` apart. A zero-length move yields no points.
    """
    dist = math.hypot(end[0] - start[0], end[1] - start[1])
    steps = math.ceil(dist / step_px) if step_px > 0 else 1
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        points.append(
            (start[0] + (end[0] - start[0]) * t, start[1] + (end[1] - start[1]) * t)
        )
    return points


def edit_ranges(
    ranges: Sequence[Tuple[float, float]],
    fraction: float,
    meters: float,
    action: str,
    settings: BrushSettings,
) -> List[Tuple[float, float]]:
    """Apply one brush action at ``fraction`` in the configured progress model."""
    if settings.scalar_mode:
        if action == PAINT:
            return apply_scalar_paint(ranges, fraction)
        return apply_scalar_erase(ranges, fraction)

    if action == PAINT:
        return apply_paint(ranges, fraction, meters, settings.brush_m, settings.epsilon)
    return apply_erase(ranges, fraction, meters, settings.brush_m)


def process_point(
    features: List[Feature],
    index: Optional[FeatureIndex],
    viewport: Viewport,
    point: Tuple[float, float],
    action: str,
    settings: BrushSettings,
    positions: Optional[Dict[str, int]] = None,
) -> Tuple[List[Feature], Optional[FeatureUpdated]]:
    """
    Run one geographic query point through the full pipeline.

    Args:
        features: Current feature set
        index: Spatial index built over the same membership
        viewport: Current map viewport
        point: (lon, lat)
        action: PAINT or ERASE
        settings: Pipeline settings
        positions: Optional id -> list position map of ``features``

    Returns:
        (new feature set, event) - the set is returned unchanged and the
        event is None on a miss or when the ranges did not change
    """
    result = resolve_nearest(
        point, settings.tolerance_px, features, index, viewport, settings.inflate
    )
    if not result.is_hit(settings.tolerance_px):
        return features, None

    # Index entries may predate the latest edit; read the live feature
    if positions is not None and result.feature.id in positions:
        live = features[positions[result.feature.id]]
    else:
        live = next((f for f in features if f.id == result.feature.id), result.feature)

    fraction = project(live, point)
    new_ranges = edit_ranges(
        list(live.ranges), fraction, live.effective_meters, action, settings
    )

    if tuple(new_ranges) == tuple(live.ranges):
        return features, None

    updated = set_progress_for_line(features, live.line_id, new_ranges)
    return updated, line_updated_event(live.line_id, new_ranges, settings.done_threshold)


def apply_box_selection(
    features: List[Feature],
    candidates: Sequence[Feature],
    bbox: Tuple[float, float, float, float],
    mode: str,
    settings: BrushSettings,
) -> Tuple[List[Feature], List[FeatureUpdated]]:
    """
    Select (union) or deselect (subtract) the clipped spans of every candidate.

    Candidates are processed in order; segments of the same line accumulate
    onto the line's latest ranges.

    Returns:
        (new feature set, one event per changed line)
    """
    line_ranges: Dict[str, List[Tuple[float, float]]] = {}
    for f in features:
        line_ranges.setdefault(f.line_id, list(f.ranges))

    original = {line_id: tuple(r) for line_id, r in line_ranges.items()}

    for candidate in candidates:
        spans = clip_fraction_ranges(candidate, bbox)
        if not spans:
            continue
        current = line_ranges.get(candidate.line_id, [])
        if mode == SELECT:
            current = merge_ranges(current + spans, settings.epsilon)
        else:
            for span in spans:
                current = subtract_range(current, span)
        line_ranges[candidate.line_id] = current

    events: List[FeatureUpdated] = []
    updated = features
    for line_id, ranges in line_ranges.items():
        if tuple(ranges) == original.get(line_id):
            continue
        updated = set_progress_for_line(updated, line_id, ranges)
        events.append(line_updated_event(line_id, ranges, settings.done_threshold))

    logger.info(f"⬜ Box {mode}: {len(candidates)} candidates, {len(events)} lines changed")
    return updated, events


# ═══════════════════════════════════════════════════════════════════════════════
# 🖌️ BRUSH CONTROLLER
# ═══════════════════════════════════════════════════════════════════════════════


class BrushController:
    """
    Pointer event state machine bound to a ProgressSession.

    Coordinates are container pixels in the session's current viewport.
    """

    def __init__(self, session, settings: BrushSettings) -> None:
        self.session = session
        self.settings = settings
        self.state: GestureState = IDLE

    def _run(self, x: float, y: float) -> List[FeatureUpdated]:
        viewport = self.session.viewport
        point = viewport.to_lonlat(x, y)
        features, event = process_point(
            self.session.features,
            self.session.index,
            viewport,
            point,
            self.state.action,
            self.settings,
            self.session.positions,
        )
        if event is None:
            return []

        # Snapshot the set as it was before the gesture's first change
        self.session.begin_gesture()
        self.session.commit(features, [event])
        self.state = replace(
            self.state, touched_lines=self.state.touched_lines | {event.line_id}
        )
        return [event]

    def pointer_down(self, x: float, y: float, button: int) -> List[FeatureUpdated]:
        """
        Start a gesture if the pointer is on a line.

        Returns:
            Events produced by the first sample (empty on a miss)
        """
        action = self.settings.action_for_button(button)
        if action is None:
            return []
        if self.state.is_dragging:
            self.pointer_up()

        viewport = self.session.viewport
        result = resolve_nearest(
            viewport.to_lonlat(x, y),
            self.settings.tolerance_px,
            self.session.features,
            self.session.index,
            viewport,
            self.settings.inflate,
        )
        if not result.is_hit(self.settings.tolerance_px):
            return []

        self.state = GestureState(action=action, last_px=(x, y))
        logger.debug(f"Gesture start: {action} on {result.feature.id}")
        return self._run(x, y)

    def pointer_move(self, x: float, y: float) -> List[FeatureUpdated]:
        """Process a drag sample plus interpolated points since the last one."""
        if not self.state.is_dragging:
            return []

        last = self.state.last_px or (x, y)
        events: List[FeatureUpdated] = []
        for px, py in interpolate_pixels(last, (x, y), self.settings.step_px):
            events.extend(self._run(px, py))

        self.state = replace(self.state, last_px=(x, y))
        return events

    def pointer_up(self) -> FrozenSet[str]:
        """
        End the gesture.

        Returns:
            Line ids changed during the gesture
        """
        touched = self.state.touched_lines
        if self.state.is_dragging:
            logger.debug(f"Gesture end: {len(touched)} lines touched")
        self.state = IDLE
        self.session.end_gesture()
        return touched

    def pointer_leave(self) -> FrozenSet[str]:
        """Pointer left the map mid-gesture; treated as pointer-up."""
        return self.pointer_up()
