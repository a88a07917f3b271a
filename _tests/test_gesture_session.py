#!/usr/bin/env python3
"""
Gesture Pipeline and Progress Session Tests

At zoom 19 one pixel is ~0.18 m of ground at lat 52.6, so the 5 px drag
step stays below the 2 m brush and a drag paints one continuous range. The
main line (135.5 m) runs along y = 400 from x ~ 267 to x ~ 1013; the other
two segments lie ~184 px above and below it.
"""

import pytest

from conftest import CENTER_LAT, CENTER_LON
from trench_progress.config import TRENCH_CONFIG_DATA
from trench_progress.config_types import EngineConfig
from trench_progress.coverage import set_progress_for_line
from trench_progress.gesture import (
    ERASE,
    PAINT,
    BrushSettings,
    interpolate_pixels,
    process_point,
)
from trench_progress.session import ProgressSession
from trench_progress.viewport import Viewport

PAINT_BUTTON = 0
ERASE_BUTTON = 2


@pytest.fixture
def close_viewport():
    return Viewport(center_lon=CENTER_LON, center_lat=CENTER_LAT, zoom=19)


@pytest.fixture
def session(trench_features, close_viewport):
    return ProgressSession(trench_features, viewport=close_viewport)


def _line_ranges(session, line_id):
    return [f.ranges for f in session.features if f.line_id == line_id]


# ============================================================================
# PURE PIPELINE STEPS
# ============================================================================


class TestInterpolatePixels:
    def test_points_at_most_step_apart(self):
        assert interpolate_pixels((0, 0), (10, 0), 5) == [(5.0, 0.0), (10.0, 0.0)]

    def test_partial_step_rounds_up(self):
        points = interpolate_pixels((0, 0), (12, 0), 5)
        assert len(points) == 3
        assert points[-1] == (12.0, 0.0)

    def test_zero_length_move(self):
        assert interpolate_pixels((3, 3), (3, 3), 5) == []


class TestProcessPoint:
    def test_miss_returns_same_set(self, trench_features, close_viewport):
        point = close_viewport.to_lonlat(640, 700)
        features, event = process_point(
            trench_features, None, close_viewport, point, PAINT, BrushSettings()
        )
        assert features is trench_features
        assert event is None

    def test_hit_paints_whole_line(self, trench_features, close_viewport):
        point = close_viewport.to_lonlat(640, 400)
        features, event = process_point(
            trench_features, None, close_viewport, point, PAINT, BrushSettings()
        )
        assert event.line_id == "L1"
        assert event.status == "in_progress"
        assert features[0].ranges == features[1].ranges == event.ranges
        assert features[2].ranges == ()

    def test_erase_on_unpainted_line_is_noop(self, trench_features, close_viewport):
        point = close_viewport.to_lonlat(640, 400)
        features, event = process_point(
            trench_features, None, close_viewport, point, ERASE, BrushSettings()
        )
        assert event is None
        assert features is trench_features


# ============================================================================
# BRUSH GESTURES
# ============================================================================


class TestBrushGestures:
    """Paint / erase through the session's pointer entry points."""

    def test_click_paints_brush_span(self, session):
        events = session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()

        assert [e.line_id for e in events] == ["L1"]
        (start, end), = session.features[0].ranges
        meters = session.features[0].meters
        assert (start + end) / 2 == pytest.approx(0.5, abs=0.005)
        assert end - start == pytest.approx(2.0 / meters, rel=0.01)
        # Both members of the line carry the same ranges
        assert session.features[1].ranges == session.features[0].ranges

    def test_miss_starts_no_gesture(self, session):
        assert session.pointer_down(640, 700, PAINT_BUTTON) == []
        assert not session.brush.state.is_dragging
        assert not session.undo_stack.can_undo

    def test_unmapped_button_ignored(self, session):
        assert session.pointer_down(640, 400, 1) == []
        assert not session.brush.state.is_dragging

    def test_drag_paints_continuous_range(self, session, close_viewport):
        session.pointer_down(500, 400, PAINT_BUTTON)
        session.pointer_move(800, 400)
        touched = session.pointer_up()

        assert touched == frozenset({"L1"})
        assert len(session.features[0].ranges) == 1
        meters = session.features[0].meters
        dragged_m = close_viewport.pixels_to_meters(CENTER_LON, CENTER_LAT, 300)
        assert session.features[0].coverage == pytest.approx(
            (dragged_m + 2.0) / meters, abs=0.01
        )

    def test_one_snapshot_per_drag(self, session):
        session.pointer_down(500, 400, PAINT_BUTTON)
        session.pointer_move(600, 400)
        session.pointer_move(700, 400)
        session.pointer_up()
        assert len(session.undo_stack) == 1

    def test_erase_splits_painted_range(self, session):
        session.pointer_down(500, 400, PAINT_BUTTON)
        session.pointer_move(800, 400)
        session.pointer_up()
        before = session.features[0].coverage

        session.pointer_down(650, 400, ERASE_BUTTON)
        session.pointer_up()

        ranges = session.features[0].ranges
        assert len(ranges) == 2
        meters = session.features[0].meters
        assert session.features[0].coverage == pytest.approx(before - 2.0 / meters, abs=1e-6)

    def test_pointer_leave_ends_gesture(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        touched = session.pointer_leave()

        assert touched == frozenset({"L1"})
        assert not session.brush.state.is_dragging
        assert session.pointer_move(700, 400) == []

        session.pointer_down(700, 400, PAINT_BUTTON)
        session.pointer_up()
        assert len(session.undo_stack) == 2

    def test_noop_gesture_pushes_no_snapshot(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        session.undo()
        assert session.undo_stack.can_redo

        # Erasing the now unpainted line changes nothing
        assert session.pointer_down(640, 400, ERASE_BUTTON) == []
        session.pointer_up()
        assert not session.undo_stack.can_undo
        assert session.undo_stack.can_redo

    def test_index_kept_across_progress_edits(self, session):
        index = session.index
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_move(700, 400)
        session.pointer_up()
        assert session.index is index

    def test_listeners_receive_events(self, session):
        received = []
        unsubscribe = session.subscribe(received.append)

        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        assert [e.line_id for e in received] == ["L1"]

        unsubscribe()
        session.pointer_down(640, 584, PAINT_BUTTON)
        session.pointer_up()
        assert len(received) == 1


class TestScalarMode:
    """Single monotonic fraction per line."""

    @pytest.fixture
    def scalar_session(self, trench_features, close_viewport):
        config = EngineConfig.from_dict({**TRENCH_CONFIG_DATA, "progress": {"mode": "scalar"}})
        return ProgressSession(trench_features, config=config, viewport=close_viewport)

    def test_paint_only_advances(self, scalar_session):
        scalar_session.pointer_down(640, 400, PAINT_BUTTON)
        scalar_session.pointer_up()
        (start, end), = scalar_session.features[0].ranges
        assert start == 0.0
        assert end == pytest.approx(0.5, abs=0.005)

        assert scalar_session.pointer_down(500, 400, PAINT_BUTTON) == []
        scalar_session.pointer_up()
        assert scalar_session.features[0].ranges == ((start, end),)

    def test_erase_sets_progress(self, scalar_session):
        scalar_session.pointer_down(640, 400, PAINT_BUTTON)
        scalar_session.pointer_up()
        scalar_session.pointer_down(500, 400, ERASE_BUTTON)
        scalar_session.pointer_up()

        (start, end), = scalar_session.features[0].ranges
        assert start == 0.0
        assert end < 0.4


# ============================================================================
# SESSION OPERATIONS
# ============================================================================


class TestSessionHistory:
    """Undo / redo / reset."""

    def test_undo_restores_previous_ranges(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()

        events = session.undo()
        assert [e.line_id for e in events] == ["L1"]
        assert events[0].status == "pending"
        assert _line_ranges(session, "L1") == [(), ()]

    def test_redo_reapplies(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        painted = session.features[0].ranges

        session.undo()
        session.redo()
        assert session.features[0].ranges == painted

    def test_undo_with_empty_history(self, session):
        assert session.undo() is None
        assert session.redo() is None

    def test_new_gesture_clears_redo(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        session.undo()
        session.pointer_down(700, 400, PAINT_BUTTON)
        session.pointer_up()
        assert session.redo() is None

    def test_reset_is_undoable(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        painted = session.features[0].ranges

        events = session.reset_progress()
        assert [e.line_id for e in events] == ["L1"]
        assert all(f.ranges == () for f in session.features)

        session.undo()
        assert session.features[0].ranges == painted

    def test_reset_without_progress(self, session):
        assert session.reset_progress() == []
        assert not session.undo_stack.can_undo

    def test_load_discards_history(self, session, trench_features):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        session.load(trench_features)
        assert not session.undo_stack.can_undo
        assert session.features[0].ranges == ()


class TestSessionQueries:
    def test_configured_threshold_shared_by_events_and_reads(
        self, trench_features, close_viewport
    ):
        config = EngineConfig.from_dict(
            {**TRENCH_CONFIG_DATA, "ranges": {"merge_epsilon": 0.001, "done_threshold": 0.95}}
        )
        features = set_progress_for_line(trench_features, "L1", [(0.0, 0.94)])
        session = ProgressSession(features, config=config, viewport=close_viewport)

        # Brush span near the far end, clear of the existing range
        events = session.pointer_down(990, 400, PAINT_BUTTON)
        session.pointer_up()

        assert [e.status for e in events] == ["done"]
        props = session.as_geojson()["features"][0]["properties"]
        assert props["status"] == "done"
        assert session.summary()["status_counts"]["done"] == 1

    def test_hover(self, session):
        assert session.hover(640, 400) == "SEG_A"
        assert session.hover(640, 216) == "SEG_B"
        assert session.hover(640, 300) is None

    def test_hover_on_empty_session(self, close_viewport):
        assert ProgressSession([], viewport=close_viewport).hover(640, 400) is None

    def test_summary(self, session):
        session.pointer_down(640, 400, PAINT_BUTTON)
        session.pointer_up()
        stats = session.summary()
        assert stats["line_count"] == 2
        assert stats["completed_m"] == pytest.approx(2.0, abs=0.01)
        assert stats["can_undo"] is True
        assert stats["can_redo"] is False


class TestBoxSelection:
    WEST_HALF = (-1.702, 52.5995, -1.700, 52.6005)

    def test_select_marks_spans_on_every_line(self, session):
        events = session.select_box(self.WEST_HALF, "select")

        assert sorted(e.line_id for e in events) == ["L1", "L2"]
        (start, end), = session.features[0].ranges
        assert start == pytest.approx(0.0, abs=1e-6)
        assert end == pytest.approx(0.5, abs=0.005)
        assert session.undo_stack.can_undo

    def test_deselect_removes_spans(self, session):
        session.select_box(self.WEST_HALF, "select")
        session.select_box(self.WEST_HALF, "deselect")
        assert all(f.ranges == () for f in session.features)

    def test_box_without_lines(self, session):
        assert session.select_box((0.0, 0.0, 1.0, 1.0), "select") == []
        assert not session.undo_stack.can_undo

    def test_invalid_mode(self, session):
        with pytest.raises(ValueError):
            session.select_box(self.WEST_HALF, "toggle")
