#!/usr/bin/env python3
"""
Coverage, Status and Summary Tests
"""

import pytest

from conftest import MAIN_COORDS, make_feature
from trench_progress.coverage import (
    clear_progress,
    coverage_of,
    set_progress_for_line,
    status_of,
    summarize,
)
from trench_progress.models import ProgressStatus


class TestCoverageAndStatus:
    """Coverage is the clamped sum of range lengths; status follows it."""

    def test_empty_ranges_pending(self):
        assert coverage_of([]) == 0.0
        assert status_of(0.0) == ProgressStatus.PENDING

    def test_two_halves_done(self):
        ratio = coverage_of([(0.0, 0.5), (0.505, 1.0)])
        assert ratio == pytest.approx(0.995)
        assert status_of(ratio) == ProgressStatus.DONE

    @pytest.mark.parametrize(
        "ranges, expected",
        [
            ([(0.0, 0.98)], ProgressStatus.IN_PROGRESS),
            ([(0.0, 0.5), (0.505, 1.0)], ProgressStatus.DONE),
            ([(0.0, 0.99)], ProgressStatus.DONE),
            ([(0.48, 0.52)], ProgressStatus.IN_PROGRESS),
            ([], ProgressStatus.PENDING),
        ],
    )
    def test_status_table(self, ranges, expected):
        assert status_of(coverage_of(ranges)) == expected

    def test_coverage_clamped(self):
        assert coverage_of([(0.0, 0.8), (0.1, 0.9)]) == 1.0

    def test_custom_threshold(self):
        assert status_of(0.9, done_threshold=0.9) == ProgressStatus.DONE


class TestSetProgressForLine:
    """Ranges are written to every member of the line."""

    def test_group_members_share_ranges(self, trench_features):
        updated = set_progress_for_line(trench_features, "L1", [(0.1, 0.4)])

        by_id = {f.id: f for f in updated}
        assert by_id["SEG_A"].ranges == ((0.1, 0.4),)
        assert by_id["SEG_B"].ranges == ((0.1, 0.4),)
        assert by_id["SEG_A"].status == ProgressStatus.IN_PROGRESS
        assert by_id["SEG_C"].ranges == ()

    def test_returns_new_list_other_lines_untouched(self, trench_features):
        updated = set_progress_for_line(trench_features, "L1", [(0.0, 1.0)])

        assert updated is not trench_features
        assert updated[2] is trench_features[2]
        assert trench_features[0].ranges == ()

    def test_overlapping_ranges_merged_on_store(self, trench_features):
        updated = set_progress_for_line(trench_features, "L1", [(0.0, 0.6), (0.5, 1.0)])
        assert updated[0].ranges == ((0.0, 1.0),)
        assert updated[0].coverage == 1.0

    def test_unknown_line_is_noop(self, trench_features):
        updated = set_progress_for_line(trench_features, "NOPE", [(0.0, 1.0)])
        assert [f.ranges for f in updated] == [(), (), ()]

    def test_clear_progress(self, trench_features):
        painted = set_progress_for_line(trench_features, "L2", [(0.0, 0.5)])
        cleared = clear_progress(painted)
        assert all(f.ranges == () for f in cleared)


class TestSummarize:
    """Lines are counted once, from their first member."""

    def test_summary_counts_each_line_once(self, trench_features):
        features = set_progress_for_line(trench_features, "L1", [(0.0, 0.5)])
        stats = summarize(features)

        l1 = features[0].meters
        l2 = features[2].meters
        assert stats["line_count"] == 2
        assert stats["total_m"] == pytest.approx(l1 + l2, abs=0.01)
        assert stats["completed_m"] == pytest.approx(l1 * 0.5, abs=0.01)
        assert stats["remaining_m"] == pytest.approx(l1 * 0.5 + l2, abs=0.02)
        assert stats["status_counts"] == {"pending": 1, "in_progress": 1, "done": 0}

    def test_empty_set(self):
        stats = summarize([])
        assert stats["total_m"] == 0.0
        assert stats["completed_pct"] == 0.0

    def test_configured_threshold(self):
        feature = make_feature("S", "L", MAIN_COORDS, meters=100.0, ranges=[(0.0, 0.96)])
        assert summarize([feature])["status_counts"]["done"] == 0
        assert summarize([feature], done_threshold=0.95)["status_counts"]["done"] == 1

    def test_done_line(self):
        feature = make_feature("S", "L", MAIN_COORDS, meters=100.0, ranges=[(0.0, 1.0)])
        stats = summarize([feature])
        assert stats["completed_m"] == 100.0
        assert stats["completed_pct"] == 100.0
        assert stats["status_counts"]["done"] == 1
