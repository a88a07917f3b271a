"""
Coverage and status derivation.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Turn progress ranges into a coverage ratio and a discrete
status, and propagate new ranges to every segment of a logical line.

Key Features:
- coverage_of / status_of: pure functions of the ranges (defined with the models)
- set_progress_for_line: returns a NEW feature set (group-wide propagation)
- summarize: total / completed / remaining meters, counting each line once

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Any, Dict, Iterable, List, Sequence

from trench_progress.models import (
    DONE_THRESHOLD,
    Feature,
    ProgressStatus,
    coverage_of,
    status_of,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# 🔁 GROUP PROPAGATION
# ═══════════════════════════════════════════════════════════════════════════════


def set_progress_for_line(
    features: Sequence[Feature],
    line_id: str,
    ranges: Iterable[Sequence[float]],
) -> List[Feature]:
    """
    Apply ranges to every feature of a logical line.

    Features of other lines are passed through unchanged (same instances).

    Args:
        features: Current feature set
        line_id: Logical line to update
        ranges: New ranges for the line

    Returns:
        New feature set list
    """
    ranges = [tuple(r) for r in (ranges or [])]
    updated: List[Feature] = []
    touched = 0

    for feature in features or []:
        if feature.line_id == line_id:
            updated.append(feature.with_ranges(ranges))
            touched += 1
        else:
            updated.append(feature)

    logger.debug(f"Line {line_id}: {touched} segments updated, ranges={ranges}")
    return updated


def clear_progress(features: Sequence[Feature]) -> List[Feature]:
    """Return the feature set with every range removed."""
    return [f.with_ranges([]) if f.ranges else f for f in features or []]


# ═══════════════════════════════════════════════════════════════════════════════
# 📈 PROGRESS SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════


def summarize(
    features: Sequence[Feature],
    done_threshold: float = DONE_THRESHOLD,
) -> Dict[str, Any]:
    """
    Summarize progress across logical lines.

    Segments sharing a line_id share the line's length and ranges, so each
    line is counted once, from its first member.

    Args:
        features: Current feature set
        done_threshold: Coverage ratio at which a line counts as done

    Returns:
        Dict with total_m, completed_m, remaining_m, completed_pct, line_count
        and per-status line counts
    """
    seen_lines = set()
    total_m = 0.0
    completed_m = 0.0
    status_counts = {status.value: 0 for status in ProgressStatus}

    for feature in features or []:
        if feature.line_id in seen_lines:
            continue
        seen_lines.add(feature.line_id)

        meters = float(feature.meters or 0.0)
        total_m += meters
        completed_m += meters * feature.coverage
        status_counts[feature.status_at(done_threshold).value] += 1

    completed_pct = (completed_m / total_m * 100.0) if total_m > 0 else 0.0

    return {
        "total_m": round(total_m, 2),
        "completed_m": round(completed_m, 2),
        "remaining_m": round(total_m - completed_m, 2),
        "completed_pct": round(completed_pct, 1),
        "line_count": len(seen_lines),
        "status_counts": status_counts,
    }
