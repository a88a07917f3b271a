"""
Interval algebra over fractional progress ranges.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Keep the completed portions of a line as a canonical list of
disjoint ``(start, end)`` fractions in ``[0, 1]``.

Key Features:
- merge_ranges: sort + single walk, epsilon-tolerant adjacency merging
- subtract_range: remove a span, splitting ranges as needed
- brush_range / apply_paint / apply_erase: symmetric brush around a fraction
- apply_scalar_paint / apply_scalar_erase: single monotonic fraction model,
  stored in range form as ``[(0, p)]``

All functions are pure and total: empty input returns an empty list.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from typing import Iterable, List, Sequence, Tuple

Range = Tuple[float, float]

DEFAULT_MERGE_EPSILON = 0.001


# ═══════════════════════════════════════════════════════════════════════════════
# 🔗 NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════════


def merge_ranges(
    ranges: Iterable[Sequence[float]],
    epsilon: float = DEFAULT_MERGE_EPSILON,
) -> List[Range]:
    """
    Merge overlapping or adjacent ranges into canonical minimal form.

    Ranges are sorted by start and walked once; the next range joins the
    accumulator when ``next.start <= acc.end + epsilon``. Zero-length and
    inverted entries are dropped before merging.

    Args:
        ranges: Iterable of (start, end) pairs
        epsilon: Adjacency tolerance in fraction-of-length units

    Returns:
        Sorted, non-overlapping ranges with gaps greater than epsilon
    """
    cleaned = [(float(a), float(b)) for a, b in (ranges or []) if b > a]
    if not cleaned:
        return []

    cleaned.sort(key=lambda r: r[0])

    merged: List[Range] = []
    acc_start, acc_end = cleaned[0]
    for start, end in cleaned[1:]:
        if start <= acc_end + epsilon:
            acc_end = max(acc_end, end)
        else:
            merged.append((acc_start, acc_end))
            acc_start, acc_end = start, end
    merged.append((acc_start, acc_end))

    return merged


def clean_ranges(ranges: Iterable[Sequence[float]]) -> List[Range]:
    """
    Merge only real overlaps and touching ends (epsilon 0).

    Used when storing ranges: erase results may legitimately leave a gap
    narrower than the merge epsilon, which an epsilon merge would close again.
    """
    return merge_ranges(ranges, 0.0)


def union_range(
    ranges: Iterable[Sequence[float]],
    new_range: Sequence[float],
    epsilon: float = DEFAULT_MERGE_EPSILON,
) -> List[Range]:
    """Add a range to a set of ranges and re-normalize."""
    combined = [tuple(r) for r in (ranges or [])]
    combined.append(tuple(new_range))
    return merge_ranges(combined, epsilon)


def subtract_range(
    ranges: Iterable[Sequence[float]],
    removed: Sequence[float],
) -> List[Range]:
    """
    Remove a span from a set of ranges.

    Ranges that do not overlap the removed span are kept unchanged. Ranges
    that do are split into the part before ``r0`` and the part after ``r1``;
    zero-length pieces are dropped.

    Args:
        ranges: Existing (start, end) pairs
        removed: (r0, r1) span to subtract

    Returns:
        Remaining ranges, in input order
    """
    r0, r1 = sorted((float(removed[0]), float(removed[1])))
    result: List[Range] = []

    for c0, c1 in ranges or []:
        if c1 < r0 or c0 > r1:
            result.append((c0, c1))
            continue
        if c0 < r0:
            result.append((c0, r0))
        if c1 > r1:
            result.append((r1, c1))

    return [(a, b) for a, b in result if b > a]


# ═══════════════════════════════════════════════════════════════════════════════
# 🖌️ BRUSH OPERATIONS
# ═══════════════════════════════════════════════════════════════════════════════


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def brush_range(fraction: float, meters: float, brush_m: float = 2.0) -> Range:
    """
    Symmetric brush span around a fraction.

    The brush covers ``brush_m`` meters of line, i.e. a half-width of
    ``(brush_m / meters) / 2`` in fraction units, clamped to [0, 1].
    """
    total = meters if meters and meters > 0 else 1.0
    half_width = (brush_m / total) / 2.0
    return (_clamp01(fraction - half_width), _clamp01(fraction + half_width))


def apply_paint(
    ranges: Iterable[Sequence[float]],
    fraction: float,
    meters: float,
    brush_m: float = 2.0,
    epsilon: float = DEFAULT_MERGE_EPSILON,
) -> List[Range]:
    """Union the brush span at ``fraction`` into ``ranges``."""
    return union_range(ranges, brush_range(fraction, meters, brush_m), epsilon)


def apply_erase(
    ranges: Iterable[Sequence[float]],
    fraction: float,
    meters: float,
    brush_m: float = 2.0,
) -> List[Range]:
    """Subtract the brush span at ``fraction`` from ``ranges``."""
    return subtract_range(ranges, brush_range(fraction, meters, brush_m))


# ═══════════════════════════════════════════════════════════════════════════════
# 📈 SCALAR PROGRESS MODE
# ═══════════════════════════════════════════════════════════════════════════════


def scalar_progress(ranges: Iterable[Sequence[float]]) -> float:
    """Progress fraction of a line in scalar mode (end of the first range from 0)."""
    for start, end in ranges or []:
        if start <= 0.0:
            return _clamp01(end)
    return 0.0


def apply_scalar_paint(ranges: Iterable[Sequence[float]], fraction: float) -> List[Range]:
    """Advance scalar progress only when the new fraction exceeds the current one."""
    ranges = list(ranges or [])
    current = scalar_progress(ranges)
    fraction = _clamp01(fraction)
    if fraction <= current:
        return [(float(a), float(b)) for a, b in ranges]
    return [(0.0, fraction)]


def apply_scalar_erase(ranges: Iterable[Sequence[float]], fraction: float) -> List[Range]:
    """Set scalar progress directly to the fraction."""
    fraction = _clamp01(fraction)
    return [(0.0, fraction)] if fraction > 0.0 else []
