"""
Typed data models for trench progress tracking.

Architectural Overview:
=======================
This module contains immutable dataclasses for the paintable features.
A Feature's geometry, length and bounding box are fixed at creation; only its
progress ranges change, and every change produces a NEW Feature instance.
Status and coverage are derived from the ranges on every access, so a stale
status can never be stored.

Key Interactions:
-----------------
- Input: data_loader builds Feature instances from pre-grouped GeoJSON
- Output: as_dict() provides the serialized GeoJSON Feature form
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Geometry Variants:
------------------
Polyline (one coordinate sequence) and MultiPolyline (several) share the
``parts`` accessor, so geometry utilities traverse both the same way.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from shapely.geometry import LineString, MultiLineString

from trench_progress.config_types import ENGINE_CONFIG
from trench_progress.interval_algebra import clean_ranges, merge_ranges

Coordinate = Tuple[float, float]
BBox = Tuple[float, float, float, float]
Range = Tuple[float, float]

DONE_THRESHOLD = ENGINE_CONFIG.ranges.done_threshold


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class ProgressStatus(Enum):
    """Derived completion status of a feature."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_string(cls, s: str) -> "ProgressStatus":
        """Convert string to ProgressStatus, with fallback to PENDING.

        Args:
            s: String like "pending", "in_progress", "done"

        Returns:
            Matching ProgressStatus enum member, or PENDING if not found
        """
        for member in cls:
            if member.value == s:
                return member
        return cls.PENDING


# ═══════════════════════════════════════════════════════════════════════════
# 📊 COVERAGE & STATUS SECTION
# ═══════════════════════════════════════════════════════════════════════════


def coverage_of(ranges: Iterable[Sequence[float]]) -> float:
    """
    Total covered fraction of a line.

    Args:
        ranges: Normalized (start, end) pairs

    Returns:
        Sum of range lengths, clamped to [0, 1]
    """
    total = sum(end - start for start, end in (ranges or []))
    return max(0.0, min(1.0, total))


def status_of(ratio: float, done_threshold: float = DONE_THRESHOLD) -> ProgressStatus:
    """Map a coverage ratio to a status."""
    if ratio >= done_threshold:
        return ProgressStatus.DONE
    if ratio > 0:
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════
# 📐 GEOMETRY VARIANTS SECTION
# ═══════════════════════════════════════════════════════════════════════════


def _as_coords(coords: Iterable[Sequence[float]]) -> Tuple[Coordinate, ...]:
    return tuple((float(c[0]), float(c[1])) for c in coords)


@dataclass(frozen=True)
class Polyline:
    """Single ordered sequence of (lon, lat) vertices."""

    coords: Tuple[Coordinate, ...]

    geojson_type = "LineString"

    @property
    def parts(self) -> Tuple[Tuple[Coordinate, ...], ...]:
        return (self.coords,)

    def to_shapely(self) -> LineString:
        return LineString(self.coords)

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": self.geojson_type,
            "coordinates": [list(c) for c in self.coords],
        }


@dataclass(frozen=True)
class MultiPolyline:
    """Several vertex sequences forming one feature, traversed in order."""

    lines: Tuple[Tuple[Coordinate, ...], ...]

    geojson_type = "MultiLineString"

    @property
    def parts(self) -> Tuple[Tuple[Coordinate, ...], ...]:
        return self.lines

    def to_shapely(self) -> MultiLineString:
        return MultiLineString([p for p in self.lines if len(p) >= 2])

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": self.geojson_type,
            "coordinates": [[list(c) for c in part] for part in self.lines],
        }


def geometry_from_geojson(geometry: Dict[str, Any]):
    """Build a Polyline or MultiPolyline from a GeoJSON geometry dict.

    Raises:
        ValueError: If the geometry type is not a line type
    """
    geom_type = (geometry or {}).get("type")
    coords = (geometry or {}).get("coordinates") or []

    if geom_type == "LineString":
        return Polyline(_as_coords(coords))
    if geom_type == "MultiLineString":
        return MultiPolyline(tuple(_as_coords(part) for part in coords))

    raise ValueError(f"Unsupported geometry type for a trench feature: {geom_type!r}")


# ═══════════════════════════════════════════════════════════════════════════
# 🚧 FEATURE DATACLASS SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Feature:
    """Immutable paintable trench segment.

    Why Immutable (frozen=True):
    ----------------------------
    Feature sets are snapshotted for undo. Producing a new Feature on every
    progress change means a snapshot can never be modified behind its back.

    Usage Examples:
    ---------------
    ```python
    f = Feature(id="SEG_0_0", line_id="G_0", geometry=Polyline(coords),
                meters=120.0, bbox=(minx, miny, maxx, maxy))
    f2 = f.with_ranges([(0.0, 0.25)])
    f2.status        # ProgressStatus.IN_PROGRESS
    f2.as_dict()     # GeoJSON Feature
    ```
    """

    id: str
    line_id: str
    geometry: Any  # Polyline | MultiPolyline
    meters: float
    ranges: Tuple[Range, ...] = ()
    bbox: Optional[BBox] = None
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def coverage(self) -> float:
        """Completed fraction of the line, in [0, 1]."""
        return coverage_of(self.ranges)

    @property
    def status(self) -> ProgressStatus:
        """Status derived from the current ranges at the configured threshold."""
        return status_of(self.coverage)

    def status_at(self, done_threshold: float) -> ProgressStatus:
        return status_of(self.coverage, done_threshold)

    @property
    def effective_meters(self) -> float:
        """Length used for fraction math; 1 for degenerate geometry."""
        return self.meters if self.meters and self.meters > 0 else 1.0

    def with_ranges(self, ranges: Iterable[Sequence[float]]) -> "Feature":
        """Return a copy carrying the given ranges, sorted with overlaps merged."""
        return replace(self, ranges=tuple(clean_ranges(ranges)))

    def as_dict(self, done_threshold: float = DONE_THRESHOLD) -> Dict[str, Any]:
        """Serialize to a GeoJSON Feature dict.

        Args:
            done_threshold: Coverage ratio at which ``status`` reads done

        Returns:
            Dict with geometry and properties (id, lineId, meters, ranges,
            status, _bbox) plus any passthrough properties
        """
        props = dict(self.properties)
        props.update(
            {
                "id": self.id,
                "lineId": self.line_id,
                "meters": self.meters,
                "ranges": [[a, b] for a, b in self.ranges],
                "status": self.status_at(done_threshold).value,
            }
        )
        if self.bbox is not None:
            props["_bbox"] = list(self.bbox)

        return {
            "type": "Feature",
            "geometry": self.geometry.to_geojson(),
            "properties": props,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Feature":
        """Create Feature from a serialized GeoJSON Feature dict.

        Any stored ``status`` is ignored and re-derived from ``ranges``.
        Stored ranges are merged, so overlapping input is counted once.

        Args:
            d: GeoJSON Feature with properties id, lineId and meters

        Returns:
            Feature instance with normalized ranges

        Raises:
            KeyError: If id, lineId or meters are missing
            ValueError: If the geometry is not a line type
        """
        props = dict(d.get("properties") or {})
        feature_id = str(props.pop("id"))
        line_id = str(props.pop("lineId"))
        meters = float(props.pop("meters"))
        ranges = props.pop("ranges", None) or []
        bbox = props.pop("_bbox", None)
        props.pop("status", None)

        return cls(
            id=feature_id,
            line_id=line_id,
            geometry=geometry_from_geojson(d.get("geometry") or {}),
            meters=meters,
            ranges=tuple(merge_ranges(ranges)),
            bbox=tuple(float(v) for v in bbox) if bbox else None,
            properties=props,
        )


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 BATCH CONVERSION UTILITIES
# ═══════════════════════════════════════════════════════════════════════════


def features_from_dicts(dicts: List[Dict[str, Any]]) -> List[Feature]:
    """Convert a list of serialized features to Feature instances."""
    return [Feature.from_dict(d) for d in dicts]


def features_to_dicts(features: List[Feature]) -> List[Dict[str, Any]]:
    """Convert Feature instances to serialized dicts."""
    return [f.as_dict() for f in features]
