#!/usr/bin/env python3
"""
Trench Progress - Data Loader

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn pre-grouped trench GeoJSON into the engine's Feature
set, and back again.

Key Features:
1. Bulk ingestion through a GeoDataFrame (bounds, optional reprojection)
2. Line length computed once per logical line, from its first member
3. Missing ids generated, missing lineIds default to the feature's own id
4. Non-line geometries skipped with a warning

Grouping segments into lines happens upstream; features arrive carrying a
``lineId`` property. Persistence of edited progress also stays upstream.

Navigation Guide:
- feature_set_from_geojson: FeatureCollection -> List[Feature]
- feature_set_to_geojson: List[Feature] -> FeatureCollection
- DataLoader: File-backed loader for the server

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import json
import logging
import os

import geopandas as gpd
from shapely.geometry import mapping

from trench_progress.geometry_utils import geometry_length_m
from trench_progress.interval_algebra import merge_ranges
from trench_progress.models import DONE_THRESHOLD, Feature, geometry_from_geojson

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"

LINE_TYPES = ("LineString", "MultiLineString")

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 GEOJSON CONVERSION
# ═══════════════════════════════════════════════════════════════════════════


def _features_to_gdf(features: List[Dict[str, Any]], crs: str) -> gpd.GeoDataFrame:
    """Build a WGS84 GeoDataFrame from raw GeoJSON features."""
    gdf = gpd.GeoDataFrame.from_features(features, crs=crs)
    if crs != CRS_WGS84:
        gdf = gdf.to_crs(CRS_WGS84)
    return gdf


def feature_set_from_geojson(
    fc: Dict[str, Any],
    crs: str = CRS_WGS84,
) -> List[Feature]:
    """
    Build the engine feature set from a GeoJSON FeatureCollection.

    Args:
        fc: FeatureCollection whose features carry ``lineId`` (and optionally
            ``id``, ``meters``, ``ranges``) in their properties
        crs: CRS of the input coordinates; reprojected to WGS84 if different

    Returns:
        Features in input order; every member of a line shares the line's
        meters and ranges (overlapping stored ranges merged)
    """
    raw = [
        f
        for f in (fc or {}).get("features", [])
        if (f.get("geometry") or {}).get("type") in LINE_TYPES
    ]
    skipped = len((fc or {}).get("features", [])) - len(raw)
    if skipped:
        logger.warning(f"⚠️ Skipped {skipped} features without line geometry")
    if not raw:
        return []

    gdf = _features_to_gdf(raw, crs)
    bounds = gdf.geometry.bounds

    line_meters: Dict[str, float] = {}
    line_ranges: Dict[str, List] = {}
    features: List[Feature] = []

    for i, source in enumerate(raw):
        props = dict(source.get("properties") or {})
        feature_id = str(props.pop("id", None) or source.get("id") or f"SEG_{i}")
        line_id = str(props.pop("lineId", None) or feature_id)
        given_meters = props.pop("meters", None)
        given_ranges = props.pop("ranges", None) or []
        props.pop("status", None)
        props.pop("_bbox", None)

        geometry = geometry_from_geojson(mapping(gdf.geometry.iloc[i]))

        if line_id not in line_meters:
            meters = float(given_meters) if given_meters else geometry_length_m(geometry)
            line_meters[line_id] = meters if meters > 0 else 1.0
            line_ranges[line_id] = merge_ranges(given_ranges)

        row = bounds.iloc[i]
        bbox = tuple(float(row[k]) for k in ("minx", "miny", "maxx", "maxy"))

        features.append(
            Feature(
                id=feature_id,
                line_id=line_id,
                geometry=geometry,
                meters=line_meters[line_id],
                ranges=tuple(line_ranges[line_id]),
                bbox=bbox,
                properties=props,
            )
        )

    logger.info(f"📥 Ingested {len(features)} features on {len(line_meters)} lines")
    return features


def feature_set_to_geojson(
    features: Sequence[Feature],
    done_threshold: float = DONE_THRESHOLD,
) -> Dict[str, Any]:
    """Serialize a feature set as a GeoJSON FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "features": [f.as_dict(done_threshold) for f in features],
    }


# ═══════════════════════════════════════════════════════════════════════════
# 📂 DATA LOADER
# ═══════════════════════════════════════════════════════════════════════════


class DataLoader:
    """
    Load the trench feature set from a GeoJSON file.

    Reading only; the loaded set is cached until ``reload()``.
    """

    def __init__(self, path: Path, crs: str = CRS_WGS84) -> None:
        """
        Initialize data loader.

        Args:
            path: GeoJSON FeatureCollection file
            crs: CRS of the file's coordinates
        """
        self.path = Path(path)
        self.crs = crs

        self._features: Optional[List[Feature]] = None
        self._data_file_modified: Optional[datetime] = None
        self._data_loaded_at: Optional[datetime] = None

    def _load_data(self) -> List[Feature]:
        if not self.path.exists():
            logger.warning(f"Data file not found: {self.path}")
            return []

        logger.info(f"Loading data from: {self.path.name}")
        self._data_file_modified = datetime.fromtimestamp(os.path.getmtime(self.path))
        self._data_loaded_at = datetime.now()

        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return feature_set_from_geojson(data, self.crs)

    @property
    def features(self) -> List[Feature]:
        if self._features is None:
            self._features = self._load_data()
        return self._features

    def reload(self) -> List[Feature]:
        self._features = None
        return self.features

    def get_data_info(self) -> Dict[str, Any]:
        """File metadata for the frontend."""
        return {
            "path": str(self.path),
            "feature_count": len(self.features),
            "file_modified": (
                self._data_file_modified.isoformat() if self._data_file_modified else None
            ),
            "loaded_at": (
                self._data_loaded_at.isoformat() if self._data_loaded_at else None
            ),
        }
