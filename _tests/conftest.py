#!/usr/bin/env python3
"""
Shared fixtures: a small trench layout around the default map view.

The default viewport is centered on (lon -1.7, lat 52.6) at zoom 17 in a
1280x800 container, so the main line runs horizontally through pixel
(640, 400), roughly 187 px long.
"""

import pytest

from trench_progress.geometry_utils import bounding_box, geometry_length_m
from trench_progress.models import Feature, MultiPolyline, Polyline
from trench_progress.viewport import Viewport

CENTER_LON = -1.7
CENTER_LAT = 52.6

# Main line: lon -1.701 .. -1.699 along lat 52.6
MAIN_COORDS = ((-1.701, CENTER_LAT), (-1.699, CENTER_LAT))
# Parallel segment ~46 px above the main line
UPPER_COORDS = ((-1.701, 52.6003), (-1.699, 52.6003))
# Separate line ~46 px below the main line
LOWER_COORDS = ((-1.701, 52.5997), (-1.699, 52.5997))


def make_feature(feature_id, line_id, coords, meters=None, ranges=()):
    """Build a Feature with bbox and (by default) geodesic meters."""
    geometry = Polyline(tuple(coords))
    return Feature(
        id=feature_id,
        line_id=line_id,
        geometry=geometry,
        meters=geometry_length_m(geometry) if meters is None else meters,
        ranges=tuple(ranges),
        bbox=bounding_box(geometry),
    )


def make_multi_feature(feature_id, line_id, parts):
    geometry = MultiPolyline(tuple(tuple(p) for p in parts))
    return Feature(
        id=feature_id,
        line_id=line_id,
        geometry=geometry,
        meters=geometry_length_m(geometry),
        bbox=bounding_box(geometry),
    )


@pytest.fixture
def viewport():
    return Viewport(center_lon=CENTER_LON, center_lat=CENTER_LAT, zoom=17)


@pytest.fixture
def main_feature():
    return make_feature("SEG_A", "L1", MAIN_COORDS)


@pytest.fixture
def trench_features():
    """Two segments of line L1 plus a separate line L2."""
    main = make_feature("SEG_A", "L1", MAIN_COORDS)
    upper = make_feature("SEG_B", "L1", UPPER_COORDS, meters=main.meters)
    lower = make_feature("SEG_C", "L2", LOWER_COORDS)
    return [main, upper, lower]


@pytest.fixture
def trench_geojson():
    """Pre-grouped FeatureCollection matching trench_features."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in MAIN_COORDS]},
                "properties": {"id": "SEG_A", "lineId": "L1", "name": "Trench 1"},
            },
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in UPPER_COORDS]},
                "properties": {"id": "SEG_B", "lineId": "L1"},
            },
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in LOWER_COORDS]},
                "properties": {"id": "SEG_C", "lineId": "L2"},
            },
        ],
    }
