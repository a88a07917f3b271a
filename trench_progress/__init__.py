"""
Trench Progress Painting Engine

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Track construction progress along trench polylines by
letting the user "paint" completed spans with the mouse on a web map.

Key Features:
- Pixel-accurate nearest-line hit testing backed by a spatial index
- Cursor -> fraction-of-length projection with geodesic arc lengths
- Disjoint progress ranges with paint / erase brushes and box selection
- Derived status (pending / in_progress / done) shared across a line
- Bounded undo/redo history, one snapshot per gesture

Usage:
    from trench_progress import ProgressSession, feature_set_from_geojson

    session = ProgressSession(feature_set_from_geojson(fc))
    session.pointer_down(640, 400, button=0)
    session.pointer_move(700, 400)
    session.pointer_up()
    session.summary()

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from .config_types import ENGINE_CONFIG, EngineConfig
from .data_loader import DataLoader, feature_set_from_geojson, feature_set_to_geojson
from .gesture import FeatureUpdated
from .models import Feature, MultiPolyline, Polyline, ProgressStatus
from .session import ProgressSession
from .viewport import Viewport

__all__ = [
    "ENGINE_CONFIG",
    "EngineConfig",
    "DataLoader",
    "feature_set_from_geojson",
    "feature_set_to_geojson",
    "FeatureUpdated",
    "Feature",
    "MultiPolyline",
    "Polyline",
    "ProgressStatus",
    "ProgressSession",
    "Viewport",
]
