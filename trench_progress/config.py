#!/usr/bin/env python3
"""
Trench Progress - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Configuration dictionary for the trench progress engine.
This is the user-facing configuration file - edit values here.

Pattern:
- config.py defines the TRENCH_CONFIG_DATA dictionary (edit this)
- config_types.py defines typed dataclasses and loads from TRENCH_CONFIG_DATA

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Dict, Any

# ═══════════════════════════════════════════════════════════════════════════
# 🚧 TRENCH PROGRESS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

TRENCH_CONFIG_DATA: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ POINTER INTERACTION
    # ═══════════════════════════════════════════════════════════════════════
    "interaction": {
        "pixel_tolerance": 15.0,  # Max cursor distance (px) for a hit
        "drag_step_px": 5.0,  # Interpolation step between drag samples
        "index_inflate": 2.2,  # Index query box inflation over the search radius
        "paint_button": 0,  # Left mouse
        "erase_button": 2,  # Right mouse
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🖌️ BRUSH
    # ═══════════════════════════════════════════════════════════════════════
    "brush": {
        "length_m": 2.0,  # Full brush length along the line (meters)
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📏 RANGES & STATUS
    # ═══════════════════════════════════════════════════════════════════════
    "ranges": {
        "merge_epsilon": 0.001,  # Adjacent ranges closer than this are merged
        "done_threshold": 0.99,  # Coverage ratio at which a line is done
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ↩️ UNDO HISTORY
    # ═══════════════════════════════════════════════════════════════════════
    "history": {
        "capacity": 50,  # Oldest snapshot evicted beyond this
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📈 PROGRESS MODEL
    # ═══════════════════════════════════════════════════════════════════════
    "progress": {
        # "ranges": disjoint painted intervals (default)
        # "scalar": single monotonic fraction per line, stored as [[0, p]]
        "mode": "ranges",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ DEFAULT VIEWPORT
    # ═══════════════════════════════════════════════════════════════════════
    "viewport": {
        "center": [52.6, -1.7],  # [lat, lon]
        "zoom": 17,
        "width": 1280,
        "height": 800,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        "port": 5052,
        "data_filename": "trenches.geojson",
    },
}
