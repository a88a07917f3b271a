#!/usr/bin/env python3
"""
Trench Progress - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Lightweight Flask server exposing the progress engine to a
web map. The map forwards pointer events in container pixels together with
its current viewport; the server answers with FeatureUpdated events.

Key Interactions:
- Loads the trench FeatureCollection through DataLoader
- One ProgressSession holds the live set, index and undo history
- Every mutating route returns the events it produced

Navigation Guide:
- ROUTES: API endpoints (/api/features, /api/gesture/*, /api/undo, ...)
- STARTUP: Server initialization and data loading

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import logging
import sys

from flask import Flask, jsonify, request
from flask_cors import CORS

from trench_progress.config_types import ENGINE_CONFIG, get_frontend_config
from trench_progress.data_loader import DataLoader
from trench_progress.gesture import DESELECT, SELECT
from trench_progress.session import ProgressSession
from trench_progress.viewport import Viewport

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

SERVER_HOST = ENGINE_CONFIG.server.host
SERVER_PORT = ENGINE_CONFIG.server.port

DEFAULT_DATA_PATH = Path.cwd() / ENGINE_CONFIG.server.data_filename

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global services - initialized on startup
data_loader: Optional[DataLoader] = None
session: Optional[ProgressSession] = None

logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Request body is missing fields or holds invalid values."""


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequest("Missing request body")
    return data


def _point(data: Dict[str, Any]) -> Tuple[float, float]:
    """Read x/y pixels and apply the optional viewport from a request body."""
    for field in ("x", "y"):
        if field not in data:
            raise InvalidRequest(f"Missing {field} in request body")
    if "viewport" in data and not isinstance(data["viewport"], dict):
        raise InvalidRequest("Invalid viewport in request body")
    try:
        x, y = float(data["x"]), float(data["y"])
        if "viewport" in data:
            viewport = Viewport.from_dict(data["viewport"], default=session.viewport)
            session.set_viewport(viewport)
    except (TypeError, ValueError, KeyError) as e:
        raise InvalidRequest(f"Invalid value in request body: {e}")
    return x, y


def _events_response(events) -> Dict[str, Any]:
    return jsonify({"events": [e.as_dict() for e in events or []]})


@app.errorhandler(InvalidRequest)
def handle_invalid_request(e: InvalidRequest):
    return jsonify({"error": str(e)}), 400


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ API ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/config")
def get_config() -> Dict[str, Any]:
    """
    Get frontend configuration settings.

    Returns:
        JSON object with all configurable settings for the frontend.
    """
    return jsonify(get_frontend_config())


@app.route("/api/data/info")
def get_data_info() -> Dict[str, Any]:
    """Information about the loaded data file."""
    if data_loader is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify(data_loader.get_data_info())


@app.route("/api/features")
def get_features() -> Dict[str, Any]:
    """
    Get the live feature set as a GeoJSON FeatureCollection.

    Each feature carries id, lineId, meters, ranges, status and _bbox.
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify(session.as_geojson())


@app.route("/api/stats")
def get_stats() -> Dict[str, Any]:
    """Total / completed / remaining meters across logical lines."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify(session.summary())


@app.route("/api/hover", methods=["POST"])
def hover() -> Dict[str, Any]:
    """
    Feature under the cursor.

    Request Body:
        {"x": float, "y": float, "viewport": {...}}  # viewport optional

    Returns:
        {"id": str or null}
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    x, y = _point(_json_body())
    return jsonify({"id": session.hover(x, y)})


@app.route("/api/gesture/down", methods=["POST"])
def gesture_down() -> Dict[str, Any]:
    """
    Start a paint (button 0) or erase (button 2) gesture.

    Request Body:
        {"x": float, "y": float, "button": int, "viewport": {...}}

    Returns:
        {"events": [FeatureUpdated, ...]}
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    data = _json_body()
    x, y = _point(data)
    try:
        button = int(data.get("button", ENGINE_CONFIG.interaction.paint_button))
    except (TypeError, ValueError):
        raise InvalidRequest("Invalid button in request body")

    return _events_response(session.pointer_down(x, y, button))


@app.route("/api/gesture/move", methods=["POST"])
def gesture_move() -> Dict[str, Any]:
    """Drag sample; gaps wider than the step size are interpolated."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    x, y = _point(_json_body())
    return _events_response(session.pointer_move(x, y))


@app.route("/api/gesture/up", methods=["POST"])
def gesture_up() -> Dict[str, Any]:
    """End the gesture; returns the line ids it changed."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify({"touched": sorted(session.pointer_up())})


@app.route("/api/gesture/leave", methods=["POST"])
def gesture_leave() -> Dict[str, Any]:
    """Pointer left the map; ends the gesture like pointer-up."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    return jsonify({"touched": sorted(session.pointer_leave())})


@app.route("/api/select-box", methods=["POST"])
def select_box() -> Dict[str, Any]:
    """
    Mark or unmark every line span inside a rectangle.

    Request Body:
        {
            "bbox": [minLon, minLat, maxLon, maxLat],
            "mode": "select" | "deselect"
        }
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    data = _json_body()
    bbox = data.get("bbox")
    if not isinstance(bbox, (list, tuple)) or len(bbox) != 4:
        return jsonify({"error": "Missing bbox in request body"}), 400

    mode = data.get("mode", SELECT)
    if mode not in (SELECT, DESELECT):
        return jsonify({"error": f"Invalid mode {mode!r}"}), 400

    try:
        bbox = tuple(float(v) for v in bbox)
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid bbox in request body"}), 400

    return _events_response(session.select_box(bbox, mode))


@app.route("/api/undo", methods=["POST"])
def undo() -> Dict[str, Any]:
    """Restore the previous snapshot (no-op when history is empty)."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    events = session.undo()
    return jsonify(
        {"applied": events is not None, "events": [e.as_dict() for e in events or []]}
    )


@app.route("/api/redo", methods=["POST"])
def redo() -> Dict[str, Any]:
    """Re-apply the last undone change."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    events = session.redo()
    return jsonify(
        {"applied": events is not None, "events": [e.as_dict() for e in events or []]}
    )


@app.route("/api/reset", methods=["POST"])
def reset() -> Dict[str, Any]:
    """Clear all progress (undoable)."""
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    return _events_response(session.reset_progress())


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER INITIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def initialize_services(data_path: Path) -> bool:
    """
    Initialize data loader and progress session.

    Args:
        data_path: GeoJSON FeatureCollection of pre-grouped trench segments

    Returns:
        True if initialization successful, False otherwise.
    """
    global data_loader, session

    try:
        logger.info(f"🚀 Initializing services from: {data_path}")

        data_loader = DataLoader(data_path)
        session = ProgressSession(data_loader.features, ENGINE_CONFIG)

        logger.info(f"✅ Loaded {len(session.features)} features")
        return True

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        return False


def main() -> None:
    """Main entry point - initialize and start server."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

    # Data file from command line or default
    if len(sys.argv) > 1:
        data_path = Path(sys.argv[1])
    else:
        data_path = DEFAULT_DATA_PATH

    if not initialize_services(data_path):
        logger.error("Failed to initialize. Check the data file.")
        sys.exit(1)

    logger.info(f"🌐 Starting server at http://{SERVER_HOST}:{SERVER_PORT}")
    app.run(host=SERVER_HOST, port=SERVER_PORT, debug=False)


if __name__ == "__main__":
    main()
