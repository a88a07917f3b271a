#!/usr/bin/env python3
"""
Trench Progress - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized, typed configuration for the trench progress
engine using frozen dataclasses for immutability and type safety.

This follows the Typed Configuration Architecture pattern:
- config.py defines TRENCH_CONFIG_DATA dictionary (user edits this)
- config_types.py defines frozen dataclasses (this file)
- ENGINE_CONFIG module-level instance for orchestrator access
- Business logic receives primitives only

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass
from typing import Dict, Any

# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ INTERACTION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InteractionConfig:
    """Pointer interaction settings.

    Attributes:
        pixel_tolerance: Max cursor-to-line distance in pixels for a hit
        drag_step_px: Max pixel gap between processed drag samples
        index_inflate: Inflation of the degree box used for index queries
        paint_button: Mouse button that paints progress
        erase_button: Mouse button that erases progress
    """

    pixel_tolerance: float = 15.0
    drag_step_px: float = 5.0
    index_inflate: float = 2.2
    paint_button: int = 0
    erase_button: int = 2

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InteractionConfig":
        """Create from dictionary."""
        return cls(
            pixel_tolerance=float(d.get("pixel_tolerance", 15.0)),
            drag_step_px=float(d.get("drag_step_px", 5.0)),
            index_inflate=float(d.get("index_inflate", 2.2)),
            paint_button=int(d.get("paint_button", 0)),
            erase_button=int(d.get("erase_button", 2)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pixel_tolerance": self.pixel_tolerance,
            "drag_step_px": self.drag_step_px,
            "index_inflate": self.index_inflate,
            "paint_button": self.paint_button,
            "erase_button": self.erase_button,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🖌️ BRUSH CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BrushConfig:
    """Brush size along the line."""

    length_m: float = 2.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BrushConfig":
        """Create from dictionary."""
        return cls(length_m=float(d.get("length_m", 2.0)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"length_m": self.length_m}


# ═══════════════════════════════════════════════════════════════════════════
# 📏 RANGE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RangeConfig:
    """Interval normalization and status thresholds.

    Attributes:
        merge_epsilon: Gap below which two ranges are merged
        done_threshold: Coverage ratio at or above which a line is done
    """

    merge_epsilon: float = 0.001
    done_threshold: float = 0.99

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RangeConfig":
        """Create from dictionary."""
        return cls(
            merge_epsilon=float(d.get("merge_epsilon", 0.001)),
            done_threshold=float(d.get("done_threshold", 0.99)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "merge_epsilon": self.merge_epsilon,
            "done_threshold": self.done_threshold,
        }


# ═══════════════════════════════════════════════════════════════════════════
# ↩️ HISTORY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class HistoryConfig:
    """Undo history settings."""

    capacity: int = 50

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryConfig":
        """Create from dictionary."""
        return cls(capacity=int(d.get("capacity", 50)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"capacity": self.capacity}


# ═══════════════════════════════════════════════════════════════════════════
# 📈 PROGRESS MODEL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

PROGRESS_MODES = ("ranges", "scalar")


@dataclass(frozen=True)
class ProgressConfig:
    """Progress model selection ("ranges" or "scalar")."""

    mode: str = "ranges"

    def __post_init__(self) -> None:
        if self.mode not in PROGRESS_MODES:
            raise ValueError(
                f"Unknown progress mode {self.mode!r}, expected one of {PROGRESS_MODES}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProgressConfig":
        """Create from dictionary."""
        return cls(mode=d.get("mode", "ranges"))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"mode": self.mode}


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ VIEWPORT CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ViewportConfig:
    """Default map viewport used when a request carries none."""

    center_lat: float = 52.6
    center_lon: float = -1.7
    zoom: float = 17.0
    width: int = 1280
    height: int = 800

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ViewportConfig":
        """Create from dictionary."""
        center = d.get("center", [52.6, -1.7])
        return cls(
            center_lat=float(center[0]),
            center_lon=float(center[1]),
            zoom=float(d.get("zoom", 17)),
            width=int(d.get("width", 1280)),
            height=int(d.get("height", 800)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lat, self.center_lon],
            "zoom": self.zoom,
            "width": self.width,
            "height": self.height,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 5052
    data_filename: str = "trenches.geojson"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(
            host=d.get("host", "127.0.0.1"),
            port=int(d.get("port", 5052)),
            data_filename=d.get("data_filename", "trenches.geojson"),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📦 MAIN ENGINE CONFIGURATION CLASS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EngineConfig:
    """
    Main configuration class for the trench progress engine.

    Access via the module-level ENGINE_CONFIG instance.
    Orchestrators extract primitives; business logic receives primitives only.
    """

    interaction: InteractionConfig
    brush: BrushConfig
    ranges: RangeConfig
    history: HistoryConfig
    progress: ProgressConfig
    viewport: ViewportConfig
    server: ServerConfig

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngineConfig":
        """Create from dictionary."""
        return cls(
            interaction=InteractionConfig.from_dict(d.get("interaction", {})),
            brush=BrushConfig.from_dict(d.get("brush", {})),
            ranges=RangeConfig.from_dict(d.get("ranges", {})),
            history=HistoryConfig.from_dict(d.get("history", {})),
            progress=ProgressConfig.from_dict(d.get("progress", {})),
            viewport=ViewportConfig.from_dict(d.get("viewport", {})),
            server=ServerConfig.from_dict(d.get("server", {})),
        )

    @classmethod
    def defaults(cls) -> "EngineConfig":
        """Create with all default values."""
        return cls.from_dict({})

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for frontend JSON API."""
        return {
            "interaction": self.interaction.to_dict(),
            "brush": self.brush.to_dict(),
            "ranges": self.ranges.to_dict(),
            "history": self.history.to_dict(),
            "progress": self.progress.to_dict(),
            "viewport": self.viewport.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

# Import configuration data from separate file (user-editable)
from trench_progress.config import TRENCH_CONFIG_DATA

# Edit config.py to change settings (restart server after changes)
ENGINE_CONFIG: EngineConfig = EngineConfig.from_dict(TRENCH_CONFIG_DATA)


def get_frontend_config() -> Dict[str, Any]:
    """
    Get configuration for frontend JavaScript.

    Returns a dict suitable for JSON serialization and use in the frontend.
    """
    return ENGINE_CONFIG.to_frontend_dict()
