"""
Map viewport: WGS84 <-> container pixel conversion.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Reproduce the web map's pixel space so that hit testing is
done in pixels, as the user sees the lines, not in degrees.

Key Features:
- Web Mercator (EPSG:3857) with 256 px tiles, same as Leaflet
- Vectorised lon/lat -> pixel transform for geometry utilities
- pixels_to_meters: ground distance covered by N pixels at a point

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np
from pyproj import Transformer

from trench_progress.geometry_utils import geodesic_distance_m

# ═══════════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

CRS_WGS84 = "EPSG:4326"
CRS_WEB_MERCATOR = "EPSG:3857"

TILE_SIZE = 256
EARTH_RADIUS_M = 6378137.0
# Meters per pixel at zoom 0 on the equator
INITIAL_RESOLUTION = 2 * math.pi * EARTH_RADIUS_M / TILE_SIZE

_WGS84_TO_MERCATOR = Transformer.from_crs(CRS_WGS84, CRS_WEB_MERCATOR, always_xy=True)
_MERCATOR_TO_WGS84 = Transformer.from_crs(CRS_WEB_MERCATOR, CRS_WGS84, always_xy=True)


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ VIEWPORT
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Viewport:
    """Visible map window.

    Attributes:
        center_lon: Longitude at the container center
        center_lat: Latitude at the container center
        zoom: Web map zoom level (fractional allowed)
        width: Container width in pixels
        height: Container height in pixels
    """

    center_lon: float
    center_lat: float
    zoom: float
    width: int = 1280
    height: int = 800

    @property
    def resolution(self) -> float:
        """Web Mercator meters per pixel at this zoom."""
        return INITIAL_RESOLUTION / (2.0 ** self.zoom)

    @property
    def _center_mercator(self) -> Tuple[float, float]:
        return _WGS84_TO_MERCATOR.transform(self.center_lon, self.center_lat)

    def to_pixels(self, lons, lats):
        """Convert lon/lat (scalars or arrays) to container pixel x/y."""
        mx, my = _WGS84_TO_MERCATOR.transform(lons, lats)
        cx, cy = self._center_mercator
        res = self.resolution
        x = (np.asarray(mx) - cx) / res + self.width / 2.0
        y = (cy - np.asarray(my)) / res + self.height / 2.0
        return x, y

    def to_pixel(self, lon: float, lat: float) -> Tuple[float, float]:
        """Convert a single lon/lat to container pixels."""
        x, y = self.to_pixels(lon, lat)
        return float(x), float(y)

    def to_lonlat(self, x: float, y: float) -> Tuple[float, float]:
        """Convert container pixels back to lon/lat."""
        cx, cy = self._center_mercator
        res = self.resolution
        mx = cx + (x - self.width / 2.0) * res
        my = cy - (y - self.height / 2.0) * res
        lon, lat = _MERCATOR_TO_WGS84.transform(mx, my)
        return float(lon), float(lat)

    def pixels_to_meters(self, lon: float, lat: float, px: float) -> float:
        """Ground distance between a point and the point ``px`` pixels to its right."""
        x, y = self.to_pixel(lon, lat)
        lon2, lat2 = self.to_lonlat(x + px, y)
        return geodesic_distance_m((lon, lat), (lon2, lat2))

    @classmethod
    def from_dict(
        cls, d: Optional[Dict[str, Any]], default: Optional["Viewport"] = None
    ) -> "Viewport":
        """Create from a request dict ``{center: [lat, lon], zoom, width, height}``.

        Missing keys fall back to ``default`` when given.

        Raises:
            KeyError: If a key is missing and there is no default
        """
        d = d or {}
        if "center" in d:
            center_lat, center_lon = float(d["center"][0]), float(d["center"][1])
        elif default is not None:
            center_lat, center_lon = default.center_lat, default.center_lon
        else:
            raise KeyError("center")

        if "zoom" in d or default is None:
            zoom = float(d["zoom"])
        else:
            zoom = default.zoom

        return cls(
            center_lon=center_lon,
            center_lat=center_lat,
            zoom=zoom,
            width=int(d.get("width", default.width if default else 1280)),
            height=int(d.get("height", default.height if default else 800)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lat, self.center_lon],
            "zoom": self.zoom,
            "width": self.width,
            "height": self.height,
        }
