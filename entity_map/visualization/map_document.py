#!/usr/bin/env python3
"""
Entity Map - Map Document

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: In-memory stand-in for the Mapbox GL map object. Records
sources, layers, markers and camera commands so that the builders can be
driven (and tested) in Python, then serialized into the standalone HTML page
which replays them in the browser.

Key Features:
1. Mapbox-shaped API: add_source / add_layer / set_layout_property
2. Event subscription list (on / off / emit) for "zoom"
3. Camera: fit_bounds (web-mercator zoom estimate) and animated fly_to
4. to_dict(): JSON-ready snapshot for html_template

Navigation Guide:
- MapDocument: The map surface
- fit_zoom_for_bounds: Zoom that fits a lon/lat box in the viewport

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import copy
import logging
import math
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from entity_map.models import Coordinate, EntityId, Marker

logger = logging.getLogger(__name__)

# Mapbox GL renders 512px tiles; zoom z spans 512 * 2**z pixels
TILE_SIZE_PX = 512
MAX_ZOOM = 22.0
MAX_MERCATOR_LAT = 85.051129

Bounds = Tuple[float, float, float, float]


# ═══════════════════════════════════════════════════════════════════════════
# 📐 CAMERA MATH
# ═══════════════════════════════════════════════════════════════════════════


def _mercator_y(lat: float) -> float:
    """Latitude -> normalized web-mercator y in [0, 1] (0 = north)."""
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    rad = math.radians(lat)
    return (1.0 - math.log(math.tan(rad) + 1.0 / math.cos(rad)) / math.pi) / 2.0


def fit_zoom_for_bounds(
    bounds: Bounds, width_px: int, height_px: int, padding_px: int = 0
) -> float:
    """
    Zoom level at which a lon/lat box just fits the padded viewport.

    Args:
        bounds: (min_lon, min_lat, max_lon, max_lat)
        width_px: Viewport width
        height_px: Viewport height
        padding_px: Padding on every side

    Returns:
        Zoom in [0, MAX_ZOOM]
    """
    min_lon, min_lat, max_lon, max_lat = bounds
    dx = abs(max_lon - min_lon) / 360.0
    dy = abs(_mercator_y(min_lat) - _mercator_y(max_lat))

    avail_w = max(width_px - 2 * padding_px, 1)
    avail_h = max(height_px - 2 * padding_px, 1)

    candidates = []
    if dx > 0:
        candidates.append(math.log2(avail_w / (dx * TILE_SIZE_PX)))
    if dy > 0:
        candidates.append(math.log2(avail_h / (dy * TILE_SIZE_PX)))
    if not candidates:
        return MAX_ZOOM

    return max(0.0, min(MAX_ZOOM, min(candidates)))


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP DOCUMENT
# ═══════════════════════════════════════════════════════════════════════════


class MapDocument:
    """
    Recorded map state: sources, ordered layers, markers and camera.

    Layer ids and source ids are unique; adding a duplicate raises
    ValueError just as the browser map would throw.
    """

    def __init__(
        self,
        center: Tuple[float, float] = (-98.0, 39.0),
        zoom: float = 3.0,
        width_px: int = 1280,
        height_px: int = 800,
    ) -> None:
        self.center = Coordinate(float(center[0]), float(center[1]))
        self.width_px = width_px
        self.height_px = height_px
        self._zoom = float(zoom)

        self._sources: Dict[str, Dict[str, Any]] = {}
        self._layers: List[Dict[str, Any]] = []
        self._markers: Dict[EntityId, Marker] = {}
        self._handlers: Dict[str, List[Callable[..., None]]] = defaultdict(list)

        # Camera commands in issue order, replayed by the page
        self.view_commands: List[Dict[str, Any]] = []

    # ═══════════════════════════════════════════════════════════════════════
    # 📦 SOURCES
    # ═══════════════════════════════════════════════════════════════════════

    def add_source(self, source_id: str, data: Dict[str, Any]) -> None:
        if source_id in self._sources:
            raise ValueError(f"Source already exists: {source_id}")
        self._sources[source_id] = {"type": "geojson", "data": data}

    def has_source(self, source_id: str) -> bool:
        return source_id in self._sources

    def get_source(self, source_id: str) -> Optional[Dict[str, Any]]:
        return self._sources.get(source_id)

    def remove_source(self, source_id: str) -> None:
        if any(layer["source"] == source_id for layer in self._layers):
            raise ValueError(f"Source {source_id} is still used by a layer")
        self._sources.pop(source_id, None)

    @property
    def source_ids(self) -> List[str]:
        return list(self._sources)

    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 LAYERS
    # ═══════════════════════════════════════════════════════════════════════

    def add_layer(self, layer: Dict[str, Any]) -> None:
        """
        Append a style layer.

        Args:
            layer: Mapbox style layer dict with id, type, source and optional
                   paint/layout

        Raises:
            ValueError: Duplicate layer id or unknown source
        """
        layer_id = layer["id"]
        if self.has_layer(layer_id):
            raise ValueError(f"Layer already exists: {layer_id}")
        if layer.get("source") not in self._sources:
            raise ValueError(f"Layer {layer_id} references unknown source")

        stored = copy.deepcopy(layer)
        stored.setdefault("layout", {})
        stored.setdefault("paint", {})
        self._layers.append(stored)

    def has_layer(self, layer_id: str) -> bool:
        return any(layer["id"] == layer_id for layer in self._layers)

    def get_layer(self, layer_id: str) -> Optional[Dict[str, Any]]:
        for layer in self._layers:
            if layer["id"] == layer_id:
                return layer
        return None

    def remove_layer(self, layer_id: str) -> None:
        self._layers = [layer for layer in self._layers if layer["id"] != layer_id]

    @property
    def layer_ids(self) -> List[str]:
        return [layer["id"] for layer in self._layers]

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(f"No such layer: {layer_id}")
        layer["layout"][name] = value

    def get_layout_property(self, layer_id: str, name: str) -> Any:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(f"No such layer: {layer_id}")
        return layer["layout"].get(name)

    # ═══════════════════════════════════════════════════════════════════════
    # 📌 MARKERS
    # ═══════════════════════════════════════════════════════════════════════

    def add_marker(self, marker: Marker) -> None:
        if marker.entity_id in self._markers:
            raise ValueError(f"Marker already exists for entity {marker.entity_id}")
        self._markers[marker.entity_id] = marker

    def remove_marker(self, entity_id: EntityId) -> None:
        self._markers.pop(entity_id, None)

    @property
    def markers(self) -> List[Marker]:
        return list(self._markers.values())

    # ═══════════════════════════════════════════════════════════════════════
    # 📣 EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Callable[..., None]) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        # Copy so handlers may unsubscribe while being dispatched
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    # ═══════════════════════════════════════════════════════════════════════
    # 🎥 CAMERA
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def zoom(self) -> float:
        return self._zoom

    def set_zoom(self, zoom: float) -> None:
        """Change zoom and notify "zoom" subscribers (user scroll/pinch)."""
        self._zoom = max(0.0, min(MAX_ZOOM, float(zoom)))
        self.emit("zoom", self._zoom)

    def fit_bounds(self, bounds: Bounds, padding: int = 40) -> None:
        """Frame a lon/lat box; the resulting zoom is estimated for this viewport."""
        min_lon, min_lat, max_lon, max_lat = bounds
        self.view_commands.append(
            {
                "type": "fitBounds",
                "bounds": [[min_lon, min_lat], [max_lon, max_lat]],
                "padding": padding,
            }
        )
        self.center = Coordinate((min_lon + max_lon) / 2.0, (min_lat + max_lat) / 2.0)
        self.set_zoom(fit_zoom_for_bounds(bounds, self.width_px, self.height_px, padding))

    def fly_to(self, center: Coordinate, zoom: float) -> None:
        """Animated transition to a target camera."""
        self.view_commands.append(
            {"type": "flyTo", "center": [center.lon, center.lat], "zoom": zoom}
        )
        self.center = Coordinate(center.lon, center.lat)
        self.set_zoom(zoom)

    # ═══════════════════════════════════════════════════════════════════════
    # 📤 SERIALIZATION
    # ═══════════════════════════════════════════════════════════════════════

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready snapshot consumed by the page bootstrap script."""
        return {
            "center": [self.center.lon, self.center.lat],
            "zoom": self._zoom,
            "sources": self._sources,
            "layers": self._layers,
            "markers": [m.as_dict() for m in self._markers.values()],
            "viewCommands": self.view_commands,
        }
