#!/usr/bin/env python3
"""
Boundary LOD Layer Manager

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Register the metro / county / ZIP boundary datasets as
toggleable fill + outline + label layer groups and keep exactly one group
visible for the current zoom.

Key Features:
- Idempotent load_layer (second load of a tier is a no-op)
- Three primitives per tier toggled together, never individually
- Lifecycle state machine: UNINITIALIZED -> LAYERS_LOADING -> READY
- Initial zoom evaluated once at load, then on every "zoom" event
- Combined dataset extent via geopandas for fit-to-tier

Zoom bands (thresholds from config):
    zoom <  county_min_zoom                 -> metro
    county_min_zoom <= zoom < zip_min_zoom  -> county
    zoom >= zip_min_zoom                    -> zip

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd

from entity_map.config_types import BoundariesConfig, BoundaryTierConfig
from entity_map.visualization.map_document import MapDocument

logger = logging.getLogger(__name__)

LAYER_SUFFIXES = ("fill", "outline", "label")


# ═══════════════════════════════════════════════════════════════════════════
# 🧮 PURE HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def tier_for_zoom(
    zoom: float,
    tier_ids: Sequence[str] = ("msa", "county", "zip"),
    county_min_zoom: float = 6.0,
    zip_min_zoom: float = 10.0,
) -> str:
    """
    Tier visible at a zoom level.

    Args:
        zoom: Current map zoom
        tier_ids: (metro, county, zip) ids, coarsest first
        county_min_zoom: Lower bound (inclusive) of the county band
        zip_min_zoom: Lower bound (inclusive) of the ZIP band

    Returns:
        One of tier_ids
    """
    metro, county, zip_tier = tier_ids
    if zoom < county_min_zoom:
        return metro
    if zoom < zip_min_zoom:
        return county
    return zip_tier


def layer_ids_for(tier_id: str) -> List[str]:
    return [f"{tier_id}-{suffix}" for suffix in LAYER_SUFFIXES]


def dataset_extent(
    dataset: Dict[str, Any],
) -> Optional[Tuple[float, float, float, float]]:
    """
    Combined (minx, miny, maxx, maxy) of a GeoJSON FeatureCollection.

    Returns:
        Bounds tuple, or None for an empty collection
    """
    features = dataset.get("features") or []
    if not features:
        return None

    gdf = gpd.GeoDataFrame.from_features(features, crs="EPSG:4326")
    gdf = gdf[~gdf.geometry.is_empty & gdf.geometry.notna()]
    if gdf.empty:
        return None

    total_bounds = gdf.total_bounds
    return (
        float(total_bounds[0]),
        float(total_bounds[1]),
        float(total_bounds[2]),
        float(total_bounds[3]),
    )


# ═══════════════════════════════════════════════════════════════════════════
# 🚦 LIFECYCLE
# ═══════════════════════════════════════════════════════════════════════════


class LayerManagerState(Enum):
    """Where the manager is in the map-ready sequence."""

    UNINITIALIZED = "uninitialized"
    LAYERS_LOADING = "layers-loading"
    READY = "ready"


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ LAYER MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class BoundaryLayerManager:
    """
    Zoom-driven, mutually exclusive boundary tiers on a MapDocument.

    Zoom events are delivered synchronously by MapDocument.emit, so
    set_zoom_band invocations never interleave.
    """

    def __init__(
        self, document: MapDocument, config: Optional[BoundariesConfig] = None
    ) -> None:
        self.document = document
        self.config = config or BoundariesConfig()
        self.state = LayerManagerState.UNINITIALIZED
        self.visible_tier: Optional[str] = None
        self._datasets: Dict[str, Dict[str, Any]] = {}

    @property
    def loaded_tiers(self) -> List[str]:
        return list(self._datasets)

    def _tier_ids(self) -> Tuple[str, str, str]:
        ids = self.config.tier_ids
        if len(ids) != 3:
            raise ValueError(f"Expected 3 boundary tiers (metro, county, zip), got {ids}")
        return ids[0], ids[1], ids[2]

    # ═══════════════════════════════════════════════════════════════════════
    # 📥 LOADING
    # ═══════════════════════════════════════════════════════════════════════

    def load_layer(
        self,
        tier_id: str,
        dataset: Dict[str, Any],
        style: BoundaryTierConfig,
        label_field: Optional[str] = None,
    ) -> bool:
        """
        Add a tier's source and its fill/outline/label layers, all hidden.

        Args:
            tier_id: Source id and layer id prefix
            dataset: GeoJSON FeatureCollection
            style: Fill colour/opacity for the tier
            label_field: Feature property shown as the label
                         (defaults to style.label_field)

        Returns:
            True if the tier was added, False if it was already loaded
        """
        if tier_id in self._datasets or self.document.has_source(tier_id):
            logger.debug(f"Tier {tier_id} already loaded - skipping")
            return False

        label_field = label_field or style.label_field
        cfg = self.config
        fill_id, outline_id, label_id = layer_ids_for(tier_id)

        self.document.add_source(tier_id, dataset)
        self.document.add_layer(
            {
                "id": fill_id,
                "type": "fill",
                "source": tier_id,
                "paint": {
                    "fill-color": style.fill_color,
                    "fill-opacity": style.fill_opacity,
                },
                "layout": {"visibility": "none"},
            }
        )
        self.document.add_layer(
            {
                "id": outline_id,
                "type": "line",
                "source": tier_id,
                "paint": {
                    "line-color": cfg.outline_color,
                    "line-width": cfg.outline_width,
                },
                "layout": {"visibility": "none"},
            }
        )
        self.document.add_layer(
            {
                "id": label_id,
                "type": "symbol",
                "source": tier_id,
                "layout": {
                    "text-field": ["get", label_field],
                    "text-font": [cfg.label_font],
                    "text-size": cfg.label_size,
                    "visibility": "none",
                },
                "paint": {
                    "text-color": "#000",
                    "text-halo-color": "#fff",
                    "text-halo-width": 1,
                },
            }
        )
        self._datasets[tier_id] = dataset

        n_features = len(dataset.get("features") or [])
        logger.info(f"   🗺️ Loaded tier '{tier_id}' ({n_features} features)")
        return True

    def on_map_ready(self, datasets: Dict[str, Dict[str, Any]]) -> None:
        """
        Load every configured tier, subscribe to zoom and set initial visibility.

        Tiers without a dataset are skipped with a warning. A second call
        while not UNINITIALIZED is a no-op.
        """
        if self.state is not LayerManagerState.UNINITIALIZED:
            logger.debug(f"on_map_ready ignored in state {self.state.value}")
            return

        self.state = LayerManagerState.LAYERS_LOADING
        logger.info("🗺️ Loading boundary tiers...")

        for tier in self.config.tiers:
            dataset = datasets.get(tier.tier_id)
            if dataset is None:
                logger.warning(f"⚠️ No dataset for boundary tier '{tier.tier_id}'")
                continue
            self.load_layer(tier.tier_id, dataset, tier, tier.label_field)

        self.document.on("zoom", self._on_zoom)
        self.set_zoom_band(self.document.zoom)
        self.state = LayerManagerState.READY

    def teardown(self) -> None:
        """Stop following zoom changes. Loaded layers stay on the map."""
        self.document.off("zoom", self._on_zoom)
        self.state = LayerManagerState.UNINITIALIZED

    # ═══════════════════════════════════════════════════════════════════════
    # 👁️ VISIBILITY
    # ═══════════════════════════════════════════════════════════════════════

    def _on_zoom(self, zoom: float) -> None:
        self.set_zoom_band(zoom)

    def _toggle_visibility(self, tier_id: str, visible: bool) -> None:
        value = "visible" if visible else "none"
        for layer_id in layer_ids_for(tier_id):
            self.document.set_layout_property(layer_id, "visibility", value)

    def tier_for_zoom(self, zoom: float) -> str:
        return tier_for_zoom(
            zoom,
            self._tier_ids(),
            self.config.county_min_zoom,
            self.config.zip_min_zoom,
        )

    def set_zoom_band(self, zoom: float) -> str:
        """
        Show the tier for this zoom and hide the others.

        visible_tier only ever names a loaded tier; it is None when the
        selected tier has no dataset on the map.

        Returns:
            Id of the tier selected for the zoom
        """
        target = self.tier_for_zoom(zoom)
        for tier_id in self._datasets:
            self._toggle_visibility(tier_id, tier_id == target)

        shown = target if target in self._datasets else None
        if shown != self.visible_tier:
            logger.debug(f"Zoom {zoom:.2f}: showing '{shown}'")
        self.visible_tier = shown
        return target

    def is_visible(self, tier_id: str) -> bool:
        fill_id = layer_ids_for(tier_id)[0]
        if not self.document.has_layer(fill_id):
            return False
        return self.document.get_layout_property(fill_id, "visibility") == "visible"

    # ═══════════════════════════════════════════════════════════════════════
    # 🎥 VIEWPORT
    # ═══════════════════════════════════════════════════════════════════════

    def fit_to_tier(self, tier_id: str, padding: int = 40) -> bool:
        """
        Fit the viewport to a loaded tier's combined extent.

        Returns:
            False if the tier is not loaded or has no geometry
        """
        dataset = self._datasets.get(tier_id)
        if dataset is None:
            logger.warning(f"⚠️ Cannot fit to tier '{tier_id}': not loaded")
            return False

        extent = dataset_extent(dataset)
        if extent is None:
            logger.warning(f"⚠️ Cannot fit to tier '{tier_id}': no features")
            return False

        self.document.fit_bounds(extent, padding=padding)
        logger.info(
            f"🎥 Fitted view to '{tier_id}' extent "
            f"({extent[0]:.4f}, {extent[1]:.4f}, {extent[2]:.4f}, {extent[3]:.4f})"
        )
        return True
