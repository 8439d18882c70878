"""
Entity Map Visualization Package

Map-side components: the recorded map document, boundary LOD tiers, the
entity graph builder, connector curves, search navigation and the HTML page.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from .map_document import MapDocument, fit_zoom_for_bounds
from .boundary_layers import (
    BoundaryLayerManager,
    LayerManagerState,
    dataset_extent,
    tier_for_zoom,
)
from .curves import connector_geometry, curved_connector
from .entity_graph import BuildSummary, EntityGraphBuilder
from .search import NavigationResult, SearchNavigator
from .html_template import generate_html

__all__ = [
    "MapDocument",
    "fit_zoom_for_bounds",
    "BoundaryLayerManager",
    "LayerManagerState",
    "dataset_extent",
    "tier_for_zoom",
    "connector_geometry",
    "curved_connector",
    "BuildSummary",
    "EntityGraphBuilder",
    "NavigationResult",
    "SearchNavigator",
    "generate_html",
]
