"""
Entity map builder - main orchestrator.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Wire the components together and run the map-ready sequence.

Sequence:
1. Boundary tiers loaded (hidden), zoom subscription, initial band evaluated
2. Entity graph resolved and drawn, one geocode at a time
3. Viewport fitted to the metro tier's combined extent
4. Snapshot written as standalone HTML

Usage:
    from entity_map.map_builder import build_entity_map, generate_entity_map_html

    session = await build_entity_map(entities, boundary_datasets, geocoder)
    html_path = generate_entity_map_html(session, "Output/entity_map.html")

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from entity_map.config_types import APP_CONFIG, AppConfig
from entity_map.geocoding import Geocoder, GeocodingResolver
from entity_map.models import Entity
from entity_map.visualization import (
    BoundaryLayerManager,
    BuildSummary,
    EntityGraphBuilder,
    MapDocument,
    SearchNavigator,
    generate_html,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 SESSION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class EntityMapSession:
    """Everything belonging to one visualization session."""

    config: AppConfig
    document: MapDocument
    resolver: GeocodingResolver
    layer_manager: BoundaryLayerManager
    graph_builder: EntityGraphBuilder
    navigator: SearchNavigator
    summary: Optional[BuildSummary] = None

    async def rebuild(self, entities: Sequence[Entity], reload: bool = False) -> BuildSummary:
        """Clear the drawn graph and build it again.

        Args:
            entities: Entity records
            reload: Also drop the geocode cache (full reload)
        """
        self.graph_builder.clear()
        if reload:
            self.resolver.reset()
        self.summary = await self.graph_builder.build(entities)
        return self.summary

    def request_navigator(self) -> SearchNavigator:
        """Navigator bound to a fresh document at the session's current camera.

        Used for per-request searches, which must not accumulate camera
        commands or zoom events on the shared session document.
        """
        scratch = MapDocument(
            center=self.document.center,
            zoom=self.document.zoom,
            width_px=self.document.width_px,
            height_px=self.document.height_px,
        )
        return SearchNavigator(
            scratch, self.navigator.geocoder, self.config.search, self.navigator.notify
        )


def create_session(
    geocoder: Geocoder,
    config: Optional[AppConfig] = None,
    document: Optional[MapDocument] = None,
) -> EntityMapSession:
    """Construct the components for one session without running anything."""
    config = config or APP_CONFIG
    if document is None:
        document = MapDocument(
            center=(config.map.center_lon, config.map.center_lat),
            zoom=config.map.zoom,
        )

    resolver = GeocodingResolver(geocoder, timeout_s=config.geocoding.timeout_s)
    return EntityMapSession(
        config=config,
        document=document,
        resolver=resolver,
        layer_manager=BoundaryLayerManager(document, config.boundaries),
        graph_builder=EntityGraphBuilder(
            document,
            resolver,
            graph_config=config.graph,
            marker_config=config.markers,
            connector_style=config.connector_style,
            city_suffix=config.geocoding.city_suffix,
        ),
        navigator=SearchNavigator(document, geocoder, config.search),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏗️ MAIN ORCHESTRATOR
# ═══════════════════════════════════════════════════════════════════════════════


async def build_entity_map(
    entities: Sequence[Entity],
    boundary_datasets: Dict[str, Dict[str, Any]],
    geocoder: Geocoder,
    config: Optional[AppConfig] = None,
    document: Optional[MapDocument] = None,
) -> EntityMapSession:
    """
    Run the map-ready sequence and return the populated session.

    Args:
        entities: Ordered entity records
        boundary_datasets: tier_id -> GeoJSON FeatureCollection
        geocoder: Forward geocoding collaborator
        config: Optional AppConfig (defaults to APP_CONFIG)
        document: Optional pre-built MapDocument

    Returns:
        EntityMapSession with summary set
    """
    logger.info("=" * 60)
    logger.info("🚀 BUILDING ENTITY MAP")
    logger.info("=" * 60)

    session = create_session(geocoder, config, document)

    # === BOUNDARY TIERS ===
    session.layer_manager.on_map_ready(boundary_datasets)

    # === ENTITY GRAPH ===
    session.summary = await session.graph_builder.build(entities)

    # === INITIAL VIEWPORT ===
    session.layer_manager.fit_to_tier(
        session.config.boundaries.fit_tier,
        padding=session.config.map.fit_padding_px,
    )

    logger.info("=" * 60)
    logger.info("✅ ENTITY MAP READY")
    logger.info(f"   📍 Markers: {len(session.graph_builder.markers)}")
    logger.info(f"   🔗 Connectors: {len(session.graph_builder.connectors)}")
    logger.info(f"   🗺️ Visible tier: {session.layer_manager.visible_tier}")
    logger.info("=" * 60)
    return session


def render_session_html(session: EntityMapSession, search_url: str = "/api/search") -> str:
    """Page HTML for a session's current map state."""
    return generate_html(
        document=session.document.to_dict(),
        frontend_config=session.config.to_frontend_dict(),
        search_url=search_url,
    )


def generate_entity_map_html(
    session: EntityMapSession,
    output_path: str = "entity_map.html",
    search_url: str = "/api/search",
) -> str:
    """
    Write the session's map as standalone HTML.

    Returns:
        Absolute path to the generated file
    """
    html_content = render_session_html(session, search_url)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_content, encoding="utf-8")

    file_size_kb = len(html_content.encode("utf-8")) / 1024
    logger.info(f"   ✅ Generated HTML: {output_path}")
    logger.info(f"   📊 File size: {file_size_kb:.1f} KB")
    return str(output_path.absolute())
