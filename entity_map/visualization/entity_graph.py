#!/usr/bin/env python3
"""
Entity Graph Builder

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Geocode entity records and draw them on a MapDocument as
markers plus curved association connectors.

Key Features:
- Strictly sequential: every geocode is awaited before the next is issued,
  so markers and connectors appear in input order and the resolver cache is
  settled before any dependent lookup
- One marker per entity per session, one connector per edge key
- Failures are local: a miss or service error drops that entity (and its
  outgoing edges) or that single edge, never the pass
- Dangling references are skipped silently; self references are filtered
- clear() removes everything this builder drew, ready for a rebuild

Edge keys:
    ordered mode   (default): (source_id, target_id); A->B and B->A are two
                              connectors bowing to opposite sides
    undirected mode         : sorted pair; A->B and B->A share one connector

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Set, Tuple

from entity_map.config_types import ConnectorStyle, GraphConfig, MarkerConfig
from entity_map.geocoding import GeocodingResolver, GeocodingServiceError, compose_address
from entity_map.models import Connector, Coordinate, Entity, EntityId, Marker
from entity_map.visualization.curves import connector_geometry
from entity_map.visualization.map_document import MapDocument

logger = logging.getLogger(__name__)

EdgeKey = Tuple[EntityId, EntityId]


def _escape_id(entity_id: EntityId) -> str:
    return str(entity_id).replace("%", "%25").replace("-", "%2D")


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 DATA CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class BuildSummary:
    """Counts for one build pass.

    Attributes:
        markers_created: New markers added this pass
        connectors_created: New connectors added this pass
        entities_skipped: Entities whose own geocoding failed
        edges_skipped: Edges dropped (target failed to geocode, or self reference)
        dangling_references: Associations pointing at unknown ids
    """

    markers_created: int = 0
    connectors_created: int = 0
    entities_skipped: int = 0
    edges_skipped: int = 0
    dangling_references: int = 0


# ═══════════════════════════════════════════════════════════════════════════════
# 🏗️ BUILDER
# ═══════════════════════════════════════════════════════════════════════════════


class EntityGraphBuilder:
    """
    Draws entity markers and association connectors.

    The resolver is injected and owns the session's geocode cache; the
    builder owns the marker and connector registries.
    """

    def __init__(
        self,
        document: MapDocument,
        resolver: GeocodingResolver,
        graph_config: Optional[GraphConfig] = None,
        marker_config: Optional[MarkerConfig] = None,
        connector_style: Optional[ConnectorStyle] = None,
        city_suffix: str = "Washington, DC",
    ) -> None:
        self.document = document
        self.resolver = resolver
        self.graph_config = graph_config or GraphConfig()
        self.marker_config = marker_config or MarkerConfig()
        self.connector_style = connector_style or ConnectorStyle()
        self.city_suffix = city_suffix

        self.markers: Dict[EntityId, Marker] = {}
        self.connectors: Dict[EdgeKey, Connector] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # 🔑 KEYS
    # ═══════════════════════════════════════════════════════════════════════

    def edge_key(self, source_id: EntityId, target_id: EntityId) -> EdgeKey:
        if self.graph_config.undirected:
            a, b = sorted((source_id, target_id), key=str)
            return (a, b)
        return (source_id, target_id)

    @staticmethod
    def map_id_for(key: EdgeKey) -> str:
        """Map source/layer id for an edge key, "line-<a>-<b>".

        "%" and "-" inside ids are percent-escaped so distinct keys never
        share an id (("a-b", "c") -> line-a%2Db-c, ("a", "b-c") -> line-a-b%2Dc).
        """
        a, b = (_escape_id(part) for part in key)
        return f"line-{a}-{b}"

    # ═══════════════════════════════════════════════════════════════════════
    # 🚀 BUILD PASS
    # ═══════════════════════════════════════════════════════════════════════

    async def build(self, entities: Sequence[Entity]) -> BuildSummary:
        """
        Resolve and draw every entity and its association edges, in order.

        Args:
            entities: Ordered entity records (the full reference universe)

        Returns:
            BuildSummary with counts for this pass
        """
        logger.info(f"🔗 Building entity graph for {len(entities)} entities...")

        # First occurrence wins for duplicate ids
        index: Dict[EntityId, Entity] = {}
        for entity in entities:
            index.setdefault(entity.id, entity)

        summary = BuildSummary()
        failed: Set[EntityId] = set()

        for entity in entities:
            coords = await self._resolve(entity, failed)
            if coords is None:
                summary.entities_skipped += 1
                continue

            if self._ensure_marker(entity, coords):
                summary.markers_created += 1

            for target_id in entity.association_ids:
                target = index.get(target_id)
                if target is None:
                    summary.dangling_references += 1
                    continue

                if target.id == entity.id:
                    logger.debug(f"Skipping self reference on entity {entity.id}")
                    summary.edges_skipped += 1
                    continue

                target_coords = await self._resolve(target, failed)
                if target_coords is None:
                    summary.edges_skipped += 1
                    continue

                if self._ensure_marker(target, target_coords):
                    summary.markers_created += 1

                if self._add_connector(entity.id, target.id, coords, target_coords):
                    summary.connectors_created += 1

        logger.info(
            f"   ✅ Graph built: {len(self.markers)} markers, "
            f"{len(self.connectors)} connectors "
            f"(+{summary.markers_created}/+{summary.connectors_created} this pass, "
            f"{summary.entities_skipped} entities skipped, "
            f"{summary.edges_skipped} edges skipped)"
        )
        return summary

    async def _resolve(self, entity: Entity, failed: Set[EntityId]) -> Optional[Coordinate]:
        """Resolver lookup with service errors downgraded to a miss for this pass."""
        if entity.id in failed:
            return None
        try:
            coords = await self.resolver.resolve(
                entity.id, compose_address(entity, self.city_suffix)
            )
        except GeocodingServiceError as e:
            logger.error(f"❌ Geocoding service error for entity {entity.id}: {e}")
            coords = None

        if coords is None:
            failed.add(entity.id)
        return coords

    # ═══════════════════════════════════════════════════════════════════════
    # 📌 MARKERS
    # ═══════════════════════════════════════════════════════════════════════

    def _ensure_marker(self, entity: Entity, coords: Coordinate) -> bool:
        """Create the entity's marker unless one exists. Returns True if created."""
        if entity.id in self.markers:
            return False

        marker = Marker(
            entity_id=entity.id,
            coordinate=coords,
            glyph=self.marker_config.glyph_for(entity.entity_type),
            icon=self.marker_config.icon_for(entity.entity_type),
            label=entity.name,
            title=f"{entity.name} ({entity.entity_type})",
        )
        self.document.add_marker(marker)
        self.markers[entity.id] = marker
        return True

    # ═══════════════════════════════════════════════════════════════════════
    # ➰ CONNECTORS
    # ═══════════════════════════════════════════════════════════════════════

    def _add_connector(
        self,
        source_id: EntityId,
        target_id: EntityId,
        source_coords: Coordinate,
        target_coords: Coordinate,
    ) -> bool:
        """Register and draw a connector unless its key exists. Returns True if added."""
        key = self.edge_key(source_id, target_id)
        map_id = self.map_id_for(key)
        if key in self.connectors or self.document.has_source(map_id):
            return False

        connector = Connector(
            key=key,
            source_id=source_id,
            target_id=target_id,
            map_id=map_id,
            geometry=connector_geometry(
                source_coords,
                target_coords,
                sharpness=self.graph_config.sharpness,
                resolution=self.graph_config.curve_resolution,
            ),
        )

        self.document.add_source(map_id, connector.as_feature())
        self.document.add_layer(
            {
                "id": map_id,
                "type": "line",
                "source": map_id,
                "layout": {"line-cap": "round", "line-join": "round"},
                "paint": self.connector_style.to_paint(),
            }
        )
        self.connectors[key] = connector
        return True

    # ═══════════════════════════════════════════════════════════════════════
    # 🧹 CLEAR
    # ═══════════════════════════════════════════════════════════════════════

    def clear(self) -> None:
        """Remove every marker and connector this builder drew.

        The resolver cache is left alone; call resolver.reset() for a full
        reload.
        """
        for connector in self.connectors.values():
            self.document.remove_layer(connector.map_id)
            self.document.remove_source(connector.map_id)
        for entity_id in self.markers:
            self.document.remove_marker(entity_id)

        logger.info(
            f"🧹 Cleared {len(self.markers)} markers and "
            f"{len(self.connectors)} connectors"
        )
        self.markers.clear()
        self.connectors.clear()
