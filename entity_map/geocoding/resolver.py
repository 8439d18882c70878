#!/usr/bin/env python3
"""
Entity Map - Geocoding Resolver

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Per-entity memoization of geocoding outcomes for one
visualization session.

The cache is keyed by entity id, not by address text, and stores misses
(None) as well as hits, so an entity is sent to the service at most once per
session. Service errors are NOT cached: they propagate as
GeocodingServiceError and the caller decides whether to skip.

Navigation Guide:
- compose_address: Street + city suffix + ZIP
- GeocodingResolver.resolve: Cached lookup
- GeocodingResolver.reset: Start a new session

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import asyncio
import logging
from typing import Dict, Optional

from entity_map.geocoding.client import Geocoder
from entity_map.models import Coordinate, Entity, EntityId

logger = logging.getLogger(__name__)


def compose_address(entity: Entity, city_suffix: str = "Washington, DC") -> str:
    """Full geocoding query for an entity: "<street>, <city suffix> <zip>"."""
    return f"{entity.street_address}, {city_suffix} {entity.zipcode}"


class GeocodingResolver:
    """
    Entity-keyed geocoding cache in front of a Geocoder.

    Attributes:
        geocoder: Collaborator queried on cache misses
        timeout_s: Optional bound per call; expiry is cached as "no match"
    """

    def __init__(self, geocoder: Geocoder, timeout_s: Optional[float] = None) -> None:
        self.geocoder = geocoder
        self.timeout_s = timeout_s
        self._cache: Dict[EntityId, Optional[Coordinate]] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # 📤 PUBLIC API
    # ═══════════════════════════════════════════════════════════════════════

    def is_cached(self, entity_id: EntityId) -> bool:
        return entity_id in self._cache

    def cached(self, entity_id: EntityId) -> Optional[Coordinate]:
        """Cached coordinate for an entity, None if missing or a cached miss."""
        return self._cache.get(entity_id)

    def reset(self) -> None:
        """Drop every cached outcome (full reload)."""
        logger.info(f"🧹 Clearing geocode cache ({len(self._cache)} entries)")
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    async def resolve(self, entity_id: EntityId, address: str) -> Optional[Coordinate]:
        """
        Coordinate for an entity, geocoding its address on first request only.

        Args:
            entity_id: Cache key
            address: Query text, passed through unvalidated

        Returns:
            First candidate's coordinate, or None when nothing matched

        Raises:
            GeocodingServiceError: The service failed; nothing is cached
        """
        if entity_id in self._cache:
            return self._cache[entity_id]

        try:
            if self.timeout_s:
                candidates = await asyncio.wait_for(
                    self.geocoder.geocode(address), timeout=self.timeout_s
                )
            else:
                candidates = await self.geocoder.geocode(address)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Geocode timed out after {self.timeout_s}s: {address}")
            candidates = []

        coords = candidates[0].coordinate if candidates else None
        self._cache[entity_id] = coords

        if coords is None:
            logger.warning(f"❌ Geocode failed: {address}")
        else:
            logger.info(f"📍 Geocoded: {address} -> ({coords.lon:.6f}, {coords.lat:.6f})")

        return coords
