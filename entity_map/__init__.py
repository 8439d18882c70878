"""
Entity Map

Geocoded entity-relationship graph over zoom-switched metro / county / ZIP
boundary tiers, with address search.
"""

from entity_map.config import CONFIG
from entity_map.map_builder import build_entity_map, generate_entity_map_html

__all__ = ["build_entity_map", "generate_entity_map_html", "CONFIG"]
