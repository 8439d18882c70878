"""Data models package for entity records, geocode results and map features."""

from .data_models import (
    Connector,
    Coordinate,
    Entity,
    EntityId,
    EntityType,
    GeocodeCandidate,
    Marker,
    entities_from_dicts,
)

__all__ = [
    # Entity records
    "Entity",
    "EntityId",
    "EntityType",
    "entities_from_dicts",
    # Geocoding
    "Coordinate",
    "GeocodeCandidate",
    # Map features
    "Marker",
    "Connector",
]
