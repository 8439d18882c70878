"""
Typed data models for the entity graph map.

Architectural Overview:
=======================
This module contains the immutable dataclasses passed between the geocoding
layer and the map builders. Entity records arrive as JSON dicts in the
source dataset's camelCase keys; from_dict() is the only place that knows
those key names.

Key Interactions:
-----------------
- Input: data_loader reads the entity JSON and calls entities_from_dicts()
- Geocoding: MapboxGeocoder produces GeocodeCandidate instances
- Output: EntityGraphBuilder produces Marker and Connector instances, which
  MapDocument serializes for the frontend via as_dict()
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

MODIFICATION POINT: Add new EntityType values here for new entity classes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

EntityId = Union[int, str]


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class EntityType(Enum):
    """Closed set of business entity classes.

    The dataset spells ANCILLIARY with a double L; the value matches the data.
    """

    CORPORATE = "CORPORATE"
    PRACTICE = "PRACTICE"
    EHR = "EHR"
    INSURANCE = "INSURANCE"
    ANCILLIARY = "ANCILLIARY"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["EntityType"]:
        """Convert a raw type tag to EntityType, or None if unknown.

        Args:
            s: Tag string like "PRACTICE" (case-insensitive)

        Returns:
            Matching EntityType member, or None for unknown tags
        """
        if not s:
            return None
        for member in cls:
            if member.value == s.strip().upper():
                return member
        return None


# ═══════════════════════════════════════════════════════════════════════════
# 📍 GEOCODING SECTION
# ═══════════════════════════════════════════════════════════════════════════


class Coordinate(NamedTuple):
    """WGS84 position in GeoJSON axis order (lon, lat)."""

    lon: float
    lat: float


@dataclass(frozen=True)
class GeocodeCandidate:
    """One forward-geocoding match.

    Attributes:
        coordinate: Match position
        place_type: Service classification ("postcode", "place", "address", ...)
        place_name: Human-readable label returned by the service
    """

    coordinate: Coordinate
    place_type: Optional[str] = None
    place_name: str = ""


# ═══════════════════════════════════════════════════════════════════════════
# 🏢 ENTITY RECORD SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Entity:
    """Read-only business entity record.

    association_ids keeps the dataset order. References are one-directional:
    A listing B says nothing about B listing A.
    """

    id: EntityId
    name: str
    entity_type: str
    street_address: str
    zipcode: str
    association_ids: Tuple[EntityId, ...] = field(default_factory=tuple)

    @property
    def type_enum(self) -> Optional[EntityType]:
        return EntityType.from_string(self.entity_type)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Entity":
        """Create Entity from a dataset record.

        Args:
            d: Record with id, name, entityType, streetAddress, zipcode and
               e_AssociatedEntitys (list of {"id": ...})

        Returns:
            Entity instance

        Raises:
            ValueError: If the record has no id
        """
        if d.get("id") is None:
            raise ValueError(f"Entity record missing 'id': {d!r}")

        associations = d.get("e_AssociatedEntitys") or []
        association_ids = tuple(
            a["id"] for a in associations if isinstance(a, dict) and "id" in a
        )

        return cls(
            id=d["id"],
            name=str(d.get("name", "")),
            entity_type=str(d.get("entityType", "")),
            street_address=str(d.get("streetAddress", "")),
            zipcode=str(d.get("zipcode", "")),
            association_ids=association_ids,
        )


def entities_from_dicts(records: List[Dict[str, Any]]) -> List[Entity]:
    """Convert dataset records to Entity instances, preserving order."""
    return [Entity.from_dict(r) for r in records]


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP FEATURE SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Marker:
    """Map pin for one geocoded entity. Created once, never moved."""

    entity_id: EntityId
    coordinate: Coordinate
    glyph: str
    icon: str
    label: str
    title: str

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict for the frontend marker loop."""
        return {
            "id": self.entity_id,
            "lngLat": [self.coordinate.lon, self.coordinate.lat],
            "glyph": self.glyph,
            "icon": self.icon,
            "label": self.label,
            "title": self.title,
        }


@dataclass(frozen=True)
class Connector:
    """Curved association path between two markers.

    Attributes:
        key: Registry key (ordered pair, or sorted pair in undirected mode)
        source_id: Id of the entity that lists the association
        target_id: Id of the referenced entity
        map_id: Source/layer id on the map ("line-<source>-<target>")
        geometry: GeoJSON LineString geometry dict
    """

    key: Tuple[EntityId, EntityId]
    source_id: EntityId
    target_id: EntityId
    map_id: str
    geometry: Dict[str, Any]

    def as_feature(self) -> Dict[str, Any]:
        """GeoJSON Feature for the connector's map source."""
        return {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": {"source": self.source_id, "target": self.target_id},
        }
