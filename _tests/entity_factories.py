"""
Test doubles and record builders shared by the entity map tests.

FakeGeocoder stands in for the Mapbox service: answers are scripted per
query string and every call is recorded, so tests can assert how often the
service was hit.
"""

from typing import Dict, Iterable, List, Optional

from entity_map.geocoding import GeocodingServiceError
from entity_map.models import Coordinate, Entity, GeocodeCandidate


class FakeGeocoder:
    """Scripted geocoder recording every query it receives."""

    def __init__(
        self,
        answers: Optional[Dict[str, List[GeocodeCandidate]]] = None,
        errors: Iterable[str] = (),
    ) -> None:
        self.answers = dict(answers or {})
        self.errors = set(errors)
        self.calls: List[str] = []

    async def geocode(self, query: str) -> List[GeocodeCandidate]:
        self.calls.append(query)
        if query in self.errors:
            raise GeocodingServiceError(f"scripted failure for {query}")
        return list(self.answers.get(query, []))


def candidate(lon: float, lat: float, place_type: str = "address") -> GeocodeCandidate:
    return GeocodeCandidate(Coordinate(lon, lat), place_type, f"{lon},{lat}")


def entity(
    entity_id,
    street: str,
    zipcode: str = "20001",
    entity_type: str = "PRACTICE",
    assoc=(),
    name: Optional[str] = None,
) -> Entity:
    return Entity(
        id=entity_id,
        name=name or f"Entity {entity_id}",
        entity_type=entity_type,
        street_address=street,
        zipcode=zipcode,
        association_ids=tuple(assoc),
    )


def address(street: str, zipcode: str = "20001") -> str:
    """Query text the resolver sends for a DC entity."""
    return f"{street}, Washington, DC {zipcode}"
