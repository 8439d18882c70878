"""Geocoding package: Mapbox client and the entity-keyed resolver cache."""

from .client import Geocoder, GeocodingServiceError, MapboxGeocoder, parse_features
from .resolver import GeocodingResolver, compose_address

__all__ = [
    "Geocoder",
    "GeocodingServiceError",
    "MapboxGeocoder",
    "parse_features",
    "GeocodingResolver",
    "compose_address",
]
