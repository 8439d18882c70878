#!/usr/bin/env python3
"""
Search Navigator

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Geocode a free-text query and fly the map to it, closer for
postcodes than for places and addresses.

Queries are not entity-bound, so they go straight to the geocoder rather than
through the resolver cache. A miss (or a service failure) is reported through
the notifier and leaves the camera untouched.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from entity_map.config_types import SearchConfig
from entity_map.geocoding import Geocoder, GeocodingServiceError
from entity_map.models import Coordinate
from entity_map.visualization.map_document import MapDocument

logger = logging.getLogger(__name__)

STATUS_NAVIGATED = "navigated"
STATUS_NOT_FOUND = "not_found"
STATUS_IGNORED = "ignored"


@dataclass(frozen=True)
class NavigationResult:
    """Outcome of one search."""

    status: str
    query: str
    center: Optional[Coordinate] = None
    zoom: Optional[float] = None
    place_type: Optional[str] = None
    message: str = ""

    @property
    def navigated(self) -> bool:
        return self.status == STATUS_NAVIGATED

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "query": self.query,
            "center": [self.center.lon, self.center.lat] if self.center else None,
            "zoom": self.zoom,
            "placeType": self.place_type,
            "message": self.message,
        }


def _log_notification(message: str) -> None:
    logger.warning(f"🔔 {message}")


class SearchNavigator:
    """Free-text search that drives the map camera."""

    def __init__(
        self,
        document: MapDocument,
        geocoder: Geocoder,
        config: Optional[SearchConfig] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.document = document
        self.geocoder = geocoder
        self.config = config or SearchConfig()
        self.notify = notify or _log_notification

    def zoom_for_place_type(self, place_type: Optional[str]) -> float:
        if place_type == "postcode":
            return self.config.postcode_zoom
        return self.config.default_zoom

    async def search(self, free_text: str) -> NavigationResult:
        """
        Geocode the query (with the country qualifier) and fly to the first match.

        Args:
            free_text: User input; blank input is ignored

        Returns:
            NavigationResult describing what happened
        """
        text = (free_text or "").strip()
        if not text:
            return NavigationResult(status=STATUS_IGNORED, query="")

        query = f"{text}{self.config.country_qualifier}"
        try:
            candidates = await self.geocoder.geocode(query)
        except GeocodingServiceError as e:
            logger.error(f"❌ Search geocoding failed for {query!r}: {e}")
            candidates = []

        if not candidates:
            message = self.config.not_found_message
            self.notify(message)
            return NavigationResult(status=STATUS_NOT_FOUND, query=text, message=message)

        best = candidates[0]
        zoom = self.zoom_for_place_type(best.place_type)
        self.document.fly_to(best.coordinate, zoom)

        logger.info(
            f"🔍 '{text}' -> {best.place_type or 'unknown'} at "
            f"({best.coordinate.lon:.5f}, {best.coordinate.lat:.5f}), zoom {zoom:g}"
        )
        return NavigationResult(
            status=STATUS_NAVIGATED,
            query=text,
            center=best.coordinate,
            zoom=zoom,
            place_type=best.place_type,
            message=best.place_name,
        )
