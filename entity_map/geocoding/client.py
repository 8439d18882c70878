#!/usr/bin/env python3
"""
Entity Map - Geocoding Client

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Async forward geocoding against the Mapbox Places API.
Returns every candidate the service sends back; picking the first one is
the caller's decision.

Key Features:
1. aiohttp GET per query, optional shared ClientSession
2. Transport/HTTP failures raised as GeocodingServiceError
3. Empty result sets returned as [] (not an error)

Navigation Guide:
- Geocoder: Protocol any geocoding collaborator satisfies
- MapboxGeocoder: Production implementation
- parse_features: Response body -> GeocodeCandidate list

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import aiohttp

from entity_map.config_types import GeocodingConfig
from entity_map.models import Coordinate, GeocodeCandidate

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# ⚠️ ERRORS
# ═══════════════════════════════════════════════════════════════════════════


class GeocodingServiceError(RuntimeError):
    """The geocoding service could not be reached or answered with an error.

    Distinct from "no match": an empty candidate list is a normal outcome.
    """


# ═══════════════════════════════════════════════════════════════════════════
# 🔌 COLLABORATOR PROTOCOL
# ═══════════════════════════════════════════════════════════════════════════


class Geocoder(Protocol):
    """Anything that turns free text into ordered geocode candidates."""

    async def geocode(self, query: str) -> List[GeocodeCandidate]:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# 🧩 RESPONSE PARSING
# ═══════════════════════════════════════════════════════════════════════════


def parse_features(data: Dict[str, Any]) -> List[GeocodeCandidate]:
    """
    Convert a Mapbox Places response body to candidates, keeping order.

    Features without a usable "center" are dropped.

    Args:
        data: Decoded JSON body ({"features": [...]})

    Returns:
        List of GeocodeCandidate, best match first
    """
    candidates = []
    for feature in data.get("features") or []:
        center = feature.get("center")
        if not center or len(center) < 2:
            continue
        place_types = feature.get("place_type") or []
        candidates.append(
            GeocodeCandidate(
                coordinate=Coordinate(float(center[0]), float(center[1])),
                place_type=place_types[0] if place_types else None,
                place_name=feature.get("place_name", ""),
            )
        )
    return candidates


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 MAPBOX GEOCODER
# ═══════════════════════════════════════════════════════════════════════════


class MapboxGeocoder:
    """
    Mapbox Places forward geocoder.

    Use as an async context manager to share one ClientSession across a
    build pass; used bare, each call opens its own session.

    Example:
        async with MapboxGeocoder(token) as geocoder:
            candidates = await geocoder.geocode("100 Main St, Washington, DC")
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places",
        timeout_s: Optional[float] = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not access_token:
            logger.warning("⚠️ No Mapbox access token configured - requests will fail")
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_s) if timeout_s else None
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> "MapboxGeocoder":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session if this geocoder opened it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        if self._owns_session:
            self._session = None
            self._owns_session = False

    @classmethod
    def from_config(
        cls, config: GeocodingConfig, session: Optional[aiohttp.ClientSession] = None
    ) -> "MapboxGeocoder":
        """Geocoder whose HTTP timeout outlasts the resolver's per-call bound."""
        return cls(
            config.access_token,
            base_url=config.base_url,
            timeout_s=config.client_timeout_s,
            session=session,
        )

    def _url_for(self, query: str) -> str:
        return f"{self.base_url}/{quote(query, safe='')}.json"

    async def geocode(self, query: str) -> List[GeocodeCandidate]:
        """
        Forward-geocode free text.

        Args:
            query: Address or place text, passed through unvalidated

        Returns:
            Candidates in service order (possibly empty)

        Raises:
            GeocodingServiceError: Network failure, timeout or non-200 status
        """
        url = self._url_for(query)
        params = {"access_token": self.access_token}

        try:
            if self._session is not None:
                data = await self._fetch(self._session, url, params)
            else:
                async with aiohttp.ClientSession(timeout=self.timeout) as session:
                    data = await self._fetch(session, url, params)
        except asyncio.TimeoutError as e:
            raise GeocodingServiceError(f"Geocoding timed out for {query!r}") from e
        except aiohttp.ClientError as e:
            raise GeocodingServiceError(f"Geocoding request failed: {e}") from e
        except ValueError as e:
            # Undecodable JSON body
            raise GeocodingServiceError(f"Geocoding response unreadable: {e}") from e

        return parse_features(data)

    async def _fetch(
        self, session: aiohttp.ClientSession, url: str, params: Dict[str, str]
    ) -> Dict[str, Any]:
        async with session.get(url, params=params) as response:
            if response.status != 200:
                raise GeocodingServiceError(
                    f"Geocoding service returned HTTP {response.status}"
                )
            data = await response.json()

        if not isinstance(data, dict):
            raise GeocodingServiceError(
                f"Geocoding response is not a JSON object: {type(data).__name__}"
            )
        return data
