"""
Tests for MapboxGeocoder.geocode over real HTTP.

A local aiohttp.web server stands in for the Places API, so status codes,
bodies and connection failures exercise the actual client code path.

Tests:
1. 200 with features -> candidates; 200 with no features -> []
2. Non-200, connection refused, undecodable or non-object bodies
   -> GeocodingServiceError
3. A malformed answer for one entity leaves the rest of a build pass intact

Run with: python -m pytest _tests/test_mapbox_client.py -v
"""

import asyncio

import pytest
from aiohttp import test_utils, web

from entity_factories import entity

TOKEN = "pk.test-token"


# ═══════════════════════════════════════════════════════════════════════════
# LOCAL PLACES API
# ═══════════════════════════════════════════════════════════════════════════


def _places_handler(seen):
    """Places endpoint recording (query, token) and answering by the first word."""

    async def places(request: web.Request) -> web.StreamResponse:
        query = request.match_info["query"]
        seen.append((query, request.query.get("access_token")))

        if query.startswith("Broken"):
            return web.Response(text="{not json", content_type="application/json")
        if query.startswith("List"):
            return web.json_response([1, 2])
        if query.startswith("Down"):
            return web.Response(status=500, text="upstream failure")
        if query.startswith("Html"):
            return web.Response(text="<html></html>", content_type="text/html")
        if query.startswith("Nowhere"):
            return web.json_response({"features": []})
        return web.json_response(
            {
                "features": [
                    {"center": [-77.017, 38.912], "place_type": ["postcode"], "place_name": "20001"},
                    {"center": [-77.03, 38.89], "place_type": ["place"], "place_name": "Washington"},
                ]
            }
        )

    return places


def _run_with_server(test_fn):
    """Start the local API, hand its base URL and request log to test_fn."""

    async def runner():
        seen = []
        app = web.Application()
        app.router.add_get("/places/{query}", _places_handler(seen))
        async with test_utils.TestServer(app) as server:
            return await test_fn(str(server.make_url("/places")), seen)

    return asyncio.run(runner())


# ═══════════════════════════════════════════════════════════════════════════
# SUCCESSFUL RESPONSES
# ═══════════════════════════════════════════════════════════════════════════


class TestGeocodeSuccess:
    """200 responses."""

    def test_candidates_in_service_order(self):
        from entity_map.geocoding import MapboxGeocoder

        async def check(base_url, seen):
            geocoder = MapboxGeocoder(TOKEN, base_url=base_url, timeout_s=5)
            return await geocoder.geocode("20001, USA"), seen

        candidates, seen = _run_with_server(check)

        assert [c.place_type for c in candidates] == ["postcode", "place"]
        assert candidates[0].coordinate == (-77.017, 38.912)
        assert seen[0][1] == TOKEN, "Access token is sent as a query parameter"

    def test_empty_features_is_no_match(self):
        from entity_map.geocoding import MapboxGeocoder

        async def check(base_url, seen):
            geocoder = MapboxGeocoder(TOKEN, base_url=base_url, timeout_s=5)
            return await geocoder.geocode("Nowhere at all")

        assert _run_with_server(check) == []

    def test_shared_session_context(self):
        """Inside the context manager both calls reuse one session, closed on exit."""
        from entity_map.geocoding import MapboxGeocoder

        async def check(base_url, seen):
            async with MapboxGeocoder(TOKEN, base_url=base_url, timeout_s=5) as geocoder:
                first = await geocoder.geocode("20001")
                second = await geocoder.geocode("Nowhere")
                session_open = geocoder._session is not None
            return first, second, session_open, geocoder._session

        first, second, session_open, session_after = _run_with_server(check)

        assert len(first) == 2
        assert second == []
        assert session_open
        assert session_after is None


# ═══════════════════════════════════════════════════════════════════════════
# SERVICE FAILURES
# ═══════════════════════════════════════════════════════════════════════════


class TestGeocodeFailures:
    """Every failure surfaces as GeocodingServiceError, never as a miss."""

    @pytest.mark.parametrize(
        "query",
        [
            "Down for maintenance",
            "Broken body",
            "List body",
            "Html body",
        ],
    )
    def test_bad_responses_raise_service_error(self, query):
        from entity_map.geocoding import GeocodingServiceError, MapboxGeocoder

        async def check(base_url, seen):
            geocoder = MapboxGeocoder(TOKEN, base_url=base_url, timeout_s=5)
            with pytest.raises(GeocodingServiceError):
                await geocoder.geocode(query)
            return len(seen)

        assert _run_with_server(check) == 1

    def test_connection_refused_raises_service_error(self):
        from entity_map.geocoding import GeocodingServiceError, MapboxGeocoder

        async def check():
            geocoder = MapboxGeocoder(TOKEN, base_url="http://127.0.0.1:1/places", timeout_s=5)
            with pytest.raises(GeocodingServiceError):
                await geocoder.geocode("20001")

        asyncio.run(check())

    def test_from_config_timeout_outlasts_resolver(self):
        from entity_map.config_types import GeocodingConfig
        from entity_map.geocoding import MapboxGeocoder

        config = GeocodingConfig(access_token=TOKEN, timeout_s=10.0)
        geocoder = MapboxGeocoder.from_config(config)

        assert geocoder.timeout.total > config.timeout_s
        assert geocoder.access_token == TOKEN


# ═══════════════════════════════════════════════════════════════════════════
# BUILD PASS RESILIENCE
# ═══════════════════════════════════════════════════════════════════════════


def test_malformed_response_does_not_abort_build(document):
    """An unreadable answer for one entity skips it; the next entity still draws."""
    from entity_map.geocoding import GeocodingResolver, MapboxGeocoder
    from entity_map.visualization import EntityGraphBuilder

    entities = [
        entity(1, "Broken St", assoc=[2]),
        entity(2, "100 Main St"),
    ]

    async def check(base_url, seen):
        async with MapboxGeocoder(TOKEN, base_url=base_url, timeout_s=5) as geocoder:
            builder = EntityGraphBuilder(document, GeocodingResolver(geocoder))
            summary = await builder.build(entities)
        return builder, summary

    builder, summary = _run_with_server(check)

    assert summary.entities_skipped == 1
    assert set(builder.markers) == {2}
    assert builder.connectors == {}
    assert not builder.resolver.is_cached(1), "Service errors are not cached"
