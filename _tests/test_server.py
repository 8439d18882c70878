"""
Tests for the Flask server routes.

The session is built with a scripted geocoder and attached with init_app,
so the routes run without network access.

Run with: python -m pytest _tests/test_server.py -v
"""

import asyncio

import pytest

from entity_factories import candidate


@pytest.fixture
def client(two_entities, boundary_datasets, main_st_geocoder, app_config):
    from entity_map import server
    from entity_map.map_builder import build_entity_map

    main_st_geocoder.answers.update(
        {
            "20001, USA": [candidate(-77.017, 38.912, "postcode")],
            "Washington, USA": [candidate(-77.03, 38.89, "place")],
        }
    )
    session = asyncio.run(
        build_entity_map(two_entities, boundary_datasets, main_st_geocoder, app_config)
    )
    app = server.init_app(session)
    app.config["TESTING"] = True
    try:
        with app.test_client() as test_client:
            yield test_client
    finally:
        server.session = None
        server.page_html = None


class TestRoutes:
    """HTTP surface."""

    def test_index_serves_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert b"mapbox-gl.js" in response.data
        assert b"line-1-2" in response.data

    def test_config(self, client):
        response = client.get("/api/config")

        assert response.status_code == 200
        assert set(response.get_json()) == {"map", "accessToken", "boundaries"}

    def test_search_postcode(self, client):
        response = client.get("/api/search?q=20001")
        body = response.get_json()

        assert response.status_code == 200
        assert body["status"] == "navigated"
        assert body["zoom"] == 14
        assert body["center"] == [-77.017, 38.912]

    def test_search_leaves_session_document_alone(self, client):
        """Repeated searches add no camera commands to the served session."""
        from entity_map import server

        document = server.session.document
        commands_before = list(document.view_commands)
        zoom_before = document.zoom
        visible_before = server.session.layer_manager.visible_tier

        for _ in range(20):
            assert client.get("/api/search?q=20001").status_code == 200

        assert document.view_commands == commands_before
        assert document.zoom == zoom_before
        assert server.session.layer_manager.visible_tier == visible_before

    def test_search_place(self, client):
        body = client.get("/api/search?q=Washington").get_json()

        assert body["zoom"] == 10
        assert body["placeType"] == "place"

    def test_search_not_found(self, client):
        response = client.get("/api/search?q=Atlantis")

        assert response.status_code == 404
        assert response.get_json()["message"] == "Location not found."

    def test_search_blank(self, client):
        assert client.get("/api/search?q=%20").status_code == 400
        assert client.get("/api/search").status_code == 400

    @pytest.mark.parametrize(
        "zoom,tier", [("3", "msa"), ("6", "county"), ("9.5", "county"), ("10", "zip")]
    )
    def test_layer_visibility(self, client, zoom, tier):
        body = client.get(f"/api/layers/visibility?zoom={zoom}").get_json()

        assert body["visible_tier"] == tier
        assert body["zoom"] == float(zoom)

    def test_layer_visibility_bad_zoom(self, client):
        assert client.get("/api/layers/visibility").status_code == 400
        assert client.get("/api/layers/visibility?zoom=abc").status_code == 400


def test_uninitialized_server():
    from entity_map import server

    server.session = None
    server.page_html = None
    client = server.app.test_client()

    assert client.get("/").status_code == 500
    assert client.get("/api/search?q=x").status_code == 500
    assert client.get("/api/layers/visibility?zoom=3").status_code == 500
