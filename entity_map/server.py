#!/usr/bin/env python3
"""
Entity Map - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Serve the generated map page and back its search box.

Key Interactions:
- Builds one EntityMapSession at startup (boundaries + entity graph)
- /api/search runs the SearchNavigator against that session's map
- The page itself flies the browser map to the returned target

Navigation Guide:
- ROUTES: /, /api/config, /api/search, /api/layers/visibility
- STARTUP: Session construction and data loading

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from entity_map.config_types import APP_CONFIG, get_frontend_config
from entity_map.data_loader import load_boundary_datasets, load_entities
from entity_map.geocoding import MapboxGeocoder
from entity_map.map_builder import (
    EntityMapSession,
    build_entity_map,
    render_session_html,
)

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global session - initialized on startup
session: Optional[EntityMapSession] = None
page_html: Optional[str] = None

# Logging setup
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
logger = logging.getLogger(__name__)

WORKSPACE_ROOT = Path(__file__).resolve().parent.parent


def init_app(new_session: EntityMapSession) -> Flask:
    """Attach a built session to the app and pre-render its page."""
    global session, page_html
    session = new_session
    page_html = render_session_html(new_session, search_url="/api/search")
    return app


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ API ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/")
def index():
    """Serve the map page."""
    if page_html is None:
        return jsonify({"error": "Server not initialized"}), 500
    return Response(page_html, mimetype="text/html")


@app.route("/api/config")
def get_config():
    """Frontend configuration settings."""
    return jsonify(get_frontend_config())


@app.route("/api/search")
async def search():
    """
    Geocode a free-text query and return the navigation target.

    Query Params:
        q: Search text (ZIP, county, place or address)

    Returns:
        NavigationResult JSON; 404 when nothing matched, 400 for blank input.
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    # The served page is pre-rendered; search on a scratch document so
    # requests never touch the session's map state
    result = await session.request_navigator().search(request.args.get("q", ""))
    body = result.as_dict()

    if result.status == "ignored":
        return jsonify(body), 400
    if result.status == "not_found":
        return jsonify(body), 404
    return jsonify(body)


@app.route("/api/layers/visibility")
def layer_visibility():
    """
    Boundary tier shown at a zoom level.

    Query Params:
        zoom: Map zoom (float)
    """
    if session is None:
        return jsonify({"error": "Server not initialized"}), 500

    try:
        zoom = float(request.args["zoom"])
    except (KeyError, ValueError):
        return jsonify({"error": "Missing or invalid 'zoom' parameter"}), 400

    return jsonify(
        {"zoom": zoom, "visible_tier": session.layer_manager.tier_for_zoom(zoom)}
    )


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 STARTUP
# ═══════════════════════════════════════════════════════════════════════════


def startup() -> EntityMapSession:
    """Load data and build the session served by this process."""
    config = APP_CONFIG
    entities = load_entities(WORKSPACE_ROOT / config.file_paths.entities_json)
    boundary_datasets = load_boundary_datasets(config.boundaries, WORKSPACE_ROOT)

    # No shared ClientSession: async views may run on different event loops
    geocoder = MapboxGeocoder.from_config(config.geocoding)
    new_session = asyncio.run(
        build_entity_map(entities, boundary_datasets, geocoder, config)
    )
    init_app(new_session)
    return new_session


if __name__ == "__main__":
    startup()
    logger.info(
        f"🌐 Serving on http://{APP_CONFIG.server.host}:{APP_CONFIG.server.port}"
    )
    app.run(host=APP_CONFIG.server.host, port=APP_CONFIG.server.port, debug=False)
