"""
HTML template generator for the entity map.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Generate a self-contained HTML page that replays a
MapDocument snapshot with Mapbox GL JS.

Key Features:
- Sources, layers and emoji markers embedded as JSON
- Same zoom-band rule as BoundaryLayerManager, run on every "zoom" event and
  once after load
- Recorded camera commands replayed after load (fitBounds / flyTo)
- Search box wired to the server's /api/search endpoint

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import html
import json
from typing import Any, Dict

MAPBOX_GL_VERSION = "2.15.0"
FONT_AWESOME_VERSION = "6.5.1"


# ═══════════════════════════════════════════════════════════════════════════════
# 📄 TEMPLATE GENERATION
# ═══════════════════════════════════════════════════════════════════════════════


def _embed_json(value: Any) -> str:
    """Compact JSON safe to place inside a <script> block."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).replace(
        "</", "<\\/"
    )


def generate_html(
    document: Dict[str, Any],
    frontend_config: Dict[str, Any],
    search_url: str = "/api/search",
) -> str:
    """
    Generate the complete standalone page.

    Args:
        document: MapDocument.to_dict() snapshot
        frontend_config: AppConfig.to_frontend_dict() output
        search_url: Endpoint the Search button calls (GET ?q=...)

    Returns:
        Complete HTML string
    """
    title = html.escape(frontend_config.get("map", {}).get("title", "Entity Map"))
    document_json = _embed_json(document)
    config_json = _embed_json(frontend_config)
    search_url_json = _embed_json(search_url)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script src="https://api.mapbox.com/mapbox-gl-js/v{MAPBOX_GL_VERSION}/mapbox-gl.js"></script>
    <link href="https://api.mapbox.com/mapbox-gl-js/v{MAPBOX_GL_VERSION}/mapbox-gl.css" rel="stylesheet" />
    <link href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/{FONT_AWESOME_VERSION}/css/all.min.css" rel="stylesheet" />
    <style>
        * {{
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            overflow: hidden;
        }}

        .map-container {{
            position: absolute;
            top: 0;
            left: 0;
            width: 100%;
            height: 100%;
        }}

        .search-container {{
            position: absolute;
            top: 10px;
            left: 10px;
            z-index: 1000;
            display: flex;
            gap: 6px;
            background: rgba(255, 255, 255, 0.95);
            border-radius: 8px;
            box-shadow: 0 2px 10px rgba(0, 0, 0, 0.15);
            padding: 8px;
        }}

        .search-container input {{
            width: 260px;
            padding: 6px 8px;
            border: 1px solid #ccc;
            border-radius: 4px;
            font-size: 13px;
        }}

        .search-container button {{
            padding: 6px 12px;
            border: none;
            border-radius: 4px;
            background: #4169E1;
            color: white;
            font-size: 13px;
            cursor: pointer;
        }}

        .emoji-marker {{
            font-size: 22px;
            line-height: 1;
            cursor: pointer;
        }}
    </style>
</head>
<body>
    <div class="search-container">
        <input type="text" id="search-input" placeholder="Search ZIP, County or Address..." />
        <button id="search-button">Search</button>
    </div>
    <div id="map" class="map-container"></div>

    <script>
        const MAP_DOCUMENT = {document_json};
        const APP_CONFIG = {config_json};
        const SEARCH_URL = {search_url_json};

        mapboxgl.accessToken = APP_CONFIG.accessToken;

        const map = new mapboxgl.Map({{
            container: "map",
            style: APP_CONFIG.map.style,
            center: APP_CONFIG.map.center,
            zoom: APP_CONFIG.map.zoom
        }});

        function tierForZoom(zoom) {{
            const b = APP_CONFIG.boundaries;
            if (zoom < b.countyMinZoom) return b.tiers[0];
            if (zoom < b.zipMinZoom) return b.tiers[1];
            return b.tiers[2];
        }}

        function toggleVisibility(tier, visible) {{
            const value = visible ? "visible" : "none";
            ["fill", "outline", "label"].forEach(suffix => {{
                const id = `${{tier}}-${{suffix}}`;
                if (map.getLayer(id)) map.setLayoutProperty(id, "visibility", value);
            }});
        }}

        function applyZoomBand() {{
            const target = tierForZoom(map.getZoom());
            APP_CONFIG.boundaries.tiers.forEach(tier => toggleVisibility(tier, tier === target));
        }}

        map.on("load", () => {{
            Object.entries(MAP_DOCUMENT.sources).forEach(([id, source]) => {{
                if (!map.getSource(id)) map.addSource(id, source);
            }});
            MAP_DOCUMENT.layers.forEach(layer => {{
                if (!map.getLayer(layer.id)) map.addLayer(layer);
            }});

            MAP_DOCUMENT.markers.forEach(m => {{
                const el = document.createElement("div");
                el.className = `emoji-marker fa-marker ${{m.icon}}`;
                el.textContent = m.glyph;
                el.title = m.title;
                new mapboxgl.Marker(el)
                    .setLngLat(m.lngLat)
                    .setPopup(new mapboxgl.Popup().setText(m.label))
                    .addTo(map);
            }});

            map.on("zoom", applyZoomBand);
            applyZoomBand();

            MAP_DOCUMENT.viewCommands.forEach(cmd => {{
                if (cmd.type === "fitBounds") map.fitBounds(cmd.bounds, {{ padding: cmd.padding }});
                if (cmd.type === "flyTo") map.flyTo({{ center: cmd.center, zoom: cmd.zoom }});
            }});
        }});

        async function handleSearch() {{
            const input = document.getElementById("search-input").value.trim();
            if (!input) return;
            try {{
                const res = await fetch(`${{SEARCH_URL}}?q=${{encodeURIComponent(input)}}`);
                const result = await res.json();
                if (result.status !== "navigated") {{
                    alert(result.message || "Location not found.");
                    return;
                }}
                map.flyTo({{ center: result.center, zoom: result.zoom }});
            }} catch (e) {{
                alert("Location not found.");
            }}
        }}

        document.getElementById("search-button").addEventListener("click", handleSearch);
        document.getElementById("search-input").addEventListener("keydown", e => {{
            if (e.key === "Enter") handleSearch();
        }});
    </script>
</body>
</html>
"""
