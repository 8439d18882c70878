#!/usr/bin/env python3
"""
Entity Map - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the entity graph map.
Single source of truth for map view, geocoding, boundary tiers, marker glyphs,
connector styling and file paths.

Pattern:
- config.py defines the CONFIG dictionary (edit this)
- config_types.py defines typed dataclasses and loads from CONFIG

Configuration Sections:
1. map: Initial view and base style
2. geocoding: Mapbox endpoint, city suffix, timeout
3. graph: Connector curve shape and edge keying
4. markers: Glyph/icon per entity type
5. connector_style: Line paint for association paths
6. boundaries: LOD tiers, zoom thresholds, fill styles
7. search: Country qualifier and navigation zoom levels
8. file_paths: Input/output file locations (bottom - rarely changed)
9. server: Flask host/port

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "ENTITY_MAP_CITY_SUFFIX")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# MAPBOX_ACCESS_TOKEN           - Mapbox token for geocoding and base tiles
# ENTITY_MAP_CITY_SUFFIX        - city/region appended to street addresses
# ENTITY_MAP_GEOCODE_TIMEOUT_S  - float seconds, 0 disables (default: 10)
# ENTITY_MAP_UNDIRECTED         - "true" merges A->B and B->A connectors
#
# Example usage:
#   $env:MAPBOX_ACCESS_TOKEN = "pk...."
#   $env:ENTITY_MAP_UNDIRECTED = "true"
#   python -m entity_map.main
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "title": "Entity Relationship Map",
        "style_url": "mapbox://styles/mapbox/light-v10",
        "center": [-98.0, 39.0],  # [lon, lat] - continental US
        "zoom": 3,
        "fit_padding_px": 40,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📍 GEOCODING
    # ═══════════════════════════════════════════════════════════════════════
    "geocoding": {
        "access_token": _env_or_default("MAPBOX_ACCESS_TOKEN", ""),
        "base_url": "https://api.mapbox.com/geocoding/v5/mapbox.places",
        # Appended between street address and ZIP: "<street>, <suffix> <zip>"
        "city_suffix": _env_or_default("ENTITY_MAP_CITY_SUFFIX", "Washington, DC"),
        # Bounded wait per call; expiry counts as "no match". 0 = no timeout
        "timeout_s": _env_or_default("ENTITY_MAP_GEOCODE_TIMEOUT_S", 10.0, float),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔗 ASSOCIATION GRAPH
    # ═══════════════════════════════════════════════════════════════════════
    "graph": {
        # 1.0 = straight line, lower values bow further from the chord
        "sharpness": 0.85,
        # Points sampled along each connector curve
        "curve_resolution": 64,
        # Key connectors by unordered pair (A->B and B->A share one path)
        "undirected": _env_bool("ENTITY_MAP_UNDIRECTED", False),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📌 MARKER GLYPHS
    # ═══════════════════════════════════════════════════════════════════════
    "markers": {
        "glyphs": {
            "CORPORATE": "🎯",
            "PRACTICE": "🏥",
            "EHR": "💻",
            "INSURANCE": "🛡",
            "ANCILLIARY": "🧑‍⚕️",
        },
        "icons": {
            "CORPORATE": "fa-building",
            "PRACTICE": "fa-hospital",
            "EHR": "fa-desktop",
            "INSURANCE": "fa-shield-alt",
            "ANCILLIARY": "fa-user-nurse",
        },
        "fallback_glyph": "📍",
        "fallback_icon": "fa-map-marker-alt",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ➰ CONNECTOR STYLE
    # ═══════════════════════════════════════════════════════════════════════
    "connector_style": {
        "color": "#111",
        "width": 4,
        "opacity": 0.85,
        "dasharray": [1, 2],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 BOUNDARY TIERS (level of detail)
    # ═══════════════════════════════════════════════════════════════════════
    "boundaries": {
        # zoom < county_min_zoom -> metro; < zip_min_zoom -> county; else zip
        "county_min_zoom": 6.0,
        "zip_min_zoom": 10.0,
        # Tier whose combined extent the initial viewport is fitted to
        "fit_tier": "msa",
        "tiers": {
            "msa": {
                "file": "data/msa.geojson",
                "fill_color": "#9b59b6",  # Purple
                "fill_opacity": 0.3,
                "label_field": "NAME",
            },
            "county": {
                "file": "data/counties.geojson",
                "fill_color": "#3498db",  # Blue
                "fill_opacity": 0.3,
                "label_field": "NAME",
            },
            "zip": {
                "file": "data/Zip_Codes.geojson",
                "fill_color": "#e74c3c",  # Red
                "fill_opacity": 0.4,
                "label_field": "ZIP_CODE_TEXT",
            },
        },
        "outline_color": "#000",
        "outline_width": 1,
        "label_font": "Open Sans Bold",
        "label_size": 12,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 SEARCH
    # ═══════════════════════════════════════════════════════════════════════
    "search": {
        "country_qualifier": ", USA",
        "postcode_zoom": 14,
        "default_zoom": 10,
        "not_found_message": "Location not found.",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📂 FILE PATHS (Rarely changed - at bottom)
    # ═══════════════════════════════════════════════════════════════════════
    "file_paths": {
        "entities_json": "data/sample_entities_dc.json",
        "output_dir": "Output",
        "output_html": "entity_map.html",
        "log_dir": "logs",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        "port": 5052,
    },
}
