#!/usr/bin/env python3
"""
Entity Map - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Typed configuration for the entity graph map using frozen
dataclasses for immutability and type safety.

This follows the Typed Configuration Architecture pattern:
- config.py defines the CONFIG dictionary (user edits this)
- config_types.py defines frozen dataclasses (this file)
- APP_CONFIG module-level instance for orchestrator access
- Business logic receives typed sub-configs or primitives only

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from entity_map.config import CONFIG

# Extra seconds the HTTP client waits beyond the resolver's per-call bound
CLIENT_TIMEOUT_GRACE_S = 5.0

DEFAULT_MARKER_GLYPHS: Dict[str, str] = {
    "CORPORATE": "🎯",
    "PRACTICE": "🏥",
    "EHR": "💻",
    "INSURANCE": "🛡",
    "ANCILLIARY": "🧑‍⚕️",
}

DEFAULT_MARKER_ICONS: Dict[str, str] = {
    "CORPORATE": "fa-building",
    "PRACTICE": "fa-hospital",
    "EHR": "fa-desktop",
    "INSURANCE": "fa-shield-alt",
    "ANCILLIARY": "fa-user-nurse",
}

# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapConfig:
    """Configuration for the initial map view."""

    title: str = "Entity Relationship Map"
    style_url: str = "mapbox://styles/mapbox/light-v10"
    center_lon: float = -98.0
    center_lat: float = 39.0
    zoom: float = 3.0
    fit_padding_px: int = 40

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapConfig":
        """Create from dictionary."""
        center = d.get("center", [-98.0, 39.0])
        return cls(
            title=d.get("title", "Entity Relationship Map"),
            style_url=d.get("style_url", "mapbox://styles/mapbox/light-v10"),
            center_lon=float(center[0]),
            center_lat=float(center[1]),
            zoom=float(d.get("zoom", 3)),
            fit_padding_px=int(d.get("fit_padding_px", 40)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "style": self.style_url,
            "center": [self.center_lon, self.center_lat],
            "zoom": self.zoom,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📍 GEOCODING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeocodingConfig:
    """Forward-geocoding service settings.

    Attributes:
        access_token: Mapbox access token (also used for base tiles)
        base_url: Places endpoint without trailing slash
        city_suffix: Text placed between street address and postal code
        timeout_s: Per-call bound; None or 0 disables the timeout
    """

    access_token: str = ""
    base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    city_suffix: str = "Washington, DC"
    timeout_s: Optional[float] = 10.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeocodingConfig":
        """Create from dictionary."""
        timeout = d.get("timeout_s", 10.0)
        return cls(
            access_token=d.get("access_token", ""),
            base_url=d.get(
                "base_url", "https://api.mapbox.com/geocoding/v5/mapbox.places"
            ).rstrip("/"),
            city_suffix=d.get("city_suffix", "Washington, DC"),
            timeout_s=float(timeout) if timeout else None,
        )

    @property
    def client_timeout_s(self) -> Optional[float]:
        """HTTP timeout for the client, strictly longer than timeout_s.

        The resolver's bound therefore always fires first and a hung call
        ends as a cached miss, never as a retryable service error.
        """
        if not self.timeout_s:
            return None
        return self.timeout_s + CLIENT_TIMEOUT_GRACE_S


# ═══════════════════════════════════════════════════════════════════════════
# 🔗 GRAPH CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GraphConfig:
    """Connector curve shape and edge keying."""

    sharpness: float = 0.85
    curve_resolution: int = 64
    undirected: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.sharpness <= 1.0:
            raise ValueError(f"sharpness must be in [0, 1], got {self.sharpness}")
        if self.curve_resolution < 2:
            raise ValueError(
                f"curve_resolution must be >= 2, got {self.curve_resolution}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GraphConfig":
        """Create from dictionary."""
        return cls(
            sharpness=float(d.get("sharpness", 0.85)),
            curve_resolution=int(d.get("curve_resolution", 64)),
            undirected=bool(d.get("undirected", False)),
        )


@dataclass(frozen=True)
class MarkerConfig:
    """Glyph and icon lookup per entity type."""

    glyphs: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MARKER_GLYPHS))
    icons: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MARKER_ICONS))
    fallback_glyph: str = "📍"
    fallback_icon: str = "fa-map-marker-alt"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MarkerConfig":
        """Create from dictionary."""
        return cls(
            glyphs=dict(d.get("glyphs", DEFAULT_MARKER_GLYPHS)),
            icons=dict(d.get("icons", DEFAULT_MARKER_ICONS)),
            fallback_glyph=d.get("fallback_glyph", "📍"),
            fallback_icon=d.get("fallback_icon", "fa-map-marker-alt"),
        )

    def glyph_for(self, entity_type: str) -> str:
        return self.glyphs.get(entity_type, self.fallback_glyph)

    def icon_for(self, entity_type: str) -> str:
        return self.icons.get(entity_type, self.fallback_icon)


@dataclass(frozen=True)
class ConnectorStyle:
    """Line paint for association connectors."""

    color: str = "#111"
    width: float = 4.0
    opacity: float = 0.85
    dasharray: Tuple[float, ...] = (1, 2)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ConnectorStyle":
        """Create from dictionary."""
        return cls(
            color=d.get("color", "#111"),
            width=d.get("width", 4.0),
            opacity=d.get("opacity", 0.85),
            dasharray=tuple(d.get("dasharray", (1, 2))),
        )

    def to_paint(self) -> Dict[str, Any]:
        """Mapbox GL line paint properties."""
        return {
            "line-color": self.color,
            "line-width": self.width,
            "line-opacity": self.opacity,
            "line-dasharray": list(self.dasharray),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 BOUNDARY TIER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BoundaryTierConfig:
    """Style and source for one LOD tier."""

    tier_id: str
    file: str = ""
    fill_color: str = "#3498db"
    fill_opacity: float = 0.3
    label_field: str = "NAME"

    @classmethod
    def from_dict(cls, tier_id: str, d: Dict[str, Any]) -> "BoundaryTierConfig":
        """Create from dictionary."""
        return cls(
            tier_id=tier_id,
            file=d.get("file", ""),
            fill_color=d.get("fill_color", "#3498db"),
            fill_opacity=d.get("fill_opacity", 0.3),
            label_field=d.get("label_field", "NAME"),
        )


@dataclass(frozen=True)
class BoundariesConfig:
    """Zoom thresholds and shared styling for the boundary tiers.

    Attributes:
        county_min_zoom: First zoom at which the county tier is shown
        zip_min_zoom: First zoom at which the ZIP tier is shown
        fit_tier: Tier used for the initial fit-to-extent
        tiers: Ordered tier configs, coarsest first (metro, county, zip)
    """

    county_min_zoom: float = 6.0
    zip_min_zoom: float = 10.0
    fit_tier: str = "msa"
    tiers: Tuple[BoundaryTierConfig, ...] = (
        BoundaryTierConfig("msa", fill_color="#9b59b6", fill_opacity=0.3),
        BoundaryTierConfig("county", fill_color="#3498db", fill_opacity=0.3),
        BoundaryTierConfig(
            "zip", fill_color="#e74c3c", fill_opacity=0.4, label_field="ZIP_CODE_TEXT"
        ),
    )
    outline_color: str = "#000"
    outline_width: float = 1.0
    label_font: str = "Open Sans Bold"
    label_size: int = 12

    def __post_init__(self) -> None:
        if self.county_min_zoom >= self.zip_min_zoom:
            raise ValueError(
                f"county_min_zoom ({self.county_min_zoom}) must be below "
                f"zip_min_zoom ({self.zip_min_zoom})"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BoundariesConfig":
        """Create from dictionary."""
        tiers = tuple(
            BoundaryTierConfig.from_dict(tier_id, tier_d)
            for tier_id, tier_d in d.get("tiers", {}).items()
        )
        return cls(
            county_min_zoom=float(d.get("county_min_zoom", 6.0)),
            zip_min_zoom=float(d.get("zip_min_zoom", 10.0)),
            fit_tier=d.get("fit_tier", "msa"),
            tiers=tiers,
            outline_color=d.get("outline_color", "#000"),
            outline_width=d.get("outline_width", 1.0),
            label_font=d.get("label_font", "Open Sans Bold"),
            label_size=d.get("label_size", 12),
        )

    @property
    def tier_ids(self) -> List[str]:
        return [t.tier_id for t in self.tiers]

    def get_tier(self, tier_id: str) -> BoundaryTierConfig:
        for tier in self.tiers:
            if tier.tier_id == tier_id:
                return tier
        raise KeyError(f"Unknown boundary tier: {tier_id}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the frontend zoom handler."""
        return {
            "tiers": self.tier_ids,
            "countyMinZoom": self.county_min_zoom,
            "zipMinZoom": self.zip_min_zoom,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 SEARCH CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SearchConfig:
    """Free-text search navigation settings."""

    country_qualifier: str = ", USA"
    postcode_zoom: float = 14.0
    default_zoom: float = 10.0
    not_found_message: str = "Location not found."

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchConfig":
        """Create from dictionary."""
        return cls(
            country_qualifier=d.get("country_qualifier", ", USA"),
            postcode_zoom=float(d.get("postcode_zoom", 14)),
            default_zoom=float(d.get("default_zoom", 10)),
            not_found_message=d.get("not_found_message", "Location not found."),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📂 FILE PATHS / SERVER
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilePathsConfig:
    """
    File path configuration for inputs and outputs.

    Attributes:
        entities_json: Path to the entity record JSON array.
        output_dir: Directory for the generated HTML.
        output_html: File name of the generated HTML.
        log_dir: Directory for log files.
    """

    entities_json: str = ""
    output_dir: str = "Output"
    output_html: str = "entity_map.html"
    log_dir: str = "logs"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilePathsConfig":
        """Create FilePathsConfig from CONFIG['file_paths'] dictionary."""
        return cls(
            entities_json=d.get("entities_json", ""),
            output_dir=d.get("output_dir", "Output"),
            output_html=d.get("output_html", "entity_map.html"),
            log_dir=d.get("log_dir", "logs"),
        )

    def output_html_path(self, workspace_root: Path) -> Path:
        """Get output HTML path resolved against workspace root."""
        return workspace_root / self.output_dir / self.output_html

    def log_dir_path(self, workspace_root: Path) -> Path:
        """Get log directory resolved against workspace root."""
        return workspace_root / self.log_dir


@dataclass(frozen=True)
class ServerConfig:
    """Flask server bind address."""

    host: str = "127.0.0.1"
    port: int = 5052

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(host=d.get("host", "127.0.0.1"), port=int(d.get("port", 5052)))


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ APP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for the entity map.

    Create it once at startup with AppConfig.from_dict(CONFIG) and hand the
    sub-configs to the components that need them.

    Example:
        from entity_map.config import CONFIG
        from entity_map.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
        builder = EntityGraphBuilder(document, resolver, app_config.graph, ...)
    """

    map: MapConfig = field(default_factory=MapConfig)
    geocoding: GeocodingConfig = field(default_factory=GeocodingConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    markers: MarkerConfig = field(default_factory=MarkerConfig)
    connector_style: ConnectorStyle = field(default_factory=ConnectorStyle)
    boundaries: BoundariesConfig = field(default_factory=BoundariesConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    file_paths: FilePathsConfig = field(default_factory=FilePathsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py.

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            map=MapConfig.from_dict(config_dict.get("map", {})),
            geocoding=GeocodingConfig.from_dict(config_dict.get("geocoding", {})),
            graph=GraphConfig.from_dict(config_dict.get("graph", {})),
            markers=MarkerConfig.from_dict(config_dict.get("markers", {})),
            connector_style=ConnectorStyle.from_dict(
                config_dict.get("connector_style", {})
            ),
            boundaries=BoundariesConfig.from_dict(config_dict.get("boundaries", {})),
            search=SearchConfig.from_dict(config_dict.get("search", {})),
            file_paths=FilePathsConfig.from_dict(config_dict.get("file_paths", {})),
            server=ServerConfig.from_dict(config_dict.get("server", {})),
        )

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Settings the browser needs (no secrets beyond the public map token)."""
        return {
            "map": self.map.to_dict(),
            "accessToken": self.geocoding.access_token,
            "boundaries": self.boundaries.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

# Edit config.py to change settings (restart server after changes)
APP_CONFIG: AppConfig = AppConfig.from_dict(CONFIG)


def get_frontend_config() -> Dict[str, Any]:
    """
    Get configuration for frontend JavaScript.

    Returns a dict suitable for JSON serialization and use in the frontend.
    """
    return APP_CONFIG.to_frontend_dict()
