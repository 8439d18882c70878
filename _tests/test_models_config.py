"""
Tests for the data models and typed configuration.

Run with: python -m pytest _tests/test_models_config.py -v
"""

import pytest


# ═══════════════════════════════════════════════════════════════════════════
# DATA MODELS
# ═══════════════════════════════════════════════════════════════════════════


class TestEntity:
    """Tests for Entity.from_dict and EntityType."""

    def test_from_dataset_record(self):
        """Dataset camelCase keys map onto the dataclass fields."""
        from entity_map.models import Entity, EntityType

        record = {
            "id": 3,
            "name": "Capitol Clinic",
            "entityType": "PRACTICE",
            "streetAddress": "1 First St NE",
            "zipcode": 20002,
            "e_AssociatedEntitys": [{"id": 1}, {"id": 4}, {"name": "no id"}],
        }
        e = Entity.from_dict(record)

        assert e.id == 3
        assert e.zipcode == "20002", "ZIP codes are kept as text"
        assert e.association_ids == (1, 4), "Order kept, id-less entries dropped"
        assert e.type_enum is EntityType.PRACTICE

    def test_missing_associations(self):
        """No association list means no edges."""
        from entity_map.models import Entity

        e = Entity.from_dict({"id": "x", "e_AssociatedEntitys": None})
        assert e.association_ids == ()

    def test_missing_id_raises(self):
        from entity_map.models import Entity

        with pytest.raises(ValueError):
            Entity.from_dict({"name": "anonymous"})

    def test_entity_type_lookup(self):
        """Tags are matched case-insensitively; unknown tags give None."""
        from entity_map.models import EntityType

        assert EntityType.from_string("ehr") is EntityType.EHR
        assert EntityType.from_string("ANCILLIARY") is EntityType.ANCILLIARY
        assert EntityType.from_string("PHARMACY") is None
        assert EntityType.from_string("") is None


class TestMapFeatures:
    """Tests for Marker and Connector serialization."""

    def test_marker_as_dict(self):
        from entity_map.models import Coordinate, Marker

        marker = Marker(1, Coordinate(-77.0, 38.9), "🏥", "fa-hospital", "A", "A (PRACTICE)")
        d = marker.as_dict()

        assert d["id"] == 1
        assert d["lngLat"] == [-77.0, 38.9]
        assert d["glyph"] == "🏥"

    def test_connector_feature(self):
        from entity_map.models import Connector

        geometry = {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}
        feature = Connector((1, 2), 1, 2, "line-1-2", geometry).as_feature()

        assert feature["type"] == "Feature"
        assert feature["geometry"] is geometry
        assert feature["properties"] == {"source": 1, "target": 2}


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


class TestAppConfig:
    """Tests for CONFIG -> AppConfig conversion."""

    def test_boundary_tiers_from_config(self, app_config):
        """Tiers keep CONFIG order and styling."""
        boundaries = app_config.boundaries

        assert boundaries.tier_ids == ["msa", "county", "zip"]
        assert boundaries.county_min_zoom == 6.0
        assert boundaries.zip_min_zoom == 10.0
        assert boundaries.get_tier("zip").label_field == "ZIP_CODE_TEXT"
        assert boundaries.get_tier("msa").fill_color == "#9b59b6"
        assert boundaries.get_tier("zip").fill_opacity == 0.4

    def test_unknown_tier_raises(self, app_config):
        with pytest.raises(KeyError):
            app_config.boundaries.get_tier("state")

    def test_marker_fallback(self, app_config):
        """Unknown entity types get the generic pin."""
        markers = app_config.markers

        assert markers.glyph_for("PRACTICE") == "🏥"
        assert markers.icon_for("EHR") == "fa-desktop"
        assert markers.glyph_for("PHARMACY") == "📍"

    def test_default_marker_config_covers_entity_types(self):
        """A bare MarkerConfig() has a glyph and icon for every entity type."""
        from entity_map.config_types import MarkerConfig
        from entity_map.models import EntityType

        markers = MarkerConfig()
        for entity_type in EntityType:
            assert markers.glyph_for(entity_type.value) != markers.fallback_glyph, entity_type
            assert markers.icon_for(entity_type.value) != markers.fallback_icon, entity_type
        assert markers.glyph_for("EHR") == "💻"

    def test_client_timeout_outlasts_resolver_bound(self):
        """The HTTP client never times out before the resolver's bound."""
        from entity_map.config_types import GeocodingConfig

        bounded = GeocodingConfig(timeout_s=10.0)
        assert bounded.client_timeout_s > bounded.timeout_s

        unbounded = GeocodingConfig.from_dict({"timeout_s": 0})
        assert unbounded.client_timeout_s is None

    def test_connector_paint(self, app_config):
        paint = app_config.connector_style.to_paint()

        assert paint["line-color"] == "#111"
        assert paint["line-width"] == 4
        assert paint["line-opacity"] == 0.85
        assert paint["line-dasharray"] == [1, 2]

    def test_zero_timeout_disables(self):
        from entity_map.config_types import GeocodingConfig

        assert GeocodingConfig.from_dict({"timeout_s": 0}).timeout_s is None
        assert GeocodingConfig.from_dict({"timeout_s": "2.5"}).timeout_s == 2.5

    def test_invalid_values_rejected(self):
        """Out-of-range sharpness and inverted thresholds fail fast."""
        from entity_map.config_types import BoundariesConfig, GraphConfig

        with pytest.raises(ValueError):
            GraphConfig(sharpness=1.5)
        with pytest.raises(ValueError):
            GraphConfig(curve_resolution=1)
        with pytest.raises(ValueError):
            BoundariesConfig(county_min_zoom=10.0, zip_min_zoom=6.0)

    def test_frontend_dict(self, app_config):
        """Frontend config carries map view, token and zoom thresholds."""
        d = app_config.to_frontend_dict()

        assert set(d) == {"map", "accessToken", "boundaries"}
        assert d["boundaries"]["countyMinZoom"] == 6.0
        assert d["boundaries"]["tiers"] == ["msa", "county", "zip"]
        assert d["map"]["center"] == [-98.0, 39.0]
