"""
End-to-end tests for the map-ready sequence, data loading and HTML output.

Uses the bundled DC sample data with a scripted geocoder, so no network
access is needed.

Run with: python -m pytest _tests/test_map_builder.py -v
"""

import asyncio
import json
import logging
from pathlib import Path

import pytest

from entity_factories import FakeGeocoder, address, candidate

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

SAMPLE_ADDRESSES = {
    address("1100 New York Ave NW", "20005"): [candidate(-77.0271, 38.9009)],
    address("2150 Pennsylvania Ave NW", "20037"): [candidate(-77.0477, 38.9009)],
    address("1050 Connecticut Ave NW", "20036"): [candidate(-77.0396, 38.9035)],
    address("600 Maryland Ave SW", "20024"): [candidate(-77.0219, 38.8855)],
    address("1328 Good Hope Rd SE", "20020"): [candidate(-76.9858, 38.8677)],
}


@pytest.fixture
def sample_entities():
    from entity_map.data_loader import load_entities

    return load_entities(DATA_DIR / "sample_entities_dc.json")


@pytest.fixture
def sample_boundaries(app_config):
    from entity_map.data_loader import load_boundary_datasets

    return load_boundary_datasets(app_config.boundaries, DATA_DIR.parent)


# ═══════════════════════════════════════════════════════════════════════════
# MAP-READY SEQUENCE
# ═══════════════════════════════════════════════════════════════════════════


class TestBuildEntityMap:
    """build_entity_map over the sample dataset."""

    def test_sample_graph(self, sample_entities, sample_boundaries, app_config):
        from entity_map.map_builder import build_entity_map

        geocoder = FakeGeocoder(SAMPLE_ADDRESSES)
        session = asyncio.run(
            build_entity_map(sample_entities, sample_boundaries, geocoder, app_config)
        )

        assert set(session.graph_builder.markers) == {1, 2, 3, 4, 5}
        assert set(session.graph_builder.connectors) == {
            (1, 2), (1, 3), (1, 4), (2, 3), (2, 5), (4, 2), (5, 2),
        }
        assert session.summary.dangling_references == 1, "Entity 5 lists unknown id 99"
        assert len(geocoder.calls) == 5, "Each entity geocoded exactly once"

    def test_boundaries_loaded_and_fitted(
        self, sample_entities, sample_boundaries, app_config
    ):
        from entity_map.map_builder import build_entity_map
        from entity_map.visualization import LayerManagerState

        session = asyncio.run(
            build_entity_map(
                sample_entities, sample_boundaries, FakeGeocoder(SAMPLE_ADDRESSES), app_config
            )
        )
        manager = session.layer_manager

        assert manager.state is LayerManagerState.READY
        assert manager.loaded_tiers == ["msa", "county", "zip"]
        assert session.document.view_commands[-1]["type"] == "fitBounds"
        assert manager.visible_tier == manager.tier_for_zoom(session.document.zoom)
        visible = [t for t in manager.loaded_tiers if manager.is_visible(t)]
        assert visible == [manager.visible_tier]

    def test_undirected_mode(self, sample_entities, app_config):
        """4->2 merges with 2->4 absent, 5->2 merges into 2->5."""
        from dataclasses import replace

        from entity_map.config_types import GraphConfig
        from entity_map.map_builder import build_entity_map

        config = replace(app_config, graph=GraphConfig(undirected=True))
        session = asyncio.run(
            build_entity_map(sample_entities, {}, FakeGeocoder(SAMPLE_ADDRESSES), config)
        )

        assert set(session.graph_builder.connectors) == {
            (1, 2), (1, 3), (1, 4), (2, 3), (2, 4), (2, 5),
        }

    def test_no_boundaries_still_builds(self, sample_entities, app_config):
        from entity_map.map_builder import build_entity_map

        session = asyncio.run(
            build_entity_map(sample_entities, {}, FakeGeocoder(SAMPLE_ADDRESSES), app_config)
        )

        assert len(session.graph_builder.markers) == 5
        assert session.document.view_commands == [], "Nothing to fit to"

    def test_request_navigator_uses_scratch_document(self, sample_entities, app_config):
        """Per-request searches fly a copy of the camera, not the session map."""
        from entity_map.map_builder import build_entity_map

        geocoder = FakeGeocoder(
            dict(SAMPLE_ADDRESSES, **{"20001, USA": [candidate(-77.0, 38.9, "postcode")]})
        )
        session = asyncio.run(build_entity_map(sample_entities, {}, geocoder, app_config))
        zoom_before = session.document.zoom

        navigator = session.request_navigator()
        result = asyncio.run(navigator.search("20001"))

        assert result.navigated
        assert navigator.document is not session.document
        assert navigator.document.zoom == 14
        assert session.document.zoom == zoom_before
        assert session.document.view_commands == []

    def test_rebuild(self, sample_entities, app_config):
        """rebuild() reuses the cache; reload=True geocodes again."""
        from entity_map.map_builder import build_entity_map

        geocoder = FakeGeocoder(SAMPLE_ADDRESSES)
        session = asyncio.run(
            build_entity_map(sample_entities, {}, geocoder, app_config)
        )

        summary = asyncio.run(session.rebuild(sample_entities))
        assert summary.markers_created == 5
        assert len(geocoder.calls) == 5

        asyncio.run(session.rebuild(sample_entities, reload=True))
        assert len(geocoder.calls) == 10
        assert len(session.document.markers) == 5


# ═══════════════════════════════════════════════════════════════════════════
# HTML OUTPUT
# ═══════════════════════════════════════════════════════════════════════════


class TestHtmlOutput:
    """Standalone page generation."""

    def test_writes_page(self, tmp_path, sample_entities, sample_boundaries, app_config):
        from entity_map.map_builder import build_entity_map, generate_entity_map_html

        session = asyncio.run(
            build_entity_map(
                sample_entities, sample_boundaries, FakeGeocoder(SAMPLE_ADDRESSES), app_config
            )
        )
        output = tmp_path / "out" / "map.html"
        path = generate_entity_map_html(session, str(output))

        assert Path(path).is_absolute()
        content = output.read_text(encoding="utf-8")
        assert content.startswith("<!DOCTYPE html>")
        assert "mapbox-gl.js" in content
        assert "line-1-2" in content
        assert "msa-fill" in content
        assert "Capitol Health Partners" in content

    def test_script_close_tag_escaped(self, document, app_config):
        from entity_map.visualization import generate_html

        document.add_source("s", {"name": "</script><b>"})
        page = generate_html(document.to_dict(), app_config.to_frontend_dict())

        assert "</script><b>" not in page


# ═══════════════════════════════════════════════════════════════════════════
# DATA LOADING
# ═══════════════════════════════════════════════════════════════════════════


class TestDataLoader:
    """Entity and boundary file loading."""

    def test_sample_entities_order(self, sample_entities):
        assert [e.id for e in sample_entities] == [1, 2, 3, 4, 5]
        assert sample_entities[4].association_ids == (2, 99)

    def test_missing_entity_file(self, tmp_path):
        from entity_map.data_loader import load_entities

        with pytest.raises(FileNotFoundError):
            load_entities(tmp_path / "missing.json")

    def test_entity_file_must_be_array(self, tmp_path):
        from entity_map.data_loader import load_entities

        path = tmp_path / "entities.json"
        path.write_text(json.dumps({"id": 1}), encoding="utf-8")

        with pytest.raises(ValueError):
            load_entities(path)

    def test_rejects_non_feature_collection(self):
        from entity_map.data_loader import validate_feature_collection

        with pytest.raises(ValueError):
            validate_feature_collection({"type": "Feature"})
        with pytest.raises(ValueError):
            validate_feature_collection({"type": "FeatureCollection"})

    def test_non_polygon_features_kept(self):
        """Point features are only warned about."""
        from entity_map.data_loader import validate_feature_collection

        data = {
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}}],
        }
        assert validate_feature_collection(data) is data

    def test_missing_boundary_file_skipped(self, tmp_path, app_config):
        from entity_map.data_loader import load_boundary_datasets

        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "msa.geojson").write_text(
            json.dumps({"type": "FeatureCollection", "features": []}), encoding="utf-8"
        )

        datasets = load_boundary_datasets(app_config.boundaries, tmp_path)
        assert list(datasets) == ["msa"]


# ═══════════════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════════════


def test_setup_logging_creates_log_file(tmp_path):
    from entity_map.main import setup_logging

    logger, log_path = setup_logging(tmp_path / "logs")
    try:
        logging.getLogger("entity_map.visualization").info("hello from a child logger")
        for handler in logger.handlers:
            handler.flush()

        assert log_path is not None and log_path.exists()
        assert "hello from a child logger" in log_path.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
