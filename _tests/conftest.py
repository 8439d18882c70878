"""
Shared fixtures for entity map tests.
"""

import pytest

from entity_factories import FakeGeocoder, address, candidate, entity
from entity_map.config import CONFIG
from entity_map.config_types import AppConfig
from entity_map.visualization import MapDocument


@pytest.fixture
def app_config():
    """Config built from CONFIG with a blank token, independent of the environment."""
    config = dict(CONFIG)
    config["geocoding"] = dict(CONFIG["geocoding"], access_token="", city_suffix="Washington, DC")
    config["graph"] = dict(CONFIG["graph"], undirected=False)
    return AppConfig.from_dict(config)


@pytest.fixture
def document():
    """Empty map at the default continental view."""
    return MapDocument(center=(-98.0, 39.0), zoom=3.0)


@pytest.fixture
def two_entities():
    """Entity 1 (PRACTICE) -> entity 2 (EHR), both on Main St."""
    return [
        entity(1, "100 Main St", entity_type="PRACTICE", assoc=[2]),
        entity(2, "200 Main St", entity_type="EHR"),
    ]


@pytest.fixture
def main_st_geocoder():
    """Geocoder answering both Main St addresses."""
    return FakeGeocoder(
        {
            address("100 Main St"): [candidate(-77.01, 38.90)],
            address("200 Main St"): [candidate(-77.02, 38.91)],
        }
    )


@pytest.fixture
def boundary_datasets():
    """Small metro / county / ZIP feature collections around DC."""

    def box(minx, miny, maxx, maxy, **props):
        return {
            "type": "Feature",
            "properties": props,
            "geometry": {
                "type": "Polygon",
                "coordinates": [
                    [[minx, miny], [maxx, miny], [maxx, maxy], [minx, maxy], [minx, miny]]
                ],
            },
        }

    return {
        "msa": {
            "type": "FeatureCollection",
            "features": [
                box(-78.0, 38.5, -77.0, 39.0, NAME="West"),
                box(-77.0, 38.6, -76.5, 39.2, NAME="East"),
            ],
        },
        "county": {
            "type": "FeatureCollection",
            "features": [box(-77.12, 38.79, -76.91, 38.99, NAME="District of Columbia")],
        },
        "zip": {
            "type": "FeatureCollection",
            "features": [box(-77.03, 38.89, -77.0, 38.93, ZIP_CODE_TEXT="20001")],
        },
    }
