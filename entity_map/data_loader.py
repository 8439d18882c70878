#!/usr/bin/env python3
"""
Entity Map - Data Loader

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Read the entity record JSON and the boundary GeoJSON files
from disk and hand them to the builders as plain Python structures.

Key Features:
1. Entity records -> Entity dataclasses (order preserved)
2. Boundary FeatureCollections validated, geometry checked with shapely
3. Missing boundary files logged and skipped (map still builds)

Navigation Guide:
- load_entities: Entity dataset
- load_boundary_dataset: One tier's GeoJSON
- load_boundary_datasets: All configured tiers

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from shapely.geometry import shape

from entity_map.config_types import BoundariesConfig
from entity_map.models import Entity, entities_from_dicts

logger = logging.getLogger(__name__)

POLYGON_TYPES = {"Polygon", "MultiPolygon"}

PathLike = Union[str, Path]


# ═══════════════════════════════════════════════════════════════════════════
# 🏢 ENTITIES
# ═══════════════════════════════════════════════════════════════════════════


def load_entities(path: PathLike) -> List[Entity]:
    """
    Load entity records from a JSON array file.

    Args:
        path: JSON file path

    Returns:
        Entities in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON array or a record has no id
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Entity file not found: {path}")

    logger.info(f"📂 Loading entities: {path.name}")
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ValueError(f"Entity file must contain a JSON array: {path}")

    entities = entities_from_dicts(records)
    n_links = sum(len(e.association_ids) for e in entities)
    logger.info(f"   ✅ Loaded {len(entities)} entities, {n_links} associations")
    return entities


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 BOUNDARIES
# ═══════════════════════════════════════════════════════════════════════════


def validate_feature_collection(data: Any, source: str = "dataset") -> Dict[str, Any]:
    """
    Check that data is a GeoJSON FeatureCollection of (multi)polygons.

    Non-polygon or unparseable geometries are only logged: the map engine
    draws what it can.

    Raises:
        ValueError: If data is not a FeatureCollection
    """
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise ValueError(f"{source} is not a GeoJSON FeatureCollection")

    features = data.get("features")
    if not isinstance(features, list):
        raise ValueError(f"{source} has no 'features' list")

    bad = 0
    for feature in features:
        geometry = feature.get("geometry")
        if not geometry or geometry.get("type") not in POLYGON_TYPES:
            bad += 1
            continue
        try:
            shape(geometry)
        except (ValueError, TypeError, AttributeError):
            bad += 1

    if bad:
        logger.warning(f"⚠️ {source}: {bad}/{len(features)} features lack polygon geometry")
    return data


def load_boundary_dataset(path: PathLike) -> Dict[str, Any]:
    """Load and validate one boundary GeoJSON file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Boundary file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return validate_feature_collection(data, source=path.name)


def load_boundary_datasets(
    config: BoundariesConfig, root: PathLike = "."
) -> Dict[str, Dict[str, Any]]:
    """
    Load every configured tier's dataset.

    Args:
        config: Boundary tier configuration
        root: Directory the tier file paths are relative to

    Returns:
        tier_id -> FeatureCollection, for the files that exist
    """
    root = Path(root)
    datasets: Dict[str, Dict[str, Any]] = {}

    for tier in config.tiers:
        file_path = root / tier.file
        if not file_path.exists():
            logger.warning(f"⚠️ Boundary file not found for '{tier.tier_id}': {file_path}")
            continue
        datasets[tier.tier_id] = load_boundary_dataset(file_path)
        logger.info(
            f"📂 Loaded '{tier.tier_id}' boundaries: {file_path.name} "
            f"({len(datasets[tier.tier_id]['features'])} features)"
        )

    return datasets
