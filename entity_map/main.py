#!/usr/bin/env python3
"""
Entity Map - Main Entry Point

Geocodes the entity dataset, draws the association graph over the boundary
tiers and writes a standalone HTML map.

Usage:
    python -m entity_map.main

Environment:
    MAPBOX_ACCESS_TOKEN must be set for geocoding and base tiles.

Output:
    Output/entity_map.html
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

# Fix Windows console encoding for emoji support
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from entity_map.config_types import APP_CONFIG, AppConfig
from entity_map.data_loader import load_boundary_datasets, load_entities
from entity_map.geocoding import MapboxGeocoder
from entity_map.map_builder import (
    EntityMapSession,
    build_entity_map,
    generate_entity_map_html,
)

# Data paths in config are relative to the repository root
WORKSPACE_ROOT = Path(__file__).resolve().parent.parent


# ═══════════════════════════════════════════════════════════════════════════
# 📋 LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(log_dir: Optional[Path] = None) -> Tuple[logging.Logger, Optional[Path]]:
    """Configure console logging, plus a per-run log file when log_dir is given.

    Handlers are attached to the "entity_map" package logger so every module
    logger (entity_map.*) reports through them.

    Returns:
        Tuple of (logger, log_path)
    """
    logger = logging.getLogger("entity_map")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    log_path = None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"entity_map_{datetime.now().strftime('%m%d_%H%M')}.log"

        # File handler
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    return logger, log_path


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 RUN
# ═══════════════════════════════════════════════════════════════════════════


async def run_entity_map(
    config: AppConfig = APP_CONFIG, workspace_root: Path = WORKSPACE_ROOT
) -> Tuple[EntityMapSession, str]:
    """
    Load data, build the map and write the HTML page.

    Returns:
        Tuple of (session, absolute HTML path)
    """
    entities = load_entities(workspace_root / config.file_paths.entities_json)
    boundary_datasets = load_boundary_datasets(config.boundaries, workspace_root)

    async with MapboxGeocoder.from_config(config.geocoding) as geocoder:
        session = await build_entity_map(entities, boundary_datasets, geocoder, config)

    html_path = generate_entity_map_html(
        session, str(config.file_paths.output_html_path(workspace_root))
    )
    return session, html_path


def main() -> None:
    """Main entry point for the entity map."""
    logger, log_path = setup_logging(APP_CONFIG.file_paths.log_dir_path(WORKSPACE_ROOT))

    logger.info("=" * 60)
    logger.info("🚀 ENTITY RELATIONSHIP MAP")
    logger.info("=" * 60)
    logger.info(f"⏰ Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    if log_path is not None:
        logger.info(f"📝 Log file: {log_path}")
    logger.info("")

    try:
        _, html_path = asyncio.run(run_entity_map())

        logger.info("")
        logger.info("=" * 60)
        logger.info("✅ MAP COMPLETE")
        logger.info(f"📄 Output: {html_path}")
        logger.info("=" * 60)

    except Exception as e:
        logger.exception(f"❌ ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
