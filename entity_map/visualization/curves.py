#!/usr/bin/env python3
"""
Connector Curve Shaping

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn two endpoint coordinates into a smoothed cubic Bezier
path so that overlapping association edges stay distinguishable.

The control points sit at 1/3 and 2/3 of the chord, pushed sideways (to the
left of the source->target direction) by (1 - sharpness) * chord length.
Reversing the endpoints therefore bows the curve to the opposite side.

Dependencies:
- numpy (curve sampling)
- shapely (LineString output, GeoJSON via mapping)
"""

from typing import Any, Dict, Sequence

import numpy as np
from shapely.geometry import LineString, mapping


def bezier_control_points(
    start: Sequence[float], end: Sequence[float], sharpness: float = 0.85
) -> np.ndarray:
    """
    Cubic Bezier control polygon for a connector.

    Args:
        start: (lon, lat) of the source
        end: (lon, lat) of the target
        sharpness: 1.0 gives a straight line; lower values bow further

    Returns:
        (4, 2) array: start, control 1, control 2, end
    """
    p0 = np.asarray(start[:2], dtype=float)
    p3 = np.asarray(end[:2], dtype=float)
    chord = p3 - p0
    length = float(np.hypot(chord[0], chord[1]))

    if length == 0.0:
        return np.vstack([p0, p0, p3, p3])

    normal = np.array([-chord[1], chord[0]]) / length
    offset = normal * (1.0 - sharpness) * length

    p1 = p0 + chord / 3.0 + offset
    p2 = p0 + 2.0 * chord / 3.0 + offset
    return np.vstack([p0, p1, p2, p3])


def curved_connector(
    start: Sequence[float],
    end: Sequence[float],
    sharpness: float = 0.85,
    resolution: int = 64,
) -> LineString:
    """
    Sampled Bezier connector between two coordinates.

    Identical endpoints yield a two-point, zero-length line.
    """
    controls = bezier_control_points(start, end, sharpness)
    if np.allclose(controls[0], controls[3]):
        return LineString([tuple(controls[0]), tuple(controls[3])])

    t = np.linspace(0.0, 1.0, max(resolution, 2))[:, None]
    u = 1.0 - t
    points = (
        (u**3) * controls[0]
        + 3.0 * (u**2) * t * controls[1]
        + 3.0 * u * (t**2) * controls[2]
        + (t**3) * controls[3]
    )
    return LineString(points)


def connector_geometry(
    start: Sequence[float],
    end: Sequence[float],
    sharpness: float = 0.85,
    resolution: int = 64,
) -> Dict[str, Any]:
    """GeoJSON LineString geometry dict for a connector."""
    geom = mapping(curved_connector(start, end, sharpness, resolution))
    return {
        "type": geom["type"],
        "coordinates": [list(c) for c in geom["coordinates"]],
    }
