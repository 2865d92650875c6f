"""
Utility functions for edge trace preprocessing and distance calibration.
"""

import numpy as np
from typing import Any, Sequence
import logging

from .validation import as_path, validate_positive

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Track_Utils")


def preprocess_edge_points(points: Any, min_distance: float = 1e-6) -> np.ndarray:
    """
    Remove consecutive duplicate or very close points from an edge trace.

    Hand-drawn traces repeat the cursor position while the pointer rests, which
    produces zero-length segments.

    Args:
        points: Edge points
        min_distance: Points closer than this to the previously kept point are dropped

    Returns:
        Array of points with near-duplicates removed
    """
    path = as_path(points)
    if len(path) < 2:
        return path.copy()

    keep = np.ones(len(path), dtype=bool)
    last = path[0]
    for i in range(1, len(path)):
        if np.hypot(*(path[i] - last)) < min_distance:
            keep[i] = False
        else:
            last = path[i]

    removed = int(np.sum(~keep))
    if removed:
        logger.info(f"Edge preprocessing: removed {removed} duplicate/close points")

    return path[keep]


def calibrate_scale_from_points(p0: Sequence[float], p1: Sequence[float],
                                known_distance: float) -> float:
    """
    Calibrate the distance-unit scale from two reference points.

    Args:
        p0: First reference point in input units
        p1: Second reference point in input units
        known_distance: Real-world distance between the points in metres

    Returns:
        Metres per input unit
    """
    known_distance = validate_positive(known_distance, 'known_distance')
    separation = float(np.hypot(p1[0] - p0[0], p1[1] - p0[1]))
    if separation <= 0.0:
        raise ValueError("Calibration points must not coincide")

    scale = known_distance / separation
    logger.info(f"Calibration set: 1 unit = {scale:.4f} m")
    return scale


def calibrate_scale_from_lap_length(path: Any, known_length: float, closed: bool = True) -> float:
    """
    Calibrate the distance-unit scale from a path and the known lap length.

    Args:
        path: Path in input units, normally the centerline
        known_length: Real-world lap length in metres
        closed: Whether the path closes back on its first point

    Returns:
        Metres per input unit
    """
    from ..core.geometry import path_length

    known_length = validate_positive(known_length, 'known_length')
    length = path_length(path, closed=closed)
    if length <= 0.0:
        raise ValueError("Path has zero length")

    scale = known_length / length
    logger.info(f"Calibration set from lap length: 1 unit = {scale:.4f} m")
    return scale
