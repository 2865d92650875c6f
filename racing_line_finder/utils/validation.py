"""
Validation utilities for racing line simulation.

This module provides input checks used by every public entry point (point
counts, positive parameters) and plausibility checks for simulation results
against expected ranges for a racing kart.
"""

import numpy as np
from typing import Dict, Tuple, Optional, Any
import logging

from ..exceptions import InsufficientInputError
from ..utils.constants import GRAVITY, MS_TO_KMH

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Validation")


# Expected performance ranges for rental / club karts
KART_PERFORMANCE_RANGES = {
    'top_speed': (40.0, 140.0),          # Top speed (km/h)
    'avg_speed': (20.0, 110.0),          # Average lap speed (km/h)
    'min_speed': (10.0, 80.0),           # Slowest apex speed (km/h)
    'lateral_acceleration': (0.8, 2.5),  # Maximum lateral acceleration (g)
    'lap_time': (15.0, 120.0),           # Lap time on a typical kart circuit (s)
}

# Relative distance outside the expected range at which each grade starts,
# checked from the most severe down
VALIDATION_THRESHOLDS = (
    ('critical_error', 0.25),
    ('warning', 0.15),
    ('acceptable', 0.05),
)


def as_path(points: Any) -> np.ndarray:
    """
    Convert a point sequence to a float (N, 2) array.

    Accepts arrays, lists of pairs and lists of objects exposing ``x``/``y``
    attributes or keys.

    Args:
        points: Sequence of 2-D points

    Returns:
        Array of shape (N, 2)
    """
    if isinstance(points, np.ndarray):
        array = np.asarray(points, dtype=float)
    else:
        rows = []
        for p in points:
            if isinstance(p, dict):
                rows.append((p['x'], p['y']))
            elif hasattr(p, 'x') and hasattr(p, 'y'):
                rows.append((p.x, p.y))
            else:
                rows.append(tuple(p))
        array = np.asarray(rows, dtype=float)

    if array.size == 0:
        return np.zeros((0, 2))
    if array.ndim != 2 or array.shape[1] != 2:
        raise ValueError(f"Expected points of shape (N, 2), got {array.shape}")
    return array


def validate_path(points: Any, operation: str, min_points: int) -> np.ndarray:
    """
    Convert points to an array and check the point count.

    Args:
        points: Sequence of 2-D points
        operation: Name of the calling operation (used in the error)
        min_points: Minimum number of points required

    Returns:
        Array of shape (N, 2)

    Raises:
        InsufficientInputError: If fewer than min_points are supplied
    """
    path = as_path(points)
    if len(path) < min_points:
        raise InsufficientInputError(operation, min_points, len(path))
    if not np.all(np.isfinite(path)):
        raise ValueError(f"{operation} received non-finite coordinates")
    return path


def validate_positive(value: float, name: str, allow_zero: bool = False) -> float:
    """
    Check that a scalar parameter is finite and positive.

    Args:
        value: Value to check
        name: Parameter name used in the error message
        allow_zero: Whether zero is accepted

    Returns:
        The value as float

    Raises:
        ValueError: If the value is not finite or not positive
    """
    value = float(value)
    if not np.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    if value < 0.0 or (value == 0.0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValueError(f"{name} must be {qualifier}, got {value}")
    return value


def validate_in_range(value: float, metric_name: str,
                      custom_range: Optional[Tuple[float, float]] = None) -> Dict:
    """
    Grade a lap metric against its expected kart range.

    Values inside the range are 'valid'. Values outside are graded by their
    relative distance from the nearest bound: 'good', 'acceptable', 'warning'
    or 'critical_error'.

    Args:
        value: Value to check
        metric_name: Key into KART_PERFORMANCE_RANGES
        custom_range: Optional (min, max) used instead of the table entry

    Returns:
        Dictionary with status, value, expected_range, relative_error and message

    Raises:
        ValueError: If no range is known for the metric
    """
    expected_range = custom_range or KART_PERFORMANCE_RANGES.get(metric_name)
    if expected_range is None:
        raise ValueError(f"No expected range defined for {metric_name}")

    low, high = expected_range
    bound = low if value < low else high
    relative_error = max(low - value, value - high, 0.0) / max(abs(bound), 1e-10)

    if relative_error == 0.0:
        status = 'valid'
        message = f"{metric_name} ({value:.3f}) is within expected range ({low:.3f} - {high:.3f})"
    else:
        status = next((grade for grade, threshold in VALIDATION_THRESHOLDS
                       if relative_error >= threshold), 'good')
        side = 'below expected minimum' if value < low else 'above expected maximum'
        message = f"{metric_name} ({value:.3f}) is {side} ({bound:.3f})"
        logger.debug(message)

    return {
        'status': status,
        'metric': metric_name,
        'value': value,
        'expected_range': expected_range,
        'relative_error': relative_error,
        'message': message
    }


def validate_lap_performance(lap_result, top_speed: float) -> Dict:
    """
    Check a simulated lap for numerical soundness and plausibility.

    The hard checks (finite values, speeds within [0, top_speed]) decide the
    overall 'valid' flag; the range checks against kart reference values are
    informational.

    Args:
        lap_result: LapResult returned by the lap simulator
        top_speed: Configured top speed in m/s

    Returns:
        Dictionary with validation results
    """
    speeds = np.asarray(lap_result.speed_profile, dtype=float)
    finite = bool(np.all(np.isfinite(speeds)) and np.isfinite(lap_result.total_time))
    within_limits = bool(finite and np.all(speeds >= 0.0) and np.all(speeds <= top_speed + 1e-9))

    results = {
        'valid': finite and within_limits,
        'finite': finite,
        'within_speed_limits': within_limits,
        'checks': {}
    }

    if finite and len(speeds) > 0:
        results['checks']['top_speed'] = validate_in_range(float(np.max(speeds)) * MS_TO_KMH, 'top_speed')
        results['checks']['min_speed'] = validate_in_range(float(np.min(speeds)) * MS_TO_KMH, 'min_speed')
        results['checks']['lap_time'] = validate_in_range(float(lap_result.total_time), 'lap_time')

        curvature = getattr(lap_result, 'curvature', None)
        if curvature is not None and len(curvature) == len(speeds):
            lateral_g = float(np.max(speeds ** 2 * curvature)) / GRAVITY
            results['checks']['lateral_acceleration'] = validate_in_range(lateral_g, 'lateral_acceleration')

    if not results['valid']:
        logger.error("Lap simulation produced invalid speeds or lap time")

    return results
