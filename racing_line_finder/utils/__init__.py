"""
Utility modules for racing line simulation.

This package provides constants, input validation and edge trace helpers used
throughout the racing line finder.
"""

# Import key functions and objects for easier access
from .constants import (
    # Physical constants
    GRAVITY,

    # Unit conversion factors
    MS_TO_KMH,

    # Kart reference values
    DEFAULT_DISTANCE_UNIT_SCALE, DEFAULT_TYRE_GRIP, DEFAULT_MAX_BRAKE_DECEL,
    DEFAULT_ENGINE_POWER, DEFAULT_TOP_SPEED, DEFAULT_KART_MASS,

    # Track and optimizer reference values
    DEFAULT_RESAMPLE_SPACING, DEFAULT_CENTERLINE_SMOOTHING, MIN_EDGE_POINTS,
    DEFAULT_OPTIMIZER_ITERATIONS, DEFAULT_TRIES_PER_ITERATION, DEFAULT_MAX_OFFSET
)

# Import validation functions
from .validation import (
    as_path,
    validate_path,
    validate_positive,
    validate_in_range,
    validate_lap_performance,
    KART_PERFORMANCE_RANGES
)

# Import track utilities
from .track_utils import (
    preprocess_edge_points,
    calibrate_scale_from_points,
    calibrate_scale_from_lap_length
)

# Define package exports
__all__ = [
    # Constants
    'GRAVITY', 'MS_TO_KMH',
    'DEFAULT_DISTANCE_UNIT_SCALE', 'DEFAULT_TYRE_GRIP', 'DEFAULT_MAX_BRAKE_DECEL',
    'DEFAULT_ENGINE_POWER', 'DEFAULT_TOP_SPEED', 'DEFAULT_KART_MASS',
    'DEFAULT_RESAMPLE_SPACING', 'DEFAULT_CENTERLINE_SMOOTHING', 'MIN_EDGE_POINTS',
    'DEFAULT_OPTIMIZER_ITERATIONS', 'DEFAULT_TRIES_PER_ITERATION', 'DEFAULT_MAX_OFFSET',

    # Validation
    'as_path',
    'validate_path',
    'validate_positive',
    'validate_in_range',
    'validate_lap_performance',
    'KART_PERFORMANCE_RANGES',

    # Track utilities
    'preprocess_edge_points',
    'calibrate_scale_from_points',
    'calibrate_scale_from_lap_length'
]
