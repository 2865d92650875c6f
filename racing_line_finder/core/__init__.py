"""
Core geometry and model modules for racing line simulation.

This package provides path geometry (resampling, smoothing, curvature,
normals), the kart physics parameters and the track model that derives the
centerline and corridor from two edge traces.
"""

# Import from geometry module
from .geometry import (
    CurvatureProfile,
    segment_lengths,
    cumulative_distances,
    path_length,
    resample_path,
    resample_to_count,
    smooth_path,
    compute_curvature,
    calculate_normals
)

# Import from vehicle module
from .vehicle import (
    PhysicsParameters,
    create_default_kart
)

# Import from track module
from .track import (
    Track,
    TrackSettings,
    CorridorBounds,
    pair_edges,
    build_centerline,
    build_corridor_bounds,
    create_circular_edges,
    create_example_edges
)

# Define package exports
__all__ = [
    # Geometry
    'CurvatureProfile',
    'segment_lengths',
    'cumulative_distances',
    'path_length',
    'resample_path',
    'resample_to_count',
    'smooth_path',
    'compute_curvature',
    'calculate_normals',

    # Vehicle
    'PhysicsParameters',
    'create_default_kart',

    # Track
    'Track',
    'TrackSettings',
    'CorridorBounds',
    'pair_edges',
    'build_centerline',
    'build_corridor_bounds',
    'create_circular_edges',
    'create_example_edges'
]
