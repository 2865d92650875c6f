"""
Racing line finder.

Builds a centerline and corridor from two hand-traced track edges, simulates
the lap time of a kart along a path and searches for a faster racing line
inside the corridor.
"""

from .exceptions import RacingLineError, InsufficientInputError
from .core import (
    PhysicsParameters,
    Track,
    TrackSettings,
    build_centerline,
    build_corridor_bounds,
    compute_curvature,
    resample_path,
    smooth_path
)
from .performance import (
    LapResult,
    simulate_lap,
    OptimizerSettings,
    OptimizerStatus,
    RacingLineOptimizer,
    run_racing_line_optimization
)

__version__ = "0.1.0"

__all__ = [
    'RacingLineError',
    'InsufficientInputError',
    'PhysicsParameters',
    'Track',
    'TrackSettings',
    'build_centerline',
    'build_corridor_bounds',
    'compute_curvature',
    'resample_path',
    'smooth_path',
    'LapResult',
    'simulate_lap',
    'OptimizerSettings',
    'OptimizerStatus',
    'RacingLineOptimizer',
    'run_racing_line_optimization'
]
