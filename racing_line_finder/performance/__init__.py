"""
Performance analysis module for racing line simulation.

This module provides the quasi-steady-state lap time simulator, the racing
line hill-climb optimizer and the session layer that ties track construction,
optimization and validation together.
"""

# Import from lap time module
from .lap_time import (
    LapResult,
    LapTimeSimulator,
    calculate_speed_limits,
    simulate_lap
)

# Import from racing line module
from .racing_line import (
    OptimizerStatus,
    OptimizerSettings,
    OptimizationProgress,
    OptimizationResult,
    RacingLineOptimizer,
    optimize_racing_line
)

# Import from line optimization module
from .line_optimization import (
    SessionConfig,
    load_config,
    save_config,
    run_racing_line_optimization,
    compare_lines
)

# Define package exports
__all__ = [
    # Lap time
    'LapResult',
    'LapTimeSimulator',
    'calculate_speed_limits',
    'simulate_lap',

    # Racing line
    'OptimizerStatus',
    'OptimizerSettings',
    'OptimizationProgress',
    'OptimizationResult',
    'RacingLineOptimizer',
    'optimize_racing_line',

    # Line optimization
    'SessionConfig',
    'load_config',
    'save_config',
    'run_racing_line_optimization',
    'compare_lines'
]
