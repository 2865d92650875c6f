"""
Constants module for racing line simulation.

This module provides physical constants, unit conversion factors, numerical
floors and default kart / optimizer values used throughout the racing line
finder.
"""

# Physical constants
GRAVITY = 9.81  # m/s², standard gravity

# Unit conversion factors
MS_TO_KMH = 3.6  # Convert m/s to km/h

# Numerical floors
CURVATURE_DENOM_EPSILON = 1e-9  # Floor for the curvature denominator (coincident points)
TANGENT_EPSILON = 1e-12  # Below this a tangent average is treated as zero length
STRAIGHT_CURVATURE_THRESHOLD = 1e-8  # 1/m, below this a sample counts as straight
LATERAL_SPEED_SQ_FLOOR = 0.5  # m²/s², floor on mu*g/kappa in the grip limit
MIN_TIMING_SPEED = 0.1  # m/s, speed floor when converting distance to time
MIN_POWER_MODEL_SPEED = 1.0  # m/s, speed floor for the power-limited acceleration model

# Simplified longitudinal acceleration model
MAX_CONSTANT_ACCELERATION = 3.5  # m/s², cap of the constant acceleration model
POWER_NORMALISATION = 1000.0  # W, divisor used by the constant acceleration model
BACKWARD_PASS_ROUNDS = 3  # Number of braking passes in the speed profile solver

# Default kart parameters (driver + kart)
DEFAULT_DISTANCE_UNIT_SCALE = 0.2  # m per input unit (e.g. pixel)
DEFAULT_TYRE_GRIP = 1.6  # Lateral friction coefficient
DEFAULT_MAX_BRAKE_DECEL = 7.5  # m/s²
DEFAULT_ENGINE_POWER = 8500.0  # W (~11.4 hp)
DEFAULT_TOP_SPEED = 22.0  # m/s
DEFAULT_KART_MASS = 160.0  # kg

# Default track processing values
DEFAULT_RESAMPLE_SPACING = 3.0  # input units between resampled edge points
DEFAULT_CENTERLINE_SMOOTHING = 4  # Chaikin rounds applied to the centerline
MIN_EDGE_POINTS = 5  # Minimum raw points per edge
MIN_SIMULATION_POINTS = 2  # Minimum points for a lap simulation

# Default optimizer values
DEFAULT_OPTIMIZER_ITERATIONS = 300
DEFAULT_TRIES_PER_ITERATION = 30
DEFAULT_MAX_OFFSET = 60.0  # input units, cap on a single lateral displacement range
DEFAULT_MIN_ITERATIONS = 30  # Iterations before stagnation may stop the search
DEFAULT_PERTURBATION_SMOOTHING = 2  # Chaikin rounds after each displacement
ANNEALING_FLOOR = 0.08  # Fraction of the displacement range kept at the last iteration
