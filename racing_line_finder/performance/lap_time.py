"""
Lap time simulation module for racing line analysis.

This module computes the achievable speed profile along a closed path and the
resulting lap time. Speeds are limited by tyre grip in corners, by a
simplified longitudinal acceleration model when leaving corners and by the
maximum braking deceleration when approaching them (forward-backward
quasi-steady-state method).
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Optional, Any
import logging

from ..core.geometry import compute_curvature, segment_lengths
from ..core.vehicle import PhysicsParameters
from ..utils.constants import (
    GRAVITY, MS_TO_KMH, LATERAL_SPEED_SQ_FLOOR, STRAIGHT_CURVATURE_THRESHOLD,
    MIN_TIMING_SPEED, BACKWARD_PASS_ROUNDS, MIN_SIMULATION_POINTS
)
from ..utils.validation import validate_path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Lap_Time_Simulation")


@dataclass
class LapResult:
    """
    Result of a lap simulation.

    Attributes:
        total_time: Lap time in seconds
        speed_profile: Speed at each path sample (m/s)
        segment_distances: Distance from each sample to the next one (m), the
            last entry closes the loop
        speed_limits: Grip limited speed at each sample (m/s)
        curvature: Unsigned curvature at each sample (1/m)
    """
    total_time: float
    speed_profile: np.ndarray
    segment_distances: np.ndarray
    speed_limits: np.ndarray
    curvature: np.ndarray

    @property
    def time_profile(self) -> np.ndarray:
        """Elapsed time at each sample, starting at 0."""
        seg_times = self.segment_distances / np.maximum(self.speed_profile, MIN_TIMING_SPEED)
        times = np.zeros(len(seg_times))
        times[1:] = np.cumsum(seg_times[:-1])
        return times

    @property
    def track_length(self) -> float:
        """Closed lap length in metres."""
        return float(np.sum(self.segment_distances))

    def get_stats(self) -> Dict:
        """
        Get lap statistics.

        Returns:
            Dictionary with lap statistics
        """
        stats = {
            'lap_time': self.total_time,
            'num_points': len(self.speed_profile),
            'track_length': self.track_length,
        }

        if len(self.speed_profile) > 0:
            stats['max_speed'] = float(np.max(self.speed_profile))
            stats['min_speed'] = float(np.min(self.speed_profile))
            stats['avg_speed'] = self.track_length / self.total_time if self.total_time > 0 else 0.0
            stats['max_speed_kph'] = stats['max_speed'] * MS_TO_KMH
            stats['min_speed_kph'] = stats['min_speed'] * MS_TO_KMH
            stats['avg_speed_kph'] = stats['avg_speed'] * MS_TO_KMH

        if len(self.curvature) > 0:
            # Lateral acceleration actually used, in g
            lateral = self.speed_profile ** 2 * self.curvature / GRAVITY
            stats['max_lateral_g'] = float(np.max(lateral))

        return stats

    def to_dataframe(self, path: Any) -> pd.DataFrame:
        """
        Tabulate position and speed per sample for export collaborators.

        Args:
            path: The simulated path (same sample count as the speed profile)

        Returns:
            DataFrame with columns index, x, y, speed, distance, time
        """
        points = validate_path(path, 'to_dataframe', 1)
        if len(points) != len(self.speed_profile):
            raise ValueError(f"Path has {len(points)} points but the speed profile has "
                             f"{len(self.speed_profile)} samples")

        distance = np.zeros(len(points))
        distance[1:] = np.cumsum(self.segment_distances[:-1])

        return pd.DataFrame({
            'index': np.arange(len(points)),
            'x': points[:, 0],
            'y': points[:, 1],
            'speed': self.speed_profile,
            'distance': distance,
            'time': self.time_profile,
        })


def calculate_speed_limits(curvature: np.ndarray, params: PhysicsParameters) -> np.ndarray:
    """
    Calculate the grip limited speed at each sample.

    v = sqrt(max(floor, mu * g / |kappa|)) in corners, the top speed on
    straights, and never above the top speed.

    Args:
        curvature: Unsigned curvature per sample (1/m)
        params: Physics parameters

    Returns:
        Array of speed limits (m/s)
    """
    limits = np.full(len(curvature), params.top_speed, dtype=float)
    cornering = curvature > STRAIGHT_CURVATURE_THRESHOLD

    lateral_sq = params.tyre_grip_coefficient * GRAVITY / curvature[cornering]
    limits[cornering] = np.sqrt(np.maximum(LATERAL_SPEED_SQ_FLOOR, lateral_sq))

    return np.minimum(limits, params.top_speed)


def _forward_pass(limits: np.ndarray, distances: np.ndarray, params: PhysicsParameters) -> np.ndarray:
    """
    Accelerate from each sample to the next as far as the limits allow.

    With constant acceleration a the recurrence
    v[i]^2 = min(limit[i]^2, v[i-1]^2 + 2 a d[i-1]) has the closed form
    v[i]^2 = 2 a D[i] + min_{j<=i}(limit[j]^2 - 2 a D[j]) with D the cumulative
    distance, which is evaluated with a running minimum.
    """
    limits_sq = limits ** 2

    if params.acceleration_model == 'constant':
        accel = params.constant_acceleration
        cumulative = np.zeros(len(limits))
        cumulative[1:] = np.cumsum(distances[:-1])

        speed_sq = 2.0 * accel * cumulative + np.minimum.accumulate(limits_sq - 2.0 * accel * cumulative)
        speed_sq = np.minimum(speed_sq, limits_sq)
        return np.sqrt(np.maximum(speed_sq, 0.0))

    # Speed dependent acceleration has no closed form
    speeds = np.zeros(len(limits))
    speeds[0] = min(limits[0], params.top_speed)
    for i in range(1, len(limits)):
        accel = params.longitudinal_acceleration(speeds[i - 1])
        reachable = np.sqrt(speeds[i - 1] ** 2 + 2.0 * accel * distances[i - 1])
        speeds[i] = min(limits[i], reachable, params.top_speed)
    return speeds


def _backward_pass(speeds: np.ndarray, distances: np.ndarray, max_brake_decel: float) -> np.ndarray:
    """
    Cap each speed so the kart can brake to the next sample's speed.

    Walking from the end to the start, v[i]^2 = min(v[i]^2, v[i+1]^2 + 2 b d[i]),
    evaluated in closed form with a reversed running minimum.
    """
    cumulative = np.zeros(len(speeds))
    cumulative[1:] = np.cumsum(distances[:-1])

    shifted = speeds ** 2 + 2.0 * max_brake_decel * cumulative
    reachable = np.minimum.accumulate(shifted[::-1])[::-1] - 2.0 * max_brake_decel * cumulative

    speed_sq = np.minimum(speeds ** 2, reachable)
    return np.sqrt(np.maximum(speed_sq, 0.0))


def simulate_lap(path: Any, params: Optional[PhysicsParameters] = None) -> LapResult:
    """
    Simulate a lap along a closed path.

    Args:
        path: Closed path in input units
        params: Physics parameters (defaults to the default kart)

    Returns:
        LapResult with lap time, speed profile, segment distances and speed limits

    Raises:
        InsufficientInputError: If the path has fewer than 2 points
    """
    points = validate_path(path, 'simulate_lap', MIN_SIMULATION_POINTS)
    params = params if params else PhysicsParameters()
    scale = params.distance_unit_scale

    # Segment distances in metres, closing the loop
    distances = segment_lengths(points, closed=True) * scale

    # Curvature in 1/m
    curvature = np.abs(compute_curvature(points).kappa) / scale

    limits = calculate_speed_limits(curvature, params)

    speeds = _forward_pass(limits, distances, params)
    for _ in range(BACKWARD_PASS_ROUNDS):
        speeds = _backward_pass(speeds, distances, params.max_brake_decel)
    speeds = np.clip(speeds, 0.0, params.top_speed)

    segment_times = distances / np.maximum(speeds, MIN_TIMING_SPEED)
    total_time = float(np.sum(segment_times))

    logger.debug(f"Lap simulated: {len(points)} points, lap time {total_time:.3f}s")

    return LapResult(
        total_time=total_time,
        speed_profile=speeds,
        segment_distances=distances,
        speed_limits=limits,
        curvature=curvature
    )


class LapTimeSimulator:
    """
    Lap time simulator bound to one set of physics parameters.

    The simulator holds no per-lap state, so one instance may be shared by
    several threads.
    """

    def __init__(self, params: Optional[PhysicsParameters] = None):
        """
        Initialize the simulator.

        Args:
            params: Physics parameters (defaults to the default kart)
        """
        self.params = params if params else PhysicsParameters()

    def simulate(self, path: Any) -> LapResult:
        """Simulate a lap along a closed path."""
        return simulate_lap(path, self.params)

    def lap_time(self, path: Any) -> float:
        """Lap time along a closed path in seconds."""
        return simulate_lap(path, self.params).total_time

    def compare_paths(self, paths: Dict[str, Any]) -> Dict[str, Dict]:
        """
        Simulate several paths and summarise them.

        Args:
            paths: Mapping of label to path

        Returns:
            Mapping of label to lap statistics, with 'delta' to the fastest lap
        """
        results = {label: self.simulate(path).get_stats() for label, path in paths.items()}
        if not results:
            return results

        best = min(stats['lap_time'] for stats in results.values())
        for stats in results.values():
            stats['delta'] = stats['lap_time'] - best

        return results
