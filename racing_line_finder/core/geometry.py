"""
Path geometry module for racing line simulation.

This module provides the polyline primitives the rest of the pipeline is built
on: arc-length resampling, Chaikin corner-cutting smoothing, signed curvature
estimation and normal vectors. Every function takes points as an (N, 2) array
(or any sequence convertible to one) and returns new arrays without mutating
its input.
"""

import numpy as np
from typing import Any
import logging

from ..utils.constants import CURVATURE_DENOM_EPSILON, TANGENT_EPSILON
from ..utils.validation import as_path, validate_positive

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Geometry")


class CurvatureProfile:
    """Signed curvature and unit tangent at every sample of a closed path."""

    def __init__(self, kappa: np.ndarray, tangent: np.ndarray):
        """
        Initialize the profile.

        Args:
            kappa: Signed curvature per sample (1/length-unit, positive = counter-clockwise)
            tangent: Unit tangent vector per sample, shape (N, 2)
        """
        self.kappa = kappa
        self.tangent = tangent

    def __len__(self) -> int:
        return len(self.kappa)

    def __getitem__(self, idx: int) -> dict:
        return {'kappa': float(self.kappa[idx]), 'tangent': self.tangent[idx].copy()}

    @property
    def radius(self) -> np.ndarray:
        """Unsigned radius of curvature per sample (inf on straights)."""
        with np.errstate(divide='ignore'):
            return np.where(self.kappa != 0.0, 1.0 / np.abs(self.kappa), np.inf)


def segment_lengths(points: Any, closed: bool = False) -> np.ndarray:
    """
    Calculate the length of every segment of a polyline.

    Args:
        points: Path points
        closed: Whether to append the closing segment (last point back to first)

    Returns:
        Array of segment lengths (N-1 entries, or N when closed)
    """
    path = as_path(points)
    if len(path) < 2:
        return np.zeros(len(path) if closed else 0)

    if closed:
        deltas = np.roll(path, -1, axis=0) - path
    else:
        deltas = np.diff(path, axis=0)
    return np.hypot(deltas[:, 0], deltas[:, 1])


def cumulative_distances(points: Any) -> np.ndarray:
    """
    Calculate cumulative arc length along an open polyline.

    Args:
        points: Path points

    Returns:
        Array of cumulative distances, starting at 0
    """
    lengths = segment_lengths(points)
    distances = np.zeros(len(lengths) + 1)
    distances[1:] = np.cumsum(lengths)
    return distances


def path_length(points: Any, closed: bool = False) -> float:
    """
    Total arc length of a polyline.

    Args:
        points: Path points
        closed: Whether to include the closing segment

    Returns:
        Path length in input units
    """
    return float(np.sum(segment_lengths(points, closed=closed)))


def _interpolate_at(path: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """Linearly interpolate points at the given arc-length positions."""
    distances = cumulative_distances(path)

    # Zero-length segments would make the distance lookup ambiguous
    keep = np.concatenate(([True], np.diff(distances) > 0.0))
    distances = distances[keep]
    unique_points = path[keep]

    x = np.interp(targets, distances, unique_points[:, 0])
    y = np.interp(targets, distances, unique_points[:, 1])
    return np.column_stack((x, y))


def resample_path(points: Any, spacing: float) -> np.ndarray:
    """
    Resample a polyline to uniform arc-length spacing.

    The number of intervals is ``max(2, round(total_length / spacing))`` and the
    output includes both endpoints of the input, so a path that is already
    uniformly spaced at ``spacing`` keeps its point count and positions.

    Args:
        points: Path points
        spacing: Target distance between consecutive output points

    Returns:
        New array of resampled points (input copy when it has fewer than 2 points)
    """
    spacing = validate_positive(spacing, 'spacing')
    path = as_path(points)
    if len(path) < 2:
        return path.copy()

    total = path_length(path)
    n_intervals = max(2, int(round(total / spacing)))
    targets = np.linspace(0.0, total, n_intervals + 1)

    return _interpolate_at(path, targets)


def resample_to_count(points: Any, count: int) -> np.ndarray:
    """
    Resample a polyline to a fixed number of points evenly spaced by arc length.

    Args:
        points: Path points
        count: Number of output points (>= 2)

    Returns:
        New array of shape (count, 2)
    """
    if count < 2:
        raise ValueError(f"count must be at least 2, got {count}")
    path = as_path(points)
    if len(path) < 2:
        return path.copy()

    total = path_length(path)
    targets = np.linspace(0.0, total, count)
    return _interpolate_at(path, targets)


def smooth_path(points: Any, iterations: int = 3) -> np.ndarray:
    """
    Smooth a polyline with Chaikin corner cutting.

    Each round replaces every segment (p0, p1) by the points at 25% and 75% of
    its length while the first and last points stay fixed, so one round turns
    m points into 2m points.

    Args:
        points: Path points
        iterations: Number of corner-cutting rounds

    Returns:
        New array of smoothed points (input copy when it has fewer than 3 points)
    """
    current = as_path(points).copy()
    if len(current) < 3:
        return current

    for _ in range(int(iterations)):
        p0 = current[:-1]
        p1 = current[1:]

        cuts = np.empty((2 * len(p0), 2))
        cuts[0::2] = 0.75 * p0 + 0.25 * p1
        cuts[1::2] = 0.25 * p0 + 0.75 * p1

        current = np.vstack((current[:1], cuts, current[-1:]))

    return current


def compute_curvature(points: Any) -> CurvatureProfile:
    """
    Estimate signed curvature and tangent direction of a closed path.

    For each sample the incoming vector (p[i] - p[i-1]) and outgoing vector
    (p[i+1] - p[i]) are used with indices wrapping around the loop. Curvature
    is the three-point (Menger) estimate with the chord approximated by the sum
    of both vector lengths:

        kappa = 2 * cross(in, out) / (|in| * |out| * (|in| + |out|))

    The leading factor of 2 makes this 1/R on a finely sampled circle of
    radius R, so the grip limit sqrt(mu * g / kappa) is the true cornering
    speed. Without it curvature reads 1/(2R) and grip-limited corners come
    out sqrt(2) too fast. The denominator is
    floored so coincident points never produce non-finite values. Accuracy
    degrades with uneven spacing, so paths should be resampled first.

    Args:
        points: Closed path points

    Returns:
        CurvatureProfile with kappa (N,) and unit tangents (N, 2)
    """
    path = as_path(points)
    n_points = len(path)
    if n_points == 0:
        return CurvatureProfile(np.zeros(0), np.zeros((0, 2)))

    incoming = path - np.roll(path, 1, axis=0)
    outgoing = np.roll(path, -1, axis=0) - path

    len_in = np.hypot(incoming[:, 0], incoming[:, 1])
    len_out = np.hypot(outgoing[:, 0], outgoing[:, 1])

    cross = incoming[:, 0] * outgoing[:, 1] - incoming[:, 1] * outgoing[:, 0]
    denom = len_in * len_out * (len_in + len_out)

    degenerate = denom < CURVATURE_DENOM_EPSILON
    if np.any(degenerate):
        logger.debug(f"Curvature denominator floored at {int(np.sum(degenerate))} coincident samples")
    kappa = 2.0 * cross / np.maximum(denom, CURVATURE_DENOM_EPSILON)

    # Tangent as normalized average of the two neighbouring segments
    tangent = 0.5 * (incoming + outgoing)
    tangent_len = np.hypot(tangent[:, 0], tangent[:, 1])
    tangent = tangent / np.where(tangent_len > TANGENT_EPSILON, tangent_len, 1.0)[:, None]

    return CurvatureProfile(kappa, tangent)


def calculate_normals(points: Any) -> np.ndarray:
    """
    Calculate unit normal vectors of a closed path.

    The tangent at each sample is the central difference of its neighbours
    (wrapping around the loop), rotated by +90 degrees. Samples whose
    neighbours coincide get a zero normal.

    Args:
        points: Closed path points

    Returns:
        Array of normal vectors, shape (N, 2)
    """
    path = as_path(points)
    if len(path) < 2:
        return np.zeros_like(path)

    tangent = np.roll(path, -1, axis=0) - np.roll(path, 1, axis=0)
    length = np.hypot(tangent[:, 0], tangent[:, 1])
    tangent = tangent / np.where(length > TANGENT_EPSILON, length, 1.0)[:, None]

    return np.column_stack((-tangent[:, 1], tangent[:, 0]))
