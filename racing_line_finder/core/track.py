"""
Track module for racing line simulation.

This module turns two raw edge traces into the geometry the lap simulator and
racing line optimizer work on: a smoothed centerline between the edges, its
curvature, and the corridor of lateral offsets within which a racing line may
move. The Track class keeps these derived quantities together for one
optimization session and recomputes them whenever the edges change.
"""

import numpy as np
from dataclasses import dataclass, fields
from typing import Dict, Optional, Tuple, Literal, Any
import logging
from scipy.spatial import cKDTree

from .geometry import (
    resample_path, smooth_path, compute_curvature, calculate_normals,
    path_length, CurvatureProfile
)
from .vehicle import PhysicsParameters
from ..exceptions import InsufficientInputError
from ..utils.constants import (
    DEFAULT_RESAMPLE_SPACING, DEFAULT_CENTERLINE_SMOOTHING, MIN_EDGE_POINTS
)
from ..utils.track_utils import preprocess_edge_points
from ..utils.validation import as_path, validate_path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Track")

PairingMethod = Literal['index', 'nearest']


@dataclass(frozen=True)
class TrackSettings:
    """
    Settings for converting edge traces into a centerline and corridor.

    Attributes:
        spacing: Arc-length spacing used to resample the edges (input units)
        centerline_smoothing: Chaikin rounds applied to the midpoint path
        pairing: 'index' pairs edge samples by (fractional) index,
            'nearest' pairs each sample with the closest point on the other edge
        remove_duplicates: Drop consecutive near-duplicate edge points first
    """
    spacing: float = DEFAULT_RESAMPLE_SPACING
    centerline_smoothing: int = DEFAULT_CENTERLINE_SMOOTHING
    pairing: PairingMethod = 'index'
    remove_duplicates: bool = True

    def __post_init__(self):
        if self.spacing <= 0:
            raise ValueError(f"spacing must be positive, got {self.spacing}")
        if self.centerline_smoothing < 0:
            raise ValueError(f"centerline_smoothing must be non-negative, got {self.centerline_smoothing}")
        if self.pairing not in ('index', 'nearest'):
            raise ValueError(f"Unknown pairing method: {self.pairing}")

    @classmethod
    def from_dict(cls, config: Optional[Dict]) -> 'TrackSettings':
        """Create settings from a dictionary, ignoring unknown keys."""
        if not config:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning(f"Ignoring unknown track settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in config.items() if k in known})


class CorridorBounds:
    """Allowed signed lateral offsets of a racing line around a centerline."""

    def __init__(self, lower: np.ndarray, upper: np.ndarray, normals: np.ndarray,
                 left_points: np.ndarray, right_points: np.ndarray):
        """
        Initialize corridor bounds.

        Args:
            lower: Lesser edge projection per centerline sample
            upper: Greater edge projection per centerline sample
            normals: Unit normal per centerline sample used for the projections
            left_points: Left edge sample paired with each centerline sample
            right_points: Right edge sample paired with each centerline sample
        """
        self.lower = lower
        self.upper = upper
        self.normals = normals
        self.left_points = left_points
        self.right_points = right_points

    def __len__(self) -> int:
        return len(self.lower)

    def __getitem__(self, idx: int) -> Dict[str, float]:
        return {'min': float(self.lower[idx]), 'max': float(self.upper[idx])}

    @property
    def width(self) -> np.ndarray:
        """Corridor width (max - min) per sample."""
        return self.upper - self.lower

    def clip(self, offsets: np.ndarray) -> np.ndarray:
        """Clip lateral offsets into the corridor."""
        return np.clip(offsets, self.lower, self.upper)


def _paired_indices(n_target: int, n_source: int) -> np.ndarray:
    """Indices into a source path paired by fractional position with a target path."""
    idx = np.rint(np.arange(n_target) * n_source / n_target).astype(int)
    return np.clip(idx, 0, n_source - 1)


def pair_edges(left: np.ndarray, right: np.ndarray,
               method: PairingMethod = 'index') -> Tuple[np.ndarray, np.ndarray]:
    """
    Pair samples of two resampled edges.

    'index' pairs by identical index up to the shorter edge. This treats the
    edges as parallel and is an approximation, not a distance-matched
    correspondence. 'nearest' walks the shorter edge and pairs every sample
    with the closest sample of the other edge.

    Args:
        left: Resampled left edge
        right: Resampled right edge
        method: Pairing method

    Returns:
        Tuple of (left_paired, right_paired) arrays of equal length
    """
    if method == 'index':
        n = min(len(left), len(right))
        return left[:n], right[:n]

    if method == 'nearest':
        if len(left) <= len(right):
            _, idx = cKDTree(right).query(left)
            return left, right[idx]
        _, idx = cKDTree(left).query(right)
        return left[idx], right

    raise ValueError(f"Unknown pairing method: {method}")


def build_centerline(left_edge: Any, right_edge: Any,
                     spacing: float = DEFAULT_RESAMPLE_SPACING,
                     smoothing_iterations: int = DEFAULT_CENTERLINE_SMOOTHING,
                     pairing: PairingMethod = 'index') -> np.ndarray:
    """
    Build a centerline from two raw edge traces.

    Both edges are resampled to uniform spacing, paired, and the midpoints are
    smoothed.

    Args:
        left_edge: Raw left edge points
        right_edge: Raw right edge points
        spacing: Resampling spacing in input units
        smoothing_iterations: Chaikin rounds applied to the midpoints
        pairing: Edge pairing method

    Returns:
        Centerline points

    Raises:
        InsufficientInputError: If either edge has fewer than 5 points
    """
    left, right = _validate_edges(left_edge, right_edge)

    left_resampled = resample_path(left, spacing)
    right_resampled = resample_path(right, spacing)

    left_paired, right_paired = pair_edges(left_resampled, right_resampled, pairing)
    midpoints = 0.5 * (left_paired + right_paired)

    return smooth_path(midpoints, smoothing_iterations)


def build_corridor_bounds(centerline: Any, left_edge: Any, right_edge: Any,
                          pairing: PairingMethod = 'index') -> CorridorBounds:
    """
    Compute the signed lateral offset range at every centerline sample.

    Edge samples are paired with centerline sample i by fractional index
    (round(i * len(edge) / len(centerline))) or, with 'nearest', by closest
    point. The offsets of both edge samples are projected onto the centerline
    normal; the lesser becomes the lower bound and the greater the upper bound.
    This estimates the perpendicular half-widths along a locally estimated
    normal, not a true distance to the edge curves.

    Args:
        centerline: Centerline points
        left_edge: Left edge points (normally the resampled edge)
        right_edge: Right edge points (normally the resampled edge)
        pairing: Edge sample pairing method

    Returns:
        CorridorBounds for the centerline
    """
    center = validate_path(centerline, 'build_corridor_bounds', 2)
    left = validate_path(left_edge, 'build_corridor_bounds', 1)
    right = validate_path(right_edge, 'build_corridor_bounds', 1)

    normals = calculate_normals(center)

    if pairing == 'nearest':
        _, left_idx = cKDTree(left).query(center)
        _, right_idx = cKDTree(right).query(center)
    else:
        left_idx = _paired_indices(len(center), len(left))
        right_idx = _paired_indices(len(center), len(right))

    left_points = left[left_idx]
    right_points = right[right_idx]

    left_offset = np.einsum('ij,ij->i', left_points - center, normals)
    right_offset = np.einsum('ij,ij->i', right_points - center, normals)

    return CorridorBounds(
        lower=np.minimum(left_offset, right_offset),
        upper=np.maximum(left_offset, right_offset),
        normals=normals,
        left_points=left_points,
        right_points=right_points
    )


def _validate_edges(left_edge: Any, right_edge: Any) -> Tuple[np.ndarray, np.ndarray]:
    """Check both edges have enough points for centerline construction."""
    left = as_path(left_edge)
    right = as_path(right_edge)
    if len(left) < MIN_EDGE_POINTS or len(right) < MIN_EDGE_POINTS:
        raise InsufficientInputError(
            'build_centerline', MIN_EDGE_POINTS, min(len(left), len(right)),
            message=f"Insufficient edge data: both edges need at least {MIN_EDGE_POINTS} points "
                    f"(left={len(left)}, right={len(right)})"
        )
    return (validate_path(left, 'build_centerline', MIN_EDGE_POINTS),
            validate_path(right, 'build_centerline', MIN_EDGE_POINTS))


class Track:
    """A closed track described by two edge traces and its derived geometry."""

    def __init__(self, left_edge: Optional[Any] = None, right_edge: Optional[Any] = None,
                 settings: Optional[TrackSettings] = None, name: Optional[str] = None):
        """
        Initialize a track, optionally from edge traces.

        Args:
            left_edge: Optional left edge points
            right_edge: Optional right edge points
            settings: Track processing settings
            name: Optional name for the track
        """
        self.name = name if name else "Unnamed Track"
        self.settings = settings if settings else TrackSettings()

        # Edge data
        self.left_edge = np.zeros((0, 2))
        self.right_edge = np.zeros((0, 2))
        self.left_resampled = np.zeros((0, 2))
        self.right_resampled = np.zeros((0, 2))

        # Derived geometry
        self.centerline = np.zeros((0, 2))
        self.curvature: Optional[CurvatureProfile] = None
        self.corridor: Optional[CorridorBounds] = None
        self.racing_line = np.zeros((0, 2))

        if left_edge is not None and right_edge is not None:
            self.set_edges(left_edge, right_edge)

    @property
    def has_centerline(self) -> bool:
        return len(self.centerline) > 0

    def set_edges(self, left_edge: Any, right_edge: Any):
        """
        Set the edge traces and recompute centerline, curvature and corridor.

        The racing line is reset to a copy of the new centerline.

        Args:
            left_edge: Left edge points
            right_edge: Right edge points

        Raises:
            InsufficientInputError: If either edge has fewer than 5 points
        """
        left, right = _validate_edges(left_edge, right_edge)

        if self.settings.remove_duplicates:
            left = preprocess_edge_points(left)
            right = preprocess_edge_points(right)

        self.left_edge = left
        self.right_edge = right
        self._update_geometry()

    def _update_geometry(self):
        """Recompute all geometry derived from the edges."""
        settings = self.settings

        self.centerline = build_centerline(
            self.left_edge, self.right_edge,
            spacing=settings.spacing,
            smoothing_iterations=settings.centerline_smoothing,
            pairing=settings.pairing
        )

        self.left_resampled = resample_path(self.left_edge, settings.spacing)
        self.right_resampled = resample_path(self.right_edge, settings.spacing)

        self.curvature = compute_curvature(self.centerline)
        self.corridor = build_corridor_bounds(
            self.centerline, self.left_resampled, self.right_resampled,
            pairing=settings.pairing
        )
        self.racing_line = self.centerline.copy()

        logger.info(f"{self.name}: centerline built with {len(self.centerline)} points, "
                    f"length {path_length(self.centerline, closed=True):.1f} units")

    def set_racing_line(self, racing_line: Any):
        """Replace the current racing line."""
        self.racing_line = validate_path(racing_line, 'set_racing_line', 2).copy()

    def simulate(self, params: Optional[PhysicsParameters] = None, path: Optional[Any] = None):
        """
        Simulate a lap along the racing line (or another path).

        Args:
            params: Physics parameters (defaults to the default kart)
            path: Optional path to simulate instead of the racing line

        Returns:
            LapResult of the simulation
        """
        from ..performance.lap_time import simulate_lap

        if not self.has_centerline:
            raise ValueError("Track edges not set")

        return simulate_lap(self.racing_line if path is None else path,
                            params if params else PhysicsParameters())

    def get_track_stats(self, params: Optional[PhysicsParameters] = None) -> Dict:
        """
        Get track statistics.

        Args:
            params: Optional physics parameters used to convert lengths to metres

        Returns:
            Dictionary with track statistics
        """
        stats = {
            'name': self.name,
            'left_edge_points': len(self.left_edge),
            'right_edge_points': len(self.right_edge),
            'centerline_points': len(self.centerline),
        }

        if not self.has_centerline:
            return stats

        length = path_length(self.centerline, closed=True)
        stats['centerline_length'] = length

        if self.corridor is not None:
            stats['mean_width'] = float(np.mean(self.corridor.width))
            stats['min_width'] = float(np.min(self.corridor.width))
            stats['max_width'] = float(np.max(self.corridor.width))

        if self.curvature is not None:
            max_kappa = float(np.max(np.abs(self.curvature.kappa)))
            stats['max_curvature'] = max_kappa
            if max_kappa > 0:
                stats['min_radius'] = 1.0 / max_kappa

        if params is not None:
            stats['centerline_length_m'] = length * params.distance_unit_scale

        return stats

    def __str__(self) -> str:
        """String representation of track."""
        if not self.has_centerline:
            return f"Track: {self.name} (no edges)"
        return (f"Track: {self.name}, {len(self.centerline)} centerline points, "
                f"length {path_length(self.centerline, closed=True):.1f} units")


def create_circular_edges(radius: float, width: float, n_points: int = 360,
                          center: Tuple[float, float] = (0.0, 0.0),
                          clockwise: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Create the edges of a circular track.

    Args:
        radius: Centerline radius
        width: Track width
        n_points: Points per edge
        center: Circle center
        clockwise: Direction of travel

    Returns:
        Tuple of (left_edge, right_edge)
    """
    t = np.linspace(0.0, 2.0 * np.pi, n_points, endpoint=False)
    if clockwise:
        t = -t

    direction = np.column_stack((np.cos(t), np.sin(t)))
    origin = np.asarray(center, dtype=float)

    # Left of the direction of travel is inside for counter-clockwise laps
    inner = origin + direction * (radius - width / 2.0)
    outer = origin + direction * (radius + width / 2.0)

    if clockwise:
        return outer, inner
    return inner, outer


def create_example_edges(semi_major: float = 250.0, semi_minor: float = 150.0,
                         width: float = 40.0, n_points: int = 200,
                         center: Tuple[float, float] = (550.0, 325.0)) -> Tuple[np.ndarray, np.ndarray]:
    """
    Create the edges of an oval example track in canvas-like units.

    The edges are offset curves of an ellipse, traversed counter-clockwise.

    Args:
        semi_major: Semi-major axis of the centerline ellipse
        semi_minor: Semi-minor axis of the centerline ellipse
        width: Track width
        n_points: Points per edge
        center: Ellipse center

    Returns:
        Tuple of (left_edge, right_edge)
    """
    t = np.linspace(0.0, 2.0 * np.pi, n_points, endpoint=False)

    points = np.column_stack((semi_major * np.cos(t), semi_minor * np.sin(t)))
    points += np.asarray(center, dtype=float)

    # Left normal of the counter-clockwise tangent (-a sin t, b cos t)
    normals = np.column_stack((-semi_minor * np.cos(t), -semi_major * np.sin(t)))
    normals /= np.linalg.norm(normals, axis=1)[:, None]

    left = points + normals * width / 2.0
    right = points - normals * width / 2.0

    logger.info("Example track edges created")
    return left, right
