"""Tests for path geometry: resampling, smoothing, curvature and normals."""

import numpy as np
import pytest

from racing_line_finder.core.geometry import (
    calculate_normals,
    compute_curvature,
    cumulative_distances,
    path_length,
    resample_path,
    resample_to_count,
    segment_lengths,
    smooth_path,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _circle(radius: float, n: int, clockwise: bool = False) -> np.ndarray:
    t = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    if clockwise:
        t = -t
    return np.column_stack((radius * np.cos(t), radius * np.sin(t)))


def _l_shape(step: float = 3.0) -> np.ndarray:
    horizontal = [(x, 0.0) for x in np.arange(0.0, 15.0 + step / 2, step)]
    vertical = [(15.0, y) for y in np.arange(step, 15.0 + step / 2, step)]
    return np.array(horizontal + vertical)


def _arc_position(path: np.ndarray, point: np.ndarray) -> float:
    """Distance along ``path`` of the closest point to ``point``."""
    starts = cumulative_distances(path)
    best_gap, best_position = np.inf, 0.0
    for k in range(len(path) - 1):
        a, b = path[k], path[k + 1]
        seg = b - a
        length = np.linalg.norm(seg)
        t = 0.0 if length == 0.0 else np.clip(np.dot(point - a, seg) / length ** 2, 0.0, 1.0)
        gap = np.linalg.norm(a + t * seg - point)
        if gap < best_gap:
            best_gap, best_position = gap, starts[k] + t * length
    return best_position


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------


def test_segment_lengths_open_and_closed():
    square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    assert np.allclose(segment_lengths(square), [10.0, 10.0, 10.0])
    assert np.allclose(segment_lengths(square, closed=True), [10.0, 10.0, 10.0, 10.0])
    assert path_length(square) == pytest.approx(30.0)
    assert path_length(square, closed=True) == pytest.approx(40.0)


def test_cumulative_distances_start_at_zero():
    square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]])
    assert np.allclose(cumulative_distances(square), [0.0, 10.0, 20.0])


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------


def test_resample_uniform_straight_path_is_unchanged():
    path = np.column_stack((np.arange(0.0, 31.0, 3.0), np.zeros(11)))
    resampled = resample_path(path, 3.0)
    assert resampled.shape == path.shape
    assert np.allclose(resampled, path)


def test_resample_uniform_polyline_keeps_corner():
    path = _l_shape()
    resampled = resample_path(path, 3.0)
    assert len(resampled) == len(path)
    assert np.allclose(resampled, path)


def test_resample_spacing_is_uniform_along_arc():
    path = np.array([[0.0, 0.0], [7.0, 0.0], [7.0, 13.0], [20.0, 13.0]])
    resampled = resample_path(path, 2.0)

    positions = [_arc_position(path, point) for point in resampled]
    assert np.allclose(positions, np.linspace(0.0, 33.0, len(resampled)))
    assert len(resampled) == 17
    assert np.allclose(resampled[0], path[0])
    assert np.allclose(resampled[-1], path[-1])

    # Chords shrink only where a sample pair straddles a corner
    chords = segment_lengths(resampled)
    assert np.all(chords <= 33.0 / 16 + 1e-9)
    assert np.sum(~np.isclose(chords, 33.0 / 16)) == 2


def test_resample_short_path_uses_at_least_two_intervals():
    path = np.array([[0.0, 0.0], [1.0, 0.0]])
    resampled = resample_path(path, 3.0)
    assert len(resampled) == 3
    assert np.allclose(resampled[1], [0.5, 0.0])


def test_resample_tolerates_duplicate_points():
    path = np.array([[0.0, 0.0], [0.0, 0.0], [6.0, 0.0], [6.0, 0.0], [12.0, 0.0]])
    resampled = resample_path(path, 3.0)
    assert np.all(np.isfinite(resampled))
    assert np.allclose(resampled[:, 0], [0.0, 3.0, 6.0, 9.0, 12.0])


def test_resample_returns_copy_of_tiny_input():
    single = np.array([[1.0, 2.0]])
    resampled = resample_path(single, 3.0)
    assert np.array_equal(resampled, single)
    assert resampled is not single


def test_resample_rejects_non_positive_spacing():
    with pytest.raises(ValueError):
        resample_path(_l_shape(), 0.0)


def test_resample_to_count():
    resampled = resample_to_count(_l_shape(), 7)
    assert resampled.shape == (7, 2)
    assert np.allclose(resampled[0], [0.0, 0.0])
    assert np.allclose(resampled[-1], [15.0, 15.0])
    assert np.allclose(resampled[3], [15.0, 0.0])


# ---------------------------------------------------------------------------
# Smoothing
# ---------------------------------------------------------------------------


def test_smooth_doubles_point_count_per_round():
    path = _l_shape()
    m = len(path)
    assert len(smooth_path(path, 1)) == 2 * m
    assert len(smooth_path(path, 2)) == 4 * m
    assert len(smooth_path(path, 3)) == 8 * m


def test_smooth_keeps_endpoints():
    path = _l_shape()
    smoothed = smooth_path(path, 3)
    assert np.allclose(smoothed[0], path[0])
    assert np.allclose(smoothed[-1], path[-1])


def test_smooth_cuts_corner_at_quarter_points():
    path = np.array([[0.0, 0.0], [4.0, 0.0], [4.0, 4.0]])
    smoothed = smooth_path(path, 1)
    expected = [[0.0, 0.0], [1.0, 0.0], [3.0, 0.0], [4.0, 1.0], [4.0, 3.0], [4.0, 4.0]]
    assert np.allclose(smoothed, expected)


def test_smooth_zero_iterations_and_short_input():
    path = _l_shape()
    assert np.allclose(smooth_path(path, 0), path)

    two = np.array([[0.0, 0.0], [1.0, 1.0]])
    assert np.array_equal(smooth_path(two, 3), two)


# ---------------------------------------------------------------------------
# Curvature
# ---------------------------------------------------------------------------


def test_circle_curvature_is_inverse_radius():
    profile = compute_curvature(_circle(50.0, 360))
    assert len(profile) == 360
    assert np.allclose(profile.kappa, 1.0 / 50.0, rtol=1e-3)
    assert np.allclose(profile.radius, 50.0, rtol=1e-3)


def test_curvature_sign_follows_direction():
    ccw = compute_curvature(_circle(20.0, 180)).kappa
    cw = compute_curvature(_circle(20.0, 180, clockwise=True)).kappa
    assert np.all(ccw > 0)
    assert np.all(cw < 0)
    assert np.allclose(ccw, -cw)


def test_straight_samples_have_zero_curvature():
    path = np.column_stack((np.arange(0.0, 50.0, 1.0), np.zeros(50)))
    kappa = compute_curvature(path).kappa
    assert np.allclose(kappa, 0.0)


def test_curvature_tangent_is_unit_length():
    profile = compute_curvature(_circle(30.0, 90))
    norms = np.linalg.norm(profile.tangent, axis=1)
    assert np.allclose(norms, 1.0)
    assert np.allclose(profile[0]['tangent'], [0.0, 1.0], atol=1e-9)


def test_curvature_is_finite_on_coincident_points():
    path = np.array([[0.0, 0.0], [0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [1.0, 1.0]])
    profile = compute_curvature(path)
    assert np.all(np.isfinite(profile.kappa))
    assert np.all(np.isfinite(profile.tangent))


def test_curvature_of_empty_path():
    profile = compute_curvature(np.zeros((0, 2)))
    assert len(profile) == 0


# ---------------------------------------------------------------------------
# Normals
# ---------------------------------------------------------------------------


def test_normals_point_left_of_travel():
    circle = _circle(10.0, 72)
    normals = calculate_normals(circle)
    radial = circle / 10.0
    # Left of counter-clockwise travel is the circle center
    assert np.allclose(normals, -radial, atol=1e-9)


def test_normals_are_zero_when_neighbours_coincide():
    path = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 0.0]])
    normals = calculate_normals(path)
    assert np.all(np.isfinite(normals))
    assert np.allclose(normals[1], [0.0, 0.0])
