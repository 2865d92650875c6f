"""Tests for edge preprocessing and distance calibration helpers."""

import numpy as np
import pytest

from racing_line_finder.utils.track_utils import (
    calibrate_scale_from_lap_length,
    calibrate_scale_from_points,
    preprocess_edge_points,
)


def test_preprocess_removes_consecutive_duplicates():
    points = [(0.0, 0.0), (0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
    cleaned = preprocess_edge_points(points)
    assert np.allclose(cleaned, [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])


def test_preprocess_compares_against_last_kept_point():
    points = [(0.0, 0.0), (0.4, 0.0), (0.8, 0.0), (1.2, 0.0)]
    cleaned = preprocess_edge_points(points, min_distance=0.5)
    assert np.allclose(cleaned, [[0.0, 0.0], [0.8, 0.0]])


def test_preprocess_keeps_non_consecutive_repeats():
    points = [(0.0, 0.0), (1.0, 0.0), (0.0, 0.0)]
    assert len(preprocess_edge_points(points)) == 3


def test_preprocess_short_input():
    assert preprocess_edge_points([]).shape == (0, 2)
    assert preprocess_edge_points([(3.0, 4.0)]).shape == (1, 2)


def test_calibrate_from_points():
    assert calibrate_scale_from_points((0.0, 0.0), (3.0, 4.0), 10.0) == pytest.approx(2.0)


@pytest.mark.parametrize("p1,distance", [((0.0, 0.0), 10.0), ((3.0, 4.0), 0.0), ((3.0, 4.0), -5.0)])
def test_calibrate_from_points_rejects_bad_input(p1, distance):
    with pytest.raises(ValueError):
        calibrate_scale_from_points((0.0, 0.0), p1, distance)


def test_calibrate_from_lap_length():
    square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    assert calibrate_scale_from_lap_length(square, 80.0) == pytest.approx(2.0)
    assert calibrate_scale_from_lap_length(square, 60.0, closed=False) == pytest.approx(2.0)


def test_calibrate_from_lap_length_rejects_degenerate_path():
    with pytest.raises(ValueError):
        calibrate_scale_from_lap_length(np.zeros((3, 2)), 100.0)
    with pytest.raises(ValueError):
        calibrate_scale_from_lap_length(np.array([[0.0, 0.0], [1.0, 0.0]]), 0.0)
