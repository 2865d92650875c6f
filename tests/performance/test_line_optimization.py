"""Tests for the optimization session layer and its YAML configuration."""

import threading

import numpy as np
import pandas as pd
import pytest
import yaml

from racing_line_finder.core.track import Track, TrackSettings, create_circular_edges
from racing_line_finder.core.vehicle import PhysicsParameters
from racing_line_finder.performance.line_optimization import (
    SessionConfig,
    compare_lines,
    load_config,
    run_racing_line_optimization,
    save_config,
)
from racing_line_finder.performance.racing_line import OptimizerSettings, OptimizerStatus

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_config(path, iterations: int = 4, min_iterations: int = 30) -> str:
    path.write_text(yaml.safe_dump({
        'physics': {'distance_unit_scale': 1.0, 'top_speed': 40.0},
        'optimizer': {'iterations': iterations, 'tries_per_iteration': 6,
                      'min_iterations': min_iterations},
        'track': {'spacing': 3.0, 'centerline_smoothing': 1, 'pairing': 'nearest'},
    }))
    return str(path)


@pytest.fixture
def circle_edges():
    return create_circular_edges(radius=30.0, width=12.0, n_points=120)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_load_config_reads_sections(tmp_path):
    config = load_config(_write_config(tmp_path / "session.yaml", iterations=7))

    assert config.physics.distance_unit_scale == 1.0
    assert config.physics.top_speed == 40.0
    assert config.optimizer.iterations == 7
    assert config.optimizer.tries_per_iteration == 6
    assert config.track.pairing == 'nearest'


def test_load_config_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == SessionConfig()
    assert load_config(None) == SessionConfig()


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)) == SessionConfig()


def test_save_then_load_config(tmp_path):
    config = SessionConfig(
        physics=PhysicsParameters(tyre_grip_coefficient=1.3, acceleration_model='power'),
        optimizer=OptimizerSettings(iterations=50, workers=2),
        track=TrackSettings(spacing=2.5, pairing='nearest'),
    )
    path = tmp_path / "nested" / "saved.yaml"
    save_config(config, str(path))

    assert path.exists()
    assert load_config(str(path)) == config


def test_invalid_config_value_raises(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({'physics': {'top_speed': -1.0}}))
    with pytest.raises(ValueError):
        load_config(str(path))


# ---------------------------------------------------------------------------
# Session runner
# ---------------------------------------------------------------------------


def test_run_racing_line_optimization(tmp_path, circle_edges):
    left, right = circle_edges
    results = run_racing_line_optimization(
        left, right, config_file=_write_config(tmp_path / "session.yaml"), seed=11
    )

    assert isinstance(results['track'], Track)
    assert results['status'] == OptimizerStatus.ITERATION_LIMIT_REACHED
    assert not results['aborted']
    assert results['lap_time'] <= results['centerline_lap'].total_time
    assert results['improvement'] == pytest.approx(
        results['centerline_lap'].total_time - results['racing_line_lap'].total_time
    )
    assert results['validation']['valid']
    assert np.array_equal(results['track'].racing_line, results['racing_line'])
    assert len(results['racing_line']) == len(results['centerline'])


def test_run_is_reproducible_with_seed(tmp_path, circle_edges):
    left, right = circle_edges
    config_file = _write_config(tmp_path / "session.yaml")

    first = run_racing_line_optimization(left, right, config_file=config_file, seed=3)
    second = run_racing_line_optimization(left, right, config_file=config_file, seed=3)

    assert first['lap_time'] == second['lap_time']
    assert np.array_equal(first['racing_line'], second['racing_line'])


def test_explicit_arguments_override_config(tmp_path, circle_edges):
    left, right = circle_edges
    params = PhysicsParameters(distance_unit_scale=1.0, top_speed=30.0)

    results = run_racing_line_optimization(
        left, right, params=params, config_file=_write_config(tmp_path / "session.yaml"),
        iterations=2, seed=1
    )

    assert results['optimization'].iterations_run == 2
    assert np.max(results['racing_line_lap'].speed_profile) <= 30.0


def test_cancelled_run_returns_centerline(tmp_path, circle_edges):
    left, right = circle_edges
    cancel = threading.Event()
    cancel.set()

    results = run_racing_line_optimization(
        left, right, config_file=_write_config(tmp_path / "session.yaml"), cancel=cancel
    )

    assert results['aborted']
    assert results['status'] == OptimizerStatus.ABORTED
    assert np.array_equal(results['racing_line'], results['centerline'])
    assert results['improvement'] == 0.0


def test_max_time_aborts_long_run(tmp_path, circle_edges):
    left, right = circle_edges
    results = run_racing_line_optimization(
        left, right, config_file=_write_config(tmp_path / "session.yaml", iterations=100000,
                                                   min_iterations=100000),
        seed=2, max_time=0.05
    )

    assert results['aborted']
    assert results['lap_time'] <= results['centerline_lap'].total_time


def test_max_time_must_be_positive(tmp_path, circle_edges):
    left, right = circle_edges
    with pytest.raises(ValueError):
        run_racing_line_optimization(
            left, right, config_file=_write_config(tmp_path / "session.yaml"), max_time=0.0
        )


def test_progress_callback_is_forwarded(tmp_path, circle_edges):
    left, right = circle_edges
    snapshots = []
    run_racing_line_optimization(
        left, right, config_file=_write_config(tmp_path / "session.yaml"),
        seed=5, progress_callback=snapshots.append
    )

    assert snapshots[0].progress == 0.0
    assert snapshots[-1].progress == pytest.approx(1.0)


def test_save_dir_writes_racing_line_table(tmp_path, circle_edges):
    left, right = circle_edges
    out_dir = tmp_path / "out"
    results = run_racing_line_optimization(
        left, right, config_file=_write_config(tmp_path / "session.yaml"),
        seed=8, save_dir=str(out_dir)
    )

    table = pd.read_csv(results['racing_line_file'])
    assert list(table.columns) == ['index', 'x', 'y', 'speed', 'distance', 'time']
    assert len(table) == len(results['racing_line'])


# ---------------------------------------------------------------------------
# Line comparison
# ---------------------------------------------------------------------------


def test_compare_lines():
    params = PhysicsParameters(distance_unit_scale=1.0, top_speed=40.0)
    t = np.linspace(0.0, 2.0 * np.pi, 360, endpoint=False)
    wide = np.column_stack((40.0 * np.cos(t), 40.0 * np.sin(t)))
    tight = np.column_stack((20.0 * np.cos(t), 20.0 * np.sin(t)))

    comparison = compare_lines(wide, tight, params)

    assert comparison['racing_line']['delta'] == 0.0
    assert comparison['time_gained'] == pytest.approx(
        comparison['centerline']['lap_time'] - comparison['racing_line']['lap_time']
    )
    assert comparison['time_gained'] > 0.0
    assert comparison['time_gained_percent'] > 0.0
