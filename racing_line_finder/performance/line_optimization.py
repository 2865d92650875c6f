"""
Integration module for racing line optimization.

This module provides a unified interface for a complete optimization
session: configuration loading, track construction from raw edge traces,
the racing line hill-climb and validation of the resulting lap.
"""

import os
import threading
import numpy as np
import yaml
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional, Callable, Any, Union

from ..core.track import Track, TrackSettings
from ..core.vehicle import PhysicsParameters
from ..utils.validation import validate_lap_performance, validate_positive
from .lap_time import LapTimeSimulator
from .racing_line import (
    RacingLineOptimizer, OptimizerSettings, OptimizationProgress, CancelSignal, is_cancelled
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Line_Optimization")


@dataclass
class SessionConfig:
    """Configuration of one optimization session."""
    physics: PhysicsParameters = field(default_factory=PhysicsParameters)
    optimizer: OptimizerSettings = field(default_factory=OptimizerSettings)
    track: TrackSettings = field(default_factory=TrackSettings)

    def to_dict(self) -> Dict:
        """Convert the configuration to YAML-ready sections."""
        return {
            'physics': self.physics.to_dict(),
            'optimizer': asdict(self.optimizer),
            'track': asdict(self.track),
        }

    @classmethod
    def from_dict(cls, config: Optional[Dict]) -> 'SessionConfig':
        """Create a configuration from a dictionary with optional sections."""
        config = config or {}
        unknown = set(config) - {'physics', 'optimizer', 'track'}
        if unknown:
            logger.warning(f"Ignoring unknown configuration sections: {sorted(unknown)}")

        return cls(
            physics=PhysicsParameters.from_dict(config.get('physics')),
            optimizer=OptimizerSettings.from_dict(config.get('optimizer')),
            track=TrackSettings.from_dict(config.get('track'))
        )


def load_config(config_path: Optional[str]) -> SessionConfig:
    """
    Load a session configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        SessionConfig; defaults are used for a missing file or section
    """
    if not config_path:
        return SessionConfig()

    if not os.path.exists(config_path):
        logger.warning(f"Configuration file not found: {config_path}")
        return SessionConfig()

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return SessionConfig.from_dict(config)


def save_config(config: SessionConfig, config_path: str):
    """
    Save a session configuration to a YAML file.

    Args:
        config: Configuration to save
        config_path: Destination path
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to {config_path}")


def _combine_cancel(cancel: CancelSignal, timeout_event: Optional[threading.Event]) -> CancelSignal:
    """Merge a caller cancel signal with a timeout event."""
    if timeout_event is None:
        return cancel
    if cancel is None:
        return timeout_event

    def cancelled() -> bool:
        return timeout_event.is_set() or is_cancelled(cancel)

    return cancelled


def run_racing_line_optimization(
    left_edge: Any,
    right_edge: Any,
    params: Optional[PhysicsParameters] = None,
    config_file: Optional[str] = None,
    iterations: Optional[int] = None,
    seed: Union[np.random.Generator, int, None] = None,
    cancel: CancelSignal = None,
    progress_callback: Optional[Callable[[OptimizationProgress], None]] = None,
    max_time: Optional[float] = None,
    save_dir: Optional[str] = None
) -> Dict:
    """
    Run a complete racing line optimization session.

    Args:
        left_edge: Raw left edge points
        right_edge: Raw right edge points
        params: Physics parameters (overrides the configuration file)
        config_file: Optional path to configuration file
        iterations: Iteration budget (overrides the configuration file)
        seed: Random generator or seed for reproducible runs
        cancel: Optional cancel signal (threading.Event or callable)
        progress_callback: Optional progress observer
        max_time: Optional wall clock limit in seconds; the run is cancelled
            when it elapses and the best line so far is returned
        save_dir: Optional directory to save the racing line table to

    Returns:
        Dictionary with optimization results
    """
    config = load_config(config_file)
    params = params if params else config.physics

    track = Track(left_edge, right_edge, settings=config.track)

    optimizer = RacingLineOptimizer(
        track.centerline, track.corridor, params,
        settings=config.optimizer, rng=seed
    )

    timer = None
    timeout_event = None
    if max_time is not None:
        validate_positive(max_time, 'max_time')
        timeout_event = threading.Event()
        timer = threading.Timer(max_time, timeout_event.set)
        timer.daemon = True
        timer.start()

    try:
        result = optimizer.optimize(
            iterations,
            progress_callback=progress_callback,
            cancel=_combine_cancel(cancel, timeout_event)
        )
    finally:
        if timer is not None:
            timer.cancel()

    track.set_racing_line(result.racing_line)

    validation = validate_lap_performance(result.lap, params.top_speed)
    if not validation['valid']:
        logger.warning(f"Racing line lap failed validation: {validation['checks']}")

    logger.info(f"Racing line lap time: {result.lap.total_time:.3f}s "
                f"({result.improvement:.3f}s faster than the centerline)")

    results = {
        'track': track,
        'centerline': track.centerline,
        'racing_line': result.racing_line,
        'centerline_lap': result.initial_lap,
        'racing_line_lap': result.lap,
        'lap_time': result.lap.total_time,
        'improvement': result.improvement,
        'aborted': result.aborted,
        'status': result.status,
        'optimization': result,
        'validation': validation,
    }

    if save_dir:
        os.makedirs(save_dir, exist_ok=True)
        table = result.lap.to_dataframe(result.racing_line)
        table_path = os.path.join(save_dir, "racing_line.csv")
        table.to_csv(table_path, index=False)
        results['racing_line_file'] = table_path
        logger.info(f"Racing line saved to {table_path}")

    return results


def compare_lines(centerline: Any, racing_line: Any,
                  params: Optional[PhysicsParameters] = None) -> Dict:
    """
    Compare the centerline and racing line laps.

    Args:
        centerline: Centerline path
        racing_line: Racing line path
        params: Physics parameters

    Returns:
        Dictionary with per-line statistics and the time gained
    """
    simulator = LapTimeSimulator(params)
    comparison = simulator.compare_paths({
        'centerline': centerline,
        'racing_line': racing_line,
    })

    centerline_time = comparison['centerline']['lap_time']
    racing_time = comparison['racing_line']['lap_time']

    comparison['time_gained'] = centerline_time - racing_time
    comparison['time_gained_percent'] = (
        100.0 * (centerline_time - racing_time) / centerline_time if centerline_time > 0 else 0.0
    )

    logger.info(f"Centerline {centerline_time:.3f}s vs racing line {racing_time:.3f}s")
    return comparison
