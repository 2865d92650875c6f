"""
Racing line optimization module.

This module implements a stochastic hill-climb that improves a racing line by
displacing single samples along their normal within the track corridor,
re-smoothing the line and keeping only moves that lower the simulated lap
time. The displacement range shrinks as iterations progress, so the search
explores widely at first and refines locally towards the end.

Progress reporting and cancellation are decoupled from the search itself: an
optional observer callback receives OptimizationProgress snapshots and an
optional cancel signal (a threading.Event or a zero-argument callable) is
polled between trials.
"""

import time
import threading
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Dict, List, Optional, Union, Any
import logging

from ..core.geometry import smooth_path, resample_to_count
from ..core.track import CorridorBounds
from ..core.vehicle import PhysicsParameters
from ..utils.constants import (
    DEFAULT_OPTIMIZER_ITERATIONS, DEFAULT_TRIES_PER_ITERATION, DEFAULT_MAX_OFFSET,
    DEFAULT_MIN_ITERATIONS, DEFAULT_PERTURBATION_SMOOTHING, ANNEALING_FLOOR,
    MIN_EDGE_POINTS
)
from ..utils.validation import validate_path
from .lap_time import LapResult, LapTimeSimulator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("Racing_Line_Optimizer")

CancelSignal = Union[threading.Event, Callable[[], bool], None]


class OptimizerStatus(Enum):
    """State of a racing line optimizer."""
    IDLE = 0
    RUNNING = 1
    CONVERGED = 2                # Stopped after an iteration without improvement
    ITERATION_LIMIT_REACHED = 3  # Used the whole iteration budget
    ABORTED = 4                  # Cancelled by the caller


@dataclass(frozen=True)
class OptimizerSettings:
    """
    Settings of the racing line hill-climb.

    Attributes:
        iterations: Iteration budget
        tries_per_iteration: Random displacements attempted per iteration
        max_offset: Cap on the displacement range of one sample (input units)
        min_iterations: Iterations that must elapse before stagnation stops the search
        smoothing_iterations: Chaikin rounds applied after each displacement
        workers: Threads used to evaluate the trials of one iteration; with more
            than one worker all trials start from the same line and only the
            best of the batch is kept
    """
    iterations: int = DEFAULT_OPTIMIZER_ITERATIONS
    tries_per_iteration: int = DEFAULT_TRIES_PER_ITERATION
    max_offset: float = DEFAULT_MAX_OFFSET
    min_iterations: int = DEFAULT_MIN_ITERATIONS
    smoothing_iterations: int = DEFAULT_PERTURBATION_SMOOTHING
    workers: int = 1

    def __post_init__(self):
        if self.iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {self.iterations}")
        if self.tries_per_iteration < 1:
            raise ValueError(f"tries_per_iteration must be at least 1, got {self.tries_per_iteration}")
        if self.max_offset <= 0:
            raise ValueError(f"max_offset must be positive, got {self.max_offset}")
        if self.min_iterations < 0:
            raise ValueError(f"min_iterations must be non-negative, got {self.min_iterations}")
        if self.smoothing_iterations < 0:
            raise ValueError(f"smoothing_iterations must be non-negative, got {self.smoothing_iterations}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @classmethod
    def from_dict(cls, config: Optional[Dict]) -> 'OptimizerSettings':
        """Create settings from a dictionary, ignoring unknown keys."""
        if not config:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning(f"Ignoring unknown optimizer settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in config.items() if k in known})


@dataclass
class OptimizationProgress:
    """Snapshot published to progress observers."""
    iteration: int
    total_iterations: int
    progress: float
    best_time: float
    best_path: np.ndarray
    improved: bool
    accepted_moves: int


@dataclass
class OptimizationResult:
    """
    Outcome of one optimizer run.

    Attributes:
        racing_line: Best path found
        lap: Simulation of the best path
        initial_lap: Simulation of the seed centerline
        status: Terminal status (CONVERGED, ITERATION_LIMIT_REACHED or ABORTED)
        iterations_run: Iterations completed before the run ended
        accepted_moves: Number of accepted displacements
        history: Best lap time after each completed iteration
        elapsed_time: Wall clock duration in seconds
    """
    racing_line: np.ndarray
    lap: LapResult
    initial_lap: LapResult
    status: OptimizerStatus
    iterations_run: int
    accepted_moves: int
    history: List[float] = field(default_factory=list)
    elapsed_time: float = 0.0

    @property
    def lap_time(self) -> float:
        return self.lap.total_time

    @property
    def aborted(self) -> bool:
        """Whether the run was cancelled before it finished."""
        return self.status == OptimizerStatus.ABORTED

    @property
    def improvement(self) -> float:
        """Lap time gained over the seed centerline in seconds."""
        return self.initial_lap.total_time - self.lap.total_time

    def get_stats(self) -> Dict:
        """
        Get optimization statistics.

        Returns:
            Dictionary with optimization statistics
        """
        return {
            'lap_time': self.lap.total_time,
            'initial_lap_time': self.initial_lap.total_time,
            'improvement': self.improvement,
            'improvement_percent': 100.0 * self.improvement / self.initial_lap.total_time
            if self.initial_lap.total_time > 0 else 0.0,
            'status': self.status.name,
            'aborted': self.aborted,
            'iterations_run': self.iterations_run,
            'accepted_moves': self.accepted_moves,
            'optimization_time': self.elapsed_time,
        }


def is_cancelled(cancel: CancelSignal) -> bool:
    """Poll a cancel signal."""
    if cancel is None:
        return False
    if hasattr(cancel, 'is_set'):
        return cancel.is_set()
    return bool(cancel())


class RacingLineOptimizer:
    """
    Hill-climb optimizer for the racing line within a track corridor.

    The optimizer owns its working candidate exclusively while it runs. Each
    iteration step takes the current candidate and best lap as values and
    returns the updated ones, so the search can be tested without any
    progress or UI machinery.
    """

    def __init__(self, centerline: Any, corridor: CorridorBounds,
                 params: Optional[PhysicsParameters] = None,
                 settings: Optional[OptimizerSettings] = None,
                 rng: Union[np.random.Generator, int, None] = None):
        """
        Initialize the optimizer.

        Args:
            centerline: Seed path, normally the track centerline
            corridor: Corridor bounds of the centerline
            params: Physics parameters used by the lap simulation
            settings: Optimizer settings
            rng: Random generator or seed; fix it for reproducible runs
        """
        self.centerline = validate_path(centerline, 'optimize_racing_line', MIN_EDGE_POINTS).copy()
        if len(corridor) != len(self.centerline):
            raise ValueError(f"Corridor has {len(corridor)} samples but the centerline has "
                             f"{len(self.centerline)} points")

        self.corridor = corridor
        self.params = params if params else PhysicsParameters()
        self.settings = settings if settings else OptimizerSettings()
        self.rng = np.random.default_rng(rng)
        self.simulator = LapTimeSimulator(self.params)

        self.status = OptimizerStatus.IDLE
        self._lock = threading.Lock()

        logger.info(f"Racing line optimizer initialized with {len(self.centerline)} points")

    def constrain_to_corridor(self, path: np.ndarray) -> np.ndarray:
        """
        Clip every sample of a path into the corridor.

        Offsets are measured along the centerline normal of the sample with the
        same index.

        Args:
            path: Path with the same sample count as the centerline

        Returns:
            New path with every lateral offset inside its bounds
        """
        normals = self.corridor.normals
        offsets = np.einsum('ij,ij->i', path - self.centerline, normals)
        clipped = self.corridor.clip(offsets)
        return path + normals * (clipped - offsets)[:, None]

    def lateral_offsets(self, path: np.ndarray) -> np.ndarray:
        """Signed lateral offset of each path sample from the centerline."""
        return np.einsum('ij,ij->i', path - self.centerline, self.corridor.normals)

    def _displace(self, candidate: np.ndarray, idx: int, step: float) -> np.ndarray:
        """Move one sample along its normal, then smooth and restore the sample count."""
        normal = self.corridor.normals[idx]
        trial = candidate.copy()

        offset = float(np.dot(trial[idx] - self.centerline[idx], normal))
        target = float(np.clip(offset + step, self.corridor.lower[idx], self.corridor.upper[idx]))
        trial[idx] = trial[idx] + normal * (target - offset)

        if self.settings.smoothing_iterations > 0:
            trial = smooth_path(trial, self.settings.smoothing_iterations)
            trial = resample_to_count(trial, len(candidate))
            trial = self.constrain_to_corridor(trial)

        return trial

    def _propose(self, candidate: np.ndarray, scale: float) -> np.ndarray:
        """Draw one random displacement of the candidate."""
        idx = int(self.rng.integers(len(candidate)))
        step_range = min(float(self.corridor.width[idx]), self.settings.max_offset)
        step = self.rng.uniform(-1.0, 1.0) * step_range * scale
        return self._displace(candidate, idx, step)

    def annealing_scale(self, iteration: int, iterations: int) -> float:
        """Fraction of the displacement range used at an iteration."""
        return ANNEALING_FLOOR + (1.0 - ANNEALING_FLOOR) * (1.0 - iteration / iterations)

    def _run_iteration(self, iteration: int, iterations: int, candidate: np.ndarray,
                       best: LapResult, executor: Optional[ThreadPoolExecutor],
                       cancel: CancelSignal,
                       on_accept: Callable[[int, np.ndarray, LapResult], None]):
        """
        Run one iteration of trials.

        Returns:
            Tuple of (candidate, best lap, accepted count, cancelled flag)
        """
        scale = self.annealing_scale(iteration, iterations)
        tries = self.settings.tries_per_iteration
        accepted = 0

        if executor is None:
            for trial_idx in range(tries):
                if is_cancelled(cancel):
                    return candidate, best, accepted, True

                trial = self._propose(candidate, scale)
                lap = self.simulator.simulate(trial)

                if lap.total_time < best.total_time:
                    candidate, best = trial, lap
                    accepted += 1
                    on_accept(trial_idx, candidate, best)

            return candidate, best, accepted, False

        if is_cancelled(cancel):
            return candidate, best, accepted, True

        # Trials are drawn on this thread so the random sequence stays reproducible
        trials = [self._propose(candidate, scale) for _ in range(tries)]
        laps = list(executor.map(self.simulator.simulate, trials))

        best_idx = int(np.argmin([lap.total_time for lap in laps]))
        if laps[best_idx].total_time < best.total_time:
            candidate, best = trials[best_idx], laps[best_idx]
            accepted = 1
            on_accept(tries - 1, candidate, best)

        return candidate, best, accepted, False

    def optimize(self, iterations: Optional[int] = None,
                 progress_callback: Optional[Callable[[OptimizationProgress], None]] = None,
                 cancel: CancelSignal = None) -> OptimizationResult:
        """
        Optimize the racing line.

        Args:
            iterations: Iteration budget (defaults to the settings value)
            progress_callback: Observer called with a progress snapshot after every
                accepted move and every completed iteration
            cancel: threading.Event or callable polled between trials; when set the
                best line found so far is returned with status ABORTED

        Returns:
            OptimizationResult whose lap time is never above the seed's lap time
        """
        iterations = int(iterations) if iterations is not None else self.settings.iterations
        if iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {iterations}")

        if not self._lock.acquire(blocking=False):
            raise RuntimeError("Optimizer is already running")

        try:
            self.status = OptimizerStatus.RUNNING
            return self._optimize(iterations, progress_callback, cancel)
        finally:
            self.status = OptimizerStatus.IDLE
            self._lock.release()

    def _optimize(self, iterations: int,
                  progress_callback: Optional[Callable[[OptimizationProgress], None]],
                  cancel: CancelSignal) -> OptimizationResult:
        start_time = time.time()

        candidate = self.centerline.copy()
        initial_lap = self.simulator.simulate(candidate)
        best = initial_lap
        accepted_total = 0
        history: List[float] = []
        status = OptimizerStatus.ITERATION_LIMIT_REACHED
        iteration = 0

        logger.info(f"Starting racing line optimization: {iterations} iterations, "
                    f"seed lap time {initial_lap.total_time:.3f}s")

        def publish(progress: float, improved: bool):
            if progress_callback is not None:
                progress_callback(OptimizationProgress(
                    iteration=iteration,
                    total_iterations=iterations,
                    progress=progress,
                    best_time=best.total_time,
                    best_path=candidate.copy(),
                    improved=improved,
                    accepted_moves=accepted_total
                ))

        def on_accept(trial_idx: int, new_candidate: np.ndarray, new_best: LapResult):
            nonlocal candidate, best, accepted_total
            candidate, best = new_candidate, new_best
            accepted_total += 1
            tries = self.settings.tries_per_iteration
            publish((iteration + (trial_idx + 1) / tries) / iterations, True)

        publish(0.0, False)

        workers = self.settings.workers
        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None

        try:
            for iteration in range(iterations):
                candidate, best, accepted, cancelled = self._run_iteration(
                    iteration, iterations, candidate, best, executor, cancel, on_accept
                )

                if cancelled:
                    status = OptimizerStatus.ABORTED
                    logger.info(f"Optimization cancelled at iteration {iteration}")
                    break

                history.append(best.total_time)
                publish((iteration + 1) / iterations, accepted > 0)

                logger.debug(f"Iteration {iteration}: best lap time {best.total_time:.3f}s, "
                             f"{accepted} accepted")

                if accepted == 0 and iteration > self.settings.min_iterations:
                    status = OptimizerStatus.CONVERGED
                    break

                if is_cancelled(cancel):
                    status = OptimizerStatus.ABORTED
                    logger.info(f"Optimization cancelled after iteration {iteration}")
                    break
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        elapsed = time.time() - start_time
        result = OptimizationResult(
            racing_line=candidate,
            lap=best,
            initial_lap=initial_lap,
            status=status,
            iterations_run=len(history),
            accepted_moves=accepted_total,
            history=history,
            elapsed_time=elapsed
        )

        logger.info(f"Optimization finished ({status.name}) in {elapsed:.1f}s: "
                    f"lap time {initial_lap.total_time:.3f}s -> {best.total_time:.3f}s")

        return result


def optimize_racing_line(centerline: Any, corridor: CorridorBounds,
                         params: Optional[PhysicsParameters] = None,
                         iterations: int = DEFAULT_OPTIMIZER_ITERATIONS,
                         rng: Union[np.random.Generator, int, None] = None,
                         progress_callback: Optional[Callable[[OptimizationProgress], None]] = None,
                         cancel: CancelSignal = None,
                         settings: Optional[OptimizerSettings] = None) -> OptimizationResult:
    """
    Optimize a racing line in one call.

    Args:
        centerline: Seed path
        corridor: Corridor bounds of the seed path
        params: Physics parameters
        iterations: Iteration budget
        rng: Random generator or seed
        progress_callback: Optional progress observer
        cancel: Optional cancel signal
        settings: Optional optimizer settings (iterations argument takes precedence)

    Returns:
        OptimizationResult
    """
    optimizer = RacingLineOptimizer(centerline, corridor, params, settings, rng)
    return optimizer.optimize(iterations, progress_callback=progress_callback, cancel=cancel)
