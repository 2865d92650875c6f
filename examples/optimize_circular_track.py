"""Example for optimizing the racing line of a circular track with parallel trials."""

import os
import sys
import threading

# Add the parent directory to the path to find the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from racing_line_finder.core.track import Track, create_circular_edges
from racing_line_finder.core.vehicle import PhysicsParameters
from racing_line_finder.performance.racing_line import RacingLineOptimizer, OptimizerSettings


def main():
    # Circle of radius 50 m, 1 unit = 1 m
    params = PhysicsParameters(distance_unit_scale=1.0)
    left_edge, right_edge = create_circular_edges(radius=50.0, width=10.0, n_points=180)
    track = Track(left_edge, right_edge, name="Circle")

    print(track)
    print(f"Centerline lap: {track.simulate(params).total_time:.3f}s")

    settings = OptimizerSettings(iterations=60, tries_per_iteration=16, workers=4)
    optimizer = RacingLineOptimizer(track.centerline, track.corridor, params, settings, rng=7)

    # Stop after 20 seconds whatever happens
    cancel = threading.Event()
    timer = threading.Timer(20.0, cancel.set)
    timer.start()

    try:
        result = optimizer.optimize(cancel=cancel)
    finally:
        timer.cancel()

    track.set_racing_line(result.racing_line)

    print(f"\nOptimization {result.status.name} after {result.iterations_run} iterations")
    print(f"  Racing line lap: {result.lap_time:.3f}s")
    print(f"  Improvement: {result.improvement:.3f}s")
    print(f"  Accepted moves: {result.accepted_moves}")

    offsets = optimizer.lateral_offsets(result.racing_line)
    print(f"  Lateral offsets: {offsets.min():.2f} to {offsets.max():.2f} units")


if __name__ == "__main__":
    main()
