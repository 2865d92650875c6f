#!/usr/bin/env python3
"""
Racing Line Optimization Example

This script demonstrates a complete racing line session on an oval example
track: centerline construction from two edge traces, lap simulation along the
centerline, racing line optimization and export of the results.
"""

import os
import sys
import time
import pandas as pd

# Add project root to Python path for imports
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from racing_line_finder.core.track import Track, create_example_edges
from racing_line_finder.performance.lap_time import simulate_lap
from racing_line_finder.performance.line_optimization import (
    load_config, save_config, run_racing_line_optimization, compare_lines
)
from racing_line_finder.utils.validation import validate_lap_performance


def load_configurations():
    """
    Load session configuration and output settings.

    Returns:
        dict: Dictionary containing configuration settings
    """
    config = {
        'session_config': os.path.join('configs', 'kart.yaml'),
        'output_dir': os.path.join('data', 'output', 'racing_line'),
        'optimization_settings': {
            'iterations': 150,
            'seed': 42,
            'max_time': 120.0,  # s
        }
    }

    # Create output directory if it doesn't exist
    os.makedirs(config['output_dir'], exist_ok=True)

    return config


def create_track(session):
    """
    Create the example track from its edge traces.

    Args:
        session: SessionConfig with the track settings

    Returns:
        tuple: (Track, left_edge, right_edge)
    """
    print("\n--- Creating Example Track ---")
    left_edge, right_edge = create_example_edges()
    track = Track(left_edge, right_edge, settings=session.track, name="Example Oval")

    stats = track.get_track_stats(session.physics)
    print(f"Centerline points: {stats['centerline_points']}")
    print(f"Centerline length: {stats['centerline_length_m']:.1f} m")
    print(f"Mean track width: {stats['mean_width']:.1f} units")

    return track, left_edge, right_edge


def run_centerline_simulation(track, params):
    """
    Simulate a lap along the centerline.

    Args:
        track: Track with a built centerline
        params: Physics parameters

    Returns:
        LapResult: Centerline lap
    """
    print("\n--- Running Centerline Lap Simulation ---")

    start_time = time.time()
    lap = simulate_lap(track.centerline, params)
    end_time = time.time()

    stats = lap.get_stats()
    print(f"Simulation completed in {end_time - start_time:.3f}s")
    print(f"Lap Time: {lap.total_time:.3f}s")
    print(f"Average Speed: {stats['avg_speed_kph']:.1f} km/h")
    print(f"Minimum Speed: {stats['min_speed_kph']:.1f} km/h")

    return lap


def print_progress(progress):
    """Print improvements and the final iteration."""
    if not progress.improved and progress.progress < 1.0:
        return
    print(f"  [{progress.progress * 100:5.1f}%] best lap {progress.best_time:.3f}s "
          f"({progress.accepted_moves} moves accepted)")


def optimize_racing_line(left_edge, right_edge, config, output_dir):
    """
    Run the racing line optimization.

    Args:
        left_edge: Left edge points
        right_edge: Right edge points
        config: Configuration dictionary
        output_dir: Directory to save results

    Returns:
        dict: Optimization results
    """
    print("\n--- Optimizing Racing Line ---")
    settings = config['optimization_settings']

    start_time = time.time()
    results = run_racing_line_optimization(
        left_edge,
        right_edge,
        config_file=config['session_config'],
        iterations=settings['iterations'],
        seed=settings['seed'],
        progress_callback=print_progress,
        max_time=settings['max_time'],
        save_dir=output_dir
    )
    end_time = time.time()

    print(f"Optimization completed in {end_time - start_time:.1f}s ({results['status'].name})")
    print(f"Racing Line Lap Time: {results['lap_time']:.3f}s")
    print(f"Improvement: {results['improvement']:.3f}s")

    if results['aborted']:
        print("Note: optimization was stopped early, best line so far returned")

    return results


def export_results(results, session, output_dir):
    """
    Export speed profiles and the configuration used.

    Args:
        results: Optimization results
        session: SessionConfig used for the run
        output_dir: Directory to save results
    """
    centerline_table = results['centerline_lap'].to_dataframe(results['centerline'])
    racing_table = results['racing_line_lap'].to_dataframe(results['racing_line'])

    summary = pd.DataFrame([
        dict(line='centerline', **results['centerline_lap'].get_stats()),
        dict(line='racing_line', **results['racing_line_lap'].get_stats()),
    ])

    centerline_table.to_csv(os.path.join(output_dir, "centerline.csv"), index=False)
    racing_table.to_csv(os.path.join(output_dir, "racing_line_profile.csv"), index=False)
    summary.to_csv(os.path.join(output_dir, "summary.csv"), index=False)
    save_config(session, os.path.join(output_dir, "session_config.yaml"))

    print(f"\nResults exported to {output_dir}")


def main():
    """Main function to run the racing line example."""
    print("Racing Line Finder - Example Session")
    print("====================================")

    config = load_configurations()
    output_dir = config['output_dir']

    session = load_config(config['session_config'])
    params = session.physics

    track, left_edge, right_edge = create_track(session)
    centerline_lap = run_centerline_simulation(track, params)

    validation = validate_lap_performance(centerline_lap, params.top_speed)
    if not validation['valid']:
        print("Warning: centerline lap failed validation")

    results = optimize_racing_line(left_edge, right_edge, config, output_dir)

    comparison = compare_lines(results['centerline'], results['racing_line'], params)
    print("\n=== Line Comparison ===")
    for line in ('centerline', 'racing_line'):
        stats = comparison[line]
        print(f"{line:12s} lap {stats['lap_time']:.3f}s, "
              f"avg {stats['avg_speed_kph']:.1f} km/h, max lateral {stats['max_lateral_g']:.2f} g")
    print(f"Time gained: {comparison['time_gained']:.3f}s ({comparison['time_gained_percent']:.1f}%)")

    export_results(results, session, output_dir)

    print("\nSession completed successfully!")


if __name__ == "__main__":
    main()
