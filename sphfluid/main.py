#!/usr/bin/env python3
"""
Interactive entry point for the SPH fluid.

Usage:
    sphfluid                          # Default block of fluid
    sphfluid --scenario dam_break     # Column against the left wall
    sphfluid --particle-count 1000    # More particles
    sphfluid --backend numba          # Use Numba backend
    sphfluid --config params.json     # Load parameters from a file
"""

import argparse
import time
import numpy as np

from .cli import (add_common_arguments, configure_logging, params_from_args,
                  select_backend, print_run_info)
from .core.backend import print_backend_info
from .simulation import FluidSimulation
from .visualization import PygameRenderer


def main():
    parser = argparse.ArgumentParser(description="Real-time SPH Fluid")
    add_common_arguments(parser)
    parser.add_argument(
        "--fps",
        type=int,
        default=60,
        help="Target FPS (default: 60)"
    )
    parser.add_argument(
        "--window",
        type=int,
        default=800,
        help="Window size in pixels (default: 800)"
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    try:
        params = params_from_args(args)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    select_backend(args.backend, params.particle_count)
    print_backend_info()
    print_run_info(params, args.scenario)
    print(f"  Target FPS: {args.fps}")

    sim = FluidSimulation(params, scenario=args.scenario, seed=args.seed)
    renderer = PygameRenderer(params.half_extent, window_size=args.window,
                              particle_size=max(1, int(round(params.particle_radius * 0.5))))

    print("\nStarting visualization...")
    print("Drag with the left mouse button to push the fluid, ESC to exit")

    frame_times = []
    while renderer.handle_events():
        frame_start = time.perf_counter()

        if renderer.reset_requested:
            sim.reset()
            renderer.reset_requested = False

        if not renderer.is_paused or renderer.step_requested:
            sim.step(args.dt, pointer=renderer.pointer)
            renderer.step_requested = False

        fps = 1.0 / np.mean(frame_times) if frame_times else 0.0
        renderer.draw(sim, fps)

        frame_times.append(time.perf_counter() - frame_start)
        if len(frame_times) > 60:
            frame_times.pop(0)
        renderer.clock.tick(args.fps)

    renderer.close()

    stats = sim.get_statistics()
    print(f"\nRan {stats['step_count']} steps ({stats['sim_time']:.2f} s simulated)")


if __name__ == "__main__":
    main()
