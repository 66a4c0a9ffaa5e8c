#!/usr/bin/env python3
"""
Headless version of main.py for testing without display.
Runs simulation for a few steps and reports performance.
"""

import argparse
import time
import numpy as np

from .cli import (add_common_arguments, configure_logging, params_from_args,
                  select_backend, print_run_info)
from .core.backend import print_backend_info
from .simulation import FluidSimulation


def main(argv=None):
    parser = argparse.ArgumentParser(description="Real-time SPH Fluid (Headless)")
    add_common_arguments(parser)
    parser.add_argument("--steps", type=int, default=100, help="Number of steps to run")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        params = params_from_args(args)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    select_backend(args.backend, params.particle_count)
    print_backend_info()
    print_run_info(params, args.scenario)
    print(f"  Steps: {args.steps}")

    sim = FluidSimulation(params, scenario=args.scenario, seed=args.seed)

    # Run simulation
    print("\nRunning simulation...")
    step_times = []

    for step in range(args.steps):
        t0 = time.perf_counter()
        sim.step(args.dt)
        step_times.append(time.perf_counter() - t0)

        # Progress
        if (step + 1) % 20 == 0:
            avg_time = np.mean(step_times[-20:])
            fps = 1.0 / avg_time
            print(f"  Step {step+1}/{args.steps}: {avg_time*1000:.1f} ms/step ({fps:.1f} FPS)")

    # Summary
    print("\nSimulation complete!")
    if step_times:
        avg_time = np.mean(step_times)
        print(f"Average: {avg_time*1000:.1f} ms/step ({1.0 / avg_time:.1f} FPS)")
        print(f"Total time: {sum(step_times):.1f} seconds")

    stats = sim.get_statistics()
    print("\nFinal state:")
    for key in ('sim_time', 'kinetic_energy', 'max_speed', 'mean_density',
                'max_pressure', 'mean_neighbors', 'occupied_cells',
                'overlap_corrections', 'nonfinite_particles'):
        print(f"  {key}: {stats[key]}")


if __name__ == "__main__":
    main()
