"""
Command line plumbing shared by the interactive and headless entry points.
"""

import argparse
import dataclasses
import logging
from typing import Optional

from . import api
from .config import SimulationParams
from .scenarios import SCENARIOS

# Parameter fields exposed as --flags, with their argparse types
PARAM_FLAGS = {
    'particle_count': int,
    'half_extent': float,
    'particle_radius': float,
    'interaction_radius': float,
    'rest_density': float,
    'stiffness': float,
    'viscosity': float,
    'velocity_damping': float,
    'pointer_radius': float,
    'mass': float,
    'surface_tension': float,
    'max_neighbors': int,
}


def add_common_arguments(parser: argparse.ArgumentParser):
    """Scenario, backend, config and per-parameter overrides."""
    parser.add_argument(
        "--scenario",
        default="block",
        choices=sorted(SCENARIOS),
        help="Initial particle layout (default: block)"
    )
    parser.add_argument(
        "--backend",
        choices=["cpu", "numba", "auto"],
        default="auto",
        help="Computation backend (default: auto)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file with simulation parameters"
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for random layouts")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Time step (default: 1/60)")
    parser.add_argument(
        "--gravity",
        type=float,
        nargs=2,
        metavar=("GX", "GY"),
        default=None,
        help="Gravity velocity increment per tick"
    )
    for name, kind in PARAM_FLAGS.items():
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, type=kind, default=None)
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )


def configure_logging(level: str):
    logging.basicConfig(level=getattr(logging, level),
                        format="%(levelname)s %(name)s: %(message)s")


def params_from_args(args: argparse.Namespace) -> SimulationParams:
    """Build parameters from --config, then apply individual flag overrides."""
    params = SimulationParams.from_json(args.config) if args.config else SimulationParams()

    overrides = {name: getattr(args, name) for name in PARAM_FLAGS
                 if getattr(args, name) is not None}
    if args.gravity is not None:
        overrides['gravity'] = tuple(args.gravity)
    if overrides:
        params = params.replace(**overrides)
    return params


def select_backend(requested: str, n_particles: int) -> Optional[str]:
    """Apply the --backend choice globally and return the active backend name."""
    if requested == "auto":
        backend = api.auto_select_backend(n_particles)
        print(f"Auto-selected {backend.upper()} backend for {n_particles} particles")
        return backend
    if not api.set_backend(requested):
        print(f"Warning: Backend '{requested}' not available, using default")
        return api.get_backend()
    print(f"Using {requested.upper()} backend")
    return requested


def print_run_info(params: SimulationParams, scenario: str):
    print("\nSimulation info:")
    print(f"  Particles: {params.particle_count}")
    print(f"  Box: [{-params.half_extent:g}, {params.half_extent:g}]^2")
    print(f"  Interaction radius: {params.interaction_radius:g} (cell size {params.cell_size:g})")
    print(f"  Scenario: {scenario}")
    changed = [f.name for f in dataclasses.fields(params)
               if getattr(params, f.name) != f.default]
    if changed:
        print(f"  Overrides: {', '.join(changed)}")
