"""
The fluid simulation: owns particle state and the grid, runs the tick.

One tick is a fixed, ordered list of stages. Each stage reads what the
earlier stages of the same tick produced, so the order is part of the
result:

    rebuild_grid -> find_neighbors -> density -> pressure -> gravity
    -> surface_tension -> pressure_force -> viscosity -> repulsion
    -> pointer -> integrate -> resolve_overlaps

Gravity, viscosity, repulsion and pointer write velocities directly. Surface
tension and pressure force accumulate into the force channel, which the
integrator turns into velocity. The overlap resolver reuses the neighbor rows
found at the start of the tick.
"""

import logging
import math
import time
import numpy as np
from typing import Callable, Dict, List, Optional, Tuple

from . import api
from .config import SimulationParams
from .core.backend import parse_backend, get_backend
from .core.particles import ParticleArrays
from .core.spatial_grid import UniformGrid
from .core.integrator_vectorized import sanitize_nonfinite_vectorized
from .physics.diagnostics import (compute_kinetic_energy, compute_momentum,
                                  max_speed, count_nonfinite)
from .scenarios import create_scenario

logger = logging.getLogger(__name__)


class FluidSimulation:
    """Real-time SPH fluid in an axis-aligned square box."""

    def __init__(
        self,
        params: Optional[SimulationParams] = None,
        positions: Optional[np.ndarray] = None,
        velocities: Optional[np.ndarray] = None,
        backend: Optional[str] = None,
        scenario: str = 'block',
        seed: Optional[int] = None,
    ):
        """
        Initialize simulation.

        Args:
            params: Simulation parameters (defaults if None)
            positions: Initial (N, 2) positions; built from ``scenario`` if None
            velocities: Initial (N, 2) velocities; zero if None
            backend: Pin a backend ('cpu' or 'numba'); None follows the global one
            scenario: Layout name used when ``positions`` is None
            seed: Seed for randomized layouts

        Raises:
            ValueError: On unknown backend or scenario, or wrongly shaped arrays
        """
        self.params = params if params is not None else SimulationParams()
        self.backend = parse_backend(backend).value if backend else None

        n = self.params.particle_count
        self.particles = ParticleArrays.allocate(n, self.params.max_neighbors,
                                                 self.params.rest_density)
        self.grid = UniformGrid(self.params.cell_size)

        if positions is None:
            positions = create_scenario(scenario, self.params, seed)
        self.particles.set_positions(positions)
        if velocities is not None:
            self.particles.set_velocities(velocities)

        self._initial_positions = self.particles.get_positions()
        self._initial_velocities = self.particles.get_velocities()

        # Pointer tracking
        self.pointer: Optional[Tuple[float, float]] = None
        self.previous_pointer: Optional[Tuple[float, float]] = None
        self.pointer_displacement = (0.0, 0.0)
        self.pointer_hits = 0

        # Counters
        self.step_count = 0
        self.sim_time = 0.0
        self.overlap_corrections = 0
        self.step_timings: Dict[str, float] = {}

        self.stages: List[Tuple[str, Callable[[float], None]]] = [
            ('rebuild_grid', self._rebuild_grid),
            ('find_neighbors', self._find_neighbors),
            ('density', self._density),
            ('pressure', self._pressure),
            ('gravity', self._gravity),
            ('surface_tension', self._surface_tension),
            ('pressure_force', self._pressure_force),
            ('viscosity', self._viscosity),
            ('repulsion', self._repulsion),
            ('pointer', self._pointer),
            ('integrate', self._integrate),
            ('resolve_overlaps', self._resolve_overlaps),
        ]
        self._stage_lookup = dict(self.stages)

        logger.info("Created simulation: %d particles, cell size %.3g, backend %s",
                    n, self.grid.cell_size, self.active_backend)

    @property
    def stage_names(self) -> List[str]:
        return [name for name, _ in self.stages]

    @property
    def active_backend(self) -> str:
        return self.backend if self.backend is not None else get_backend()

    @property
    def n_particles(self) -> int:
        return self.particles.n

    # Stages
    def _rebuild_grid(self, dt: float):
        # Grid keys cannot be formed from NaN, recover before bucketing
        sanitize_nonfinite_vectorized(self.particles, self.params.half_extent)
        self.grid.rebuild(self.particles)

    def _find_neighbors(self, dt: float):
        api.find_neighbors(self.particles, self.grid, self.params.interaction_radius,
                           backend=self.backend)

    def _density(self, dt: float):
        api.compute_density(self.particles, self.params.mass, self.params.interaction_radius,
                            backend=self.backend)

    def _pressure(self, dt: float):
        api.compute_pressure(self.particles, self.params.stiffness, self.params.rest_density,
                             backend=self.backend)

    def _gravity(self, dt: float):
        api.apply_gravity(self.particles, self.params.gravity, backend=self.backend)

    def _surface_tension(self, dt: float):
        api.accumulate_surface_tension(self.particles, self.params.interaction_radius,
                                       self.params.surface_tension, backend=self.backend)

    def _pressure_force(self, dt: float):
        api.accumulate_pressure_force(self.particles, self.params.interaction_radius,
                                      backend=self.backend)

    def _viscosity(self, dt: float):
        api.apply_viscosity(self.particles, self.params.interaction_radius,
                            self.params.viscosity, dt, backend=self.backend)

    def _repulsion(self, dt: float):
        api.apply_repulsion(self.particles, self.params.interaction_radius, dt,
                            backend=self.backend)

    def _pointer(self, dt: float):
        if self.pointer is None:
            self.pointer_hits = 0
            return
        self.pointer_hits = api.apply_pointer(self.particles, self.pointer,
                                              self.pointer_displacement,
                                              self.params.pointer_radius,
                                              backend=self.backend)

    def _integrate(self, dt: float):
        api.integrate(self.particles, dt, self.params.mass, self.params.half_extent,
                      self.params.velocity_damping, backend=self.backend)

    def _resolve_overlaps(self, dt: float):
        self.overlap_corrections = api.resolve_overlaps(self.particles,
                                                        self.params.min_separation,
                                                        backend=self.backend)

    # Tick
    @staticmethod
    def _validate_dt(dt: float) -> float:
        dt = float(dt)
        if not math.isfinite(dt) or dt <= 0.0:
            raise ValueError(f"dt must be positive and finite, got {dt}")
        return dt

    def set_pointer(self, pointer: Optional[Tuple[float, float]]):
        """Record this tick's pointer and derive its displacement.

        Displacement is zero when the previous tick had no pointer.
        """
        if pointer is None:
            self.pointer = None
            self.pointer_displacement = (0.0, 0.0)
            return

        try:
            x, y = (float(p) for p in pointer)
        except (TypeError, ValueError):
            raise ValueError(f"pointer must be an (x, y) pair, got {pointer!r}")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"pointer must be finite, got {pointer!r}")

        self.pointer = (x, y)
        if self.previous_pointer is None:
            self.pointer_displacement = (0.0, 0.0)
        else:
            self.pointer_displacement = (x - self.previous_pointer[0],
                                         y - self.previous_pointer[1])

    def step(self, dt: float, pointer: Optional[Tuple[float, float]] = None) -> np.ndarray:
        """Advance the simulation by one tick.

        Args:
            dt: Time step in seconds
            pointer: Pointer position in world coordinates, or None

        Returns:
            (N, 2) array of particle positions after the tick

        Raises:
            ValueError: If dt is not positive and finite, or pointer is malformed
        """
        dt = self._validate_dt(dt)
        self.set_pointer(pointer)

        t0 = time.perf_counter()
        self.particles.reset_forces()
        for name, stage in self.stages:
            t_stage = time.perf_counter()
            stage(dt)
            self.step_timings[name] = time.perf_counter() - t_stage

        self.previous_pointer = self.pointer
        self.step_count += 1
        self.sim_time += dt
        self.step_timings['total'] = time.perf_counter() - t0
        return self.transforms()

    def run_stage(self, name: str, dt: float):
        """Run a single stage against the current state.

        The force channel is not reset; ``step`` does that once per tick.

        Raises:
            ValueError: If the stage name is unknown or dt is invalid
        """
        dt = self._validate_dt(dt)
        try:
            stage = self._stage_lookup[name]
        except KeyError:
            raise ValueError(f"Unknown stage: {name}. Choose from: {', '.join(self.stage_names)}")
        stage(dt)

    def transforms(self) -> np.ndarray:
        """Particle positions for the renderer, row i is particle i."""
        return self.particles.get_positions()

    def reset(self):
        """Restore the initial positions and velocities."""
        self.particles.set_positions(self._initial_positions)
        self.particles.set_velocities(self._initial_velocities)
        self.particles.density[:] = self.params.rest_density
        self.particles.pressure[:] = 0.0
        self.particles.reset_forces()
        self.particles.reset_neighbors()

        self.pointer = None
        self.previous_pointer = None
        self.pointer_displacement = (0.0, 0.0)
        self.pointer_hits = 0

        self.step_count = 0
        self.sim_time = 0.0
        self.overlap_corrections = 0
        self.step_timings = {}
        logger.info("Simulation reset")

    def get_statistics(self) -> dict:
        """Summary of the current state for logging and display."""
        p = self.particles
        mass = self.params.mass
        counts = p.neighbor_count
        stats = {
            'step_count': self.step_count,
            'sim_time': self.sim_time,
            'n_particles': p.n,
            'backend': self.active_backend,
            'kinetic_energy': compute_kinetic_energy(p, mass),
            'momentum': compute_momentum(p, mass),
            'max_speed': max_speed(p),
            'nonfinite_particles': count_nonfinite(p),
            'mean_density': float(np.mean(p.density)) if p.n else 0.0,
            'max_density': float(np.max(p.density)) if p.n else 0.0,
            'max_pressure': float(np.max(p.pressure)) if p.n else 0.0,
            'mean_neighbors': float(np.mean(counts)) if p.n else 0.0,
            'max_neighbors': int(np.max(counts)) if p.n else 0,
            'neighbor_capacity': p.neighbor_capacity,
            'overlap_corrections': self.overlap_corrections,
            'pointer_hits': self.pointer_hits,
        }
        stats.update(self.grid.get_statistics())
        return stats
