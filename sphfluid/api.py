"""
Unified API for the fluid pipeline with automatic backend dispatch.

This module provides a clean interface that dispatches every pipeline stage
to its CPU (NumPy) or Numba implementation based on the current backend, or
on the ``backend`` override passed to the call.
"""

import numpy as np
from typing import Optional, Tuple
from .core.backend import (dispatch, set_backend, get_backend, list_backends,
                           auto_select_backend, print_backend_info,
                           backend_function, for_backend, Backend)
from .core.particles import ParticleArrays
from .core.spatial_grid import UniformGrid, find_neighbors_vectorized
from .core.spatial_grid_numba import find_neighbors_numba
from .core.integrator_vectorized import integrate_semi_implicit_vectorized
from .physics.density_vectorized import compute_density_vectorized, compute_pressure_vectorized
from .physics.density_numba import compute_density_numba_wrapper
from .physics.forces_vectorized import (accumulate_surface_tension_vectorized,
                                        accumulate_pressure_force_vectorized,
                                        compute_viscosity_delta_vectorized,
                                        compute_repulsion_delta_vectorized)
from .physics.forces_numba import (accumulate_surface_tension_numba_wrapper,
                                   accumulate_pressure_force_numba_wrapper,
                                   compute_viscosity_delta_numba_wrapper,
                                   compute_repulsion_delta_numba_wrapper)
from .physics.external import apply_gravity as _apply_gravity_array
from .physics.external import apply_pointer_interaction
from .physics.overlap_vectorized import resolve_overlaps_vectorized
from .physics.overlap_numba import resolve_overlaps_numba_wrapper


# CPU implementations
@backend_function("find_neighbors")
@for_backend(Backend.CPU)
def _find_neighbors_cpu(particles: ParticleArrays, grid: UniformGrid, radius: float):
    find_neighbors_vectorized(particles, grid, radius)


@backend_function("compute_density")
@for_backend(Backend.CPU)
def _compute_density_cpu(particles: ParticleArrays, mass: float, radius: float):
    compute_density_vectorized(particles, mass, radius)


@backend_function("accumulate_surface_tension")
@for_backend(Backend.CPU)
def _accumulate_surface_tension_cpu(particles: ParticleArrays, radius: float, tension: float):
    accumulate_surface_tension_vectorized(particles, radius, tension)


@backend_function("accumulate_pressure_force")
@for_backend(Backend.CPU)
def _accumulate_pressure_force_cpu(particles: ParticleArrays, radius: float):
    accumulate_pressure_force_vectorized(particles, radius)


@backend_function("compute_viscosity_delta")
@for_backend(Backend.CPU)
def _compute_viscosity_delta_cpu(particles: ParticleArrays, radius: float,
                                 viscosity: float, dt: float):
    return compute_viscosity_delta_vectorized(particles, radius, viscosity, dt)


@backend_function("compute_repulsion_delta")
@for_backend(Backend.CPU)
def _compute_repulsion_delta_cpu(particles: ParticleArrays, radius: float, dt: float):
    return compute_repulsion_delta_vectorized(particles, radius, dt)


@backend_function("resolve_overlaps")
@for_backend(Backend.CPU)
def _resolve_overlaps_cpu(particles: ParticleArrays, min_separation: float):
    return resolve_overlaps_vectorized(particles, min_separation)


# Numba implementations
@backend_function("find_neighbors")
@for_backend(Backend.NUMBA)
def _find_neighbors_numba(particles: ParticleArrays, grid: UniformGrid, radius: float):
    find_neighbors_numba(particles, grid, radius)


@backend_function("compute_density")
@for_backend(Backend.NUMBA)
def _compute_density_numba(particles: ParticleArrays, mass: float, radius: float):
    compute_density_numba_wrapper(particles, mass, radius)


@backend_function("accumulate_surface_tension")
@for_backend(Backend.NUMBA)
def _accumulate_surface_tension_numba(particles: ParticleArrays, radius: float, tension: float):
    accumulate_surface_tension_numba_wrapper(particles, radius, tension)


@backend_function("accumulate_pressure_force")
@for_backend(Backend.NUMBA)
def _accumulate_pressure_force_numba(particles: ParticleArrays, radius: float):
    accumulate_pressure_force_numba_wrapper(particles, radius)


@backend_function("compute_viscosity_delta")
@for_backend(Backend.NUMBA)
def _compute_viscosity_delta_numba(particles: ParticleArrays, radius: float,
                                   viscosity: float, dt: float):
    return compute_viscosity_delta_numba_wrapper(particles, radius, viscosity, dt)


@backend_function("compute_repulsion_delta")
@for_backend(Backend.NUMBA)
def _compute_repulsion_delta_numba(particles: ParticleArrays, radius: float, dt: float):
    return compute_repulsion_delta_numba_wrapper(particles, radius, dt)


@backend_function("resolve_overlaps")
@for_backend(Backend.NUMBA)
def _resolve_overlaps_numba(particles: ParticleArrays, min_separation: float):
    return resolve_overlaps_numba_wrapper(particles, min_separation)


# O(N) array stages, one implementation for every backend
@backend_function("compute_pressure")
@for_backend(Backend.CPU, Backend.NUMBA)
def _compute_pressure_shared(particles: ParticleArrays, stiffness: float, rest_density: float):
    compute_pressure_vectorized(particles, stiffness, rest_density)


@backend_function("apply_gravity")
@for_backend(Backend.CPU, Backend.NUMBA)
def _apply_gravity_shared(particles: ParticleArrays, gravity: Tuple[float, float]):
    _apply_gravity_array(particles, gravity)


@backend_function("apply_pointer")
@for_backend(Backend.CPU, Backend.NUMBA)
def _apply_pointer_shared(particles: ParticleArrays, pointer: Tuple[float, float],
                          displacement: Tuple[float, float], pointer_radius: float):
    return apply_pointer_interaction(particles, pointer, displacement, pointer_radius)


@backend_function("integrate")
@for_backend(Backend.CPU, Backend.NUMBA)
def _integrate_shared(particles: ParticleArrays, dt: float, mass: float,
                      half_extent: float, damping: float):
    integrate_semi_implicit_vectorized(particles, dt, mass, half_extent, damping)


# Public API functions that dispatch to appropriate backend
def find_neighbors(particles: ParticleArrays, grid: UniformGrid, radius: float,
                   backend: Optional[str] = None):
    """Fill neighbor rows from the 3x3 cell block of a rebuilt grid.

    Args:
        particles: Particle arrays
        grid: Grid rebuilt for the current positions
        radius: Interaction radius (must not exceed the grid cell size)
        backend: Override backend ('cpu', 'numba', or None for current)
    """
    dispatch("find_neighbors", particles, grid, radius, backend=backend)


def compute_density(particles: ParticleArrays, mass: float, radius: float,
                    backend: Optional[str] = None):
    """Compute density by summation over neighbor rows."""
    dispatch("compute_density", particles, mass, radius, backend=backend)


def compute_pressure(particles: ParticleArrays, stiffness: float, rest_density: float,
                     backend: Optional[str] = None):
    """Compute clipped pressure from density."""
    dispatch("compute_pressure", particles, stiffness, rest_density, backend=backend)


def apply_gravity(particles: ParticleArrays, gravity: Tuple[float, float],
                  backend: Optional[str] = None):
    """Add the per-tick gravity increment to every velocity."""
    dispatch("apply_gravity", particles, gravity, backend=backend)


def accumulate_surface_tension(particles: ParticleArrays, radius: float, tension: float,
                               backend: Optional[str] = None):
    """Add surface tension into the force channel."""
    dispatch("accumulate_surface_tension", particles, radius, tension, backend=backend)


def accumulate_pressure_force(particles: ParticleArrays, radius: float,
                              backend: Optional[str] = None):
    """Add pressure forces into the force channel (needs density and pressure)."""
    dispatch("accumulate_pressure_force", particles, radius, backend=backend)


def apply_viscosity(particles: ParticleArrays, radius: float, viscosity: float, dt: float,
                    backend: Optional[str] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Apply viscous velocity smoothing; returns the delta that was added."""
    dvx, dvy = dispatch("compute_viscosity_delta", particles, radius, viscosity, dt,
                        backend=backend)
    particles.velocity_x += dvx
    particles.velocity_y += dvy
    return dvx, dvy


def apply_repulsion(particles: ParticleArrays, radius: float, dt: float,
                    backend: Optional[str] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Apply short-range repulsion; returns the delta that was added."""
    dvx, dvy = dispatch("compute_repulsion_delta", particles, radius, dt, backend=backend)
    particles.velocity_x += dvx
    particles.velocity_y += dvy
    return dvx, dvy


def apply_pointer(particles: ParticleArrays, pointer: Tuple[float, float],
                  displacement: Tuple[float, float], pointer_radius: float,
                  backend: Optional[str] = None) -> int:
    """Drag particles near the pointer; returns the number affected."""
    return dispatch("apply_pointer", particles, pointer, displacement, pointer_radius,
                    backend=backend)


def integrate(particles: ParticleArrays, dt: float, mass: float,
              half_extent: float, damping: float, backend: Optional[str] = None):
    """Semi-implicit Euler step, non-finite recovery, boundary clamp."""
    dispatch("integrate", particles, dt, mass, half_extent, damping, backend=backend)


def resolve_overlaps(particles: ParticleArrays, min_separation: float,
                     backend: Optional[str] = None) -> int:
    """Declip overlapping neighbor pairs; returns the number of corrections."""
    return dispatch("resolve_overlaps", particles, min_separation, backend=backend)


__all__ = [
    # Pipeline stages
    'find_neighbors',
    'compute_density',
    'compute_pressure',
    'apply_gravity',
    'accumulate_surface_tension',
    'accumulate_pressure_force',
    'apply_viscosity',
    'apply_repulsion',
    'apply_pointer',
    'integrate',
    'resolve_overlaps',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'ParticleArrays',
    'UniformGrid',
]
