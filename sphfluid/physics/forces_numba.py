"""
Numba-optimized neighbor interactions.

Same formulas as ``forces_vectorized``. Each particle reads shared state and
writes only its own force/delta slot, so every loop runs with prange.
"""

import numpy as np
import numba as nb
from typing import Tuple
from ..core.particles import ParticleArrays
from ..core.kernels import poly6, spiky_grad_mag
from .forces_vectorized import DENSITY_EPSILON, REPULSION_STRENGTH, REPULSION_TIME_SCALE


@nb.njit(parallel=True, cache=True)
def accumulate_surface_tension_numba(position_x: np.ndarray, position_y: np.ndarray,
                                     neighbor_ids: np.ndarray, neighbor_distances: np.ndarray,
                                     neighbor_count: np.ndarray,
                                     force_x: np.ndarray, force_y: np.ndarray,
                                     radius: float, tension: float):
    for i in nb.prange(position_x.shape[0]):
        fx = 0.0
        fy = 0.0
        for k in range(neighbor_count[i]):
            d = neighbor_distances[i, k]
            if d <= 0.0:
                continue
            j = neighbor_ids[i, k]
            weight = tension * poly6(d, radius) / d
            fx -= (position_x[j] - position_x[i]) * weight
            fy -= (position_y[j] - position_y[i]) * weight
        force_x[i] += fx
        force_y[i] += fy


@nb.njit(parallel=True, cache=True)
def accumulate_pressure_force_numba(position_x: np.ndarray, position_y: np.ndarray,
                                    density: np.ndarray, pressure: np.ndarray,
                                    neighbor_ids: np.ndarray, neighbor_distances: np.ndarray,
                                    neighbor_count: np.ndarray,
                                    force_x: np.ndarray, force_y: np.ndarray,
                                    radius: float):
    for i in nb.prange(position_x.shape[0]):
        fx = 0.0
        fy = 0.0
        for k in range(neighbor_count[i]):
            d = neighbor_distances[i, k]
            if d <= 0.0 or d >= radius:
                continue
            j = neighbor_ids[i, k]
            density_j = max(density[j], DENSITY_EPSILON)
            magnitude = (pressure[i] + pressure[j]) / (2.0 * density_j) * spiky_grad_mag(d, radius)
            factor = magnitude / d
            fx += (position_x[j] - position_x[i]) * factor
            fy += (position_y[j] - position_y[i]) * factor
        force_x[i] += fx
        force_y[i] += fy


@nb.njit(parallel=True, cache=True)
def compute_viscosity_delta_numba(velocity_x: np.ndarray, velocity_y: np.ndarray,
                                  neighbor_ids: np.ndarray, neighbor_distances: np.ndarray,
                                  neighbor_count: np.ndarray,
                                  dvx: np.ndarray, dvy: np.ndarray,
                                  radius: float, viscosity: float, dt: float):
    for i in nb.prange(velocity_x.shape[0]):
        sx = 0.0
        sy = 0.0
        for k in range(neighbor_count[i]):
            j = neighbor_ids[i, k]
            weight = (1.0 - neighbor_distances[i, k] / radius) * (viscosity * dt)
            sx += (velocity_x[j] - velocity_x[i]) * weight
            sy += (velocity_y[j] - velocity_y[i]) * weight
        dvx[i] = sx
        dvy[i] = sy


@nb.njit(parallel=True, cache=True)
def compute_repulsion_delta_numba(position_x: np.ndarray, position_y: np.ndarray,
                                  neighbor_ids: np.ndarray, neighbor_distances: np.ndarray,
                                  neighbor_count: np.ndarray,
                                  dvx: np.ndarray, dvy: np.ndarray,
                                  radius: float, scale: float):
    for i in nb.prange(position_x.shape[0]):
        sx = 0.0
        sy = 0.0
        for k in range(neighbor_count[i]):
            d = neighbor_distances[i, k]
            if d <= 0.0 or d >= radius:
                continue
            j = neighbor_ids[i, k]
            factor = (radius - d) * scale / d
            sx += (position_x[i] - position_x[j]) * factor
            sy += (position_y[i] - position_y[j]) * factor
        dvx[i] = sx
        dvy[i] = sy


def accumulate_surface_tension_numba_wrapper(particles: ParticleArrays, radius: float,
                                             tension: float):
    accumulate_surface_tension_numba(
        particles.position_x, particles.position_y,
        particles.neighbor_ids, particles.neighbor_distances, particles.neighbor_count,
        particles.force_x, particles.force_y,
        radius, tension
    )


def accumulate_pressure_force_numba_wrapper(particles: ParticleArrays, radius: float):
    accumulate_pressure_force_numba(
        particles.position_x, particles.position_y,
        particles.density, particles.pressure,
        particles.neighbor_ids, particles.neighbor_distances, particles.neighbor_count,
        particles.force_x, particles.force_y,
        radius
    )


def compute_viscosity_delta_numba_wrapper(particles: ParticleArrays, radius: float,
                                          viscosity: float, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    dvx = np.zeros(particles.n)
    dvy = np.zeros(particles.n)
    compute_viscosity_delta_numba(
        particles.velocity_x, particles.velocity_y,
        particles.neighbor_ids, particles.neighbor_distances, particles.neighbor_count,
        dvx, dvy, radius, viscosity, dt
    )
    return dvx, dvy


def compute_repulsion_delta_numba_wrapper(particles: ParticleArrays, radius: float,
                                          dt: float) -> Tuple[np.ndarray, np.ndarray]:
    dvx = np.zeros(particles.n)
    dvy = np.zeros(particles.n)
    compute_repulsion_delta_numba(
        particles.position_x, particles.position_y,
        particles.neighbor_ids, particles.neighbor_distances, particles.neighbor_count,
        dvx, dvy, radius, REPULSION_STRENGTH * dt * REPULSION_TIME_SCALE
    )
    return dvx, dvy
