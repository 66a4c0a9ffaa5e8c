"""
Fully vectorized neighbor interactions.

Two channels:
- force channel: surface tension and pressure add into ``force_x/force_y``
- velocity channel: viscosity and repulsion return a velocity delta computed
  from the current state; the caller adds it afterwards so that every
  particle in the stage sees the same velocities and positions

Neighbor pairs at zero distance contribute nothing.
"""

import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays
from ..core.kernels import poly6_vectorized, spiky_grad_mag_vectorized

# Densities used as divisors are floored here
DENSITY_EPSILON = 1e-12

# Short-range repulsion: (r - d) * strength, scaled by dt * time_scale
REPULSION_STRENGTH = 50.0
REPULSION_TIME_SCALE = 0.5


def _neighbor_offsets(particles: ParticleArrays, i: int):
    """Neighbor ids, distances and x_j - x_i offsets for particle i."""
    n_neighbors = particles.neighbor_count[i]
    neighbor_ids = particles.neighbor_ids[i, :n_neighbors]
    distances = particles.neighbor_distances[i, :n_neighbors]
    dx = particles.position_x[neighbor_ids] - particles.position_x[i]
    dy = particles.position_y[neighbor_ids] - particles.position_y[i]
    return neighbor_ids, distances, dx, dy


def accumulate_surface_tension_vectorized(particles: ParticleArrays, radius: float,
                                          tension: float):
    """force_i -= unit(x_j - x_i) * tension * W_poly6(d_ij)."""
    for i in range(particles.n):
        if particles.neighbor_count[i] == 0:
            continue
        _, distances, dx, dy = _neighbor_offsets(particles, i)

        valid = distances > 0.0
        if not np.any(valid):
            continue
        d = distances[valid]
        weight = tension * poly6_vectorized(d, radius) / d

        particles.force_x[i] -= np.sum(dx[valid] * weight)
        particles.force_y[i] -= np.sum(dy[valid] * weight)


def accumulate_pressure_force_vectorized(particles: ParticleArrays, radius: float):
    """Symmetrized pressure force with the Spiky gradient.

    magnitude = (p_i + p_j) / (2 * rho_j) * spiky_grad_mag(d_ij)   (<= 0)
    force_i  += unit(x_j - x_i) * magnitude

    The magnitude is non-positive, so the force points from j towards i,
    i.e. from high to low pressure.
    """
    for i in range(particles.n):
        if particles.neighbor_count[i] == 0:
            continue
        neighbor_ids, distances, dx, dy = _neighbor_offsets(particles, i)

        valid = (distances > 0.0) & (distances < radius)
        if not np.any(valid):
            continue
        ids = neighbor_ids[valid]
        d = distances[valid]

        density_j = np.maximum(particles.density[ids], DENSITY_EPSILON)
        magnitude = ((particles.pressure[i] + particles.pressure[ids]) / (2.0 * density_j)
                     * spiky_grad_mag_vectorized(d, radius))
        factor = magnitude / d

        particles.force_x[i] += np.sum(dx[valid] * factor)
        particles.force_y[i] += np.sum(dy[valid] * factor)


def compute_viscosity_delta_vectorized(particles: ParticleArrays, radius: float,
                                       viscosity: float, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Velocity smoothing towards neighbors.

    dv_i = viscosity * sum_j (v_j - v_i) * (1 - d_ij / r) * dt

    Returns:
        (dvx, dvy) arrays of shape (N,)
    """
    dvx = np.zeros(particles.n)
    dvy = np.zeros(particles.n)

    for i in range(particles.n):
        n_neighbors = particles.neighbor_count[i]
        if n_neighbors == 0:
            continue
        neighbor_ids = particles.neighbor_ids[i, :n_neighbors]
        distances = particles.neighbor_distances[i, :n_neighbors]

        weight = (1.0 - distances / radius) * (viscosity * dt)
        dvx[i] = np.sum((particles.velocity_x[neighbor_ids] - particles.velocity_x[i]) * weight)
        dvy[i] = np.sum((particles.velocity_y[neighbor_ids] - particles.velocity_y[i]) * weight)

    return dvx, dvy


def compute_repulsion_delta_vectorized(particles: ParticleArrays, radius: float,
                                       dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Short-range push apart.

    dv_i += unit(x_i - x_j) * (r - d_ij) * 50 * dt * 0.5   for 0 < d_ij < r

    Returns:
        (dvx, dvy) arrays of shape (N,)
    """
    dvx = np.zeros(particles.n)
    dvy = np.zeros(particles.n)
    scale = REPULSION_STRENGTH * dt * REPULSION_TIME_SCALE

    for i in range(particles.n):
        if particles.neighbor_count[i] == 0:
            continue
        _, distances, dx, dy = _neighbor_offsets(particles, i)

        valid = (distances > 0.0) & (distances < radius)
        if not np.any(valid):
            continue
        d = distances[valid]
        factor = (radius - d) * scale / d

        # dx, dy point from i to j; repulsion points the other way
        dvx[i] = -np.sum(dx[valid] * factor)
        dvy[i] = -np.sum(dy[valid] * factor)

    return dvx, dvy
