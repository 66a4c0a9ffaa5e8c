"""
Vectorized density and pressure computation.

    rho_i = sum_j m * W_poly6(|x_i - x_j|, r)     (j over neighbors, no self term)
    p_i   = k * max(0, rho_i - rho_0)

Pressure is clipped at zero, so it only ever pushes particles apart.
"""

import numpy as np
from ..core.particles import ParticleArrays
from ..core.kernels import poly6_vectorized


def compute_density_vectorized(particles: ParticleArrays, mass: float, radius: float):
    """Density by direct summation over each particle's neighbor row.

    A particle without neighbors gets density exactly 0.

    Args:
        particles: Particle arrays with neighbor information
        mass: Particle mass
        radius: Interaction radius
    """
    particles.density[:] = 0.0

    for i in range(particles.n):
        n_neighbors = particles.neighbor_count[i]
        if n_neighbors == 0:
            continue

        distances = particles.neighbor_distances[i, :n_neighbors]
        particles.density[i] = mass * np.sum(poly6_vectorized(distances, radius))


def compute_pressure_vectorized(particles: ParticleArrays, stiffness: float,
                                rest_density: float):
    """Clipped linear equation of state."""
    particles.pressure[:] = stiffness * np.maximum(0.0, particles.density - rest_density)
