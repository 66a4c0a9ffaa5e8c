"""
Numba-optimized density computation.

Each particle's density depends only on its own neighbor row, so the loop
runs in parallel.
"""

import numpy as np
import numba as nb
from ..core.particles import ParticleArrays
from ..core.kernels import poly6


@nb.njit(parallel=True, cache=True)
def compute_density_numba(neighbor_distances: np.ndarray, neighbor_count: np.ndarray,
                          density: np.ndarray, mass: float, radius: float):
    """Numba-optimized density summation (no self contribution)."""
    for i in nb.prange(density.shape[0]):
        total = 0.0
        for k in range(neighbor_count[i]):
            total += poly6(neighbor_distances[i, k], radius)
        density[i] = mass * total


def compute_density_numba_wrapper(particles: ParticleArrays, mass: float, radius: float):
    """Wrapper for Numba density computation that matches standard interface."""
    compute_density_numba(
        particles.neighbor_distances, particles.neighbor_count,
        particles.density, mass, radius
    )
