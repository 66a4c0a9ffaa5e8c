"""
Numba-optimized overlap resolution.

Sequential: each correction is visible to the pairs after it, so
the loop cannot be split across threads without changing the result.
"""

import numpy as np
import numba as nb
from ..core.particles import ParticleArrays


@nb.njit(cache=True)
def resolve_overlaps_numba(position_x: np.ndarray, position_y: np.ndarray,
                           neighbor_ids: np.ndarray, neighbor_count: np.ndarray,
                           min_separation: float) -> int:
    corrections = 0
    if min_separation <= 0.0:
        return corrections

    for i in range(position_x.shape[0]):
        for k in range(neighbor_count[i]):
            j = neighbor_ids[i, k]
            dx = position_x[j] - position_x[i]
            dy = position_y[j] - position_y[i]
            dist = np.sqrt(dx * dx + dy * dy)
            if dist <= 0.0 or dist >= min_separation:
                continue

            shift = 0.5 * (min_separation - dist) / dist
            position_x[i] -= dx * shift
            position_y[i] -= dy * shift
            position_x[j] += dx * shift
            position_y[j] += dy * shift
            corrections += 1

    return corrections


def resolve_overlaps_numba_wrapper(particles: ParticleArrays, min_separation: float) -> int:
    """Wrapper for Numba overlap resolution that matches standard interface."""
    return resolve_overlaps_numba(
        particles.position_x, particles.position_y,
        particles.neighbor_ids, particles.neighbor_count,
        min_separation
    )
