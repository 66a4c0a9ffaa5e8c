"""
Positional declipping of particles that ended a tick too close together.

Runs after integration and reuses the neighbor rows found before it, so pairs
that only came close during this tick are not seen until the next one.
Corrections are written back immediately; resolving (i, j) moves positions
that later pairs read. The result therefore depends on visiting order, which
is particle index order, then neighbor row order.
"""

import numpy as np
from ..core.particles import ParticleArrays


def resolve_overlaps_vectorized(particles: ParticleArrays, min_separation: float) -> int:
    """Push overlapping neighbor pairs apart, half the overlap each.

    Pairs at exactly zero distance have no separation direction and are left
    alone.

    Args:
        particles: Particle arrays with (pre-integration) neighbor rows
        min_separation: Minimum allowed center distance

    Returns:
        Number of corrections applied
    """
    if min_separation <= 0.0:
        return 0

    position_x = particles.position_x
    position_y = particles.position_y
    corrections = 0

    for i in range(particles.n):
        for j in particles.neighbors_of(i):
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
