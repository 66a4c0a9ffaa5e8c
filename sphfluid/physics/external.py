"""
External velocity inputs: uniform gravity and pointer dragging.

Both are plain O(N) array operations, shared by every backend.
"""

import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays


def apply_gravity(particles: ParticleArrays, gravity: Tuple[float, float]):
    """Add the gravity vector to every velocity.

    Gravity is a per-tick velocity increment, not scaled by dt.
    """
    particles.velocity_x += gravity[0]
    particles.velocity_y += gravity[1]


def apply_pointer_interaction(particles: ParticleArrays, pointer: Tuple[float, float],
                              displacement: Tuple[float, float], pointer_radius: float) -> int:
    """Drag particles near the pointer along with it.

    Every particle closer than ``pointer_radius`` to the pointer gets
    ``displacement * (1 - d / pointer_radius)`` added to its velocity, where
    displacement is the pointer's movement since the previous tick.

    Args:
        particles: Particle arrays
        pointer: Current pointer position (x, y)
        displacement: Pointer movement since the previous tick
        pointer_radius: Radius of influence

    Returns:
        Number of particles affected
    """
    dx = particles.position_x - pointer[0]
    dy = particles.position_y - pointer[1]
    distances = np.sqrt(dx * dx + dy * dy)

    inside = distances < pointer_radius
    falloff = 1.0 - distances[inside] / pointer_radius

    particles.velocity_x[inside] += displacement[0] * falloff
    particles.velocity_y[inside] += displacement[1] * falloff
    return int(np.count_nonzero(inside))
