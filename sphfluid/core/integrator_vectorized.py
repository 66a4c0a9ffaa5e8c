"""
Vectorized time integration for SPH particles.

Includes:
- Semi-implicit Euler update (velocity from the force channel, then position)
- Axis-aligned boundary clamping with damped reflection
- Recovery of non-finite particle state
"""

import logging
import numpy as np
from .particles import ParticleArrays

logger = logging.getLogger(__name__)

# Vertical reflections lose extra energy, the box bottom behaves like a floor
VERTICAL_DAMPING_SCALE = 0.5


def integrate_semi_implicit_vectorized(particles: ParticleArrays, dt: float, mass: float,
                                       half_extent: float, damping: float):
    """Advance particles one tick and keep them inside the box.

    velocity += force / mass * dt
    position += velocity * dt

    Then non-finite state is recovered and the boundary is applied.

    Args:
        particles: Particle arrays with the force channel accumulated
        dt: Time step
        mass: Particle mass
        half_extent: Box is [-half_extent, half_extent] on both axes
        damping: Velocity damping factor on wall collisions
    """
    particles.velocity_x += particles.force_x / mass * dt
    particles.velocity_y += particles.force_y / mass * dt

    particles.position_x += particles.velocity_x * dt
    particles.position_y += particles.velocity_y * dt

    sanitize_nonfinite_vectorized(particles, half_extent)
    apply_boundary_clamp_vectorized(particles, half_extent, damping)


def apply_boundary_clamp_vectorized(particles: ParticleArrays, half_extent: float,
                                    damping: float):
    """Clamp positions to the box and reflect the crossing velocity component.

    Axes are handled independently, a particle may hit a corner on both.
    x velocity is scaled by ``-damping``, y velocity by ``-damping * 0.5``.

    Args:
        particles: Particle arrays
        half_extent: Box half size
        damping: Velocity reduction factor on collision
    """
    bound = half_extent
    damping_y = damping * VERTICAL_DAMPING_SCALE

    # Left / right
    out_x = np.abs(particles.position_x) > bound
    particles.position_x[out_x] = np.copysign(bound, particles.position_x[out_x])
    particles.velocity_x[out_x] *= -damping

    # Bottom / top
    out_y = np.abs(particles.position_y) > bound
    particles.position_y[out_y] = np.copysign(bound, particles.position_y[out_y])
    particles.velocity_y[out_y] *= -damping_y


def sanitize_nonfinite_vectorized(particles: ParticleArrays, half_extent: float) -> int:
    """Reset particles whose position or velocity is NaN or infinite.

    NaN positions go to 0, infinite ones to the matching box edge; velocity
    components of affected particles are zeroed. The grid and neighbor
    search cannot cope with NaN, so this runs before they see the data.

    Returns:
        Number of particles that were reset
    """
    bad = ~(np.isfinite(particles.position_x) & np.isfinite(particles.position_y)
            & np.isfinite(particles.velocity_x) & np.isfinite(particles.velocity_y))
    n_bad = int(np.count_nonzero(bad))
    if n_bad == 0:
        return 0

    logger.warning("Resetting %d particle(s) with non-finite state", n_bad)
    for position in (particles.position_x, particles.position_y):
        position[bad] = np.nan_to_num(position[bad], nan=0.0,
                                      posinf=half_extent, neginf=-half_extent)
    particles.velocity_x[bad] = 0.0
    particles.velocity_y[bad] = 0.0
    return n_bad
