"""
Whole-system diagnostics: energy, momentum, health checks.
"""

import numpy as np
from typing import Tuple
from ..core.particles import ParticleArrays


def compute_kinetic_energy(particles: ParticleArrays, mass: float) -> float:
    """Total kinetic energy 0.5 * m * |v|^2 summed over particles."""
    speed2 = particles.velocity_x ** 2 + particles.velocity_y ** 2
    return float(0.5 * mass * np.sum(speed2))


def compute_momentum(particles: ParticleArrays, mass: float) -> Tuple[float, float]:
    """Total linear momentum (px, py)."""
    return (float(mass * np.sum(particles.velocity_x)),
            float(mass * np.sum(particles.velocity_y)))


def max_speed(particles: ParticleArrays) -> float:
    if particles.n == 0:
        return 0.0
    return float(np.sqrt(np.max(particles.velocity_x ** 2 + particles.velocity_y ** 2)))


def count_nonfinite(particles: ParticleArrays) -> int:
    """Particles with any NaN/Inf in position or velocity."""
    finite = (np.isfinite(particles.position_x) & np.isfinite(particles.position_y)
              & np.isfinite(particles.velocity_x) & np.isfinite(particles.velocity_y))
    return int(np.count_nonzero(~finite))
