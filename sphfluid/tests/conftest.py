"""Pytest configuration for the fluid tests."""
import os

import numpy as np
import pytest

import sphfluid
from sphfluid.config import SimulationParams
from sphfluid.core.particles import ParticleArrays


def pytest_configure(config):
    """Configure pytest environment for headless runs."""
    # Set SDL to use dummy video driver for headless operation
    os.environ['SDL_VIDEODRIVER'] = 'dummy'
    os.environ['SDL_AUDIODRIVER'] = 'dummy'


@pytest.fixture(params=['cpu', 'numba'])
def backend(request):
    """Parametrize tests over both backends, restoring the global one afterwards."""
    original_backend = sphfluid.get_backend()
    sphfluid.set_backend(request.param)
    yield request.param
    sphfluid.set_backend(original_backend)


@pytest.fixture
def make_particles():
    """Factory for particle arrays from (N, 2) positions and velocities."""
    def _make(positions, velocities=None, max_neighbors=64, rest_density=0.0):
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        particles = ParticleArrays.allocate(len(positions), max_neighbors, rest_density)
        particles.set_positions(positions)
        if velocities is not None:
            particles.set_velocities(velocities)
        return particles
    return _make


@pytest.fixture
def pair_params():
    """Unit-scale parameters for two-particle experiments.

    Gravity, tension and viscosity are off and the visual radius is tiny so
    the overlap resolver stays out of the way.
    """
    return SimulationParams(
        particle_count=2,
        half_extent=10.0,
        particle_radius=0.01,
        interaction_radius=1.0,
        rest_density=0.01,
        stiffness=1.0,
        viscosity=0.0,
        velocity_damping=0.5,
        pointer_radius=1.0,
        mass=1.0,
        gravity=(0.0, 0.0),
        surface_tension=0.0,
    )


@pytest.fixture
def lattice_positions():
    """Jittered 12x12 lattice with spacing 6, so each particle has several neighbors at r = 15."""
    rng = np.random.default_rng(1234)
    xs, ys = np.meshgrid(np.arange(12) * 6.0 - 33.0, np.arange(12) * 6.0 - 33.0)
    positions = np.column_stack((xs.ravel(), ys.ravel()))
    return positions + rng.uniform(-1.5, 1.5, size=positions.shape)
