"""
Tests for time integration, boundary clamping and non-finite recovery.
"""

import logging
import numpy as np
import pytest
import sphfluid
from sphfluid.core.integrator_vectorized import (apply_boundary_clamp_vectorized,
                                                 sanitize_nonfinite_vectorized)


class TestSemiImplicitEuler:
    """velocity from force first, then position from the new velocity."""

    def test_update_order(self, backend, make_particles):
        particles = make_particles([[0.0, 0.0]], velocities=[[1.0, 0.0]])
        particles.force_x[:] = 4.0
        particles.force_y[:] = -2.0
        sphfluid.integrate(particles, dt=0.5, mass=2.0, half_extent=100.0, damping=0.5)

        assert particles.velocity_x[0] == pytest.approx(2.0)
        assert particles.velocity_y[0] == pytest.approx(-0.5)
        assert particles.position_x[0] == pytest.approx(1.0)
        assert particles.position_y[0] == pytest.approx(-0.25)


class TestBoundary:
    """Clamping to the box with damped reflection."""

    @pytest.mark.parametrize("damping", [0.0, 0.3, 1.0])
    def test_containment(self, make_particles, damping):
        rng = np.random.default_rng(11)
        particles = make_particles(rng.uniform(-500.0, 500.0, size=(200, 2)),
                                   velocities=rng.normal(0.0, 50.0, size=(200, 2)))
        apply_boundary_clamp_vectorized(particles, half_extent=100.0, damping=damping)
        assert np.all(np.abs(particles.position_x) <= 100.0)
        assert np.all(np.abs(particles.position_y) <= 100.0)

    def test_clamp_x_exact(self, make_particles):
        particles = make_particles([[105.0, 0.0], [-130.0, 0.0]],
                                   velocities=[[3.0, 1.0], [-2.0, 1.0]])
        apply_boundary_clamp_vectorized(particles, half_extent=100.0, damping=0.5)

        np.testing.assert_array_equal(particles.position_x, [100.0, -100.0])
        np.testing.assert_array_equal(particles.velocity_x, [-1.5, 1.0])
        np.testing.assert_array_equal(particles.velocity_y, [1.0, 1.0])

    def test_clamp_y_uses_half_damping(self, make_particles):
        particles = make_particles([[0.0, -101.0]], velocities=[[0.0, -4.0]])
        apply_boundary_clamp_vectorized(particles, half_extent=100.0, damping=0.5)
        assert particles.position_y[0] == -100.0
        assert particles.velocity_y[0] == pytest.approx(1.0)

    def test_corner_clamps_both_axes(self, make_particles):
        particles = make_particles([[150.0, 150.0]], velocities=[[2.0, 2.0]])
        apply_boundary_clamp_vectorized(particles, half_extent=100.0, damping=1.0)
        assert particles.get_positions().tolist() == [[100.0, 100.0]]
        assert particles.get_velocities().tolist() == [[-2.0, -1.0]]

    def test_inside_untouched(self, make_particles):
        particles = make_particles([[99.0, -100.0]], velocities=[[5.0, -5.0]])
        apply_boundary_clamp_vectorized(particles, half_extent=100.0, damping=0.5)
        assert particles.get_positions().tolist() == [[99.0, -100.0]]
        assert particles.get_velocities().tolist() == [[5.0, -5.0]]


class TestNonFinite:
    """NaN and Inf recovery."""

    def test_sanitize(self, make_particles, caplog):
        particles = make_particles([[np.nan, 1.0], [np.inf, -np.inf], [2.0, 3.0], [4.0, 5.0]],
                                   velocities=[[1.0, 1.0], [1.0, 1.0], [np.nan, 7.0], [8.0, 9.0]])
        with caplog.at_level(logging.WARNING):
            count = sanitize_nonfinite_vectorized(particles, half_extent=50.0)

        assert count == 3
        np.testing.assert_array_equal(particles.get_positions(),
                                      [[0.0, 1.0], [50.0, -50.0], [2.0, 3.0], [4.0, 5.0]])
        np.testing.assert_array_equal(particles.get_velocities(),
                                      [[0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [8.0, 9.0]])
        assert "non-finite" in caplog.text

    def test_sanitize_clean_state(self, make_particles):
        particles = make_particles([[1.0, 2.0]])
        assert sanitize_nonfinite_vectorized(particles, half_extent=50.0) == 0

    def test_integrate_recovers_nan(self, backend, make_particles):
        particles = make_particles([[0.0, 0.0]])
        particles.force_x[:] = np.nan
        sphfluid.integrate(particles, dt=0.1, mass=1.0, half_extent=10.0, damping=0.5)
        assert np.all(np.isfinite(particles.get_positions()))
        assert np.all(np.isfinite(particles.get_velocities()))
