"""
Tests for positional declipping of overlapping neighbor pairs.
"""

import numpy as np
import pytest
import sphfluid
from sphfluid.core.spatial_grid import UniformGrid


def with_neighbors(particles, radius=10.0):
    grid = UniformGrid(max(10.0, radius))
    grid.rebuild(particles)
    sphfluid.find_neighbors(particles, grid, radius)
    return particles


class TestOverlapResolution:

    def test_no_overlap_leaves_positions(self, backend, make_particles, lattice_positions):
        particles = with_neighbors(make_particles(lattice_positions))
        before = particles.get_positions()
        corrections = sphfluid.resolve_overlaps(particles, min_separation=1.0)

        assert corrections == 0
        np.testing.assert_array_equal(particles.get_positions(), before)

    def test_pair_separated_to_minimum(self, backend, make_particles):
        particles = with_neighbors(make_particles([[0.0, 0.0], [1.0, 0.0]]))
        corrections = sphfluid.resolve_overlaps(particles, min_separation=3.0)

        assert corrections >= 1
        # Each side moved by half the overlap, midpoint unchanged
        assert particles.position_x[0] == pytest.approx(-1.0)
        assert particles.position_x[1] == pytest.approx(2.0)
        np.testing.assert_allclose(particles.position_y, 0.0)

    def test_coincident_pair_left_alone(self, backend, make_particles):
        particles = with_neighbors(make_particles([[1.0, 1.0], [1.0, 1.0]]))
        assert sphfluid.resolve_overlaps(particles, min_separation=3.0) == 0
        assert particles.get_positions().tolist() == [[1.0, 1.0], [1.0, 1.0]]

    def test_only_listed_neighbors_are_resolved(self, backend, make_particles):
        # Rows are not refreshed; pairs missing from them are not seen
        particles = with_neighbors(make_particles([[0.0, 0.0], [50.0, 0.0]]))
        particles.position_x[1] = 0.5
        assert sphfluid.resolve_overlaps(particles, min_separation=3.0) == 0
        assert particles.position_x[1] == 0.5

    def test_corrections_are_sequential(self, backend, make_particles):
        # Fixing (0, 1) pushes 1 into 2; fixing (1, 2) then re-opens the first gap
        particles = with_neighbors(make_particles([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]]))
        corrections = sphfluid.resolve_overlaps(particles, min_separation=2.0)

        assert corrections == 2
        np.testing.assert_allclose(particles.position_x, [-0.5, 1.25, 3.25])

    def test_zero_min_separation(self, backend, make_particles):
        particles = with_neighbors(make_particles([[0.0, 0.0], [0.1, 0.0]]))
        assert sphfluid.resolve_overlaps(particles, min_separation=0.0) == 0
