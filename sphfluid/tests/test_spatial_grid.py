"""
Tests for the bucket grid and the 3x3 neighbor search.
"""

import numpy as np
import pytest
import sphfluid
from sphfluid.core.particles import ParticleArrays
from sphfluid.core.spatial_grid import UniformGrid


def brute_force_neighbors(positions, radius):
    diff = positions[:, None, :] - positions[None, :, :]
    dist2 = np.sum(diff ** 2, axis=-1)
    close = dist2 < radius * radius
    np.fill_diagonal(close, False)
    return [set(np.nonzero(row)[0]) for row in close]


class TestRebuild:
    """Bucket contents after a rebuild."""

    def test_every_particle_in_exactly_one_bucket(self, make_particles):
        rng = np.random.default_rng(7)
        particles = make_particles(rng.uniform(-95.0, 95.0, size=(300, 2)))
        grid = UniformGrid(12.0)
        grid.rebuild(particles)

        seen = np.concatenate(list(grid.buckets.values()))
        assert sorted(seen) == list(range(300))

        for (cx, cy), members in grid.buckets.items():
            assert np.all(np.floor(particles.position_x[members] / 12.0) == cx)
            assert np.all(np.floor(particles.position_y[members] / 12.0) == cy)

    def test_bucket_order_follows_index(self, make_particles):
        particles = make_particles([[1.0, 1.0], [50.0, 50.0], [2.0, 3.0], [4.0, 0.5]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        np.testing.assert_array_equal(grid.get_cell_particles(0, 0), [0, 2, 3])

    def test_cell_of_negative_coordinates(self, make_particles):
        particles = make_particles([[-0.5, 0.0], [-10.0, 19.99], [-10.01, -20.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        assert grid.cell_of(0) == (-1, 0)
        assert grid.cell_of(1) == (-1, 1)
        assert grid.cell_of(2) == (-2, -2)

    def test_rebuild_clears_previous_buckets(self, make_particles):
        particles = make_particles([[1.0, 1.0], [2.0, 2.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        particles.position_x[:] = 35.0
        grid.rebuild(particles)
        assert list(grid.buckets) == [(3, 0)]

    def test_distant_cells_stay_distinct(self, make_particles):
        far = 10.0 * 2 ** 32
        particles = make_particles([[15.0, 5.0], [5.0, far + 5.0], [-far, -far]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)

        assert grid.cell_of(1) == (0, 2 ** 32)
        assert grid.cell_of(2) == (-2 ** 32, -2 ** 32)
        for i in range(particles.n):
            assert grid.get_cell_particles(*grid.cell_of(i)).tolist() == [i]
        assert len(grid.buckets) == 3

    def test_empty_particle_set(self):
        grid = UniformGrid(10.0)
        grid.rebuild(ParticleArrays.allocate(0))
        assert grid.buckets == {}
        assert grid.get_statistics()['occupied_cells'] == 0

    def test_invalid_cell_size(self):
        with pytest.raises(ValueError):
            UniformGrid(0.0)

    def test_statistics(self, make_particles):
        particles = make_particles([[1.0, 1.0], [2.0, 2.0], [3.0, 3.0], [15.0, 1.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        stats = grid.get_statistics()
        assert stats['occupied_cells'] == 2
        assert stats['max_particles_per_cell'] == 3
        assert stats['mean_particles_per_occupied_cell'] == pytest.approx(2.0)


class TestNeighborSearch:
    """Neighbor rows from the 3x3 cell block."""

    @pytest.mark.parametrize("radius", [10.0, 15.0])
    def test_matches_brute_force(self, backend, make_particles, lattice_positions, radius):
        particles = make_particles(lattice_positions)
        grid = UniformGrid(max(10.0, radius))
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, radius)

        expected = brute_force_neighbors(lattice_positions, radius)
        for i in range(particles.n):
            found = particles.neighbors_of(i)
            assert len(found) == len(set(found))
            assert set(found) == expected[i]

    def test_distances_recorded(self, backend, make_particles):
        particles = make_particles([[0.0, 0.0], [3.0, 4.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 10.0)
        assert particles.neighbor_count.tolist() == [1, 1]
        assert particles.neighbor_distances[0, 0] == pytest.approx(5.0)

    def test_boundary_distance_excluded(self, backend, make_particles):
        # d == r is not a neighbor (strict inequality)
        particles = make_particles([[0.0, 0.0], [10.0, 0.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 10.0)
        assert particles.neighbor_count.tolist() == [0, 0]

    def test_coincident_particles_are_neighbors(self, backend, make_particles):
        particles = make_particles([[2.0, 2.0], [2.0, 2.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 10.0)
        assert particles.neighbors_of(0).tolist() == [1]
        assert particles.neighbors_of(1).tolist() == [0]

    def test_distant_cells_do_not_mix(self, backend, make_particles):
        far = 10.0 * 2 ** 32
        particles = make_particles([[15.0, 5.0], [5.0, far + 5.0], [5.0, far + 8.0]])
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 10.0)

        assert particles.neighbor_count.tolist() == [0, 1, 1]
        assert particles.neighbors_of(1).tolist() == [2]
        assert particles.neighbors_of(2).tolist() == [1]

    def test_capacity_grows(self, backend, make_particles):
        rng = np.random.default_rng(3)
        particles = make_particles(rng.uniform(-2.0, 2.0, size=(30, 2)), max_neighbors=4)
        grid = UniformGrid(10.0)
        grid.rebuild(particles)
        sphfluid.find_neighbors(particles, grid, 10.0)

        assert particles.neighbor_capacity >= 29
        assert np.all(particles.neighbor_count == 29)

    def test_backends_agree_on_order(self, make_particles, lattice_positions):
        rows = {}
        for name in ('cpu', 'numba'):
            particles = make_particles(lattice_positions)
            grid = UniformGrid(15.0)
            grid.rebuild(particles)
            sphfluid.find_neighbors(particles, grid, 15.0, backend=name)
            rows[name] = [particles.neighbors_of(i).tolist() for i in range(particles.n)]
        assert rows['cpu'] == rows['numba']
