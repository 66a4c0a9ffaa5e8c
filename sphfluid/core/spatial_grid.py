"""
Uniform bucket grid for O(N) neighbor searches.

The grid maps integer cell coordinates ``floor(position / cell_size)`` to the
indices of the particles inside that cell. It is rebuilt from scratch every
tick; there is no incremental update. The plane is unbounded, so cell coordinates
are not clipped to a domain, only to the int64 range.

Two views of the same buckets are kept:
- a dict ``{(cx, cy): indices}`` for the NumPy neighbor search and queries
- flat arrays sorted by (cx, cy) (occupied cells, start/end offsets, sorted
  particle indices) that the Numba neighbor search can binary-search without
  Python objects
"""

import logging
import numpy as np
from typing import Dict, Tuple
from .particles import ParticleArrays

logger = logging.getLogger(__name__)

# Cell coordinates are clipped here so the +-1 block offsets stay inside int64
CELL_COORD_LIMIT = 1 << 62

# 3x3 block of cells around a particle's own cell, in search order
NEIGHBOR_CELL_OFFSETS = tuple((dcx, dcy) for dcx in (-1, 0, 1) for dcy in (-1, 0, 1))


class UniformGrid:
    """Bucket grid over the unbounded plane.

    Within a bucket, particle indices are in ascending order, because
    insertion follows particle index order.
    """

    def __init__(self, cell_size: float):
        """Initialize an empty grid.

        Args:
            cell_size: Edge length of a square cell, must be positive and
                at least the neighbor search radius
        """
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)

        self.buckets: Dict[Tuple[int, int], np.ndarray] = {}
        self.cell_x = np.zeros(0, dtype=np.int64)
        self.cell_y = np.zeros(0, dtype=np.int64)

        # Flat view used by the Numba search
        self.sorted_indices = np.zeros(0, dtype=np.int64)
        self.occupied_x = np.zeros(0, dtype=np.int64)
        self.occupied_y = np.zeros(0, dtype=np.int64)
        self.cell_start = np.zeros(0, dtype=np.int64)
        self.cell_end = np.zeros(0, dtype=np.int64)

        logger.debug("Uniform grid, cell size %g", self.cell_size)

    def rebuild(self, particles: ParticleArrays):
        """Clear all buckets and re-bin every particle.

        Args:
            particles: Particle arrays (positions must be finite)
        """
        n = particles.n
        self.cell_x = self._cell_coords(particles.position_x)
        self.cell_y = self._cell_coords(particles.position_y)

        # Sort by (cx, cy), index last so members stay in index order
        self.sorted_indices = np.lexsort(
            (np.arange(n, dtype=np.int64), self.cell_y, self.cell_x)).astype(np.int64)
        sorted_x = self.cell_x[self.sorted_indices]
        sorted_y = self.cell_y[self.sorted_indices]

        new_cell = np.ones(n, dtype=bool)
        new_cell[1:] = (sorted_x[1:] != sorted_x[:-1]) | (sorted_y[1:] != sorted_y[:-1])
        self.cell_start = np.flatnonzero(new_cell).astype(np.int64)
        if n == 0:
            self.cell_end = np.zeros(0, dtype=np.int64)
        else:
            self.cell_end = np.append(self.cell_start[1:], n).astype(np.int64)
        self.occupied_x = sorted_x[self.cell_start]
        self.occupied_y = sorted_y[self.cell_start]

        self.buckets = {}
        for slot in range(len(self.cell_start)):
            members = self.sorted_indices[self.cell_start[slot]:self.cell_end[slot]]
            self.buckets[(int(self.occupied_x[slot]), int(self.occupied_y[slot]))] = members

    def _cell_coords(self, coords: np.ndarray) -> np.ndarray:
        cells = np.floor(coords / self.cell_size)
        return np.clip(cells, -CELL_COORD_LIMIT, CELL_COORD_LIMIT).astype(np.int64)

    def cell_of(self, i: int) -> Tuple[int, int]:
        """Cell of particle i as computed by the last rebuild."""
        return int(self.cell_x[i]), int(self.cell_y[i])

    def get_cell_particles(self, cell_x: int, cell_y: int) -> np.ndarray:
        """Get particle indices in a specific cell."""
        return self.buckets.get((cell_x, cell_y), np.zeros(0, dtype=np.int64))

    def candidates(self, i: int) -> np.ndarray:
        """All particles in the 3x3 block of cells around particle i.

        Includes i itself. Order: block offsets in ``NEIGHBOR_CELL_OFFSETS``
        order, bucket order within each cell.
        """
        cx, cy = self.cell_of(i)
        chunks = [self.buckets[(cx + dcx, cy + dcy)]
                  for dcx, dcy in NEIGHBOR_CELL_OFFSETS
                  if (cx + dcx, cy + dcy) in self.buckets]
        if not chunks:
            return np.zeros(0, dtype=np.int64)
        return np.concatenate(chunks)

    def query_neighbors_vectorized(self, particles: ParticleArrays, search_radius: float):
        """Fill each particle's neighbor row from its 3x3 cell block.

        j is a neighbor of i iff j != i and |x_i - x_j|^2 < search_radius^2.
        Exact as long as ``cell_size >= search_radius``.

        Args:
            particles: Particle arrays, grid must be rebuilt for them
            search_radius: Interaction radius
        """
        particles.reset_neighbors()
        radius2 = search_radius * search_radius

        rows = []
        max_found = 0
        for i in range(particles.n):
            candidates = self.candidates(i)

            dx = particles.position_x[candidates] - particles.position_x[i]
            dy = particles.position_y[candidates] - particles.position_y[i]
            dist2 = dx * dx + dy * dy

            mask = (dist2 < radius2) & (candidates != i)
            rows.append((candidates[mask], np.sqrt(dist2[mask])))
            max_found = max(max_found, int(np.count_nonzero(mask)))

        if max_found > particles.neighbor_capacity:
            logger.debug("Growing neighbor capacity %d -> %d",
                         particles.neighbor_capacity, max_found)
            particles.ensure_neighbor_capacity(max_found)

        for i, (ids, distances) in enumerate(rows):
            n_found = len(ids)
            particles.neighbor_ids[i, :n_found] = ids
            particles.neighbor_distances[i, :n_found] = distances
            particles.neighbor_count[i] = n_found

    def get_statistics(self) -> dict:
        """Get bucket statistics for debugging."""
        if not self.buckets:
            return {
                'occupied_cells': 0,
                'max_particles_per_cell': 0,
                'mean_particles_per_occupied_cell': 0.0,
            }
        counts = self.cell_end - self.cell_start
        return {
            'occupied_cells': len(self.buckets),
            'max_particles_per_cell': int(np.max(counts)),
            'mean_particles_per_occupied_cell': float(np.mean(counts)),
        }


def find_neighbors_vectorized(particles: ParticleArrays, grid: UniformGrid,
                              search_radius: float):
    """Convenience function for neighbor search.

    Args:
        particles: Particle arrays
        grid: Grid rebuilt for the current positions
        search_radius: Search radius
    """
    grid.query_neighbors_vectorized(particles, search_radius)
