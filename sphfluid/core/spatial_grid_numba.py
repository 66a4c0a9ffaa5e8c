"""
Numba-optimized neighbor search over the uniform bucket grid.

Uses the flat sorted view of the grid (occupied cells + offsets) and a binary
search on (cx, cy) per visited cell, so the whole query runs without Python
objects.
Particles are processed in parallel; each writes only its own neighbor row.
"""

import logging
import numpy as np
import numba as nb
from .particles import ParticleArrays
from .spatial_grid import UniformGrid

logger = logging.getLogger(__name__)


@nb.njit(cache=True)
def find_cell_slot(occupied_x: np.ndarray, occupied_y: np.ndarray, cx: int, cy: int) -> int:
    """Binary search for cell (cx, cy) in cells sorted by (x, y); -1 if empty."""
    lo = 0
    hi = occupied_x.shape[0]
    while lo < hi:
        mid = (lo + hi) // 2
        mx = occupied_x[mid]
        if mx < cx or (mx == cx and occupied_y[mid] < cy):
            lo = mid + 1
        else:
            hi = mid
    if lo < occupied_x.shape[0] and occupied_x[lo] == cx and occupied_y[lo] == cy:
        return lo
    return -1


@nb.njit(parallel=True, cache=True)
def query_neighbors_numba(position_x: np.ndarray, position_y: np.ndarray,
                          cell_x: np.ndarray, cell_y: np.ndarray,
                          occupied_x: np.ndarray, occupied_y: np.ndarray,
                          cell_start: np.ndarray,
                          cell_end: np.ndarray, sorted_indices: np.ndarray,
                          radius2: float,
                          neighbor_ids: np.ndarray, neighbor_distances: np.ndarray,
                          neighbor_count: np.ndarray):
    """Scan the 3x3 cell block of every particle.

    ``neighbor_count[i]`` receives the full number of neighbors found even
    when it exceeds the row capacity; only the first ``capacity`` are stored.
    """
    n = position_x.shape[0]
    capacity = neighbor_ids.shape[1]

    for i in nb.prange(n):
        px = position_x[i]
        py = position_y[i]
        found = 0

        # Same block order as NEIGHBOR_CELL_OFFSETS
        for dcx in range(-1, 2):
            for dcy in range(-1, 2):
                slot = find_cell_slot(occupied_x, occupied_y, cell_x[i] + dcx, cell_y[i] + dcy)
                if slot < 0:
                    continue

                for k in range(cell_start[slot], cell_end[slot]):
                    j = sorted_indices[k]
                    if j == i:
                        continue
                    dx = position_x[j] - px
                    dy = position_y[j] - py
                    dist2 = dx * dx + dy * dy
                    if dist2 < radius2:
                        if found < capacity:
                            neighbor_ids[i, found] = j
                            neighbor_distances[i, found] = np.sqrt(dist2)
                        found += 1

        neighbor_count[i] = found


def find_neighbors_numba(particles: ParticleArrays, grid: UniformGrid, search_radius: float):
    """Wrapper for Numba neighbor search that matches the standard interface.

    Reruns the query once with grown rows if any particle overflowed.
    """
    for _ in range(2):
        particles.reset_neighbors()
        query_neighbors_numba(
            particles.position_x, particles.position_y,
            grid.cell_x, grid.cell_y,
            grid.occupied_x, grid.occupied_y, grid.cell_start, grid.cell_end, grid.sorted_indices,
            search_radius * search_radius,
            particles.neighbor_ids, particles.neighbor_distances,
            particles.neighbor_count
        )
        max_found = int(particles.neighbor_count.max()) if particles.n else 0
        if max_found <= particles.neighbor_capacity:
            return
        logger.debug("Growing neighbor capacity %d -> %d",
                     particles.neighbor_capacity, max_found)
        particles.ensure_neighbor_capacity(max_found)
