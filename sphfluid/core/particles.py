"""
Particle state stored as a Structure-of-Arrays (SoA).

Every per-particle quantity lives in its own contiguous array so that each
pipeline stage works on whole columns at once (NumPy) or streams through
them in a jitted loop (Numba). All arrays share the same length N, fixed
at allocation.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional


@dataclass
class ParticleArrays:
    """Structure of Arrays for the fluid particles.

    Neighbor rows have a fixed capacity K; ``neighbor_count[i]`` entries of
    row i are valid. The capacity grows on demand, so it never truncates a
    neighbor list.
    """
    # Primary state (N particles)
    position_x: np.ndarray      # shape: (N,) float64
    position_y: np.ndarray      # shape: (N,) float64
    velocity_x: np.ndarray      # shape: (N,) float64
    velocity_y: np.ndarray      # shape: (N,) float64

    # Derived every tick
    density: np.ndarray         # shape: (N,) float64
    pressure: np.ndarray        # shape: (N,) float64

    # Force accumulators
    force_x: np.ndarray         # shape: (N,) float64
    force_y: np.ndarray         # shape: (N,) float64

    # Neighbor data
    neighbor_ids: np.ndarray        # shape: (N, K) int32
    neighbor_distances: np.ndarray  # shape: (N, K) float64
    neighbor_count: np.ndarray      # shape: (N,) int32

    @staticmethod
    def allocate(n_particles: int, max_neighbors: int = 64,
                 rest_density: float = 0.0) -> 'ParticleArrays':
        """Allocate zeroed arrays for ``n_particles`` particles.

        Args:
            n_particles: Number of particles (fixed for the run)
            max_neighbors: Initial neighbor row capacity
            rest_density: Initial density value

        Returns:
            New ParticleArrays instance
        """
        return ParticleArrays(
            position_x=np.zeros(n_particles),
            position_y=np.zeros(n_particles),
            velocity_x=np.zeros(n_particles),
            velocity_y=np.zeros(n_particles),
            density=np.full(n_particles, rest_density, dtype=np.float64),
            pressure=np.zeros(n_particles),
            force_x=np.zeros(n_particles),
            force_y=np.zeros(n_particles),
            neighbor_ids=np.full((n_particles, max_neighbors), -1, dtype=np.int32),
            neighbor_distances=np.zeros((n_particles, max_neighbors)),
            neighbor_count=np.zeros(n_particles, dtype=np.int32),
        )

    @property
    def n(self) -> int:
        return self.position_x.shape[0]

    @property
    def neighbor_capacity(self) -> int:
        return self.neighbor_ids.shape[1]

    def get_positions(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle positions as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.position_x, self.position_y))
        else:
            return np.column_stack((self.position_x[indices], self.position_y[indices]))

    def get_velocities(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle velocities as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.velocity_x, self.velocity_y))
        else:
            return np.column_stack((self.velocity_x[indices], self.velocity_y[indices]))

    def set_positions(self, positions: np.ndarray):
        positions = np.asarray(positions, dtype=np.float64)
        if positions.shape != (self.n, 2):
            raise ValueError(f"positions must have shape ({self.n}, 2), got {positions.shape}")
        self.position_x[:] = positions[:, 0]
        self.position_y[:] = positions[:, 1]

    def set_velocities(self, velocities: np.ndarray):
        velocities = np.asarray(velocities, dtype=np.float64)
        if velocities.shape != (self.n, 2):
            raise ValueError(f"velocities must have shape ({self.n}, 2), got {velocities.shape}")
        self.velocity_x[:] = velocities[:, 0]
        self.velocity_y[:] = velocities[:, 1]

    def neighbors_of(self, i: int) -> np.ndarray:
        """Neighbor indices of particle i, in search order."""
        return self.neighbor_ids[i, :self.neighbor_count[i]]

    def reset_forces(self):
        """Reset force accumulators to zero."""
        self.force_x[:] = 0.0
        self.force_y[:] = 0.0

    def reset_neighbors(self):
        """Reset neighbor data."""
        self.neighbor_ids[:] = -1
        self.neighbor_count[:] = 0
        self.neighbor_distances[:] = 0.0

    def ensure_neighbor_capacity(self, required: int):
        """Grow neighbor rows so each can hold ``required`` entries.

        Capacity at least doubles to keep regrowth rare. Existing rows are
        discarded; callers rerun the neighbor search afterwards.
        """
        if required <= self.neighbor_capacity:
            return
        capacity = max(required, 2 * self.neighbor_capacity)
        self.neighbor_ids = np.full((self.n, capacity), -1, dtype=np.int32)
        self.neighbor_distances = np.zeros((self.n, capacity))
        self.neighbor_count[:] = 0
