"""Core components: particles, kernels, bucket grid, integration, backends."""

from .particles import ParticleArrays
from .kernels import poly6, spiky_grad_mag, poly6_vectorized, spiky_grad_mag_vectorized
from .spatial_grid import UniformGrid, find_neighbors_vectorized
from .integrator_vectorized import (
    integrate_semi_implicit_vectorized,
    apply_boundary_clamp_vectorized,
    sanitize_nonfinite_vectorized
)

__all__ = [
    'ParticleArrays',
    'poly6',
    'spiky_grad_mag',
    'poly6_vectorized',
    'spiky_grad_mag_vectorized',
    'UniformGrid',
    'find_neighbors_vectorized',
    'integrate_semi_implicit_vectorized',
    'apply_boundary_clamp_vectorized',
    'sanitize_nonfinite_vectorized'
]
