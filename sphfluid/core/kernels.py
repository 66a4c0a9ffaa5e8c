"""
SPH smoothing kernels: Poly6 for weighting, Spiky for pressure gradients.

    poly6(d, r)          = 315 / (64 pi r^9) * (r - d)^3     for d <= r
    spiky_grad_mag(d, r) = -45 / (pi r^6) * (r - d)^2        for d <= r

Both are exactly zero for d > r. The Spiky gradient magnitude is negative by
construction; callers combine it with a unit direction vector.

The scalar forms are Numba-jitted so the jitted pipeline stages can inline
them; they remain callable from plain Python. The ``*_vectorized`` forms
evaluate whole neighbor rows with NumPy.
"""

import numpy as np
import numba as nb


@nb.njit(cache=True)
def poly6_coefficient(r: float) -> float:
    return 315.0 / (64.0 * np.pi * r ** 9)


@nb.njit(cache=True)
def spiky_coefficient(r: float) -> float:
    return -45.0 / (np.pi * r ** 6)


@nb.njit(cache=True)
def poly6(d: float, r: float) -> float:
    """Poly6 kernel weight at distance d for support radius r > 0."""
    if d > r:
        return 0.0
    diff = r - d
    return poly6_coefficient(r) * diff * diff * diff


@nb.njit(cache=True)
def spiky_grad_mag(d: float, r: float) -> float:
    """Spiky kernel gradient magnitude (non-positive) at distance d."""
    if d > r:
        return 0.0
    diff = r - d
    return spiky_coefficient(r) * diff * diff


def poly6_vectorized(d: np.ndarray, r: float) -> np.ndarray:
    """Vectorized Poly6 evaluation.

    Args:
        d: Distances, any shape
        r: Support radius

    Returns:
        Kernel values with the same shape as d
    """
    d = np.asarray(d, dtype=np.float64)
    diff = np.where(d > r, 0.0, r - d)
    return poly6_coefficient(r) * diff * diff * diff


def spiky_grad_mag_vectorized(d: np.ndarray, r: float) -> np.ndarray:
    """Vectorized Spiky gradient magnitude evaluation."""
    d = np.asarray(d, dtype=np.float64)
    diff = np.where(d > r, 0.0, r - d)
    return spiky_coefficient(r) * diff * diff
