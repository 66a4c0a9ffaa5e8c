"""
Initial particle layouts for the fluid box.

Every layout is a factory ``f(params, seed) -> positions`` returning an
(particle_count, 2) float array inside ``[-half_extent, half_extent]^2``.
Lattice spacing is ``2.2 * particle_radius``, shrunk when the lattice would
not fit in the box.
"""

import logging
import numpy as np
from typing import Callable, Dict, Optional, Tuple
from ..config import SimulationParams

logger = logging.getLogger(__name__)

SPACING_FACTOR = 2.2

# Layouts keep this fraction of the box free of particles at the walls
FILL_FRACTION = 0.95


def _base_spacing(params: SimulationParams) -> float:
    spacing = SPACING_FACTOR * params.particle_radius
    if spacing <= 0.0:
        # Point particles, fall back to half the smoothing radius
        spacing = 0.5 * params.interaction_radius
    return spacing


def _fit_spacing(spacing: float, count: int, available: float) -> float:
    """Shrink spacing so ``count`` sites span at most ``available``."""
    if count * spacing > available:
        fitted = available / count
        logger.debug("Lattice spacing %.3g does not fit, using %.3g", spacing, fitted)
        return fitted
    return spacing


def _square_lattice(n: int, cols: int, spacing: float,
                    origin: Tuple[float, float]) -> np.ndarray:
    """First n sites of a row-major lattice starting at origin."""
    index = np.arange(n)
    x = origin[0] + (index % cols) * spacing
    y = origin[1] + (index // cols) * spacing
    return np.column_stack((x, y)).astype(np.float64)


def create_block(params: SimulationParams, seed: Optional[int] = None) -> np.ndarray:
    """Square block of particles centered in the box."""
    n = params.particle_count
    if n == 0:
        return np.zeros((0, 2))

    cols = int(np.ceil(np.sqrt(n)))
    rows = int(np.ceil(n / cols))
    box = 2.0 * params.half_extent * FILL_FRACTION
    spacing = _fit_spacing(_base_spacing(params), max(cols, rows), box)

    origin = (-0.5 * (cols - 1) * spacing, -0.5 * (rows - 1) * spacing)
    return _square_lattice(n, cols, spacing, origin)


def create_dam_break(params: SimulationParams, seed: Optional[int] = None) -> np.ndarray:
    """Tall column of particles resting against the left wall and the floor.

    The column is about twice as tall as it is wide and never wider than the
    left half of the box.
    """
    n = params.particle_count
    if n == 0:
        return np.zeros((0, 2))

    cols = max(1, int(np.ceil(np.sqrt(n / 2.0))))
    rows = int(np.ceil(n / cols))
    spacing = _base_spacing(params)
    spacing = _fit_spacing(spacing, cols, params.half_extent * FILL_FRACTION)
    spacing = _fit_spacing(spacing, rows, 2.0 * params.half_extent * FILL_FRACTION)

    start = -params.half_extent + 0.5 * spacing
    return _square_lattice(n, cols, spacing, (start, start))


def generate_hexagonal_packing(center: Tuple[float, float], radius: float,
                               spacing: float) -> np.ndarray:
    """Generate hexagonal close-packed positions within a circle.

    Args:
        center: (x, y) center of circle
        radius: Circle radius
        spacing: Particle spacing

    Returns:
        Array of (x, y) positions, shape (M, 2)
    """
    positions = []

    # Hexagonal lattice parameters
    dy = spacing * np.sqrt(3) / 2  # Vertical spacing
    n_rows = int(radius / dy) + 1

    for row in range(-n_rows, n_rows + 1):
        y = center[1] + row * dy
        x_offset = 0.0 if row % 2 == 0 else spacing / 2

        n_cols = int(radius / spacing) + 1
        for col in range(-n_cols, n_cols + 1):
            x = center[0] + col * spacing + x_offset
            if (x - center[0]) ** 2 + (y - center[1]) ** 2 <= radius ** 2:
                positions.append((x, y))

    return np.array(positions, dtype=np.float64).reshape(-1, 2)


def create_hexagonal(params: SimulationParams, seed: Optional[int] = None) -> np.ndarray:
    """Hex-packed disc at the box center; keeps the particles nearest the center."""
    n = params.particle_count
    if n == 0:
        return np.zeros((0, 2))

    spacing = _base_spacing(params)
    limit = params.half_extent * FILL_FRACTION
    # Area per site of a hexagonal lattice is spacing^2 * sqrt(3) / 2
    radius = np.sqrt(n * spacing ** 2 * np.sqrt(3) / 2 / np.pi) + spacing
    if radius > limit:
        spacing *= limit / radius
        radius = limit

    positions = generate_hexagonal_packing((0.0, 0.0), radius, spacing)
    while len(positions) < n:
        if radius < limit:
            radius = min(limit, radius + spacing)
        else:
            spacing *= 0.9
        positions = generate_hexagonal_packing((0.0, 0.0), radius, spacing)

    order = np.argsort(np.hypot(positions[:, 0], positions[:, 1]), kind='stable')
    return positions[order[:n]]


def create_random(params: SimulationParams, seed: Optional[int] = None) -> np.ndarray:
    """Uniformly scattered particles, reproducible for a given seed."""
    rng = np.random.default_rng(seed)
    bound = params.half_extent * FILL_FRACTION
    return rng.uniform(-bound, bound, size=(params.particle_count, 2))


SCENARIOS: Dict[str, Callable[[SimulationParams, Optional[int]], np.ndarray]] = {
    'block': create_block,
    'dam_break': create_dam_break,
    'hexagonal': create_hexagonal,
    'random': create_random,
}


def create_scenario(name: str, params: SimulationParams,
                    seed: Optional[int] = None) -> np.ndarray:
    """Build initial positions for a named layout.

    Raises:
        ValueError: If the layout name is unknown
    """
    try:
        factory = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"Unknown scenario: {name}. Choose from: {', '.join(SCENARIOS)}")
    return factory(params, seed)
