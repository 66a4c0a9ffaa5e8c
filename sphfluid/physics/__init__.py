"""Physics stages of the tick: density, pressure, forces, external inputs, declipping."""

from .density_vectorized import (
    compute_density_vectorized,
    compute_pressure_vectorized
)
from .forces_vectorized import (
    DENSITY_EPSILON,
    accumulate_surface_tension_vectorized,
    accumulate_pressure_force_vectorized,
    compute_viscosity_delta_vectorized,
    compute_repulsion_delta_vectorized
)
from .external import (
    apply_gravity,
    apply_pointer_interaction
)
from .overlap_vectorized import resolve_overlaps_vectorized
from .diagnostics import (
    compute_kinetic_energy,
    compute_momentum,
    max_speed,
    count_nonfinite
)

__all__ = [
    'compute_density_vectorized',
    'compute_pressure_vectorized',
    'DENSITY_EPSILON',
    'accumulate_surface_tension_vectorized',
    'accumulate_pressure_force_vectorized',
    'compute_viscosity_delta_vectorized',
    'compute_repulsion_delta_vectorized',
    'apply_gravity',
    'apply_pointer_interaction',
    'resolve_overlaps_vectorized',
    'compute_kinetic_energy',
    'compute_momentum',
    'max_speed',
    'count_nonfinite'
]
