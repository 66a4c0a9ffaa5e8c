"""Real-time SPH (Smoothed Particle Hydrodynamics) fluid in a 2D box."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

# Import unified API
from .api import (
    # Pipeline stages
    find_neighbors,
    compute_density,
    compute_pressure,
    apply_gravity,
    accumulate_surface_tension,
    accumulate_pressure_force,
    apply_viscosity,
    apply_repulsion,
    apply_pointer,
    integrate,
    resolve_overlaps,

    # Backend management
    set_backend,
    get_backend,
    list_backends,
    auto_select_backend,
    print_backend_info,

    # Core classes
    ParticleArrays,
    UniformGrid
)

from .config import SimulationParams
from .simulation import FluidSimulation

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # API functions
    'find_neighbors',
    'compute_density',
    'compute_pressure',
    'apply_gravity',
    'accumulate_surface_tension',
    'accumulate_pressure_force',
    'apply_viscosity',
    'apply_repulsion',
    'apply_pointer',
    'integrate',
    'resolve_overlaps',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'ParticleArrays',
    'UniformGrid',
    'SimulationParams',
    'FluidSimulation'
]
