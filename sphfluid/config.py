"""
Simulation parameters for the real-time SPH fluid.

All parameters are fixed for the lifetime of a simulation. They are set once
at construction, validated, and only read afterwards.
"""

import dataclasses
import json
import logging
import math
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple, Union

logger = logging.getLogger(__name__)

# Grid cells never shrink below this size, whatever the interaction radius
MIN_CELL_SIZE = 10.0

# Overlap resolver keeps particles at least this many visual radii apart
MIN_SEPARATION_FACTOR = 1.5

# Mass floor, values below are raised to it
MIN_MASS = 0.001


@dataclass(frozen=True)
class SimulationParams:
    """Immutable configuration of one simulation run.

    Units are world units (pixels for the interactive front end) and seconds.
    The kernel constants scale with ``interaction_radius**-9``, which is why the
    default rest density is tiny and the stiffness/tension coefficients large.
    """
    particle_count: int = 500
    half_extent: float = 300.0          # box is [-half_extent, half_extent]^2
    particle_radius: float = 4.0        # visual radius
    interaction_radius: float = 24.0    # smoothing radius
    rest_density: float = 1.5e-8
    stiffness: float = 4.0e7
    viscosity: float = 0.5
    velocity_damping: float = 0.5
    pointer_radius: float = 80.0
    mass: float = 1.0
    gravity: Tuple[float, float] = (0.0, -9.8)   # velocity increment per tick
    surface_tension: float = 5.0e9
    max_neighbors: int = 64             # initial neighbor row capacity

    def __post_init__(self):
        try:
            gravity = tuple(float(g) for g in self.gravity)
        except TypeError:
            raise ValueError(f"gravity must be a 2-vector, got {self.gravity!r}")
        if len(gravity) != 2:
            raise ValueError(f"gravity must be a 2-vector, got {self.gravity!r}")
        object.__setattr__(self, 'gravity', gravity)

        for name in ('half_extent', 'particle_radius', 'interaction_radius',
                     'rest_density', 'stiffness', 'viscosity', 'velocity_damping',
                     'pointer_radius', 'mass', 'surface_tension'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, float(value))
        if not all(math.isfinite(g) for g in gravity):
            raise ValueError(f"gravity must be finite, got {gravity}")

        # Integral floats (e.g. 5.0 from a JSON file) are stored as int
        for name in ('particle_count', 'max_neighbors'):
            value = getattr(self, name)
            if (isinstance(value, bool) or not isinstance(value, numbers.Real)
                    or not math.isfinite(value) or int(value) != value):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))
        if self.particle_count < 0:
            raise ValueError(f"particle_count must be non-negative, got {self.particle_count}")
        if self.max_neighbors < 1:
            raise ValueError(f"max_neighbors must be at least 1, got {self.max_neighbors}")

        for name in ('half_extent', 'interaction_radius', 'pointer_radius'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ('particle_radius', 'rest_density', 'stiffness', 'viscosity',
                     'surface_tension'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0.0 <= self.velocity_damping <= 1.0:
            raise ValueError(f"velocity_damping must lie in [0, 1], got {self.velocity_damping}")

        if self.mass < MIN_MASS:
            logger.warning("mass %g below floor, using %g", self.mass, MIN_MASS)
            object.__setattr__(self, 'mass', MIN_MASS)

    @property
    def cell_size(self) -> float:
        """Grid cell size, never smaller than the interaction radius."""
        return max(MIN_CELL_SIZE, self.interaction_radius)

    @property
    def min_separation(self) -> float:
        return MIN_SEPARATION_FACTOR * self.particle_radius

    def replace(self, **changes) -> 'SimulationParams':
        """Copy with some fields changed (re-validated)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data['gravity'] = list(self.gravity)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationParams':
        """Build parameters from a mapping, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown simulation parameters: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'SimulationParams':
        with open(path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object of parameters")
        return cls.from_dict(data)
