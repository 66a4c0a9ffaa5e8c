"""Initial particle layouts."""

from .layouts import (
    SCENARIOS,
    create_scenario,
    create_block,
    create_dam_break,
    create_hexagonal,
    create_random,
    generate_hexagonal_packing
)

__all__ = [
    'SCENARIOS',
    'create_scenario',
    'create_block',
    'create_dam_break',
    'create_hexagonal',
    'create_random',
    'generate_hexagonal_packing'
]
