"""Interactive rendering for the fluid."""

from .pygame_renderer import PygameRenderer, world_to_screen, screen_to_world

__all__ = ['PygameRenderer', 'world_to_screen', 'screen_to_world']
