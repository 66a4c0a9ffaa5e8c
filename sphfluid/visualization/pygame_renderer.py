"""
Pygame front end for the fluid: draws particles and supplies the pointer.

The simulation box ``[-half_extent, half_extent]^2`` is centered in a square
window with +y up in world space and +y down on screen.
"""

import numpy as np
import pygame
from typing import Optional, Tuple
from ..simulation import FluidSimulation


def world_to_screen(x: np.ndarray, y: np.ndarray, scale: float,
                    center: Tuple[float, float]) -> Tuple[np.ndarray, np.ndarray]:
    """Map world coordinates to integer pixel coordinates."""
    screen_x = (center[0] + np.asarray(x) * scale).astype(int)
    screen_y = (center[1] - np.asarray(y) * scale).astype(int)
    return screen_x, screen_y


def screen_to_world(pos: Tuple[int, int], scale: float,
                    center: Tuple[float, float]) -> Tuple[float, float]:
    """Map a pixel position (e.g. the mouse) back to world coordinates."""
    return (pos[0] - center[0]) / scale, (center[1] - pos[1]) / scale


def speed_colormap(values: np.ndarray, max_value: float) -> np.ndarray:
    """Speed colormap (blue to white)."""
    normalized = np.clip(values / max(max_value, 1e-12), 0, 1)
    colors = np.zeros((len(values), 3), dtype=np.uint8)
    colors[:, 0] = (40 + normalized * 215).astype(np.uint8)
    colors[:, 1] = (110 + normalized * 145).astype(np.uint8)
    colors[:, 2] = 255
    return colors


def density_colormap(values: np.ndarray, rest_density: float) -> np.ndarray:
    """Density colormap relative to rest density (dark blue to red at 2x rest)."""
    if rest_density > 0:
        normalized = np.clip(values / (2.0 * rest_density), 0, 1)
    else:
        peak = np.max(values) if len(values) else 0.0
        normalized = values / peak if peak > 0 else np.zeros(len(values))
    colors = np.zeros((len(values), 3), dtype=np.uint8)
    colors[:, 0] = (normalized * 255).astype(np.uint8)
    colors[:, 1] = (80 * (1 - normalized)).astype(np.uint8)
    colors[:, 2] = ((1 - normalized) * 255).astype(np.uint8)
    return colors


class PygameRenderer:
    """Window, particle drawing and mouse/keyboard input for the fluid."""

    def __init__(self, half_extent: float, window_size: int = 800,
                 title: str = "SPH Fluid", particle_size: int = 3):
        """Initialize Pygame renderer.

        Args:
            half_extent: Half size of the simulation box
            window_size: Edge of the square window in pixels
            title: Window title
            particle_size: Drawn particle radius in pixels
        """
        self.half_extent = half_extent
        self.window_size = window_size

        pygame.init()
        self.screen = pygame.display.set_mode((window_size, window_size))
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()

        # Leave a small margin around the box
        self.scale = window_size / (2.0 * half_extent * 1.05)
        self.center = (window_size / 2, window_size / 2)

        self.color_mode = 'velocity'
        self.particle_size = particle_size
        self.show_stats = True
        self.is_paused = False
        self.step_requested = False
        self.reset_requested = False
        self.mouse_down = False

        self.font = pygame.font.Font(None, 24)
        self.small_font = pygame.font.Font(None, 18)
        self.bg_color = (20, 20, 28)
        self.box_color = (90, 90, 110)

    @property
    def pointer(self) -> Optional[Tuple[float, float]]:
        """Pointer in world coordinates while the left button is held."""
        if not self.mouse_down:
            return None
        return screen_to_world(pygame.mouse.get_pos(), self.scale, self.center)

    def draw(self, sim: FluidSimulation, fps: float = 0.0):
        """Render the current simulation state."""
        self.screen.fill(self.bg_color)

        # Box outline
        left, top = world_to_screen(-self.half_extent, self.half_extent, self.scale, self.center)
        right, bottom = world_to_screen(self.half_extent, -self.half_extent, self.scale, self.center)
        pygame.draw.rect(self.screen, self.box_color,
                         pygame.Rect(int(left), int(top), int(right - left), int(bottom - top)), 1)

        particles = sim.particles
        screen_x, screen_y = world_to_screen(particles.position_x, particles.position_y,
                                             self.scale, self.center)
        if self.color_mode == 'density':
            colors = density_colormap(particles.density, sim.params.rest_density)
        else:
            speed = np.sqrt(particles.velocity_x ** 2 + particles.velocity_y ** 2)
            colors = speed_colormap(speed, 0.5 * sim.params.half_extent)

        for i in range(len(screen_x)):
            pygame.draw.circle(self.screen, tuple(int(c) for c in colors[i]),
                               (int(screen_x[i]), int(screen_y[i])), self.particle_size)

        pointer = self.pointer
        if pointer is not None:
            px, py = world_to_screen(pointer[0], pointer[1], self.scale, self.center)
            pygame.draw.circle(self.screen, (200, 200, 80), (int(px), int(py)),
                               max(1, int(sim.params.pointer_radius * self.scale)), 1)

        if self.show_stats:
            self._draw_stats(sim, fps)

        pygame.display.flip()

    def _draw_stats(self, sim: FluidSimulation, fps: float):
        """Draw statistics overlay."""
        stats = [
            f"Time: {sim.sim_time:.2f}s  Step: {sim.step_count}",
            f"Particles: {sim.n_particles:,}  Backend: {sim.active_backend}",
            f"FPS: {fps:.1f}",
            f"Mode: {self.color_mode.title()}" + ("  [PAUSED]" if self.is_paused else ""),
        ]

        y_offset = 10
        for stat in stats:
            text = self.font.render(stat, True, (255, 255, 255))
            self.screen.blit(text, (10, y_offset))
            y_offset += 24

        help_text = "Drag: Push fluid | Space: Pause | N: Step | R: Reset | D/V: Mode | S: Stats | ESC: Quit"
        text = self.small_font.render(help_text, True, (200, 200, 200))
        text_rect = text.get_rect()
        text_rect.bottomleft = (10, self.window_size - 10)
        self.screen.blit(text, text_rect)

    def handle_events(self) -> bool:
        """Handle pygame events.

        Returns:
            False if window should close
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.mouse_down = True
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.mouse_down = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    return False
                elif event.key == pygame.K_SPACE:
                    self.is_paused = not self.is_paused
                elif event.key == pygame.K_n:
                    self.step_requested = True
                elif event.key == pygame.K_r:
                    self.reset_requested = True
                elif event.key == pygame.K_d:
                    self.color_mode = 'density'
                elif event.key == pygame.K_v:
                    self.color_mode = 'velocity'
                elif event.key == pygame.K_s:
                    self.show_stats = not self.show_stats
                elif event.key == pygame.K_PLUS or event.key == pygame.K_EQUALS:
                    self.particle_size = min(10, self.particle_size + 1)
                elif event.key == pygame.K_MINUS:
                    self.particle_size = max(1, self.particle_size - 1)

        return True

    def close(self):
        """Clean up and close the renderer."""
        pygame.quit()
