"""
Gap Registry

Dragging across the canopy tears circular openings in it. Each gap heals
by shrinking a little every tick and is dropped the moment its radius
reaches zero. Healing is slower while the forest is disturbed and faster
once it calms down:

    heal_rate = base_heal_rate * (0.75 + 0.75 * (1 - disturbance))

The same gap list serves two purposes: leaves inside any gap are not
drawn, and each gap is outlined with a faint ring.
"""

import numpy as np
import pygame

from .noise import rand_in

RING_COLOR = (255, 255, 230)
RING_ALPHA_DAY = 15
RING_ALPHA_NIGHT = 10
RING_WIDTH = 10


class Gap:
    __slots__ = ("x", "y", "radius")

    def __init__(self, x, y, radius):
        self.x = x
        self.y = y
        self.radius = radius

    def __repr__(self):
        return f"Gap(x={self.x:.1f}, y={self.y:.1f}, radius={self.radius:.2f})"


class GapRegistry:
    def __init__(self, config, rng):
        self.base_radius = config["gap_radius"]
        self.jitter = tuple(config["gap_jitter"])
        self.base_heal_rate = config["base_heal_rate"]
        self.disturb_per_gap = config["disturb_per_gap"]
        self.rng = rng
        self.gaps = []
        self._overlay = None

    def __len__(self):
        return len(self.gaps)

    def open_gap(self, position, clock=None, base_radius=None, jitter=None):
        """Open a gap at `position` and disturb the forest.

        Args:
            position: (x, y) in frame pixels
            clock: EnvironmentClock whose disturbance is raised (optional)
            base_radius: Radius before jitter (defaults to config gap_radius)
            jitter: (lo, hi) multiplier range (defaults to config gap_jitter)

        Returns:
            The new Gap
        """
        base = self.base_radius if base_radius is None else base_radius
        radius = max(0.0, base * rand_in(self.rng, jitter or self.jitter))
        gap = Gap(float(position[0]), float(position[1]), radius)
        if radius > 0:
            self.gaps.append(gap)
        if clock is not None:
            clock.register_disturbance(self.disturb_per_gap)
        return gap

    def heal_rate(self, disturbance):
        disturbance = min(1.0, max(0.0, disturbance))
        return self.base_heal_rate * (0.75 + 0.75 * (1.0 - disturbance))

    def tick(self, dt, disturbance):
        """Shrink every gap by heal_rate * dt and drop the closed ones."""
        heal = self.heal_rate(disturbance) * max(0.0, dt)
        for gap in self.gaps:
            gap.radius -= heal
        self.gaps = [g for g in self.gaps if g.radius > 0]

    def clear(self):
        self.gaps = []

    def contains(self, x, y):
        """Point-in-any-gap test.

        Args:
            x, y: Scalars or equally shaped arrays of positions

        Returns:
            bool (scalar input) or boolean array: True where the point is
            within radius of some live gap
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if not self.gaps:
            hit = np.zeros(np.broadcast(x, y).shape, dtype=bool)
        else:
            g = np.array([(gp.x, gp.y, gp.radius) for gp in self.gaps], dtype=np.float64)
            dx = x[..., None] - g[:, 0]
            dy = y[..., None] - g[:, 1]
            hit = np.any(dx * dx + dy * dy <= g[:, 2] * g[:, 2], axis=-1)
        if hit.ndim == 0:
            return bool(hit)
        return hit

    def _overlay_for(self, surface):
        size = surface.get_size()
        if self._overlay is None or self._overlay.get_size() != size:
            self._overlay = pygame.Surface(size, pygame.SRCALPHA, 32)
        return self._overlay

    def draw(self, surface, night=False):
        """Outline every live gap with a faint ring."""
        if not self.gaps:
            return
        overlay = self._overlay_for(surface)
        overlay.fill((0, 0, 0, 0))
        color = RING_COLOR + (RING_ALPHA_NIGHT if night else RING_ALPHA_DAY,)
        for gap in self.gaps:
            r = int(round(gap.radius))
            if r <= 0:
                continue
            pygame.draw.circle(overlay, color, (int(gap.x), int(gap.y)), r, min(RING_WIDTH, r))
        surface.blit(overlay, (0, 0))
