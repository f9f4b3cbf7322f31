"""
Atmospherics: pollen by day, fireflies by night.

Two particle populations live for the whole session. Particles are never
destroyed; when one drifts out of the frame it is put back somewhere
valid. Exactly one population is updated and drawn per frame, chosen by
the clock's night window.
"""

import numpy as np
import pygame

from .noise import remap

POLLEN_COLOR = (255, 255, 210)
FIREFLY_COLOR = (255, 240, 140)
FIREFLY_SIZE = 3.5


class _Population:
    """Shared bookkeeping: arrays of positions plus a reusable overlay."""

    def __init__(self, count, width, height, rng, noise):
        self.count = max(0, int(count))
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.rng = rng
        self.noise = noise
        self.seeds = np.arange(self.count, dtype=np.float64)
        self._overlay = None

    def _overlay_for(self, surface):
        size = surface.get_size()
        if self._overlay is None or self._overlay.get_size() != size:
            self._overlay = pygame.Surface(size, pygame.SRCALPHA, 32)
        return self._overlay


class PollenCloud(_Population):
    """Pale specks drifting up and sideways through a noise velocity field."""

    def __init__(self, count, width, height, rng, noise, drift=0.06):
        super().__init__(count, width, height, rng, noise)
        self.drift = drift
        self.x = rng.uniform(0, self.width, self.count)
        self.y = rng.uniform(0, self.height, self.count)
        self.size = rng.uniform(1.5, 3.5, self.count)
        self.alpha = rng.uniform(18, 40, self.count)

    def velocity(self, time):
        s = self.seeds
        n1 = self.noise(s, time * 0.3)
        n2 = self.noise(s + 10.0, time * 0.3)
        vx = (n1 - 0.5) * 20.0 + 8.0 * np.sin(time * 0.6 + s)
        vy = 4.0 - 10.0 * n2
        return vx * self.drift, vy * self.drift

    def update(self, dt, time):
        if self.count == 0:
            return
        vx, vy = self.velocity(time)
        self.x += vx * dt
        self.y += vy * dt
        out = (
            (self.y < -10) | (self.x < -10) | (self.x > self.width + 10)
            | (self.y > self.height + 20)
        )
        n = int(out.sum())
        if n:
            self.x[out] = self.rng.uniform(0, self.width, n)
            self.y[out] = self.height + 10.0
            self.size[out] = self.rng.uniform(1.5, 3.5, n)
            self.alpha[out] = self.rng.uniform(18, 40, n)

    def draw(self, surface):
        if self.count == 0:
            return
        overlay = self._overlay_for(surface)
        overlay.fill((0, 0, 0, 0))
        for x, y, s, a in zip(self.x, self.y, self.size, self.alpha):
            pygame.draw.circle(overlay, POLLEN_COLOR + (int(a),), (x, y), s / 2.0)
        surface.blit(overlay, (0, 0))


class FireflySwarm(_Population):
    """Slow, twinkling points of light, only out at night."""

    def __init__(self, count, width, height, rng, noise):
        super().__init__(count, width, height, rng, noise)
        self.x = rng.uniform(0, self.width, self.count)
        self.y = rng.uniform(self.height * 0.25, self.height * 0.95, self.count)

    def glow(self, time):
        """Per-firefly alpha in [30, 180]."""
        return remap(self.noise(self.seeds, time * 1.2), 0.0, 1.0, 30.0, 180.0)

    def update(self, dt, time):
        if self.count == 0:
            return
        s = self.seeds
        self.x += (self.noise(s, time * 0.06) - 0.5) * 20.0 * dt
        self.y += (self.noise(s + 5.0, time * 0.06) - 0.5) * 12.0 * dt

        wrap_x = (self.x < -20) | (self.x > self.width + 20)
        n = int(wrap_x.sum())
        if n:
            self.x[wrap_x] = self.rng.uniform(0, self.width, n)
        wrap_y = (self.y < 0) | (self.y > self.height)
        n = int(wrap_y.sum())
        if n:
            self.y[wrap_y] = self.rng.uniform(self.height * 0.3, self.height, n)

    def draw(self, surface, time):
        if self.count == 0:
            return
        overlay = self._overlay_for(surface)
        overlay.fill((0, 0, 0, 0))
        for x, y, g in zip(self.x, self.y, self.glow(time)):
            # soft halo first, core on top
            pygame.draw.circle(overlay, FIREFLY_COLOR + (int(g * 0.2),), (x, y), FIREFLY_SIZE * 1.6)
            pygame.draw.circle(overlay, FIREFLY_COLOR + (int(g),), (x, y), FIREFLY_SIZE / 2.0)
        surface.blit(overlay, (0, 0))


class Atmospherics:
    """Owns both populations and picks one per frame by time of day."""

    POLLEN = "pollen"
    FIREFLIES = "fireflies"

    def __init__(self, width, height, config, rng, noise):
        self.config = config
        self.rng = rng
        self.noise = noise
        self.resize(width, height)

    def resize(self, width, height):
        """Rebuild both populations for a new frame size."""
        cfg = self.config
        self.pollen = PollenCloud(cfg["pollen_count"], width, height, self.rng, self.noise,
                                  drift=cfg["pollen_drift"])
        self.fireflies = FireflySwarm(cfg["firefly_count"], width, height, self.rng, self.noise)

    def active_kind(self, clock):
        return self.FIREFLIES if clock.is_night() else self.POLLEN

    def update_and_draw(self, surface, clock, dt):
        """Advance and draw the population for the current time of day.

        Returns:
            The kind that was drawn ("pollen" or "fireflies")
        """
        kind = self.active_kind(clock)
        t = clock.elapsed_time
        if kind == self.FIREFLIES:
            self.fireflies.update(dt, t)
            self.fireflies.draw(surface, t)
        else:
            self.pollen.update(dt, t)
            self.pollen.draw(surface)
        return kind
