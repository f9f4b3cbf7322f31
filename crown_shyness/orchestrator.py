"""
Frame Orchestrator

One World holds everything that changes while the canopy runs: the
environment clock, forest, gap registry, atmospherics, the black fade
overlay and the title-card / regeneration state. Nothing lives in module
globals, so several worlds can run side by side and tests can drive one
with any delta-time they like.

Each tick runs in a fixed order:

    advance clock -> regeneration step -> forest (sky, light, trunks, leaves)
    -> pollen or fireflies -> gaps heal + rings -> fade overlay

Regeneration is a small timed state machine instead of a timer callback:

    IDLE -> FADING_OUT(remaining) -> SWAPPING -> FADING_IN -> IDLE

Requests arriving while fading out or swapping are ignored. A request
during FADING_IN is accepted: it simply fades back out from wherever the
overlay currently is.
"""

import numpy as np
import pygame

from .atmospherics import Atmospherics
from .environment import EnvironmentClock
from .forest import Forest
from .gaps import GapRegistry
from .noise import PerlinNoise
from .presets import build_config, validate_config
from .smoothing import Fade

# Session states
TITLE_CARD = "title_card"
RUNNING = "running"

# Regeneration states
IDLE = "idle"
FADING_OUT = "fading_out"
SWAPPING = "swapping"
FADING_IN = "fading_in"

TITLE_FADE_PER_SEC = 360.0  # 6 alpha per frame at 60 fps


class World:
    def __init__(self, width, height, config=None, seed=None, pixel_density=1.0):
        """Create a world ready to tick.

        Args:
            width, height: Viewport size in logical pixels
            config: Canopy config dict (defaults to the base preset)
            seed: Seed for layout and noise; None for a fresh random world
            pixel_density: Device pixels per logical pixel

        Raises:
            ValueError: the config is invalid
        """
        if config is None:
            config = build_config()
        else:
            validate_config(config)
        self.config = config
        self.rng = np.random.default_rng(seed)
        self.noise = PerlinNoise(int(self.rng.integers(2 ** 31)))

        self.clock = EnvironmentClock.from_config(config)
        self.gaps = GapRegistry(config, self.rng)
        self.fade = Fade(value=255.0, target=0.0, speed=config["fade_speed"])

        self.state = TITLE_CARD
        self.title_alpha = 255.0
        self.regen_state = IDLE
        self.regen_remaining = 0.0
        self.regen_count = 0
        self.pointer = None
        self.show_help = True

        self.pixel_density = 1.0
        self.forest = None
        self.atmospherics = None
        self.resize(width, height, pixel_density)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def size(self):
        """Frame size in device pixels."""
        return self.frame.get_size()

    def resize(self, width, height, pixel_density=None):
        """Rebuild everything sized to the viewport.

        Forest, atmospherics, frame and overlay buffers are all replaced
        before this returns, and live gaps are cleared, so the next tick
        never sees a buffer of the old size.
        """
        if pixel_density is not None:
            self.pixel_density = max(float(pixel_density), 0.1)
        lw = max(1, int(width))
        lh = max(1, int(height))
        dw = max(1, int(round(lw * self.pixel_density)))
        dh = max(1, int(round(lh * self.pixel_density)))

        if self.forest is None:
            self.forest = Forest(dw, dh, self.config, self.rng, self.noise)
        else:
            self.forest.resize(dw, dh)
        if self.atmospherics is None:
            self.atmospherics = Atmospherics(dw, dh, self.config, self.rng, self.noise)
        else:
            self.atmospherics.resize(dw, dh)
        self.gaps.clear()
        self.frame = pygame.Surface((dw, dh), 0, 32)
        self._fade_surface = pygame.Surface((dw, dh), 0, 32)
        self._fade_surface.fill((0, 0, 0))

    def _to_device(self, pos):
        return (pos[0] * self.pixel_density, pos[1] * self.pixel_density)

    # ------------------------------------------------------------------
    # Input triggers
    # ------------------------------------------------------------------

    def _dismiss_title(self):
        if self.state == TITLE_CARD:
            self.state = RUNNING

    def pointer_moved(self, pos):
        self.pointer = self._to_device(pos)

    def pointer_pressed(self, pos):
        self.pointer = self._to_device(pos)
        self._dismiss_title()

    def pointer_dragged(self, pos, touch=False):
        """Drag (or touch-move) tears a gap under the pointer."""
        self.pointer = self._to_device(pos)
        self._dismiss_title()
        jitter = self.config["touch_gap_jitter"] if touch else self.config["gap_jitter"]
        return self.gaps.open_gap(self.pointer, self.clock, jitter=jitter)

    def pointer_released(self):
        """Touch ended: forget the pointer so the camera eases back to center."""
        self.pointer = None

    def toggle_help(self):
        self.show_help = not self.show_help
        return self.show_help

    def request_regenerate(self):
        """Fade out, regrow the forest behind the overlay, fade back in.

        Returns:
            True if the request started a regeneration, False if ignored
        """
        if self.regen_state in (FADING_OUT, SWAPPING):
            return False
        self.regen_state = FADING_OUT
        self.regen_remaining = self.config["regen_delay"]
        self.fade.fade_out()
        return True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _swap(self):
        self.gaps.clear()
        self.forest.regenerate()
        self.atmospherics.resize(self.forest.width, self.forest.height)
        self.regen_count += 1

    def _step_regeneration(self, dt):
        if self.regen_state == FADING_OUT:
            self.regen_remaining -= dt
            if self.regen_remaining <= 0:
                self.regen_remaining = 0.0
                self.regen_state = SWAPPING
        if self.regen_state == SWAPPING:
            self._swap()
            self.fade.fade_in()
            self.regen_state = FADING_IN
        elif self.regen_state == FADING_IN and self.fade.is_settled:
            self.regen_state = IDLE

    def tick(self, dt):
        """Advance the world by dt seconds and composite one frame.

        Returns:
            The frame surface (device pixels)
        """
        dt = max(0.0, float(dt))
        clock = self.clock
        clock.advance(dt)
        self._step_regeneration(dt)

        night = clock.is_night()
        frame = self.frame
        self.forest.update_camera(dt, self.pointer)
        self.forest.draw(frame, clock, self.gaps)
        self.atmospherics.update_and_draw(frame, clock, dt)
        self.gaps.tick(dt, clock.disturbance)
        self.gaps.draw(frame, night)

        self.fade.update(dt)
        if self.fade.visible:
            self._fade_surface.set_alpha(int(self.fade.value))
            frame.blit(self._fade_surface, (0, 0))

        if self.state == RUNNING and self.title_alpha > 0:
            self.title_alpha = max(0.0, self.title_alpha - TITLE_FADE_PER_SEC * dt)
        return frame

    def snapshot(self):
        """Copy of the last composited frame, for export."""
        return self.frame.copy()
