"""
Forest Compositor

Owns the trees and draws one complete canopy frame:

    sky gradient -> trunks -> leaves (far to near) -> screen-blended light

Trunks never move relative to each other, so they are stroked once per
regeneration onto a transparent layer (one day variant, one night variant)
and blitted at the camera offset. Leaves are redrawn every frame because
sway, glints and gaps change constantly; each depth layer gets its own
transparent surface so the whole layer can be shaded in one fill.

Camera drift mixes a slow autonomous wander with a smoothed pull toward
the pointer. A gentle "breathing" scale is applied to the finished frame.
"""

import math
import numpy as np
import pygame
from scipy.ndimage import zoom

from .leaf import (
    GLINT_SCALE, bob_offsets, glint_mask, layer_visibility, leaf_sprite,
    sway_offsets, wind_strength,
)
from .noise import rand_in, remap
from .smoothing import SinusoidalLFO, SmoothedParameter
from .tree import Tree

LIGHT_TINT = np.array([255.0, 255.0, 240.0], dtype=np.float32)
LIGHT_AMP_DAY = 28.0
LIGHT_AMP_NIGHT = 10.0

# Per-frame lerp factors (0.05, 0.02) expressed as time constants
# at 60 fps: factor f -> tau = (1/60) / -ln(1 - f)
INFLUENCE_TAU = 0.325   # f = 0.05
CAMERA_TAU = 0.825      # f = 0.02


class Forest:
    def __init__(self, width, height, config, rng, noise):
        self.config = config
        self.rng = rng
        self.noise = noise
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.layers = max(1, int(config["layers"]))

        self.pointer_x = SmoothedParameter(0.0, INFLUENCE_TAU)
        self.pointer_y = SmoothedParameter(0.0, INFLUENCE_TAU)
        self.camera_x = SmoothedParameter(0.0, CAMERA_TAU)
        self.camera_y = SmoothedParameter(0.0, CAMERA_TAU)
        self.drift_x = SinusoidalLFO(0.0, 45.0, frequency_hz=0.021 / (2 * math.pi))
        self.drift_y = SinusoidalLFO(0.0, 28.0, frequency_hz=0.03 / (2 * math.pi),
                                     phase=math.pi / 2)
        self.breathing = SinusoidalLFO(1.0, 0.02, frequency_hz=0.15 / (2 * math.pi))

        self.trees = []
        self.regenerate()

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def regenerate(self):
        """Throw away every tree and grow a fresh forest from the config."""
        cfg = self.config
        w, h = self.width, self.height
        n = max(1, int(cfg["num_trees"]))

        self.trees = []
        for i in range(n):
            slot = i + self.rng.uniform(-0.2, 0.2)
            if n == 1:
                base_x = w * 0.5 + slot * w * 0.1
            else:
                base_x = remap(slot, 0, n - 1, w * 0.06, w * 0.94)
            hfrac = rand_in(self.rng, cfg["trunk_height"])
            self.trees.append(Tree(base_x, hfrac, i, (w, h), cfg, self.rng))

        self._pack_leaves()
        self._build_layers()

    def resize(self, width, height):
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.regenerate()

    def _pack_leaves(self):
        """Flatten every leaf into arrays so each frame is a handful of numpy ops."""
        leaves = [lf for tree in self.trees for lf in tree.leaves]
        self.leaves = leaves
        pos = np.array([lf.world_position(self.trees[lf.tree_index]) for lf in leaves],
                       dtype=np.float64).reshape(-1, 2)
        self._base_x = pos[:, 0]
        self._base_y = pos[:, 1]
        self._layer = np.array([lf.layer for lf in leaves], dtype=np.int64)
        self._seed = np.array([lf.seed for lf in leaves], dtype=np.float64)
        self._sprites = [leaf_sprite(lf) for lf in leaves]
        self._glint_sprites = {}

    def _build_layers(self):
        size = (self.width, self.height)
        self._trunk_layers = {}
        for night in (False, True):
            layer = pygame.Surface(size, pygame.SRCALPHA, 32)
            for tree in self.trees:
                tree.draw_trunk(layer, night=night)
            self._trunk_layers[night] = layer
        self._leaf_layers = [pygame.Surface(size, pygame.SRCALPHA, 32)
                             for _ in range(self.layers)]
        self._canvas = pygame.Surface(size, 0, 32)
        self._light = None

    @property
    def leaf_count(self):
        return len(self.leaves)

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def update_camera(self, dt, pointer=None):
        """Advance pointer influence, camera drift and breathing by dt.

        Args:
            dt: Seconds since last frame
            pointer: (x, y) in frame pixels, or None for the frame center
        """
        cx, cy = self.width / 2.0, self.height / 2.0
        px, py = pointer if pointer is not None else (cx, cy)
        self.pointer_x.set_target((px - cx) * 0.06)
        self.pointer_y.set_target((py - cy) * 0.05)
        self.pointer_x.update(dt)
        self.pointer_y.update(dt)

        self.drift_x.update(dt)
        self.drift_y.update(dt)
        self.camera_x.set_target(self.drift_x.get_value() + self.pointer_x.get_value() * 0.25)
        self.camera_y.set_target(self.drift_y.get_value() + self.pointer_y.get_value() * 0.2)
        self.camera_x.update(dt)
        self.camera_y.update(dt)

        self.breathing.update(dt)

    @property
    def camera(self):
        return (self.camera_x.get_value(), self.camera_y.get_value())

    @property
    def influence(self):
        return (self.pointer_x.get_value(), self.pointer_y.get_value())

    @property
    def scale(self):
        return self.breathing.get_value()

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def leaf_positions(self, time, disturbance):
        """Current on-screen position of every leaf.

        Pure in the fixed layout plus (time, disturbance, camera); nothing
        here is written back to the leaves.
        """
        cfg = self.config
        wind = wind_strength(disturbance, cfg["wind_strength"])
        sway = sway_offsets(self.noise, self._seed, self._layer, time, wind, cfg["wind_speed"])
        bob = bob_offsets(self._seed, self._layer, time)
        cam_x, cam_y = self.camera
        inf_x, inf_y = self.influence
        px = self._base_x + sway + cam_x + inf_x * 0.05
        py = self._base_y + bob + cam_y + inf_y * 0.03
        return px, py

    def visible_leaves(self, time, disturbance, gaps):
        """Leaf positions plus a mask of those not swallowed by any live gap.

        Returns:
            (px, py, visible) arrays, one entry per leaf
        """
        px, py = self.leaf_positions(time, disturbance)
        if gaps is None or len(gaps) == 0:
            return px, py, np.ones(len(px), dtype=bool)
        return px, py, ~gaps.contains(px, py)

    def _glint_sprite(self, i):
        sprite = self._glint_sprites.get(i)
        if sprite is None:
            sprite = leaf_sprite(self.leaves[i], scale=GLINT_SCALE, gain=GLINT_SCALE)
            self._glint_sprites[i] = sprite
        return sprite

    def _draw_leaves(self, canvas, time, disturbance, night, gaps):
        px, py, visible = self.visible_leaves(time, disturbance, gaps)
        glint = glint_mask(self.noise, self._seed, time, night)

        for layer, surf in enumerate(self._leaf_layers):
            surf.fill((0, 0, 0, 0))
            batch = []
            for i in np.nonzero(visible & (self._layer == layer))[0]:
                sprite = self._glint_sprite(i) if glint[i] else self._sprites[i]
                sw, sh = sprite.get_size()
                batch.append((sprite, (int(px[i]) - sw // 2, int(py[i]) - sh // 2)))
            if not batch:
                continue
            surf.blits(batch, doreturn=False)
            v = layer_visibility(layer, self.layers, night, disturbance)
            c = int(round(255 * min(1.0, max(0.0, v))))
            surf.fill((c, c, c), special_flags=pygame.BLEND_RGB_MULT)
            canvas.blit(surf, (0, 0))

    # ------------------------------------------------------------------
    # Light
    # ------------------------------------------------------------------

    def light_mask(self, time, night):
        """Shimmering light as a (width, height) alpha field in [0, 1].

        A coarse grid of noise cells, brighter by day, upsampled bilinearly.
        """
        cell = max(1, int(self.config["light_cell"]))
        cols = int(math.ceil(self.width / cell))
        rows = int(math.ceil(self.height / cell))
        xs = np.arange(cols, dtype=np.float64) * cell
        ys = np.arange(rows, dtype=np.float64) * cell
        X, Y = np.meshgrid(xs, ys, indexing="ij")
        n = self.noise(X * 0.005, Y * 0.006, time * 0.3)

        amp = LIGHT_AMP_NIGHT if night else LIGHT_AMP_DAY
        peak = amp + math.sin(time * 1.2) * amp * 0.4
        grid = (n * peak / 255.0).astype(np.float32)

        light = zoom(grid, cell, order=1)[:self.width, :self.height]
        if light.shape != (self.width, self.height):
            light = np.pad(light, ((0, self.width - light.shape[0]),
                                   (0, self.height - light.shape[1])), mode="edge")
        self._light = np.clip(light, 0.0, 1.0)
        return self._light

    def _screen_blend(self, canvas, light):
        px = pygame.surfarray.pixels3d(canvas)
        d = px.astype(np.float32)
        s = LIGHT_TINT[None, None, :] * light[..., None]
        px[...] = np.clip(d + s * (1.0 - d / 255.0), 0, 255).astype(np.uint8)
        del px

    # ------------------------------------------------------------------
    # Frame
    # ------------------------------------------------------------------

    def draw(self, frame, clock, gaps=None):
        """Composite sky, trunks, leaves and light onto `frame`."""
        canvas = self._canvas
        t = clock.elapsed_time
        night = clock.is_night()
        disturbance = clock.disturbance

        rows = clock.sky_gradient(self.height)
        sky = np.repeat(rows[None, :, :], self.width, axis=0)
        pygame.surfarray.blit_array(canvas, sky.astype(np.uint8))

        light = self.light_mask(t, night)

        cam_x, cam_y = self.camera
        canvas.blit(self._trunk_layers[night], (int(round(cam_x)), int(round(cam_y))))
        self._draw_leaves(canvas, t, disturbance, night, gaps)
        self._screen_blend(canvas, light)

        s = self.scale
        if abs(s - 1.0) < 1e-4:
            frame.blit(canvas, (0, 0))
            return
        sw = max(1, int(round(self.width * s)))
        sh = max(1, int(round(self.height * s)))
        scaled = pygame.transform.smoothscale(canvas, (sw, sh))
        if s < 1.0:
            frame.fill(tuple(int(c) for c in rows[-1]))
        frame.blit(scaled, ((self.width - sw) // 2, (self.height - sh) // 2))
