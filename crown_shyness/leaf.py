"""
Canopy Leaves

A Leaf is fixed at creation: where it sits in its crown, which depth layer
it belongs to, its size, shape and color. Nothing about a leaf changes from
frame to frame; sway, bob, glint and shading are all computed from the
current time and disturbance.

The per-frame functions below take whole numpy arrays of seeds and layers
so the forest can move every leaf at once.
"""

import math
import numpy as np
import pygame

from .noise import lerp, rand_in
from .presets import FALLBACK_LEAF_COLOR

GLINT_THRESHOLD_DAY = 0.82
GLINT_THRESHOLD_NIGHT = 0.88
GLINT_SCALE = 1.35
NIGHT_DIM = 0.65


class Leaf:
    """One canopy element.

    tree_index refers back to the owning Tree by position in the forest's
    tree list; the leaf does not hold the tree itself.
    """

    __slots__ = ("tree_index", "offset", "layer", "size", "aspect", "color", "seed")

    def __init__(self, tree_index, offset, layer, size, aspect, color, seed):
        self.tree_index = tree_index
        self.offset = offset
        self.layer = layer
        self.size = size
        self.aspect = aspect
        self.color = color
        self.seed = seed

    @classmethod
    def create(cls, tree_index, offset, layer, config, rng):
        """Draw size, color and alpha for a new leaf from the config ranges."""
        layers = max(1, int(config["layers"]))
        depth = (layer + 1) / layers
        size = rand_in(rng, config["leaf_size"]) * depth_scale(layer, layers)
        aspect = rand_in(rng, config["leaf_aspect"])

        palette = config["leaf_palette"] or [FALLBACK_LEAF_COLOR]
        base = palette[int(rng.integers(len(palette)))]
        shade = 0.85 + depth * 0.35 + rng.uniform(-0.05, 0.05)
        rgb = tuple(float(min(255.0, max(0.0, c * shade))) for c in base)
        alpha = rand_in(rng, config["leaf_alpha"])

        seed = float(rng.uniform(0.0, 1000.0))
        return cls(tree_index, offset, layer, size, aspect, rgb + (alpha,), seed)

    def world_position(self, tree):
        return (tree.crown_x + self.offset[0], tree.crown_y + self.offset[1])


def depth_scale(layer, layers):
    return lerp(0.75, 1.25, (layer + 1) / max(1, layers))


def wind_strength(disturbance, base=1.8):
    """A disturbed canopy sways harder."""
    return base * (1.0 + disturbance * 0.9)


def sway_offsets(noise, seeds, layers, time, wind, wind_speed=0.15):
    w = noise(seeds * 0.31, time * wind_speed) * 2.0 - 1.0
    return w * (4.0 + layers * 1.8) * wind


def bob_offsets(seeds, layers, time):
    return np.sin(time * 0.9 + seeds) * (1.2 + layers * 0.6)


def layer_visibility(layer, layers, night, disturbance):
    """Brightness multiplier for one depth layer: haze x night x disturbance."""
    if layers <= 1:
        haze = 1.0
    else:
        haze = 0.35 + (1.0 - 0.35) * layer / (layers - 1)
    night_dim = NIGHT_DIM if night else 1.0
    return haze * night_dim * (1.0 - disturbance * 0.08)


def glint_mask(noise, seeds, time, night):
    threshold = GLINT_THRESHOLD_NIGHT if night else GLINT_THRESHOLD_DAY
    return noise(seeds, time * 0.3) > threshold


def leaf_sprite(leaf, scale=1.0, gain=1.0):
    """Render a leaf as a radial-gradient ellipse on a transparent surface.

    Center carries the full color, the rim half of it; alpha falls to 80%
    at the rim. `gain` brightens the whole sprite (glints).
    """
    rx = max(0.5, leaf.size * scale / 2.0)
    ry = max(0.5, leaf.size * leaf.aspect * scale / 2.0)
    w = int(math.ceil(rx * 2)) + 2
    h = int(math.ceil(ry * 2)) + 2

    xs = np.arange(w, dtype=np.float64) - (w - 1) / 2.0
    ys = np.arange(h, dtype=np.float64) - (h - 1) / 2.0
    X, Y = np.meshgrid(xs, ys, indexing="ij")  # surfarray is (w, h)

    inside = (X / rx) ** 2 + (Y / ry) ** 2 <= 1.0
    R = 0.55 * leaf.size * scale
    g = np.clip((np.hypot(X, Y) - 0.1 * R) / (0.9 * R), 0.0, 1.0)

    r, gr, b, a = leaf.color
    base = np.array([r, gr, b], dtype=np.float64) * gain
    rgb = np.clip(base[None, None, :] * (1.0 - 0.5 * g)[..., None], 0, 255)
    alpha = np.where(inside, a * (1.0 - 0.2 * g), 0.0)

    surf = pygame.Surface((w, h), pygame.SRCALPHA, 32)
    px = pygame.surfarray.pixels3d(surf)
    px[...] = rgb.astype(np.uint8)
    del px
    pa = pygame.surfarray.pixels_alpha(surf)
    pa[...] = alpha.astype(np.uint8)
    del pa
    return surf
