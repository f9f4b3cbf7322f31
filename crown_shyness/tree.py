"""
Trees: a fixed trunk curve and a crown of leaves.

All randomness is spent in the constructor. After that a tree is just
geometry: four Bezier control points for the trunk, an elliptical crown
and the list of leaves sampled inside it.
"""

import math
import numpy as np
import pygame

from .leaf import Leaf
from .noise import clamp, rand_in

# Trunk gradient, ground -> crown (RGBA)
TRUNK_BOTTOM = (70, 45, 22, 242)
TRUNK_TOP = (95, 65, 35, 217)
TRUNK_NIGHT_TINT = 0.7


class Tree:
    def __init__(self, base_x, height_frac, index, viewport, config, rng):
        """Grow one tree.

        Args:
            base_x: Ground x position in pixels
            height_frac: Trunk height as a fraction of viewport height
            index: Position in the forest's tree list (leaves refer back to it)
            viewport: (width, height) in pixels
            config: Canopy config dict
            rng: numpy Generator
        """
        _, vh = viewport
        vh = max(1, vh)
        self.index = index
        self.base_x = base_x
        self.trunk_height = vh * clamp(height_frac, 0.2, 0.9)
        self.trunk_weight = rand_in(rng, config["trunk_weight"])

        mid_x = base_x + rng.uniform(-40, 40)
        mid_y = vh - self.trunk_height * 0.55
        top_x = base_x + rng.uniform(-25, 25)
        top_y = vh - self.trunk_height
        self.control_points = np.array([
            (base_x + rng.uniform(-20, 20), vh),
            (mid_x, mid_y),
            (mid_x + rng.uniform(-10, 10), mid_y - rng.uniform(10, 30)),
            (top_x, top_y),
        ], dtype=np.float64)

        jitter = config["crown_jitter_y"]
        self.crown_x = top_x
        self.crown_y = top_y + rng.uniform(-jitter, jitter)
        self.crown_radius = rand_in(rng, config["crown_radius"])
        self.crown_eccentricity = rand_in(rng, config["crown_eccentricity"])

        layers = max(1, int(config["layers"]))
        total = int(math.floor(rand_in(rng, config["leaves_per_tree"])))
        self.leaves = []
        for _ in range(max(0, total)):
            layer = int(rng.integers(layers))
            offset = self.sample_crown_point(rng)
            self.leaves.append(Leaf.create(index, offset, layer, config, rng))

    def sample_crown_point(self, rng):
        """Uniform point in the crown ellipse (sqrt radius avoids center clumping)."""
        a = self.crown_radius * rng.uniform(0.6, 1.0)
        theta = rng.uniform(0.0, 2.0 * math.pi)
        r = math.sqrt(rng.random()) * a
        return (math.cos(theta) * r, math.sin(theta) * r * self.crown_eccentricity)

    def trunk_points(self, steps=40):
        """Sample the cubic trunk curve into (steps + 1, 2) points."""
        t = np.linspace(0.0, 1.0, max(1, steps) + 1)[:, None]
        p0, p1, p2, p3 = self.control_points
        mt = 1.0 - t
        return (mt ** 3) * p0 + 3 * (mt ** 2) * t * p1 + 3 * mt * (t ** 2) * p2 + (t ** 3) * p3

    def draw_trunk(self, surface, night=False, steps=40):
        """Stroke the trunk onto a transparent layer, darker at night."""
        tint = TRUNK_NIGHT_TINT if night else 1.0
        pts = self.trunk_points(steps)
        width = max(1, int(round(self.trunk_weight)))
        radius = max(1, width // 2)
        n = len(pts) - 1
        for i in range(n):
            k = i / max(1, n - 1)
            color = tuple(
                int(round(lo + (hi - lo) * k)) for lo, hi in zip(TRUNK_BOTTOM, TRUNK_TOP)
            )
            color = (int(color[0] * tint), int(color[1] * tint), int(color[2] * tint), color[3])
            a = (float(pts[i, 0]), float(pts[i, 1]))
            b = (float(pts[i + 1, 0]), float(pts[i + 1, 1]))
            pygame.draw.line(surface, color, a, b, width)
            pygame.draw.circle(surface, color, b, radius)
