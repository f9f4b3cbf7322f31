"""
Environment Clock and Sky

Tracks elapsed time, the position in the repeating day/night cycle and
the "disturbance" scalar that user interaction pushes up and calm time
pulls back down. Everything that renders reads from one EnvironmentClock;
only advance() and register_disturbance() mutate it.

The sky is four anchors (day, dusk, night, dawn), each a top/bottom color
pair. The cycle is split into four equal segments, each blending one
anchor into the next, so the last segment ends exactly on the first
anchor and the loop has no seam.
"""

import numpy as np

from .presets import DEFAULTS

SKY_PHASES = ("day", "dusk", "night", "dawn")


def sky_anchors(config):
    """Return the (4, 2, 3) anchor array in SKY_PHASES order."""
    return np.array([config[f"sky_{name}"] for name in SKY_PHASES], dtype=np.float64)


def sky_color(phase, t, anchors):
    """Sky color at cycle `phase` and vertical fraction `t` (0 top, 1 bottom).

    Args:
        phase: Cycle position; wrapped into [0, 1)
        t: Scalar or array of vertical fractions, clamped to [0, 1]
        anchors: (4, 2, 3) array from sky_anchors()

    Returns:
        (3,) RGB floats for scalar t, else (..., 3)
    """
    n = len(anchors)
    p = (phase % 1.0) * n
    seg = min(int(p), n - 1)
    k = p - seg
    nxt = (seg + 1) % n

    top = anchors[seg, 0] + (anchors[nxt, 0] - anchors[seg, 0]) * k
    bottom = anchors[seg, 1] + (anchors[nxt, 1] - anchors[seg, 1]) * k

    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)[..., None]
    return top + (bottom - top) * t


def sky_gradient(phase, height, anchors):
    """Per-row sky colors as a (height, 3) float array."""
    height = max(1, int(height))
    t = np.arange(height, dtype=np.float64) / max(height - 1, 1)
    return sky_color(phase, t, anchors)


class EnvironmentClock:
    """Elapsed time, cycle phase and disturbance for one world."""

    def __init__(self, cycle_period=180.0, decay_rate=0.25,
                 night_window=(0.45, 0.70), anchors=None):
        self.cycle_period = max(float(cycle_period), 1e-6)
        self.decay_rate = decay_rate
        self.night_window = night_window
        self.anchors = anchors if anchors is not None else sky_anchors(DEFAULTS)
        self.elapsed_time = 0.0
        self.cycle_phase = 0.0
        self.disturbance = 0.0

    @classmethod
    def from_config(cls, config):
        return cls(
            cycle_period=config["cycle_period"],
            decay_rate=config["disturb_decay"],
            night_window=tuple(config["night_window"]),
            anchors=sky_anchors(config),
        )

    def advance(self, dt):
        dt = max(0.0, dt)
        self.elapsed_time += dt
        self.cycle_phase = (self.elapsed_time % self.cycle_period) / self.cycle_period
        if self.cycle_phase >= 1.0:
            self.cycle_phase = 0.0
        self.disturbance = min(1.0, max(0.0, self.disturbance - self.decay_rate * dt))

    def register_disturbance(self, amount):
        self.disturbance = min(1.0, max(0.0, self.disturbance + amount))

    def set_phase(self, phase):
        """Jump to a cycle position (elapsed time moves with it)."""
        phase = phase % 1.0
        cycles = self.elapsed_time // self.cycle_period
        self.elapsed_time = (cycles + phase) * self.cycle_period
        self.cycle_phase = phase

    def is_night(self):
        lo, hi = self.night_window
        return lo <= self.cycle_phase <= hi

    def sky_color(self, t):
        return sky_color(self.cycle_phase, t, self.anchors)

    def sky_gradient(self, height):
        return sky_gradient(self.cycle_phase, height, self.anchors)
