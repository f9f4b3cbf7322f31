"""
Seeded Noise and Random Helpers

Coherent noise drives every organic motion in the canopy (leaf sway,
glints, pollen drift, firefly twinkle, light shimmer). Discrete choices
(palette picks, jitter) use a plain numpy Generator instead, so tests can
inject a seed for either independently.

PerlinNoise follows the improved-Perlin gradient lattice, summed over a
few octaves with halving amplitude, and is normalised to [0, 1].
"""

import numpy as np


def _fade(t):
    return t * t * t * (t * (t * 6 - 15) + 10)


def _grad(h, x, y, z):
    """Dot product with one of the 12 cube-edge gradients picked by hash."""
    h = h & 15
    u = np.where(h < 8, x, y)
    v = np.where(h < 4, y, np.where((h == 12) | (h == 14), x, z))
    return np.where(h & 1, -u, u) + np.where(h & 2, -v, v)


class PerlinNoise:
    """Seeded 3-D coherent noise, vectorised over numpy arrays.

    Calling with scalars returns a float; calling with arrays returns an
    array of the broadcast shape. Output is always finite and in [0, 1].
    """

    def __init__(self, seed=None, octaves=4, falloff=0.5):
        rng = np.random.default_rng(seed)
        perm = rng.permutation(256).astype(np.int64)
        self._perm = np.concatenate([perm, perm])
        self.octaves = max(1, int(octaves))
        self.falloff = falloff

    def _single(self, x, y, z):
        xf = np.floor(x)
        yf = np.floor(y)
        zf = np.floor(z)
        xi = xf.astype(np.int64) & 255
        yi = yf.astype(np.int64) & 255
        zi = zf.astype(np.int64) & 255
        x = x - xf
        y = y - yf
        z = z - zf
        u, v, w = _fade(x), _fade(y), _fade(z)

        p = self._perm
        a = p[xi] + yi
        aa = p[a] + zi
        ab = p[a + 1] + zi
        b = p[xi + 1] + yi
        ba = p[b] + zi
        bb = p[b + 1] + zi

        x1 = _lerp_arr(u, _grad(p[aa], x, y, z), _grad(p[ba], x - 1, y, z))
        x2 = _lerp_arr(u, _grad(p[ab], x, y - 1, z), _grad(p[bb], x - 1, y - 1, z))
        y1 = _lerp_arr(v, x1, x2)
        x1 = _lerp_arr(u, _grad(p[aa + 1], x, y, z - 1), _grad(p[ba + 1], x - 1, y, z - 1))
        x2 = _lerp_arr(u, _grad(p[ab + 1], x, y - 1, z - 1),
                       _grad(p[bb + 1], x - 1, y - 1, z - 1))
        y2 = _lerp_arr(v, x1, x2)
        return _lerp_arr(w, y1, y2)

    def __call__(self, x, y=0.0, z=0.0):
        scalar = np.ndim(x) == 0 and np.ndim(y) == 0 and np.ndim(z) == 0
        x, y, z = np.broadcast_arrays(
            np.nan_to_num(np.asarray(x, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0),
            np.nan_to_num(np.asarray(y, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0),
            np.nan_to_num(np.asarray(z, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0),
        )

        total = np.zeros(x.shape, dtype=np.float64)
        amp = 1.0
        freq = 1.0
        amp_sum = 0.0
        for _ in range(self.octaves):
            total += amp * self._single(x * freq, y * freq, z * freq)
            amp_sum += amp
            amp *= self.falloff
            freq *= 2.0

        out = np.clip(0.5 + 0.5 * total / amp_sum, 0.0, 1.0)
        if scalar:
            return float(out)
        return out


def _lerp_arr(t, a, b):
    return a + t * (b - a)


def lerp(a, b, t):
    return a + (b - a) * t


def clamp(v, lo, hi):
    return max(lo, min(hi, v))


def remap(v, in_lo, in_hi, out_lo, out_hi):
    """Linear map from one range to another. A zero-width input range maps to out_lo."""
    span = in_hi - in_lo
    if span == 0:
        return out_lo
    return out_lo + (v - in_lo) / span * (out_hi - out_lo)


def rand_in(rng, span):
    """Uniform draw from a (lo, hi) pair."""
    lo, hi = span
    if hi <= lo:
        return float(lo)
    return float(rng.uniform(lo, hi))
