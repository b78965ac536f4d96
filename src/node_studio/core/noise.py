"""
Procedural Noise - Seeded pseudo-random numbers and 2D Perlin noise.

Everything here is pure and deterministic: the same seed and the same
coordinates always produce the same value, so procedural textures are
reproducible across runs and machines.
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray


MASK32 = 0xFFFFFFFF
ZERO_SEED_REPLACEMENT = 0xDEADBEEF
DEFAULT_SEED = 1337


def xorshift32(x: int) -> int:
    """Advance a 32-bit xorshift state (13/17/5)."""
    x &= MASK32
    if x == 0:
        x = ZERO_SEED_REPLACEMENT
    x ^= (x << 13) & MASK32
    x ^= x >> 17
    x ^= (x << 5) & MASK32
    return x


def create_rng(seed: int) -> Callable[[], float]:
    """
    Create a seeded generator of floats in [0, 1].

    The first state is xorshift32(seed); every call advances the state
    once and returns state / 0xFFFFFFFF.
    """
    state = xorshift32(int(seed))

    def rand() -> float:
        nonlocal state
        state = xorshift32(state)
        return state / MASK32

    return rand


def build_permutation(seed: int) -> NDArray[np.int64]:
    """
    Build the 512-entry permutation table for a seed.

    0..255 is shuffled with Fisher-Yates (i from 255 down to 1, j drawn
    uniformly in [0, i]) and then repeated twice, so lookups of
    p[X + 1] and p[A + 1] never need a modulo.
    """
    rand = create_rng(seed)
    base = list(range(256))
    for i in range(255, 0, -1):
        # rand() can return exactly 1.0 for state 0xFFFFFFFF
        j = min(int(rand() * (i + 1)), i)
        base[i], base[j] = base[j], base[i]
    return np.array(base + base, dtype=np.int64)


def fade(t):
    return t * t * t * (t * (t * 6 - 15) + 10)


def lerp(a, b, t):
    return a + t * (b - a)


def grad(hash_value: int, x: float, y: float) -> float:
    """Dot product with one of four lattice gradients, picked by hash & 3."""
    h = hash_value & 3
    u = x if h < 2 else y
    v = y if h < 2 else x
    return (-u if h & 1 else u) + (-2 * v if h & 2 else 2 * v)


def _grad_array(hash_values: NDArray, x: NDArray, y: NDArray) -> NDArray:
    h = hash_values & 3
    u = np.where(h < 2, x, y)
    v = np.where(h < 2, y, x)
    return np.where(h & 1, -u, u) + np.where(h & 2, -2 * v, 2 * v)


class PerlinNoise:
    """
    Seeded 2D Perlin noise.

    Usage:
        perlin = PerlinNoise(seed=42)
        value = perlin.noise2d(3.7, 1.2)        # float in about [0, 1]
        field = perlin.noise2d_array(xs, ys)    # vectorised
    """

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed = int(seed)
        self._perm = build_permutation(self.seed)
        # Plain ints for the scalar path
        self._p: list[int] = self._perm.tolist()

    @property
    def permutation(self) -> NDArray[np.int64]:
        """The 512-entry permutation table (read-only copy)."""
        return self._perm.copy()

    def noise2d(self, x: float, y: float) -> float:
        """Evaluate noise at (x, y), remapped from [-1, 1] to [0, 1]."""
        p = self._p
        fx = math.floor(x)
        fy = math.floor(y)
        X = int(fx) & 255
        Y = int(fy) & 255
        x -= fx
        y -= fy
        u = fade(x)
        v = fade(y)

        A = p[X] + Y
        B = p[X + 1] + Y
        n00 = grad(p[A], x, y)
        n10 = grad(p[B], x - 1, y)
        n01 = grad(p[A + 1], x, y - 1)
        n11 = grad(p[B + 1], x - 1, y - 1)

        nx0 = lerp(n00, n10, u)
        nx1 = lerp(n01, n11, u)
        nxy = lerp(nx0, nx1, v)
        return (nxy + 1) * 0.5

    def noise2d_array(self, xs: ArrayLike, ys: ArrayLike) -> NDArray[np.float64]:
        """
        Evaluate noise element-wise over broadcastable coordinate arrays.

        Produces the same values as calling noise2d on each element.
        """
        p = self._perm
        x = np.asarray(xs, dtype=np.float64)
        y = np.asarray(ys, dtype=np.float64)
        x, y = np.broadcast_arrays(x, y)

        fx = np.floor(x)
        fy = np.floor(y)
        X = fx.astype(np.int64) & 255
        Y = fy.astype(np.int64) & 255
        x = x - fx
        y = y - fy
        u = fade(x)
        v = fade(y)

        A = p[X] + Y
        B = p[X + 1] + Y
        n00 = _grad_array(p[A], x, y)
        n10 = _grad_array(p[B], x - 1, y)
        n01 = _grad_array(p[A + 1], x, y - 1)
        n11 = _grad_array(p[B + 1], x - 1, y - 1)

        nx0 = lerp(n00, n10, u)
        nx1 = lerp(n01, n11, u)
        nxy = lerp(nx0, nx1, v)
        return (nxy + 1) * 0.5


def create_perlin(seed: int = DEFAULT_SEED) -> PerlinNoise:
    """Create a seeded Perlin noise generator."""
    return PerlinNoise(seed)


def fractal_noise(
    perlin: PerlinNoise,
    width: int,
    height: int,
    scale: float,
    octaves: int,
) -> NDArray[np.float64]:
    """
    Sum octaves of noise over a width x height pixel grid.

    Octave k samples at frequency scale * 2**k with amplitude 0.5**k;
    the sum is divided by the total amplitude. Returns an (H, W) array.
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    total = np.zeros((height, width), dtype=np.float64)
    amp, freq, sum_amp = 1.0, scale, 0.0
    for _ in range(max(1, int(octaves))):
        total += perlin.noise2d_array(xs * freq, ys * freq) * amp
        sum_amp += amp
        amp *= 0.5
        freq *= 2.0
    return total / sum_amp
