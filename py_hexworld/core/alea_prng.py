"""
Python implementation of the Alea PRNG.

Based on Johannes Baagøe's Alea algorithm. Every generation phase builds its
own instance from the world seed, so identical seeds give identical worlds.
"""

import math


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


def normalize_seed(seed):
    """
    Return the value that is mashed for a seed.

    Integral floats mash like integers so ``42`` and ``42.0`` seed the same
    stream.
    """
    if isinstance(seed, float):
        if not math.isfinite(seed):
            raise ValueError(f"Seed must be finite, got {seed!r}")
        if seed.is_integer():
            return int(seed)
    return seed


class AleaPRNG:
    """Alea PRNG producing floats in [0, 1)."""

    def __init__(self, seed):
        """Initialize with a seed string, number, or sequence of those."""
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = [normalize_seed(arg) for arg in seed]
        else:
            args = [normalize_seed(seed)]

        mash_n = 0xEFC8249D  # 4022871197

        def mash(data):
            nonlocal mash_n
            data = str(data)
            for char in data:
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self):
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uint32(self):
        """Generate a random unsigned 32-bit integer."""
        return int(self.random() * 0x100000000)

