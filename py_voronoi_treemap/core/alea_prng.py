"""
Alea pseudo-random number generator.

Johannes Baagøe's Alea: a seeded, portable generator whose streams match the
JavaScript implementation, so seeded layouts are reproducible across runs and
platforms.
"""

TWO_POW_32 = 0x100000000
TWO_POW_MINUS_32 = 2.3283064365386963e-10


def _uint32(n):
    return int(n) & 0xFFFFFFFF


class _Mash:
    """Hashes seed values into floats in [0, 1)."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        n = self.n
        for char in str(data):
            n += ord(char)
            h = 0.02519603282416938 * n
            n = _uint32(h)
            h -= n
            h *= n
            n = _uint32(h)
            h -= n
            n += h * TWO_POW_32
        self.n = n
        return _uint32(n) * TWO_POW_MINUS_32


class AleaPRNG:
    """
    Seeded generator exposing ``random()``.

    Args:
        seed: A string or number, or an iterable of them
    """

    def __init__(self, seed):
        args = list(seed) if hasattr(seed, "__iter__") and not isinstance(seed, str) else [seed]
        mash = _Mash()
        state = [mash(" "), mash(" "), mash(" ")]
        for arg in args:
            for i in range(3):
                state[i] -= mash(arg)
                if state[i] < 0:
                    state[i] += 1
        self.s0, self.s1, self.s2 = state
        self.c = 1

    def random(self) -> float:
        """Next float in [0, 1)."""
        t = 2091639 * self.s0 + self.c * TWO_POW_MINUS_32
        self.c = int(t)
        self.s0, self.s1, self.s2 = self.s1, self.s2, t - self.c
        return self.s2
