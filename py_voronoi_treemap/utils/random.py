"""
Random number generator factory.

Every layout owns its generator; nothing here is global. Pass a seed for
reproducible layouts.
"""

import random
from typing import Optional, Protocol, Union

from ..core.alea_prng import AleaPRNG


class Prng(Protocol):
    """Anything exposing ``random()`` returning floats in [0, 1)."""

    def random(self) -> float:
        ...


def make_prng(seed: Optional[Union[str, int]] = None) -> Prng:
    """
    Create a generator for one layout.

    Args:
        seed: Seed for an AleaPRNG; None gives an unseeded system generator

    Returns:
        Object exposing ``random()``
    """
    if seed is None:
        return random.Random()
    return AleaPRNG(seed)
