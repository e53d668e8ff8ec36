"""
Random number generation utilities.

Generation phases never share a running stream. Each phase calls
``phase_prng(seed)`` and gets a fresh Alea instance seeded from the same base
seed, so the order in which phases run cannot change their output.

The module-level PRNG is only for formulas that are stochastic by contract
(e.g. hunter carrying capacity). Python's random and NumPy's random are not
used in generation code.
"""

from ..core.alea_prng import AleaPRNG

# Global PRNG instance
_prng = None


def set_random_seed(seed) -> None:
    """
    Reseed the process-wide Alea PRNG.

    Args:
        seed: Seed string or number
    """
    global _prng

    _prng = AleaPRNG(seed)


def get_prng() -> AleaPRNG:
    """
    Get the process-wide Alea PRNG instance.

    Returns:
        AleaPRNG instance
    """
    global _prng
    if _prng is None:
        _prng = AleaPRNG("default")
    return _prng


def phase_prng(seed) -> AleaPRNG:
    """
    Build a fresh PRNG for one generation phase.

    Args:
        seed: The world seed

    Returns:
        New AleaPRNG at the start of the seed's stream
    """
    return AleaPRNG(seed)
