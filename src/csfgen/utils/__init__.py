"""
utils
=====

Shared utility functions and helpers for csfgen.

- rng : seed(), split() for JAX PRNG keys, numpy_rng() to bridge to NumPy.
"""

from .rng import numpy_rng, seed, split

__all__ = [
    "seed",
    "split",
    "numpy_rng",
]
