"""
rng.py
------

Random number utilities for csfgen.

This module standardizes RNG handling across the package,
especially important when mixing NumPy and JAX.

- The adaptive procedure and the MLE fit use JAX PRNG keys.
- Feature assembly and the synthetic response engines draw with a
  numpy.random.Generator. numpy_rng() derives one from a JAX key so
  that a full threshold run is reproducible from a single integer seed.

Examples
--------
>>> from csfgen.utils.rng import seed, split, numpy_rng
>>> key = seed(0)
>>> k1, k2 = split(key)
>>> rng = numpy_rng(k2)
"""

from __future__ import annotations

import jax
import jax.random as jr
import numpy as np


def seed(seed_value: int) -> jax.Array:
    """
    Create a new PRNG key from an integer seed.

    Parameters
    ----------
    seed_value : int
        Seed for random number generation.

    Returns
    -------
    jax.Array
        New PRNG key.
    """
    return jr.PRNGKey(seed_value)


def split(key: jax.Array, num: int = 2):
    """
    Split a PRNG key into multiple independent keys.

    Parameters
    ----------
    key : jax.Array
        RNG key to split.
    num : int, default=2
        Number of new keys to return.

    Returns
    -------
    jax.Array
        Array of `num` independent PRNG keys.
    """
    return jr.split(key, num=num)


def numpy_rng(key: jax.Array) -> np.random.Generator:
    """
    Derive a NumPy Generator from a JAX PRNG key.

    Parameters
    ----------
    key : jax.Array
        Source key. It is consumed; split first if you need it again.

    Returns
    -------
    numpy.random.Generator
    """
    entropy = int(jr.randint(key, (), 0, np.iinfo(np.int32).max))
    return np.random.default_rng(entropy)
