"""
csfgen.model
============

Psychometric-function layer.

Includes
--------
- PsychometricFunction (base), WeibullLog (default), NormalCDFLog
- PsychometricParams (threshold, slope, guess, lapse)

All functions use JAX arrays (jax.numpy as jnp) for autodiff
and optimization with Optax.

Typical usage
-------------
    from csfgen.model import WeibullLog, PsychometricParams
"""

from .psychometric import (
    PSYCHOMETRIC_FUNCTIONS,
    NormalCDFLog,
    PsychometricFunction,
    PsychometricParams,
    WeibullLog,
)

__all__ = [
    "PsychometricFunction",
    "PsychometricParams",
    "WeibullLog",
    "NormalCDFLog",
    "PSYCHOMETRIC_FUNCTIONS",
]
