"""
inference
=========

Fitting engines for psychometric functions.

- MLEOptimizer : maximum-likelihood fit with Optax optimizers.
"""

from .base import InferenceEngine
from .mle import MLEOptimizer

# Registry for string-based inference selection
INFERENCE_ENGINES = {
    "mle": MLEOptimizer,
}

__all__ = [
    "InferenceEngine",
    "MLEOptimizer",
    "INFERENCE_ENGINES",
]
