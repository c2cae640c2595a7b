"""
engines
=======

Collaborators of the threshold loop.

- SceneEngine : contrast -> stimulus descriptor (PatternScene, grating_pattern)
- NeuralResponseEngine : stimulus -> response instances (PoissonResponseEngine)
"""

from .neural import NOISE_MODES, NeuralResponseEngine, PoissonResponseEngine, validate_noise_mode
from .scene import PatternScene, SceneEngine, grating_pattern

__all__ = [
    "SceneEngine",
    "PatternScene",
    "grating_pattern",
    "NeuralResponseEngine",
    "PoissonResponseEngine",
    "NOISE_MODES",
    "validate_noise_mode",
]
