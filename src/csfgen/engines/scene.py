"""
scene.py
--------

Scene engines: contrast -> stimulus descriptor.

The threshold loop only needs `compute(contrast)`. Real scene synthesis
(optics, radiometry) lives outside this package; PatternScene is a
lightweight engine that scales a fixed modulation pattern by contrast,
which is enough to drive the synthetic response engines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from csfgen.errors import ConfigurationError


class SceneEngine(ABC):
    """
    Abstract scene engine.

    Methods
    -------
    compute(contrast) -> stimulus
        Stimulus descriptor for a given contrast (0 = null stimulus).
    """

    @abstractmethod
    def compute(self, contrast: float) -> Any:
        ...


def grating_pattern(
    n_units: int,
    cycles: float = 1.0,
    phase_degs: float = 90.0,
) -> np.ndarray:
    """
    Sinusoidal modulation across `n_units` positions.

    Parameters
    ----------
    n_units : int
        Number of spatial samples.
    cycles : float, default=1.0
        Cycles across the whole field.
    phase_degs : float, default=90.0
        Spatial phase. 90 deg (sine phase) keeps the spatial mean at zero.

    Returns
    -------
    np.ndarray, shape (n_units,)
        Values in [-1, 1].
    """
    if n_units < 1:
        raise ConfigurationError(f"n_units must be >= 1, got {n_units}")
    x = np.arange(n_units) / n_units
    return np.cos(2 * np.pi * cycles * x - np.deg2rad(phase_degs))


class PatternScene(SceneEngine):
    """
    Contrast-scaled modulation pattern.

    Parameters
    ----------
    pattern : array_like, shape (n_units,) or (n_time_bins, n_units)
        Modulation at unit contrast.

    Examples
    --------
    >>> scene = PatternScene(grating_pattern(64, cycles=4))
    >>> scene.compute(0.01).max() <= 0.01
    True
    """

    def __init__(self, pattern):
        self.pattern = np.asarray(pattern, dtype=float)
        if self.pattern.ndim not in (1, 2):
            raise ConfigurationError(
                f"pattern must be (n_units,) or (n_time_bins, n_units), got shape {self.pattern.shape}"
            )

    def compute(self, contrast: float) -> np.ndarray:
        return float(contrast) * self.pattern
