"""
neural.py
---------

Neural response engines: stimulus -> response instances.

`compute(stimulus, n_instances, noise_mode, rng)` returns an array of shape
(n_instances, n_time_bins, n_units).

Noise modes
-----------
- "none"   : noise-free mean response, repeated n_instances times
- "random" : independent noisy draws

PoissonResponseEngine is a synthetic engine for tests and examples:

    mean[t, u] = rate[u] * profile[t] * max(0, 1 + gain * stimulus[t, u])
    response   ~ Poisson(mean)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from csfgen.errors import ConfigurationError, DataShapeError

NOISE_MODES = ("none", "random")


def validate_noise_mode(noise_mode: str) -> str:
    if noise_mode not in NOISE_MODES:
        raise ConfigurationError(
            f"Unknown noise mode: '{noise_mode}'. Valid modes: {NOISE_MODES}"
        )
    return noise_mode


class NeuralResponseEngine(ABC):
    """
    Abstract neural response engine.
    """

    @abstractmethod
    def compute(
        self,
        stimulus: Any,
        n_instances: int,
        noise_mode: str = "random",
        rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        """
        Response instances to `stimulus`.

        Parameters
        ----------
        stimulus : Any
            Descriptor produced by a SceneEngine.
        n_instances : int
            Number of instances (trials).
        noise_mode : {"none", "random"}
        rng : numpy.random.Generator, optional
            Source of noise. Results are deterministic given a seeded rng.

        Returns
        -------
        np.ndarray, shape (n_instances, n_time_bins, n_units)
        """
        ...

    def noise_free(self, stimulus: Any) -> np.ndarray:
        """Mean response, shape (n_time_bins, n_units)."""
        return self.compute(stimulus, 1, "none")[0]


class PoissonResponseEngine(NeuralResponseEngine):
    """
    Poisson spike-count responses modulated by stimulus contrast.

    Parameters
    ----------
    rate : float or array_like, shape (n_units,)
        Mean count per time bin at zero contrast.
    n_time_bins : int, default=1
    gain : float, default=1.0
        Fractional rate change per unit of stimulus.
    temporal_profile : array_like, shape (n_time_bins,), optional
        Per-bin multiplier of the rate. Defaults to ones.
    n_units : int, optional
        Required when `rate` is a scalar.
    """

    def __init__(
        self,
        rate=100.0,
        n_time_bins: int = 1,
        gain: float = 1.0,
        temporal_profile=None,
        n_units: int | None = None,
    ):
        rate = np.asarray(rate, dtype=float)
        if rate.ndim == 0:
            if n_units is None:
                raise ConfigurationError("n_units is required when rate is a scalar")
            rate = np.full(n_units, float(rate))
        if np.any(rate < 0):
            raise ConfigurationError("rates must be non-negative")
        if temporal_profile is None:
            temporal_profile = np.ones(n_time_bins)
        temporal_profile = np.asarray(temporal_profile, dtype=float)
        if temporal_profile.shape != (n_time_bins,):
            raise DataShapeError(
                f"temporal_profile shape {temporal_profile.shape} != ({n_time_bins},)"
            )
        self.rate = rate
        self.n_time_bins = int(n_time_bins)
        self.gain = float(gain)
        self.temporal_profile = temporal_profile

    @property
    def n_units(self) -> int:
        return self.rate.size

    def mean_response(self, stimulus) -> np.ndarray:
        stim = np.asarray(stimulus, dtype=float)
        if stim.ndim == 1:
            stim = np.broadcast_to(stim, (self.n_time_bins, stim.size))
        if stim.shape != (self.n_time_bins, self.n_units):
            raise DataShapeError(
                f"stimulus shape {np.shape(stimulus)} incompatible with "
                f"{self.n_time_bins} time bins x {self.n_units} units"
            )
        modulation = np.maximum(0.0, 1.0 + self.gain * stim)
        return self.temporal_profile[:, None] * self.rate[None, :] * modulation

    def compute(self, stimulus, n_instances, noise_mode="random", rng=None):
        validate_noise_mode(noise_mode)
        if n_instances < 1:
            raise ConfigurationError(f"n_instances must be >= 1, got {n_instances}")
        mean = self.mean_response(stimulus)
        if noise_mode == "none":
            return np.repeat(mean[None], n_instances, axis=0)
        rng = rng if rng is not None else np.random.default_rng()
        return rng.poisson(mean, size=(n_instances,) + mean.shape).astype(float)
