"""
psychometric.py
---------------

Psychometric function families in log10 contrast units.

Each PsychometricFunction defines:
- p_correct(log_contrast, params)
    Probability of a correct response at a stimulus level.
- loglik(params, log_contrasts, responses)
    Bernoulli log-likelihood of observed 0/1 outcomes.
- threshold_at(criterion, params)
    log10 contrast at which p_correct equals `criterion`.

WeibullLog
----------
    p(x) = 1 - lapse + (guess + lapse - 1) * exp(-10 ** (slope * (x - threshold)))

At x == threshold with guess=0.5 and lapse=0 this gives 1 - 0.5/e = 0.81606,
which is why 0.81606 is the default threshold criterion.

All functions use JAX (jax.numpy) for compatibility with autodiff.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NamedTuple

import jax.numpy as jnp
from jax.scipy.special import ndtr, ndtri, xlog1py, xlogy

# smallest probability margin float32 can represent next to 1.0
P_EPS = 1e-6


class PsychometricParams(NamedTuple):
    """
    Psychometric function parameters.

    Attributes
    ----------
    threshold : float
        log10 contrast location parameter.
    slope : float
        Steepness (per log10 unit).
    guess : float
        Lower asymptote (0.5 for TAFC).
    lapse : float
        1 - upper asymptote.
    """

    threshold: float
    slope: float
    guess: float = 0.5
    lapse: float = 0.0


class PsychometricFunction(ABC):
    """
    Abstract base class for psychometric function families.
    """

    @abstractmethod
    def _core(self, x: jnp.ndarray, threshold, slope) -> jnp.ndarray:
        """Sigmoid in [0, 1], increasing in x."""
        ...

    @abstractmethod
    def _core_inverse(self, q, threshold, slope):
        """Inverse of _core."""
        ...

    def p_correct(self, log_contrast, params: PsychometricParams) -> jnp.ndarray:
        """
        Probability of a correct response.

        Parameters
        ----------
        log_contrast : array_like
            log10 contrast(s).
        params : PsychometricParams
            Parameters; fields may be arrays that broadcast against
            `log_contrast` (used for grid evaluation).

        Returns
        -------
        jnp.ndarray
            Probability correct in [guess, 1 - lapse].
        """
        x = jnp.asarray(log_contrast)
        f = self._core(x, params.threshold, params.slope)
        return params.guess + (1.0 - params.guess - params.lapse) * f

    def loglik(self, params: PsychometricParams, log_contrasts, responses) -> jnp.ndarray:
        """
        Bernoulli log-likelihood of 0/1 responses.

        Parameters
        ----------
        params : PsychometricParams
        log_contrasts : jnp.ndarray, shape (n_trials,)
        responses : jnp.ndarray, shape (n_trials,)
            1 = correct, 0 = incorrect.

        Returns
        -------
        jnp.ndarray
            Scalar log-likelihood.
        """
        p = jnp.clip(self.p_correct(log_contrasts, params), P_EPS, 1.0 - P_EPS)
        y = jnp.asarray(responses, dtype=p.dtype)
        return jnp.sum(xlogy(y, p) + xlog1py(1.0 - y, -p))

    def threshold_at(self, criterion: float, params: PsychometricParams) -> float:
        """
        log10 contrast where p_correct == criterion.

        Raises
        ------
        ValueError
            If `criterion` is not strictly between the asymptotes.
        """
        lower = params.guess
        upper = 1.0 - params.lapse
        if not (lower < criterion < upper):
            raise ValueError(
                f"criterion {criterion} outside psychometric range ({lower}, {upper})"
            )
        q = (criterion - lower) / (upper - lower)
        return float(self._core_inverse(q, params.threshold, params.slope))


class WeibullLog(PsychometricFunction):
    """
    Weibull psychometric function with stimulus in log10 units.
    """

    def _core(self, x, threshold, slope):
        return 1.0 - jnp.exp(-(10.0 ** (slope * (x - threshold))))

    def _core_inverse(self, q, threshold, slope):
        return threshold + jnp.log10(-jnp.log1p(-q)) / slope


class NormalCDFLog(PsychometricFunction):
    """
    Cumulative normal psychometric function in log10 units.

    `threshold` is the mean and `1 / slope` the standard deviation.
    """

    def _core(self, x, threshold, slope):
        return ndtr(slope * (x - threshold))

    def _core_inverse(self, q, threshold, slope):
        return threshold + ndtri(q) / slope


PSYCHOMETRIC_FUNCTIONS = {
    "weibull_log": WeibullLog,
    "normal_cdf_log": NormalCDFLog,
}
