"""
base.py
-------

Abstract base class for adaptive stimulus-placement procedures.

A procedure owns:
- a fixed stimulus domain (log10 contrasts it may ask for),
- a fixed candidate grid over psychometric parameters
  (threshold x slope x guess x lapse), never changed after construction,
- the log-likelihood of every grid point given the trials seen so far,
- the ResponseData collected during the run.

Subclasses decide which stimulus to present next and when to stop.

Protocol
--------
    x, more = proc.next_stimulus()
    while more:
        outcomes = run_block(x)
        x, more = proc.update(x * ones, outcomes)
    log_threshold, params = proc.fit_mle(criterion=0.81606)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import jax
import jax.numpy as jnp
import numpy as np
from jax.scipy.special import xlog1py, xlogy

from csfgen.data.dataset import ResponseData
from csfgen.errors import ConfigurationError, DataShapeError, NumericalError, StateError
from csfgen.inference.mle import MLEOptimizer
from csfgen.model.psychometric import P_EPS, PsychometricFunction, PsychometricParams, WeibullLog


def _domain(values, name: str) -> np.ndarray:
    arr = np.atleast_1d(np.asarray(values, dtype=float))
    if arr.ndim != 1 or arr.size == 0:
        raise ConfigurationError(f"{name} must be a non-empty 1-D sequence, got shape {arr.shape}")
    return arr


class AdaptiveProcedure(ABC):
    """
    Grid-based Bayesian procedure over psychometric parameters.

    Parameters
    ----------
    stim_domain : sequence of float
        log10 contrasts that may be presented.
    threshold_domain : sequence of float
        Candidate log10 thresholds.
    slope_domain : sequence of float
        Candidate slopes (must be positive).
    guess_rates : float or sequence of float, default=0.5
    lapse_rates : float or sequence of float, default=0.0
    psychometric : PsychometricFunction, optional
        Function family; WeibullLog by default.
    optimizer : MLEOptimizer, optional
        Engine used by fit_mle().

    Attributes
    ----------
    data : ResponseData
        All (log contrast, outcome) pairs passed to update().
    log_likelihood : jnp.ndarray, shape (n_params,)
        Log-likelihood of every grid point.
    """

    #: whether the same stimulus may be presented more than once
    allows_repeats: bool = True
    #: trials per block the procedure expects (None: caller decides)
    block_size: int | None = None

    def __init__(
        self,
        stim_domain: Sequence[float],
        threshold_domain: Sequence[float],
        slope_domain: Sequence[float],
        guess_rates: float | Sequence[float] = 0.5,
        lapse_rates: float | Sequence[float] = 0.0,
        psychometric: PsychometricFunction | None = None,
        optimizer: MLEOptimizer | None = None,
    ):
        self.stim_domain = _domain(stim_domain, "stim_domain")
        self.threshold_domain = _domain(threshold_domain, "threshold_domain")
        self.slope_domain = _domain(slope_domain, "slope_domain")
        self.guess_rates = _domain(guess_rates, "guess_rates")
        self.lapse_rates = _domain(lapse_rates, "lapse_rates")
        if np.any(self.slope_domain <= 0):
            raise ConfigurationError("slope_domain must be strictly positive")
        if np.any(self.guess_rates + self.lapse_rates >= 1.0):
            raise ConfigurationError("guess_rate + lapse_rate must be < 1")
        self.psychometric = psychometric or WeibullLog()
        self.optimizer = optimizer or MLEOptimizer()

        grids = np.meshgrid(
            self.threshold_domain,
            self.slope_domain,
            self.guess_rates,
            self.lapse_rates,
            indexing="ij",
        )
        self.param_grid = PsychometricParams(*(jnp.asarray(g.ravel()) for g in grids))
        self.log_prior = jnp.full(grids[0].size, -np.log(grids[0].size))
        self.log_likelihood = jnp.zeros(grids[0].size)
        # (n_stim, n_params) table of p(correct)
        self.p_table = self._p_correct_grid(jnp.asarray(self.stim_domain))
        self.data = ResponseData()
        self._finished = False

    # ------------------------------------------------------------------
    # POSTERIOR
    # ------------------------------------------------------------------
    def _p_correct_grid(self, log_contrasts: jnp.ndarray) -> jnp.ndarray:
        p = self.psychometric.p_correct(log_contrasts[:, None], self.param_grid)
        return jnp.clip(p, P_EPS, 1.0 - P_EPS)

    @property
    def posterior(self) -> jnp.ndarray:
        """Normalized posterior over the parameter grid, shape (n_params,)."""
        return jax.nn.softmax(self.log_prior + self.log_likelihood)

    @property
    def n_trials(self) -> int:
        return len(self.data)

    @property
    def finished(self) -> bool:
        return self._finished

    def posterior_mean(self) -> PsychometricParams:
        post = self.posterior
        return PsychometricParams(*(float(jnp.sum(post * g)) for g in self.param_grid))

    def threshold_sd(self) -> float:
        """Posterior standard deviation of the log10 threshold."""
        post = self.posterior
        t = self.param_grid.threshold
        mean = jnp.sum(post * t)
        return float(jnp.sqrt(jnp.sum(post * (t - mean) ** 2)))

    def grid_mle(self) -> PsychometricParams:
        """Grid point with the highest likelihood."""
        idx = int(jnp.argmax(self.log_likelihood))
        return PsychometricParams(*(float(g[idx]) for g in self.param_grid))

    # ------------------------------------------------------------------
    # PROTOCOL
    # ------------------------------------------------------------------
    @abstractmethod
    def _select_stimulus(self) -> float:
        """Return the next log10 contrast to present."""
        ...

    @abstractmethod
    def _should_stop(self) -> bool:
        """Stopping rule evaluated after each update."""
        ...

    def next_stimulus(self) -> tuple[float, bool]:
        """
        Next stimulus to present.

        Returns
        -------
        log_contrast : float
            Next log10 contrast (nan once the procedure has stopped).
        more : bool
            False once the stopping rule has fired.
        """
        if self._finished or self._should_stop():
            self._finished = True
            return float("nan"), False
        return self._select_stimulus(), True

    def update(self, log_contrasts, outcomes) -> tuple[float, bool]:
        """
        Fold a block of trials into the posterior.

        Parameters
        ----------
        log_contrasts : array_like, shape (n,)
            log10 contrast of each trial.
        outcomes : array_like, shape (n,)
            1 = correct, 0 = incorrect.

        Returns
        -------
        tuple[float, bool]
            Same as next_stimulus().
        """
        if self._finished:
            raise StateError("procedure has already stopped; no further updates accepted")
        x = np.atleast_1d(np.asarray(log_contrasts, dtype=float))
        y = np.atleast_1d(np.asarray(outcomes)).astype(int)
        if x.shape != y.shape:
            raise DataShapeError(
                f"log_contrasts shape {x.shape} does not match outcomes shape {y.shape}"
            )
        if not np.all((y == 0) | (y == 1)):
            raise DataShapeError("outcomes must be 0/1 valued")
        self._record(x, y)
        return self.next_stimulus()

    def _record(self, x: np.ndarray, y: np.ndarray) -> None:
        # one p(correct) row per distinct contrast, weighted by outcome counts
        levels, inverse = np.unique(x, return_inverse=True)
        n_correct = np.bincount(inverse, weights=y, minlength=levels.size)
        n_total = np.bincount(inverse, minlength=levels.size)
        p = self._p_correct_grid(jnp.asarray(levels))
        ll = xlogy(jnp.asarray(n_correct)[:, None], p) + xlog1py(
            jnp.asarray(n_total - n_correct)[:, None], -p
        )
        log_likelihood = self.log_likelihood + jnp.sum(ll, axis=0)
        if not bool(jnp.all(jnp.isfinite(log_likelihood))):
            raise NumericalError("grid log-likelihood became non-finite")
        self.log_likelihood = log_likelihood
        self.data.add_batch(x, y)

    def fit_mle(self, criterion: float = 0.81606) -> tuple[float, PsychometricParams]:
        """
        Maximum-likelihood fit over all collected trials.

        Parameters
        ----------
        criterion : float, default=0.81606
            Proportion correct that defines threshold.

        Returns
        -------
        log_threshold : float
            log10 contrast where the fitted function crosses `criterion`,
            limited to the threshold domain.
        params : PsychometricParams
            Fitted parameters (threshold, slope, guess, lapse). Threshold and
            slope are kept inside the candidate domains.
        """
        t_lo, t_hi = float(self.threshold_domain.min()), float(self.threshold_domain.max())
        bounds = {
            "threshold": (t_lo, t_hi),
            "slope": (float(self.slope_domain.min()), float(self.slope_domain.max())),
        }
        params = self.optimizer.fit(self.psychometric, self.data, self.grid_mle(), bounds=bounds)
        # float32 rounding can land just outside the domain edges
        params = params._replace(threshold=float(np.clip(params.threshold, t_lo, t_hi)))
        log_threshold = float(np.clip(self.psychometric.threshold_at(criterion, params), t_lo, t_hi))
        return log_threshold, params
