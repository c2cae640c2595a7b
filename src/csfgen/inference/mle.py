"""
mle.py
------

Maximum-likelihood fit of a psychometric function using Optax.

- Threshold and slope are free; guess and lapse rates are held fixed.
- Slope is optimized in log space so it stays positive.
- Optional bounds project threshold and slope back into the candidate
  domains after every step.
- A non-finite loss at the start raises NumericalError; a non-finite loss
  later stops the fit with a RuntimeWarning.
- Defaults to Adam, but any Optax optimizer can be passed in.
- The starting point is normally the grid maximum of the adaptive
  procedure's likelihood, so only local refinement is needed.
"""

from __future__ import annotations

import logging
import warnings

import jax
import jax.numpy as jnp
import numpy as np
import optax

from csfgen.errors import NumericalError, StateError
from csfgen.inference.base import InferenceEngine
from csfgen.model.psychometric import PsychometricParams

logger = logging.getLogger(__name__)


class MLEOptimizer(InferenceEngine):
    """
    Maximum-likelihood optimizer for psychometric parameters.

    Parameters
    ----------
    steps : int, default=500
        Number of optimization steps.
    learning_rate : float, default=0.02
        Learning rate for the default optimizer (Adam).
    optimizer : optax.GradientTransformation, optional
        Optax optimizer to use instead of the default.
    track_history : bool, optional
        When True, record loss history during fitting.
    log_every : int, optional
        Record every N steps (also records the last step).

    Notes
    -----
    - Loss function = negative log-likelihood.
    - Gradients computed with jax.grad.
    """

    def __init__(
        self,
        steps: int = 500,
        learning_rate: float = 0.02,
        optimizer: optax.GradientTransformation | None = None,
        *,
        track_history: bool = False,
        log_every: int = 10,
    ):
        self.steps = steps
        self.optimizer = optimizer or optax.adam(learning_rate=learning_rate)
        self.track_history = track_history
        self.log_every = max(1, int(log_every))
        self.loss_steps: list[int] = []
        self.loss_history: list[float] = []

    def fit(
        self,
        psychometric,
        data,
        init_params: PsychometricParams,
        bounds: dict[str, tuple[float, float]] | None = None,
    ) -> PsychometricParams:
        """
        Fit threshold and slope by maximum likelihood.

        Parameters
        ----------
        psychometric : PsychometricFunction
            Function family.
        data : ResponseData
            Observed trials.
        init_params : PsychometricParams
            Starting point. guess and lapse are kept fixed.
        bounds : dict, optional
            {"threshold": (lo, hi), "slope": (lo, hi)}. Iterates are
            projected back into these intervals after every step.

        Returns
        -------
        PsychometricParams
            Fitted parameters.

        Raises
        ------
        StateError
            If `data` is empty.
        NumericalError
            If the negative log-likelihood is not finite at the start.
        """
        if len(data) == 0:
            raise StateError("cannot fit a psychometric function without trials")

        x, y = data.to_jax()
        guess = float(init_params.guess)
        lapse = float(init_params.lapse)
        bounds = bounds or {}
        t_lo, t_hi = bounds.get("threshold", (-jnp.inf, jnp.inf))
        s_lo, s_hi = bounds.get("slope", (0.0, jnp.inf))
        log_s_lo = jnp.log(s_lo) if s_lo > 0 else -jnp.inf
        log_s_hi = jnp.log(s_hi)

        def project(theta):
            return {
                "threshold": jnp.clip(theta["threshold"], t_lo, t_hi),
                "log_slope": jnp.clip(theta["log_slope"], log_s_lo, log_s_hi),
            }

        def loss_fn(theta):
            params = PsychometricParams(theta["threshold"], jnp.exp(theta["log_slope"]), guess, lapse)
            return -psychometric.loglik(params, x, y)

        theta = project(
            {
                "threshold": jnp.asarray(init_params.threshold, dtype=jnp.float32),
                "log_slope": jnp.log(jnp.asarray(init_params.slope, dtype=jnp.float32)),
            }
        )
        opt_state = self.optimizer.init(theta)

        @jax.jit
        def step(theta, opt_state):
            loss, grads = jax.value_and_grad(loss_fn)(theta)
            updates, opt_state = self.optimizer.update(grads, opt_state, theta)
            theta = project(optax.apply_updates(theta, updates))
            return theta, opt_state, loss

        if self.track_history:
            self.loss_steps.clear()
            self.loss_history.clear()

        best_theta, best_loss = theta, float(loss_fn(theta))
        if not np.isfinite(best_loss):
            raise NumericalError(
                f"negative log-likelihood is {best_loss} at the starting point {init_params}"
            )
        for i in range(self.steps):
            # `loss` is evaluated at the iterate passed in, before the update
            new_theta, opt_state, loss = step(theta, opt_state)
            loss = float(loss)
            if not np.isfinite(loss):
                warnings.warn(
                    f"non-finite loss at step {i}; keeping the best iterate so far",
                    RuntimeWarning,
                    stacklevel=2,
                )
                break
            # keep the best iterate: Adam may overshoot on flat likelihoods
            if loss < best_loss:
                best_theta, best_loss = theta, loss
            if self.track_history and ((i % self.log_every == 0) or (i == self.steps - 1)):
                self.loss_steps.append(i)
                self.loss_history.append(loss)
            theta = new_theta
        else:
            final_loss = float(loss_fn(theta))
            if np.isfinite(final_loss) and final_loss < best_loss:
                best_theta, best_loss = theta, final_loss

        fitted = PsychometricParams(
            float(best_theta["threshold"]),
            float(jnp.exp(best_theta["log_slope"])),
            guess,
            lapse,
        )
        logger.debug("MLE fit: %s (negative log-likelihood %.3f)", fitted, best_loss)
        return fitted

    def get_history(self) -> tuple[list[int], list[float]]:
        """Return (steps, losses) recorded during the last fit when tracking was enabled."""
        return self.loss_steps, self.loss_history
