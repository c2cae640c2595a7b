"""
quest_plus.py
-------------

QUEST+ adaptive placement (Watson, 2017).

For every candidate stimulus x the expected posterior entropy after one
more trial is

    E[H | x] = sum_o p(o | x) * H[p(theta | data, x, o)]

with o in {correct, incorrect}. The stimulus minimizing E[H | x] is
presented next.

Stopping
--------
- n_trials >= max_trial, or
- n_trials >= min_trial and the posterior SD of the log10 threshold is
  below stop_criterion.
With min_trial == max_trial this is a fixed trial budget.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import jax.random as jr
import numpy as np

from csfgen.errors import ConfigurationError
from csfgen.trial_placement.base import AdaptiveProcedure


@jax.jit
def expected_entropy(p_table: jnp.ndarray, posterior: jnp.ndarray) -> jnp.ndarray:
    """
    Expected posterior entropy after one trial at each stimulus.

    Parameters
    ----------
    p_table : jnp.ndarray, shape (n_stim, n_params)
        p(correct | stimulus, params).
    posterior : jnp.ndarray, shape (n_params,)
        Current normalized posterior.

    Returns
    -------
    jnp.ndarray, shape (n_stim,)
    """

    def entropy_after(likelihood):
        joint = likelihood * posterior[None, :]
        marginal = jnp.sum(joint, axis=1, keepdims=True)
        post = joint / jnp.where(marginal > 0, marginal, 1.0)
        h = -jnp.sum(jnp.where(post > 0, post * jnp.log(post), 0.0), axis=1)
        return marginal[:, 0], h

    p_c, h_c = entropy_after(p_table)
    p_i, h_i = entropy_after(1.0 - p_table)
    return p_c * h_c + p_i * h_i


class QuestPlus(AdaptiveProcedure):
    """
    QUEST+ procedure with a fixed parameter grid.

    Parameters
    ----------
    min_trial : int
        Minimum number of trials before the entropy criterion may stop the run.
    max_trial : int
        Trial budget.
    stop_criterion : float, default=0.05
        Posterior SD (log10 units) of threshold below which the run stops.
    best_n : int, default=1
        Choose uniformly among the `best_n` lowest expected-entropy stimuli.
        1 = always the best.
    key : jax.Array, optional
        PRNG key, only used when best_n > 1.
    **kwargs
        Passed to AdaptiveProcedure (domains, psychometric, optimizer).
    """

    def __init__(
        self,
        *,
        min_trial: int,
        max_trial: int,
        stop_criterion: float = 0.05,
        best_n: int = 1,
        key: jax.Array | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if min_trial < 0 or max_trial < 1 or min_trial > max_trial:
            raise ConfigurationError(
                f"need 0 <= min_trial <= max_trial and max_trial >= 1, got {min_trial}, {max_trial}"
            )
        if best_n < 1:
            raise ConfigurationError(f"best_n must be >= 1, got {best_n}")
        self.min_trial = int(min_trial)
        self.max_trial = int(max_trial)
        self.stop_criterion = float(stop_criterion)
        self.best_n = min(int(best_n), self.stim_domain.size)
        self._key = key if key is not None else jr.PRNGKey(0)

    def _select_stimulus(self) -> float:
        scores = np.asarray(expected_entropy(self.p_table, self.posterior))
        if self.best_n == 1:
            idx = int(np.argmin(scores))
        else:
            self._key, subkey = jr.split(self._key)
            best = np.argsort(scores)[: self.best_n]
            idx = int(best[int(jr.randint(subkey, (), 0, self.best_n))])
        return float(self.stim_domain[idx])

    def _should_stop(self) -> bool:
        if self.n_trials >= self.max_trial:
            return True
        return self.n_trials >= self.min_trial and self.threshold_sd() < self.stop_criterion
