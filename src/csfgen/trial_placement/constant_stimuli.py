"""
constant_stimuli.py
-------------------

Method of constant stimuli (validation mode).

Walks once through every level of the stimulus domain, in a random order
drawn from an explicit key. Each level is presented as exactly one block
(the caller chooses the block size, `n_repeat` trials). Levels are unique
by construction, so a repeated contrast indicates a caller bug.
"""

from __future__ import annotations

import jax
import jax.random as jr
import numpy as np

from csfgen.errors import ConfigurationError
from csfgen.trial_placement.base import AdaptiveProcedure


class ConstantStimuli(AdaptiveProcedure):
    """
    Fixed, non-adaptive placement over the stimulus domain.

    Parameters
    ----------
    n_repeat : int
        Trials per level, presented as one block. Sessions run blocks of
        this size (a two-interval observer scores 2 * (n_repeat // 2) of them).
    shuffle : bool, default=True
        Present levels in random order.
    key : jax.Array, optional
        PRNG key for the presentation order.
    **kwargs
        Passed to AdaptiveProcedure.
    """

    allows_repeats = False

    def __init__(
        self,
        *,
        n_repeat: int,
        shuffle: bool = True,
        key: jax.Array | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if n_repeat < 1:
            raise ConfigurationError(f"n_repeat must be >= 1, got {n_repeat}")
        self.n_repeat = int(n_repeat)
        self.block_size = self.n_repeat
        order = np.arange(self.stim_domain.size)
        if shuffle:
            key = key if key is not None else jr.PRNGKey(0)
            order = np.asarray(jr.permutation(key, order))
        self._order = [int(i) for i in order]
        self._index = 0

    @property
    def max_trial(self) -> int:
        return self.n_repeat * self.stim_domain.size

    def _select_stimulus(self) -> float:
        return float(self.stim_domain[self._order[self._index]])

    def _record(self, x, y) -> None:
        super()._record(x, y)
        self._index += 1

    def _should_stop(self) -> bool:
        return self._index >= len(self._order)
