"""
dataset.py
-----------

Core data containers for csfgen.

defines:
- ResponseData: (log10 contrast, outcome) pairs collected during a run
- TrialBlock: a block of trials presented at a single log10 contrast

Notes
-----
- Data is stored in Python lists and exported as NumPy arrays.
- Convert to jax.numpy (jnp) arrays only when passing into the adaptive
  procedure or the MLE fit, which require JAX/Optax.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import jax.numpy as jnp
import numpy as np

from csfgen.errors import DataShapeError


class ResponseData:
    """
    Container for trial-by-trial detection data.

    Attributes
    ----------
    log_contrasts : list[float]
        log10 contrast of each trial.
    responses : list[int]
        Outcome of each trial (1 = correct, 0 = incorrect).
    """

    def __init__(self) -> None:
        self.log_contrasts: list[float] = []
        self.responses: list[int] = []

    def add_trial(self, log_contrast: float, resp: int) -> None:
        """
        append a single trial.

        Parameters
        ----------
        log_contrast : float
            log10 stimulus contrast.
        resp : int
            1 = correct, 0 = incorrect.
        """
        self.log_contrasts.append(float(log_contrast))
        self.responses.append(int(resp))

    def add_batch(self, log_contrasts: Sequence[float], responses: Sequence[int]) -> None:
        """
        Append a batch of trials.

        Parameters
        ----------
        log_contrasts : sequence of float
            One log10 contrast per trial.
        responses : sequence of int
            Outcomes, same length as `log_contrasts`.
        """
        log_contrasts = np.atleast_1d(np.asarray(log_contrasts, dtype=float))
        responses = np.atleast_1d(np.asarray(responses))
        if log_contrasts.shape != responses.shape:
            raise DataShapeError(
                f"log_contrasts shape {log_contrasts.shape} does not match "
                f"responses shape {responses.shape}"
            )
        for x, r in zip(log_contrasts, responses):
            self.add_trial(x, r)

    def to_numpy(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Return log_contrasts, responses as numpy arrays.

        Returns
        -------
        log_contrasts : np.ndarray
        responses : np.ndarray
        """
        return (
            np.asarray(self.log_contrasts, dtype=float),
            np.asarray(self.responses, dtype=int),
        )

    def to_jax(self) -> tuple[jnp.ndarray, jnp.ndarray]:
        """Return log_contrasts, responses as jax arrays."""
        x, y = self.to_numpy()
        return jnp.asarray(x), jnp.asarray(y)

    def __len__(self) -> int:
        """Return number of trials."""
        return len(self.responses)

    @classmethod
    def from_arrays(cls, log_contrasts, responses) -> ResponseData:
        """
        Construct ResponseData from arrays.

        Parameters
        ----------
        log_contrasts : array, shape (n_trials,)
        responses : array, shape (n_trials,)

        Returns
        -------
        ResponseData

        Examples
        --------
        >>> data = ResponseData.from_arrays([-2.0, -1.0], [0, 1])
        >>> len(data)
        2
        """
        data = cls()
        data.add_batch(log_contrasts, responses)
        return data



@dataclass(frozen=True)
class TrialBlock:
    """
    A block of trials run at one log10 contrast.

    Attributes
    ----------
    log_contrast : float
        Tested log10 contrast.
    outcomes : np.ndarray
        0/1 correctness of each trial in the block.
    """

    log_contrast: float
    outcomes: np.ndarray

    @property
    def contrast(self) -> float:
        return 10.0**self.log_contrast

    @property
    def log_contrasts(self) -> np.ndarray:
        return np.full(len(self.outcomes), self.log_contrast, dtype=float)

    @property
    def p_correct(self) -> float:
        return float(np.mean(self.outcomes))

    def __len__(self) -> int:
        return len(self.outcomes)
