"""
ideal_observer.py
-----------------

Poisson ideal observer.

The observer knows the mean (noise-free) response to the null and to the
test stimulus and decides with the Poisson log-likelihood ratio.

Two intervals, responses r1, r2 and templates l0 (null), l1 (test):

    LLR = log p(r1 | l0) p(r2 | l1) - log p(r1 | l1) p(r2 | l0)
        = (r1 - r2) . (log l0 - log l1)

class 0 (null first) if LLR > 0, class 1 if LLR < 0.

One interval, response r:

    LLR = r . (log l1 - log l0) - sum(l1 - l0)

class 1 (test) if LLR > 0.

Exact ties (e.g. zero contrast, l0 == l1) are resolved by a fair coin.

"Training" only averages the supplied (normally noise-free) training
instances into the two templates; nothing is fitted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from csfgen.errors import ConfigurationError, DataShapeError
from csfgen.observer.base import ResponseClassifier
from csfgen.observer.pooling import PoolingConfig

# floor for log() of zero-rate units
_RATE_FLOOR = 1e-12


@dataclass(frozen=True)
class IdealObserverState:
    """Mean responses to null and test stimulus (flattened, one interval)."""

    null_template: np.ndarray
    test_template: np.ndarray
    pooling: PoolingConfig | None = None


class PoissonIdealObserver(ResponseClassifier):
    """
    Likelihood-ratio observer for Poisson-distributed responses.

    Parameters
    ----------
    task_intervals : {1, 2}, default=2
    pooling : PoolingConfig, optional
        Only "none" and "full_field" keep responses Poisson distributed.
    null_template, test_template : array_like, optional
        Known mean responses. When both are given the observer starts out
        trained.

    Examples
    --------
    >>> obs = PoissonIdealObserver()
    >>> obs = obs.train(null_mean[None], test_mean[None])
    >>> obs.predict(null_draws, test_draws).p_correct
    """

    def __init__(
        self,
        task_intervals: int = 2,
        pooling: PoolingConfig | None = None,
        null_template=None,
        test_template=None,
    ):
        super().__init__(task_intervals=task_intervals, pooling=pooling)
        if self.pooling.kind not in ("none", "full_field"):
            raise ConfigurationError(
                f"PoissonIdealObserver does not support pooling '{self.pooling.kind}'"
            )
        if (null_template is None) != (test_template is None):
            raise ConfigurationError("null_template and test_template must be given together")
        if null_template is not None:
            null_t = np.asarray(null_template, dtype=float).ravel()
            test_t = np.asarray(test_template, dtype=float).ravel()
            if null_t.shape != test_t.shape:
                raise DataShapeError(
                    f"null template shape {null_t.shape} != test template shape {test_t.shape}"
                )
            self.state = IdealObserverState(null_t, test_t, self.pooling)

    def fit_features(self, features: np.ndarray, labels: np.ndarray) -> IdealObserverState:
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels)
        if self.task_intervals == 1:
            null_rows = features[labels == 0]
            test_rows = features[labels == 1]
        else:
            d = features.shape[1] // 2
            first, second = features[:, :d], features[:, d:]
            is0 = (labels == 0)[:, None]
            null_rows = np.where(is0, first, second)
            test_rows = np.where(is0, second, first)
        if len(null_rows) == 0 or len(test_rows) == 0:
            raise DataShapeError("training data must contain null and test responses")
        return IdealObserverState(null_rows.mean(axis=0), test_rows.mean(axis=0))

    def _attach(self, state, **constants):
        return replace(state, pooling=constants.get("pooling"))

    def predict_features(self, state, features, labels, rng=None):
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels)
        d = state.null_template.size
        if features.shape[1] != d * self.task_intervals:
            raise DataShapeError(
                f"feature dimensionality {features.shape[1]} does not match trained "
                f"dimensionality {d * self.task_intervals}"
            )
        log_l0 = np.log(np.maximum(state.null_template, _RATE_FLOOR))
        log_l1 = np.log(np.maximum(state.test_template, _RATE_FLOOR))
        if self.task_intervals == 2:
            llr = (features[:, :d] - features[:, d:]) @ (log_l0 - log_l1)
            decided = np.where(llr > 0, 0, 1)
        else:
            llr = features @ (log_l1 - log_l0) - np.sum(state.test_template - state.null_template)
            decided = np.where(llr > 0, 1, 0)
        ties = llr == 0
        if np.any(ties):
            rng = rng if rng is not None else np.random.default_rng()
            decided = np.where(ties, rng.integers(0, 2, size=llr.shape), decided)
        p_correct = float(np.mean(decided == labels)) if len(labels) else float("nan")
        return decided, p_correct, llr[:, None]
