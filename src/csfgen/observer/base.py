"""
base.py
-------

Response classifiers: the computational observer.

Each ResponseClassifier defines two layers:

- fit_features(features, labels) -> state
  predict_features(state, features, labels) -> (predicted_labels, p_correct)
    Pure functions of a labeled feature matrix.

- train(null, test) -> trained copy
  predict(null, test) -> Prediction
    Convenience layer on raw response instances. Handles baseline
    subtraction, pooling and feature assembly, and enforces the lifecycle:
    a classifier is trained exactly once and is read-only afterwards.

train() never mutates the receiver; it returns a deep copy that carries
the trained state. Caching that copy per contrast cannot alias another
contrast's classifier.

Variants
--------
- PoissonIdealObserver : analytic likelihood-ratio test, no learning.
- PcaSVMClassifier : centering + PCA + support vector classifier, with
  optional pooling.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import numpy as np

from csfgen.errors import ConfigurationError, DataShapeError, StateError
from csfgen.observer.features import assemble_features, check_responses
from csfgen.observer.pooling import PoolingConfig, pool_responses


@dataclass(frozen=True)
class Prediction:
    """
    Outcome of classifying a block of trials.

    Attributes
    ----------
    predicted_labels : np.ndarray
        Classifier-assigned class of each row.
    nominal_labels : np.ndarray
        True class of each row.
    p_correct : float
        Fraction of rows classified correctly.
    features : np.ndarray
        Feature matrix the prediction was made on (after any projection).
    """

    predicted_labels: np.ndarray
    nominal_labels: np.ndarray
    p_correct: float
    features: np.ndarray

    @property
    def trial_correct(self) -> np.ndarray:
        """0/1 correctness of each row."""
        return (self.predicted_labels == self.nominal_labels).astype(int)


class ResponseClassifier(ABC):
    """
    Abstract base class for response classifiers.

    Parameters
    ----------
    task_intervals : {1, 2}, default=2
        2 = two-interval forced choice, 1 = single interval.
    pooling : PoolingConfig, optional
        Pooling applied before feature assembly. Defaults to none.

    Attributes
    ----------
    state : Any
        None until trained, then the variant's immutable trained state.
    """

    #: subtract a baseline activation before pooling
    uses_baseline: bool = False

    def __init__(self, task_intervals: int = 2, pooling: PoolingConfig | None = None):
        if task_intervals not in (1, 2):
            raise ConfigurationError(f"task_intervals must be 1 or 2, got {task_intervals}")
        self.task_intervals = int(task_intervals)
        self.pooling = pooling or PoolingConfig()
        self.state: Any = None

    @property
    def is_trained(self) -> bool:
        return self.state is not None

    # ------------------------------------------------------------------
    # FEATURE-LEVEL CONTRACT
    # ------------------------------------------------------------------
    @abstractmethod
    def fit_features(self, features: np.ndarray, labels: np.ndarray) -> Any:
        """Compute a trained state from labeled features."""
        ...

    @abstractmethod
    def predict_features(
        self, state: Any, features: np.ndarray, labels: np.ndarray, rng: np.random.Generator | None = None
    ) -> tuple[np.ndarray, float, np.ndarray]:
        """
        Classify labeled features with a trained state.

        Returns
        -------
        predicted_labels : np.ndarray
        p_correct : float
            Fraction of predicted labels equal to `labels`.
        features : np.ndarray
            Features in the space the decision was made in.
        """
        ...

    # ------------------------------------------------------------------
    # RESPONSE-LEVEL CONTRACT
    # ------------------------------------------------------------------
    def _features(self, null, test, baseline, pooling, rng):
        if baseline is not None:
            null = null - baseline
            test = test - baseline
        n_trials = null.shape[0]
        null_f = pool_responses(null, pooling).reshape(n_trials, -1)
        test_f = pool_responses(test, pooling).reshape(n_trials, -1)
        return assemble_features(null_f, test_f, self.task_intervals, rng=rng)

    def _baseline(self, null: np.ndarray):
        if not (self.uses_baseline and self.pooling.is_pooled):
            return None
        if self.pooling.baseline is not None:
            baseline = np.asarray(self.pooling.baseline, dtype=float)
            if baseline.ndim == 1:
                baseline = baseline[None, :]
            if baseline.shape != null.shape[1:]:
                raise DataShapeError(
                    f"baseline shape {baseline.shape} does not match response shape {null.shape[1:]}"
                )
            return baseline
        return null.mean(axis=0)

    def train(
        self,
        null_responses,
        test_responses,
        *,
        rng: np.random.Generator | None = None,
        retrain: bool = False,
    ) -> ResponseClassifier:
        """
        Train on response instances and return a trained copy.

        Parameters
        ----------
        null_responses, test_responses : array_like
            Training response instances, shape (n_trials, n_time_bins, n_units).
        rng : numpy.random.Generator, optional
            Entropy for single-trial feature assembly.
        retrain : bool, default=False
            Allow training a classifier that already carries a state.

        Returns
        -------
        ResponseClassifier
            New instance with `state` set. The receiver is unchanged.

        Raises
        ------
        StateError
            If already trained and `retrain` is False.
        """
        if self.is_trained and not retrain:
            raise StateError(
                f"{type(self).__name__} is already trained; pass retrain=True to train again"
            )
        null, test = check_responses(null_responses, test_responses)
        baseline = self._baseline(null)
        features, labels = self._features(null, test, baseline, self.pooling, rng)
        state = self.fit_features(features, labels)
        trained = copy.deepcopy(self)
        trained.state = self._attach(state, baseline=baseline, pooling=self.pooling)
        return trained

    def _attach(self, state, **constants):
        """Hook for adding response-level preprocessing constants to a state."""
        return state

    def predict(
        self,
        null_responses,
        test_responses,
        *,
        rng: np.random.Generator | None = None,
    ) -> Prediction:
        """
        Classify response instances with the trained state.

        Raises
        ------
        StateError
            If the classifier has not been trained.
        DataShapeError
            If the feature dimensionality differs from training.
        """
        if not self.is_trained:
            raise StateError(f"{type(self).__name__} must be trained before predicting")
        null, test = check_responses(null_responses, test_responses)
        baseline = getattr(self.state, "baseline", None)
        pooling = getattr(self.state, "pooling", None) or self.pooling
        features, labels = self._features(null, test, baseline, pooling, rng)
        predicted, p_correct, used = self.predict_features(self.state, features, labels, rng=rng)
        return Prediction(
            predicted_labels=np.asarray(predicted),
            nominal_labels=labels,
            p_correct=float(p_correct),
            features=used,
        )

    def copy(self) -> ResponseClassifier:
        """Deep copy, including any trained state."""
        return copy.deepcopy(self)

    def with_pooling(self, pooling: PoolingConfig) -> ResponseClassifier:
        """Untrained copy with a different pooling configuration."""
        clone = copy.deepcopy(self)
        clone.pooling = pooling
        clone.state = None
        return clone
