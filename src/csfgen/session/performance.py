"""
performance.py
--------------

Trial-block performance of an observer.

compute_performance() asks the neural engine for training instances
(when the classifier still needs training), trains, then asks for test
instances and returns per-trial correctness.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from csfgen.engines.neural import NeuralResponseEngine, validate_noise_mode
from csfgen.errors import ConfigurationError
from csfgen.observer.base import Prediction, ResponseClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceResult:
    """
    Attributes
    ----------
    predictions : np.ndarray
        0/1 correctness of each test trial.
    classifier : ResponseClassifier
        Trained classifier. A fresh copy when training happened in this
        call, otherwise the classifier that was passed in.
    prediction : Prediction
        Full prediction record (labels, features).
    responses : dict
        {"train": (null, test) | None, "test": (null, test)} response
        instances used.
    trained : bool
        Whether training happened in this call.
    """

    predictions: np.ndarray
    classifier: ResponseClassifier
    prediction: Prediction
    responses: dict
    trained: bool

    @property
    def p_correct(self) -> float:
        return float(np.mean(self.predictions))


def compute_performance(
    neural_engine: NeuralResponseEngine,
    null_stimulus: Any,
    test_stimulus: Any,
    classifier: ResponseClassifier,
    *,
    n_train: int,
    n_test: int,
    train_noise: str = "random",
    test_noise: str = "random",
    rng: np.random.Generator | None = None,
) -> PerformanceResult:
    """
    Train (if needed) and test an observer on one null/test stimulus pair.

    Parameters
    ----------
    neural_engine : NeuralResponseEngine
    null_stimulus, test_stimulus : Any
        Stimulus descriptors from a SceneEngine.
    classifier : ResponseClassifier
        Trained or untrained observer. Never mutated.
    n_train, n_test : int
        Instances per stimulus for training and testing.
    train_noise, test_noise : {"none", "random"}
    rng : numpy.random.Generator, optional
        Entropy for response noise and feature assembly.

    Returns
    -------
    PerformanceResult
        predictions has length n_test for single-interval observers, and
        2 * (n_test // 2) (or 1 when n_test == 1) for two-interval observers.
    """
    validate_noise_mode(train_noise)
    validate_noise_mode(test_noise)
    if n_test < 1:
        raise ConfigurationError(f"n_test must be >= 1, got {n_test}")
    rng = rng if rng is not None else np.random.default_rng()

    train_responses = None
    trained = False
    if not classifier.is_trained:
        if n_train < 1:
            raise ConfigurationError(f"n_train must be >= 1, got {n_train}")
        null_train = neural_engine.compute(null_stimulus, n_train, train_noise, rng=rng)
        test_train = neural_engine.compute(test_stimulus, n_train, train_noise, rng=rng)
        classifier = classifier.train(null_train, test_train, rng=rng)
        train_responses = (null_train, test_train)
        trained = True

    null_test = neural_engine.compute(null_stimulus, n_test, test_noise, rng=rng)
    test_test = neural_engine.compute(test_stimulus, n_test, test_noise, rng=rng)
    prediction = classifier.predict(null_test, test_test, rng=rng)
    logger.debug("Block pCorrect %.4f over %d trials", prediction.p_correct, len(prediction.nominal_labels))

    return PerformanceResult(
        predictions=prediction.trial_correct,
        classifier=classifier,
        prediction=prediction,
        responses={"train": train_responses, "test": (null_test, test_test)},
        trained=trained,
    )
