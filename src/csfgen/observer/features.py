"""
features.py
-----------

Feature assembly: null/test response instances -> labeled feature matrix.

Two-interval (TAFC) assembly
----------------------------
Trials are split in halves. The first half become class 0 rows
[null | test] (test stimulus in interval 2), the second half class 1 rows
[test | null]. An odd final trial is dropped, so 2 * (n // 2) rows are
produced. A single trial is assigned to class 0 or 1 with probability 1/2
using the supplied Generator.

Single-interval assembly
------------------------
Class 0 rows are the null responses, class 1 rows the test responses.
"""

from __future__ import annotations

import logging

import numpy as np

from csfgen.errors import ConfigurationError, DataShapeError
from csfgen.observer.pooling import PoolingConfig, pool_responses

logger = logging.getLogger(__name__)


def check_responses(null_responses, test_responses) -> tuple[np.ndarray, np.ndarray]:
    """
    Validate and normalize a null/test response pair.

    2-D inputs (n_trials, n_units) are treated as a single time bin.

    Returns
    -------
    tuple of np.ndarray, each shape (n_trials, n_time_bins, n_units)

    Raises
    ------
    DataShapeError
        If the shapes differ or are not 2-D/3-D.
    """
    null = np.asarray(null_responses, dtype=float)
    test = np.asarray(test_responses, dtype=float)
    if null.shape != test.shape:
        raise DataShapeError(
            f"null responses shape {null.shape} does not match test responses shape {test.shape}"
        )
    if null.ndim == 2:
        null, test = null[:, None, :], test[:, None, :]
    if null.ndim != 3:
        raise DataShapeError(
            f"responses must be (n_trials, n_time_bins, n_units), got shape {null.shape}"
        )
    return null, test


def assemble_features(
    null_features: np.ndarray,
    test_features: np.ndarray,
    task_intervals: int = 2,
    rng: np.random.Generator | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Arrange per-trial feature vectors into a labeled feature matrix.

    Parameters
    ----------
    null_features, test_features : np.ndarray, shape (n_trials, d)
    task_intervals : {1, 2}
    rng : numpy.random.Generator, optional
        Used only for the single-trial two-interval case. Defaults to a
        fresh unseeded Generator.

    Returns
    -------
    features : np.ndarray, shape (n_rows, d * task_intervals)
    labels : np.ndarray of int, shape (n_rows,)
    """
    n_trials = null_features.shape[0]
    if task_intervals == 1:
        features = np.concatenate([null_features, test_features], axis=0)
        labels = np.concatenate(
            [np.zeros(n_trials, dtype=int), np.ones(n_trials, dtype=int)]
        )
        return features, labels
    if task_intervals != 2:
        raise ConfigurationError(f"task_intervals must be 1 or 2, got {task_intervals}")

    if n_trials == 0:
        raise DataShapeError("For a 2-interval classifier, we need at least 2 trials")
    if n_trials == 1:
        rng = rng if rng is not None else np.random.default_rng()
        if rng.random() < 0.5:
            logger.debug("Arranging single instance in NULL-TEST (class 0)")
            return np.concatenate([null_features, test_features], axis=1), np.array([0])
        logger.debug("Arranging single instance in TEST-NULL (class 1)")
        return np.concatenate([test_features, null_features], axis=1), np.array([1])

    half = n_trials // 2
    class0 = np.concatenate([null_features[:half], test_features[:half]], axis=1)
    class1 = np.concatenate(
        [test_features[half : 2 * half], null_features[half : 2 * half]], axis=1
    )
    features = np.concatenate([class0, class1], axis=0)
    labels = np.concatenate([np.zeros(half, dtype=int), np.ones(half, dtype=int)])
    return features, labels


def extract(
    null_responses,
    test_responses,
    pooling: PoolingConfig | None = None,
    task_intervals: int = 2,
    rng: np.random.Generator | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Pool and assemble null/test responses into (features, labels).

    Parameters
    ----------
    null_responses, test_responses : array_like
        Response instance sets of identical shape
        (n_trials, n_time_bins, n_units) or (n_trials, n_units).
    pooling : PoolingConfig, optional
        Defaults to no pooling.
    task_intervals : {1, 2}, default=2
    rng : numpy.random.Generator, optional
        Entropy for the single-trial two-interval assignment.

    Returns
    -------
    features : np.ndarray, shape (n_rows, n_features)
    labels : np.ndarray of int in {0, 1}, shape (n_rows,)
    """
    null, test = check_responses(null_responses, test_responses)
    pooling = pooling or PoolingConfig()
    n_trials = null.shape[0]
    null_f = pool_responses(null, pooling).reshape(n_trials, -1)
    test_f = pool_responses(test, pooling).reshape(n_trials, -1)
    return assemble_features(null_f, test_f, task_intervals=task_intervals, rng=rng)
