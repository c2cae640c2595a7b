"""
pca_svm.py
----------

Computational observer: centering -> PCA -> support vector classifier.

Training
--------
1. centering vector m = column mean of the training features
2. subtract m
3. principal components of the centered features (n_components of them)
4. project onto the components
5. fit an SVC (linear kernel by default)
6. k-fold cross-validated in-sample accuracy (mean and standard error)
7. if the projected space is 2-D, a 200 x 200 decision-score grid

Prediction re-applies the stored m and components; they are never
recomputed.

With pooling (anything other than "none") a baseline activation is
subtracted from null and test responses before pooling. The baseline
used at training is stored and reused at prediction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np
from sklearn.decomposition import PCA
from sklearn.model_selection import StratifiedKFold, cross_val_score
from sklearn.svm import SVC

from csfgen.errors import ConfigurationError, DataShapeError
from csfgen.observer.base import ResponseClassifier
from csfgen.observer.pooling import PoolingConfig

logger = logging.getLogger(__name__)

# MATLAB-style kernel names are accepted as aliases
KERNELS = {
    "linear": "linear",
    "rbf": "rbf",
    "gaussian": "rbf",
    "poly": "poly",
    "polynomial": "poly",
    "sigmoid": "sigmoid",
}

DECISION_GRID_SIZE = 200


@dataclass(frozen=True)
class DecisionBoundary:
    """SVM decision score on a regular grid in a 2-D feature space."""

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray  # shape (len(y), len(x))


@dataclass(frozen=True)
class SVMState:
    """
    Trained state of a PcaSVMClassifier.

    Attributes
    ----------
    model : sklearn.svm.SVC
    centering : np.ndarray, shape (n_features,)
    components : np.ndarray, shape (n_features, n_components)
    n_features : int
    p_correct_in_sample : float
        Mean k-fold cross-validated accuracy (nan if CV was not possible).
    p_correct_in_sample_sem : float
    decision_boundary : DecisionBoundary | None
    baseline : np.ndarray | None
    pooling : PoolingConfig | None
    """

    model: SVC
    centering: np.ndarray
    components: np.ndarray
    n_features: int
    p_correct_in_sample: float
    p_correct_in_sample_sem: float
    decision_boundary: DecisionBoundary | None = None
    baseline: np.ndarray | None = None
    pooling: PoolingConfig | None = None


def _span(values: np.ndarray) -> tuple[float, float]:
    lo, hi = float(np.min(values)), float(np.max(values))
    if hi <= lo:
        # zero-width range; widen for display only
        eps = np.finfo(float).eps * max(1.0, abs(lo))
        lo, hi = lo - eps, hi + eps
    return lo, hi


def decision_boundary(model: SVC, features: np.ndarray, n: int = DECISION_GRID_SIZE) -> DecisionBoundary:
    """Decision scores over the square bounding box of a 2-D feature set."""
    lo, hi = _span(features)
    x = np.linspace(lo, hi, n)
    y = np.linspace(lo, hi, n)
    xx, yy = np.meshgrid(x, y)
    z = model.decision_function(np.column_stack([xx.ravel(), yy.ravel()]))
    return DecisionBoundary(x=x, y=y, z=z.reshape(xx.shape))


class PcaSVMClassifier(ResponseClassifier):
    """
    PCA + SVM observer.

    Parameters
    ----------
    n_components : int, default=2
        Number of principal components kept.
    task_intervals : {1, 2}, default=2
    kernel : str, default="linear"
        One of KERNELS.
    cv_folds : int, default=10
        Folds for the in-sample accuracy estimate (reduced when there are
        fewer rows per class; skipped below 2).
    pooling : PoolingConfig, optional
    svc_kwargs : dict, optional
        Extra keyword arguments for sklearn.svm.SVC.
    """

    uses_baseline = True

    def __init__(
        self,
        n_components: int = 2,
        task_intervals: int = 2,
        kernel: str = "linear",
        cv_folds: int = 10,
        pooling: PoolingConfig | None = None,
        svc_kwargs: dict | None = None,
    ):
        super().__init__(task_intervals=task_intervals, pooling=pooling)
        if kernel not in KERNELS:
            raise ConfigurationError(
                f"Unknown classifier kernel: '{kernel}'. Valid kernels: {sorted(KERNELS)}"
            )
        if n_components < 1:
            raise ConfigurationError(f"n_components must be >= 1, got {n_components}")
        self.n_components = int(n_components)
        self.kernel = KERNELS[kernel]
        self.cv_folds = int(cv_folds)
        self.svc_kwargs = dict(svc_kwargs or {})

    def _svc(self) -> SVC:
        return SVC(kernel=self.kernel, **self.svc_kwargs)

    def _cross_validate(self, projected, labels) -> tuple[float, float]:
        n_splits = min(self.cv_folds, int(np.bincount(labels).min()))
        if n_splits < 2:
            return float("nan"), float("nan")
        cv = StratifiedKFold(n_splits=n_splits, shuffle=False)
        scores = cross_val_score(self._svc(), projected, labels, cv=cv, scoring="accuracy")
        return float(scores.mean()), float(scores.std() / np.sqrt(n_splits))

    def fit_features(self, features: np.ndarray, labels: np.ndarray) -> SVMState:
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels, dtype=int)
        if features.ndim != 2 or features.shape[0] != labels.shape[0]:
            raise DataShapeError(
                f"features shape {features.shape} incompatible with labels shape {labels.shape}"
            )
        if np.unique(labels).size < 2:
            raise DataShapeError(
                f"training needs rows of both classes, got {features.shape[0]} row(s) "
                f"of class {np.unique(labels).tolist()}"
            )

        centering = features.mean(axis=0)
        centered = features - centering
        n_components = min(self.n_components, *centered.shape)
        components = PCA(n_components=n_components, svd_solver="full").fit(centered).components_.T
        projected = centered @ components

        model = self._svc().fit(projected, labels)
        p_in, sem = self._cross_validate(projected, labels)
        boundary = decision_boundary(model, projected) if projected.shape[1] == 2 else None
        logger.debug("In-sample pCorrect (cross-validated): %.3f +/- %.3f", p_in, sem)
        return SVMState(
            model=model,
            centering=centering,
            components=components,
            n_features=features.shape[1],
            p_correct_in_sample=p_in,
            p_correct_in_sample_sem=sem,
            decision_boundary=boundary,
        )

    def _attach(self, state, **constants):
        return replace(state, baseline=constants.get("baseline"), pooling=constants.get("pooling"))

    def project(self, state: SVMState, features: np.ndarray) -> np.ndarray:
        """Center with the stored vector and project onto the stored components."""
        features = np.asarray(features, dtype=float)
        if features.ndim != 2 or features.shape[1] != state.n_features:
            raise DataShapeError(
                f"feature dimensionality {features.shape} does not match trained "
                f"dimensionality {state.n_features}"
            )
        return (features - state.centering) @ state.components

    def predict_features(self, state, features, labels, rng=None):
        projected = self.project(state, features)
        predicted = state.model.predict(projected)
        labels = np.asarray(labels)
        p_correct = float(np.mean(predicted == labels)) if len(labels) else float("nan")
        logger.debug("Out-of-sample pCorrect: %f", p_correct)
        return predicted, p_correct, projected
