"""
observer
========

Computational observers that classify neural response instances.

- PoolingConfig, pool_responses, template_pooling_weights : pooling stage
- extract, assemble_features : labeled feature matrices
- ResponseClassifier : train/predict contract
- PoissonIdealObserver : analytic likelihood-ratio observer
- PcaSVMClassifier : centering + PCA + SVM observer

Typical usage
-------------
    from csfgen.observer import PcaSVMClassifier
    clf = PcaSVMClassifier(n_components=2).train(null_train, test_train)
    clf.predict(null_test, test_test).p_correct
"""

from csfgen.errors import ConfigurationError

from .base import Prediction, ResponseClassifier
from .features import assemble_features, check_responses, extract
from .ideal_observer import IdealObserverState, PoissonIdealObserver
from .pca_svm import DecisionBoundary, PcaSVMClassifier, SVMState
from .pooling import (
    POOLING_KINDS,
    PoolingConfig,
    linear_pool,
    pool_responses,
    template_pooling_weights,
)

# Registry for string-based classifier selection
CLASSIFIERS = {
    "poisson_ideal": PoissonIdealObserver,
    "pca_svm": PcaSVMClassifier,
}


def make_classifier(name: str, **kwargs) -> ResponseClassifier:
    """Instantiate a registered classifier by name."""
    if name not in CLASSIFIERS:
        raise ConfigurationError(
            f"Unknown classifier: '{name}'. Valid classifiers: {sorted(CLASSIFIERS)}"
        )
    return CLASSIFIERS[name](**kwargs)


__all__ = [
    "ResponseClassifier",
    "Prediction",
    "PoissonIdealObserver",
    "IdealObserverState",
    "PcaSVMClassifier",
    "SVMState",
    "DecisionBoundary",
    "PoolingConfig",
    "POOLING_KINDS",
    "pool_responses",
    "linear_pool",
    "template_pooling_weights",
    "extract",
    "assemble_features",
    "check_responses",
    "CLASSIFIERS",
    "make_classifier",
]
