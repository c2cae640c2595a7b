def test_top_level_api_imports():
    import csfgen as c

    for name in [
        "compute_threshold",
        "compute_performance",
        "ThresholdSession",
        "ClassifierCache",
        "PoissonIdealObserver",
        "PcaSVMClassifier",
        "PoolingConfig",
        "QuestPlus",
        "ConstantStimuli",
        "MLEOptimizer",
        "WeibullLog",
        "ResponseData",
        "PsychometricAccumulator",
        "ConfigurationError",
        "StateError",
        "DataShapeError",
    ]:
        assert hasattr(c, name)


def test_registries():
    from csfgen.inference import INFERENCE_ENGINES
    from csfgen.observer import CLASSIFIERS
    from csfgen.trial_placement import PROCEDURES

    assert set(CLASSIFIERS) == {"poisson_ideal", "pca_svm"}
    assert set(PROCEDURES) == {"quest_plus", "constant_stimuli"}
    assert "mle" in INFERENCE_ENGINES


def test_make_classifier():
    import pytest

    from csfgen.errors import ConfigurationError
    from csfgen.observer import PcaSVMClassifier, make_classifier

    assert isinstance(make_classifier("pca_svm", n_components=3), PcaSVMClassifier)
    with pytest.raises(ConfigurationError, match="Unknown classifier"):
        make_classifier("knn")
