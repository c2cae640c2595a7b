"""
test_mle.py
-----------

Tests for the maximum-likelihood psychometric fit.
"""

import warnings

import jax.numpy as jnp
import jax.random as jr
import numpy as np
import optax
import pytest

from csfgen.data import ResponseData
from csfgen.errors import NumericalError, StateError
from csfgen.inference import INFERENCE_ENGINES, MLEOptimizer
from csfgen.model import PsychometricParams, WeibullLog


@pytest.fixture
def synthetic_data():
    """Method-of-constant-stimuli data from a known Weibull."""
    pf = WeibullLog()
    truth = PsychometricParams(threshold=-1.3, slope=2.0)
    levels = np.linspace(-2.2, -0.4, 10)
    x = np.repeat(levels, 200)
    p = np.asarray(pf.p_correct(x, truth))
    y = np.asarray(jr.bernoulli(jr.PRNGKey(0), p)).astype(int)
    return ResponseData.from_arrays(x, y), truth


def test_registry():
    assert INFERENCE_ENGINES["mle"] is MLEOptimizer


def test_recovers_parameters(synthetic_data):
    data, truth = synthetic_data
    fitted = MLEOptimizer(steps=800).fit(WeibullLog(), data, PsychometricParams(-1.0, 1.0))
    assert fitted.threshold == pytest.approx(truth.threshold, abs=0.1)
    assert fitted.slope == pytest.approx(truth.slope, rel=0.35)
    assert (fitted.guess, fitted.lapse) == (0.5, 0.0)


def test_fit_does_not_worsen_start(synthetic_data):
    data, _ = synthetic_data
    pf = WeibullLog()
    x, y = data.to_jax()
    start = PsychometricParams(-1.0, 1.0)
    fitted = MLEOptimizer(steps=50).fit(pf, data, start)
    assert pf.loglik(fitted, x, y) >= pf.loglik(start, x, y)


def test_custom_optimizer_and_history(synthetic_data):
    data, _ = synthetic_data
    opt = MLEOptimizer(steps=30, optimizer=optax.sgd(1e-3), track_history=True, log_every=10)
    opt.fit(WeibullLog(), data, PsychometricParams(-1.0, 1.0))
    steps, losses = opt.get_history()
    assert steps == [0, 10, 20, 29]
    assert len(losses) == 4


def test_empty_data():
    with pytest.raises(StateError, match="without trials"):
        MLEOptimizer().fit(WeibullLog(), ResponseData(), PsychometricParams(-1.0, 1.0))


def test_bounds_are_respected(synthetic_data):
    data, _ = synthetic_data
    bounds = {"threshold": (-1.0, 0.0), "slope": (0.5, 1.5)}
    fitted = MLEOptimizer(steps=200).fit(
        WeibullLog(), data, PsychometricParams(-0.5, 1.0), bounds=bounds
    )
    # the unconstrained optimum (-1.3, 2.0) lies outside both intervals
    assert fitted.threshold == pytest.approx(-1.0, abs=1e-3)
    assert 0.5 * (1 - 1e-4) <= fitted.slope <= 1.5 * (1 + 1e-4)


def test_saturated_data_gives_finite_fit():
    data = ResponseData.from_arrays(np.zeros(200), np.ones(200, dtype=int))
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        fitted = MLEOptimizer(steps=100).fit(
            WeibullLog(), data, PsychometricParams(-1.0, 2.0)
        )
    assert not [w for w in caught if "non-finite" in str(w.message)]
    assert np.isfinite(fitted.threshold)
    assert np.isfinite(fitted.slope)


class _NaNWeibull(WeibullLog):
    def _core(self, x, threshold, slope):
        return jnp.full_like(x, jnp.nan)


def test_non_finite_start_raises(synthetic_data):
    data, _ = synthetic_data
    with pytest.raises(NumericalError, match="starting point"):
        MLEOptimizer(steps=10).fit(_NaNWeibull(), data, PsychometricParams(-1.0, 1.0))
