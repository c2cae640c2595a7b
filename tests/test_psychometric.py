"""
test_psychometric.py
--------------------

Tests for psychometric function families.
"""

import jax.numpy as jnp
import pytest

from csfgen.model import NormalCDFLog, PsychometricParams, WeibullLog


class TestWeibullLog:
    def test_criterion_at_threshold(self):
        """guess=0.5, lapse=0 gives 0.81606 at the threshold parameter."""
        pf = WeibullLog()
        params = PsychometricParams(threshold=-1.5, slope=2.0, guess=0.5, lapse=0.0)
        assert float(pf.p_correct(-1.5, params)) == pytest.approx(0.81606, abs=1e-5)

    def test_asymptotes(self):
        pf = WeibullLog()
        params = PsychometricParams(threshold=-1.0, slope=3.0, guess=0.5, lapse=0.02)
        assert float(pf.p_correct(-6.0, params)) == pytest.approx(0.5, abs=1e-6)
        assert float(pf.p_correct(2.0, params)) == pytest.approx(0.98, abs=1e-6)

    def test_monotonic(self):
        pf = WeibullLog()
        params = PsychometricParams(threshold=-1.0, slope=2.0)
        p = pf.p_correct(jnp.linspace(-3, 1, 50), params)
        assert jnp.all(jnp.diff(p) >= 0)

    def test_threshold_at_inverts_p_correct(self):
        pf = WeibullLog()
        params = PsychometricParams(threshold=-1.2, slope=1.5)
        for criterion in (0.6, 0.75, 0.81606, 0.9):
            x = pf.threshold_at(criterion, params)
            assert float(pf.p_correct(x, params)) == pytest.approx(criterion, abs=1e-4)

    def test_default_criterion_equals_threshold_param(self):
        pf = WeibullLog()
        params = PsychometricParams(threshold=-0.7, slope=2.5)
        assert pf.threshold_at(0.81606, params) == pytest.approx(-0.7, abs=1e-3)

    def test_threshold_at_out_of_range(self):
        pf = WeibullLog()
        with pytest.raises(ValueError, match="outside psychometric range"):
            pf.threshold_at(0.4, PsychometricParams(threshold=0.0, slope=1.0))

    def test_loglik_finite_when_p_rounds_to_one(self):
        pf = WeibullLog()
        params = PsychometricParams(threshold=-3.0, slope=5.0)
        assert float(pf.p_correct(0.0, params)) == 1.0
        ll_correct = pf.loglik(params, jnp.array([0.0, 0.0]), jnp.array([1, 1]))
        ll_wrong = pf.loglik(params, jnp.array([0.0]), jnp.array([0]))
        assert jnp.isfinite(ll_correct)
        assert float(ll_correct) == pytest.approx(0.0, abs=1e-4)
        assert jnp.isfinite(ll_wrong)
        assert float(ll_wrong) < -10.0

    def test_loglik_prefers_true_params(self):
        pf = WeibullLog()
        x = jnp.array([-2.0, -1.5, -1.0, -0.5, 0.0])
        y = jnp.array([0, 0, 1, 1, 1])
        good = pf.loglik(PsychometricParams(-1.3, 3.0), x, y)
        bad = pf.loglik(PsychometricParams(0.5, 3.0), x, y)
        assert jnp.isfinite(good)
        assert good > bad


class TestNormalCDFLog:
    def test_midpoint(self):
        pf = NormalCDFLog()
        params = PsychometricParams(threshold=-1.0, slope=2.0, guess=0.5, lapse=0.0)
        assert float(pf.p_correct(-1.0, params)) == pytest.approx(0.75, abs=1e-6)
        assert pf.threshold_at(0.75, params) == pytest.approx(-1.0, abs=1e-5)
