"""
test_procedures.py
------------------

Tests for QUEST+ and the method of constant stimuli.
"""

import jax.numpy as jnp
import jax.random as jr
import numpy as np
import pytest

from csfgen.errors import ConfigurationError, DataShapeError, StateError
from csfgen.model import PsychometricParams, WeibullLog
from csfgen.session import QuestParams, ThresholdParams, build_procedure
from csfgen.trial_placement import ConstantStimuli, QuestPlus, expected_entropy

STIM = np.round(np.arange(-2.0, 0.01, 0.1), 10)
SLOPES = np.arange(0.5, 5.01, 0.5)


def make_quest(**kwargs):
    defaults = dict(
        stim_domain=STIM,
        threshold_domain=STIM,
        slope_domain=SLOPES,
        min_trial=40,
        max_trial=40,
    )
    defaults.update(kwargs)
    return QuestPlus(**defaults)


def simulate(proc, true_params, key, block=20):
    """Drive a procedure with a simulated observer until it stops."""
    pf = WeibullLog()
    x, more = proc.next_stimulus()
    while more:
        key, subkey = jr.split(key)
        p = float(pf.p_correct(x, true_params))
        outcomes = np.asarray(jr.bernoulli(subkey, p, (block,))).astype(int)
        x, more = proc.update(np.full(block, x), outcomes)
    return proc


class TestExpectedEntropy:
    def test_shape_and_informative_minimum(self):
        proc = make_quest()
        scores = expected_entropy(proc.p_table, proc.posterior)
        assert scores.shape == (STIM.size,)
        # trials at floor/ceiling contrasts are less informative than mid-range
        idx = int(jnp.argmin(scores))
        assert 0 < idx < STIM.size - 1


class TestQuestPlus:
    def test_first_stimulus_in_domain(self):
        x, more = make_quest().next_stimulus()
        assert more
        assert x in STIM

    def test_fixed_budget(self):
        proc = simulate(make_quest(min_trial=100, max_trial=100), PsychometricParams(-1.0, 3.0), jr.PRNGKey(0))
        assert proc.n_trials == 100
        assert proc.finished
        x, more = proc.next_stimulus()
        assert not more and np.isnan(x)

    def test_update_after_stop(self):
        proc = simulate(make_quest(), PsychometricParams(-1.0, 3.0), jr.PRNGKey(1))
        with pytest.raises(StateError, match="already stopped"):
            proc.update([-1.0], [1])

    def test_entropy_criterion_stops_early(self):
        proc = make_quest(min_trial=20, max_trial=5000, stop_criterion=0.2)
        simulate(proc, PsychometricParams(-1.0, 3.0), jr.PRNGKey(2))
        assert proc.n_trials < 5000
        assert proc.threshold_sd() < 0.2

    def test_posterior_concentrates_near_truth(self):
        proc = simulate(
            make_quest(min_trial=800, max_trial=800), PsychometricParams(-1.2, 3.0), jr.PRNGKey(3)
        )
        assert proc.posterior_mean().threshold == pytest.approx(-1.2, abs=0.2)

    def test_posterior_normalized(self):
        proc = make_quest()
        proc.update([-1.0, -1.0, -0.5], [1, 0, 1])
        assert float(jnp.sum(proc.posterior)) == pytest.approx(1.0, abs=1e-5)

    def test_update_validation(self):
        proc = make_quest()
        with pytest.raises(DataShapeError, match="does not match"):
            proc.update([-1.0, -1.0], [1])
        with pytest.raises(DataShapeError, match="0/1"):
            proc.update([-1.0], [2])

    def test_best_n_stays_in_domain(self):
        proc = make_quest(best_n=3, key=jr.PRNGKey(4))
        for _ in range(5):
            x, _ = proc.next_stimulus()
            assert x in STIM
            proc.update([x], [1])

    def test_invalid_trial_bounds(self):
        with pytest.raises(ConfigurationError, match="min_trial"):
            make_quest(min_trial=10, max_trial=5)

    def test_invalid_slopes(self):
        with pytest.raises(ConfigurationError, match="strictly positive"):
            make_quest(slope_domain=[0.0, 1.0])

    def test_fit_mle_recovers_threshold(self):
        truth = PsychometricParams(-1.0, 2.5)
        proc = simulate(make_quest(min_trial=1000, max_trial=1000), truth, jr.PRNGKey(5))
        log_threshold, params = proc.fit_mle(0.81606)
        assert log_threshold == pytest.approx(-1.0, abs=0.15)
        assert params.guess == 0.5 and params.lapse == 0.0
        assert log_threshold == pytest.approx(params.threshold, abs=1e-3)


class TestConstantStimuli:
    def make(self, **kwargs):
        return ConstantStimuli(
            stim_domain=STIM, threshold_domain=STIM, slope_domain=SLOPES, n_repeat=10, **kwargs
        )

    def test_visits_every_level_once(self):
        proc = self.make(key=jr.PRNGKey(0))
        seen = []
        x, more = proc.next_stimulus()
        while more:
            seen.append(x)
            x, more = proc.update(np.full(10, x), np.ones(10, dtype=int))
        assert sorted(seen) == sorted(STIM.tolist())
        assert proc.n_trials == proc.max_trial == 10 * STIM.size
        assert not proc.allows_repeats

    def test_unshuffled_order(self):
        proc = self.make(shuffle=False)
        assert proc.next_stimulus()[0] == STIM[0]

    def test_same_key_same_order(self):
        a = self.make(key=jr.PRNGKey(9))
        b = self.make(key=jr.PRNGKey(9))
        assert a._order == b._order


class TestSaturatedBlocks:
    def test_all_correct_then_all_wrong_keeps_posterior_finite(self):
        proc = make_quest(min_trial=1000, max_trial=1000)
        proc.update(np.full(128, 0.0), np.ones(128, dtype=int))
        assert bool(jnp.all(jnp.isfinite(proc.posterior)))
        x, more = proc.update(np.full(128, -2.0), np.zeros(128, dtype=int))
        assert bool(jnp.all(jnp.isfinite(proc.log_likelihood)))
        assert float(jnp.sum(proc.posterior)) == pytest.approx(1.0, abs=1e-5)
        assert np.isfinite(proc.threshold_sd())
        assert more
        assert STIM[0] < x < STIM[-1]

    def test_default_grid_after_perfect_block_at_top(self):
        tp = ThresholdParams()
        proc = build_procedure(tp, QuestParams(), n_test=128, key=jr.PRNGKey(0))
        x, more = proc.update(np.zeros(128), np.ones(128, dtype=int))
        assert more
        assert bool(jnp.all(jnp.isfinite(proc.posterior)))
        assert x > tp.threshold_domain()[0]

    def test_fit_stays_inside_domains(self):
        """All-correct blocks near the floor push the fit toward the edge, not past it."""
        proc = make_quest(min_trial=1000, max_trial=1000)
        proc.update(np.full(128, -2.0), np.ones(128, dtype=int))
        proc.update(np.full(128, -1.5), np.ones(128, dtype=int))
        log_threshold, params = proc.fit_mle(0.81606)
        assert STIM[0] <= params.threshold <= STIM[-1]
        assert STIM[0] <= log_threshold <= STIM[-1]
        assert SLOPES[0] * (1 - 1e-4) <= params.slope <= SLOPES[-1] * (1 + 1e-4)
