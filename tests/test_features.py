"""
test_features.py
----------------

Tests for feature assembly (two-interval and single-interval).
"""

import numpy as np
import pytest
from scipy.stats import binomtest

from csfgen.errors import DataShapeError
from csfgen.observer.features import assemble_features, check_responses, extract
from csfgen.observer.pooling import PoolingConfig


class TestTwoInterval:
    def test_half_split_layout(self):
        null = np.arange(8, dtype=float).reshape(4, 2)
        test = 100 + null
        features, labels = assemble_features(null, test, task_intervals=2)
        np.testing.assert_array_equal(labels, [0, 0, 1, 1])
        # class 0: [null | test]
        np.testing.assert_array_equal(features[0], [0, 1, 100, 101])
        np.testing.assert_array_equal(features[1], [2, 3, 102, 103])
        # class 1: [test | null]
        np.testing.assert_array_equal(features[2], [104, 105, 4, 5])
        np.testing.assert_array_equal(features[3], [106, 107, 6, 7])

    def test_odd_trial_dropped(self):
        null = np.zeros((5, 3))
        features, labels = assemble_features(null, np.ones((5, 3)), task_intervals=2)
        assert features.shape == (4, 6)
        assert labels.tolist() == [0, 0, 1, 1]

    def test_zero_trials(self):
        with pytest.raises(DataShapeError, match="at least 2 trials"):
            assemble_features(np.zeros((0, 3)), np.zeros((0, 3)), task_intervals=2)

    def test_single_trial_layout_matches_label(self, rng):
        null, test = np.zeros((1, 2)), np.ones((1, 2))
        for _ in range(10):
            features, labels = assemble_features(null, test, task_intervals=2, rng=rng)
            assert features.shape == (1, 4)
            if labels[0] == 0:
                np.testing.assert_array_equal(features[0], [0, 0, 1, 1])
            else:
                np.testing.assert_array_equal(features[0], [1, 1, 0, 0])

    def test_single_trial_label_is_fair(self):
        """Over many seeds the single-trial class is Binomial(n, 0.5)."""
        n = 2000
        ones = 0
        for s in range(n):
            _, labels = assemble_features(
                np.zeros((1, 2)), np.ones((1, 2)), rng=np.random.default_rng(s)
            )
            ones += int(labels[0])
        assert binomtest(ones, n, 0.5).pvalue > 1e-3

    def test_single_trial_reproducible(self):
        a = assemble_features(np.zeros((1, 2)), np.ones((1, 2)), rng=np.random.default_rng(7))
        b = assemble_features(np.zeros((1, 2)), np.ones((1, 2)), rng=np.random.default_rng(7))
        np.testing.assert_array_equal(a[1], b[1])


class TestSingleInterval:
    def test_stacked_rows(self):
        null, test = np.zeros((3, 2)), np.ones((3, 2))
        features, labels = assemble_features(null, test, task_intervals=1)
        assert features.shape == (6, 2)
        np.testing.assert_array_equal(labels, [0, 0, 0, 1, 1, 1])
        np.testing.assert_array_equal(features[3:], test)


class TestExtract:
    def test_flattens_time_and_units(self, rng):
        null = rng.normal(size=(4, 3, 5))
        test = rng.normal(size=(4, 3, 5))
        features, labels = extract(null, test, task_intervals=2)
        assert features.shape == (4, 30)
        np.testing.assert_allclose(features[0, :15], null[0].ravel())

    def test_pooled_features(self, rng):
        null = rng.normal(size=(4, 3, 5))
        test = rng.normal(size=(4, 3, 5))
        features, _ = extract(null, test, pooling=PoolingConfig(kind="full_field"))
        assert features.shape == (4, 6)

    def test_two_dimensional_input_is_one_time_bin(self):
        null, test = check_responses(np.zeros((3, 5)), np.ones((3, 5)))
        assert null.shape == (3, 1, 5)

    def test_shape_mismatch(self):
        with pytest.raises(DataShapeError, match="does not match"):
            extract(np.zeros((4, 1, 5)), np.zeros((4, 1, 6)))
