"""
test_dataset.py
---------------

Tests for ResponseData, TrialBlock and PsychometricAccumulator.
"""

import numpy as np
import pytest

from csfgen.data import PsychometricAccumulator, ResponseData, TrialBlock
from csfgen.errors import DataShapeError


class TestResponseData:
    def test_add_batch_and_to_numpy(self):
        data = ResponseData()
        data.add_batch([-1.0, -1.0, -0.5], [1, 0, 1])
        x, y = data.to_numpy()
        assert len(data) == 3
        np.testing.assert_allclose(x, [-1.0, -1.0, -0.5])
        np.testing.assert_array_equal(y, [1, 0, 1])

    def test_add_batch_shape_mismatch(self):
        with pytest.raises(DataShapeError, match="does not match"):
            ResponseData().add_batch([-1.0, -0.5], [1])

    def test_from_arrays(self):
        data = ResponseData.from_arrays([-2.0, -1.0], [0, 1])
        assert len(data) == 2
        assert data.responses == [0, 1]


class TestTrialBlock:
    def test_properties(self):
        block = TrialBlock(log_contrast=-2.0, outcomes=np.array([1, 0, 1, 1]))
        assert block.contrast == pytest.approx(0.01)
        assert block.p_correct == pytest.approx(0.75)
        assert len(block) == 4
        np.testing.assert_allclose(block.log_contrasts, [-2.0] * 4)


class TestPsychometricAccumulator:
    def test_repeat_visits_append(self):
        """Two batches at the same contrast keep both values, in order."""
        acc = PsychometricAccumulator()
        acc.record(0.0125, 0.7)
        acc.record(0.0125, 0.9)
        assert acc.history(0.0125) == [0.7, 0.9]
        assert len(acc) == 1
        assert acc.mean(0.0125) == pytest.approx(0.8)

    def test_exact_key_matching(self):
        acc = PsychometricAccumulator()
        acc.record(0.1, 0.6)
        acc.record(0.1 + 1e-12, 0.8)
        assert len(acc) == 2
        assert acc.history(0.1) == [0.6]

    def test_unknown_contrast(self):
        with pytest.raises(KeyError):
            PsychometricAccumulator().history(0.5)

    def test_labels(self):
        acc = PsychometricAccumulator()
        acc.record(0.0125, 0.75)
        assert acc.as_dict(labels=True) == {"C = 1.2500%": [0.75]}
        assert acc.contrasts == [0.0125]

    def test_history_is_a_copy(self):
        acc = PsychometricAccumulator()
        acc.record(0.5, 1.0)
        acc.history(0.5).append(0.0)
        assert acc.history(0.5) == [1.0]
