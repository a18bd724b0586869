"""
Test learning-rate schedules.
"""

import pytest
import numpy as np

from pyimplicit._core.learning_rates import UniDimLearningRate, PxDimLearningRate
from pyimplicit.data import DataPoint


def fixed_score(s):
    """Score function that ignores its inputs and returns s."""
    s = np.asarray(s, dtype=np.float64)
    return lambda theta, data_point, offset: s


DP = DataPoint([1.0, 2.0, 3.0], 1.0)
THETA = np.zeros(3)


class TestUniDim:
    """Scalar rate scale·γ·(1 + α·γ·t)^(-c)."""

    def test_closed_form(self):
        lr = UniDimLearningRate(gamma=1, alpha=1, c=1, scale=1)
        np.testing.assert_array_equal(lr.learning_rate(THETA, DP, 0.0, 1, 3), 0.5 * np.eye(3))

    def test_hyperparameters(self):
        lr = UniDimLearningRate(gamma=2.0, alpha=0.5, c=0.7, scale=3.0)
        expected = 3.0 * 2.0 * (1 + 0.5 * 2.0 * 10) ** (-0.7)
        assert lr.rate(10) == pytest.approx(expected)
        np.testing.assert_allclose(lr.learning_rate(THETA, DP, 0.0, 10, 3), expected * np.eye(3))

    def test_decreasing_in_t(self):
        lr = UniDimLearningRate()
        rates = [lr.rate(t) for t in range(1, 20)]
        assert all(a > b for a, b in zip(rates, rates[1:]))

    def test_no_state(self):
        lr = UniDimLearningRate()
        first = lr.learning_rate(THETA, DP, 0.0, 5, 3)
        second = lr.learning_rate(THETA, DP, 0.0, 5, 3)
        np.testing.assert_array_equal(first, second)

    def test_label(self):
        assert UniDimLearningRate().lr_type == "Uni-dimension learning rate"


class TestPxDim:
    """Per-coordinate adaptive rate."""

    def test_single_call_after_reinit(self):
        lr = PxDimLearningRate(3)
        s = np.array([2.0, 1e-5, -0.5])
        result = lr.learning_rate(THETA, DP, 0.0, 1, 3, score_func=fixed_score(s))

        # 1e-5 squared is 1e-10, below the threshold: kept as accumulated
        np.testing.assert_allclose(np.diag(result), [1 / 4.0, 1e-10, 1 / 0.25])
        assert np.count_nonzero(result - np.diag(np.diag(result))) == 0

    def test_accumulates(self):
        lr = PxDimLearningRate(2)
        score = fixed_score([1.0, 2.0])
        lr.learning_rate(np.zeros(2), DataPoint([1, 1], 0), 0.0, 1, 2, score_func=score)
        result = lr.learning_rate(np.zeros(2), DataPoint([1, 1], 0), 0.0, 2, 2, score_func=score)
        np.testing.assert_allclose(np.diag(result), [1 / 2.0, 1 / 8.0])
        np.testing.assert_allclose(np.diag(lr.Idiag), [2.0, 8.0])

    def test_accumulator_non_decreasing(self):
        np.random.seed(42)
        lr = PxDimLearningRate(3)
        previous = np.diag(lr.Idiag).copy()
        for t in range(1, 30):
            lr.learning_rate(THETA, DP, 0.0, t, 3, score_func=fixed_score(np.random.randn(3)))
            current = np.diag(lr.Idiag).copy()
            assert np.all(current >= previous)
            previous = current

    def test_returned_matrix_is_a_copy(self):
        lr = PxDimLearningRate(3)
        result = lr.learning_rate(THETA, DP, 0.0, 1, 3, score_func=fixed_score([1.0, 1.0, 1.0]))
        result[0, 0] = 123.0
        assert lr.Idiag[0, 0] == 1.0

    def test_reinit_clears_state(self):
        lr = PxDimLearningRate(3)
        lr.learning_rate(THETA, DP, 0.0, 1, 3, score_func=fixed_score([3.0, 3.0, 3.0]))
        lr.reinit(3)
        np.testing.assert_array_equal(lr.Idiag, np.zeros((3, 3)))

        result = lr.learning_rate(THETA, DP, 0.0, 1, 3, score_func=fixed_score([2.0, 2.0, 2.0]))
        np.testing.assert_allclose(np.diag(result), [0.25, 0.25, 0.25])

    def test_instances_do_not_share_state(self):
        a = PxDimLearningRate(3)
        b = PxDimLearningRate(3)
        a.learning_rate(THETA, DP, 0.0, 1, 3, score_func=fixed_score([1.0, 1.0, 1.0]))
        np.testing.assert_array_equal(b.Idiag, np.zeros((3, 3)))

    def test_uses_score_of_current_point(self):
        lr = PxDimLearningRate(3)
        seen = []

        def score(theta, data_point, offset):
            seen.append((theta.copy(), data_point, offset))
            return np.ones(3)

        theta = np.array([0.1, 0.2, 0.3])
        lr.learning_rate(theta, DP, 0.7, 1, 3, score_func=score)
        assert len(seen) == 1
        np.testing.assert_array_equal(seen[0][0], theta)
        assert seen[0][1] is DP
        assert seen[0][2] == 0.7

    def test_dimension_mismatch(self):
        lr = PxDimLearningRate(3)
        with pytest.raises(ValueError, match="reinit"):
            lr.learning_rate(np.zeros(2), DP, 0.0, 1, 2, score_func=fixed_score([1.0, 1.0]))

    def test_requires_score_function(self):
        with pytest.raises(ValueError):
            PxDimLearningRate(3).learning_rate(THETA, DP, 0.0, 1, 3)

    def test_label(self):
        assert PxDimLearningRate(1).lr_type == "Px-dimension learning rate"
