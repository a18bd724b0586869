"""
Test transfer functions and their derivatives.
"""

import pytest
import numpy as np

from pyimplicit._core.transfers import (
    Identity,
    Exponential,
    Logistic,
    TRANSFERS,
    get_transfer,
)
from pyimplicit.exceptions import UnknownTransferError


ALL_TRANSFERS = [Identity(), Exponential(), Logistic()]


class TestElementwise:
    """Array input must match the scalar transform applied entry by entry."""

    @pytest.mark.parametrize("transfer", ALL_TRANSFERS, ids=lambda t: t.name)
    @pytest.mark.parametrize("shape", [(5,), (4, 1), (3, 4), (2, 3, 2)])
    def test_matches_scalar(self, transfer, shape):
        np.random.seed(42)
        u = np.random.uniform(-3, 3, size=shape)

        for method in ("transfer", "first_derivative", "second_derivative"):
            result = getattr(transfer, method)(u)
            expected = np.vectorize(getattr(transfer, method))(u)
            assert result.shape == u.shape
            np.testing.assert_allclose(result, expected, rtol=1e-12, atol=0)

    @pytest.mark.parametrize("transfer", ALL_TRANSFERS, ids=lambda t: t.name)
    def test_scalar_returns_float(self, transfer):
        assert isinstance(transfer.transfer(0.3), float)
        assert isinstance(transfer.first_derivative(0.3), float)
        assert isinstance(transfer.second_derivative(0.3), float)

    def test_identity_does_not_alias_input(self):
        u = np.array([1.0, 2.0])
        out = Identity().transfer(u)
        out[0] = 99.0
        assert u[0] == 1.0


class TestValues:
    """Closed-form values."""

    def test_identity(self):
        h = Identity()
        assert h.transfer(2.5) == 2.5
        assert h.first_derivative(2.5) == 1.0
        assert h.second_derivative(2.5) == 0.0

    def test_exponential(self):
        h = Exponential()
        for u in (-1.0, 0.0, 1.7):
            assert h.transfer(u) == pytest.approx(np.exp(u))
            assert h.first_derivative(u) == pytest.approx(np.exp(u))
            assert h.second_derivative(u) == pytest.approx(np.exp(u))

    def test_logistic_at_zero(self):
        h = Logistic()
        assert h.transfer(0.0) == 0.5
        assert h.first_derivative(0.0) == 0.25
        assert h.second_derivative(0.0) == 0.0

    def test_logistic_derivatives_match_finite_differences(self):
        h = Logistic()
        eps = 1e-6
        for u in (-2.0, -0.3, 0.8, 3.0):
            d1 = (h.transfer(u + eps) - h.transfer(u - eps)) / (2 * eps)
            d2 = (h.first_derivative(u + eps) - h.first_derivative(u - eps)) / (2 * eps)
            assert h.first_derivative(u) == pytest.approx(d1, rel=1e-6)
            assert h.second_derivative(u) == pytest.approx(d2, rel=1e-5, abs=1e-9)

    def test_logistic_extreme_inputs(self):
        h = Logistic()
        assert h.transfer(-800.0) == 0.0
        assert h.transfer(800.0) == 1.0

    @pytest.mark.parametrize("transfer", ALL_TRANSFERS, ids=lambda t: t.name)
    def test_valideta(self, transfer):
        assert transfer.valideta(0.0)
        assert transfer.valideta(-50.0)


class TestRegistry:
    """Lookup by name."""

    def test_known_names(self):
        assert isinstance(get_transfer("identity"), Identity)
        assert isinstance(get_transfer("exp"), Exponential)
        assert isinstance(get_transfer("logistic"), Logistic)
        assert set(TRANSFERS) == {"identity", "exp", "logistic"}

    def test_names_round_trip(self):
        for name in TRANSFERS:
            assert get_transfer(name).name == name

    @pytest.mark.parametrize("name", ["probit", "Identity", "", None])
    def test_unknown_name_raises(self, name):
        with pytest.raises(UnknownTransferError) as excinfo:
            get_transfer(name)
        assert excinfo.value.name == name
        assert isinstance(excinfo.value, ValueError)
