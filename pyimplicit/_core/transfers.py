"""
Transfer (inverse link) functions.

Maps a linear predictor η to the mean μ = h(η), with the first and
second derivatives needed by the implicit update.
"""

import numpy as np
from abc import ABC, abstractmethod
from scipy.special import expit

from ..exceptions import UnknownTransferError


def _like(u, result):
    """Return a float for scalar input, an array of u's shape otherwise."""
    if np.ndim(u) == 0:
        return float(result)
    return result


class Transfer(ABC):
    """Base class for transfer functions."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Transfer name."""
        pass

    @abstractmethod
    def linkinv(self, eta: np.ndarray) -> np.ndarray:
        """Transfer: μ = h(η)"""
        pass

    @abstractmethod
    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        """First derivative: dμ/dη"""
        pass

    @abstractmethod
    def mu_eta_deriv(self, eta: np.ndarray) -> np.ndarray:
        """Second derivative: d²μ/dη²"""
        pass

    def transfer(self, u):
        """h(u), elementwise for arrays of any shape."""
        return _like(u, self.linkinv(np.asarray(u, dtype=np.float64)))

    def first_derivative(self, u):
        """h'(u), elementwise for arrays of any shape."""
        return _like(u, self.mu_eta(np.asarray(u, dtype=np.float64)))

    def second_derivative(self, u):
        """h''(u), elementwise for arrays of any shape."""
        return _like(u, self.mu_eta_deriv(np.asarray(u, dtype=np.float64)))

    def valideta(self, eta) -> bool:
        """Check if η values are valid."""
        return True

    def __repr__(self):
        return f"{type(self).__name__}()"


class Identity(Transfer):
    """Identity transfer: h(u) = u."""

    @property
    def name(self) -> str:
        return "identity"

    def linkinv(self, eta: np.ndarray) -> np.ndarray:
        return eta.copy()

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        return np.ones_like(eta)

    def mu_eta_deriv(self, eta: np.ndarray) -> np.ndarray:
        return np.zeros_like(eta)


class Exponential(Transfer):
    """Exponential transfer: h(u) = h'(u) = h''(u) = exp(u)."""

    @property
    def name(self) -> str:
        return "exp"

    def linkinv(self, eta: np.ndarray) -> np.ndarray:
        return np.exp(eta)

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        return np.exp(eta)

    def mu_eta_deriv(self, eta: np.ndarray) -> np.ndarray:
        return np.exp(eta)


class Logistic(Transfer):
    """
    Logistic transfer: h(u) = 1/(1 + exp(-u)).

    Both derivatives are written in terms of the sigmoid value s:
    h' = s(1-s), h'' = s(1-s)(1-2s) = 2s³ - 3s² + s.
    """

    @property
    def name(self) -> str:
        return "logistic"

    def linkinv(self, eta: np.ndarray) -> np.ndarray:
        return expit(eta)

    def mu_eta(self, eta: np.ndarray) -> np.ndarray:
        s = expit(eta)
        return s * (1.0 - s)

    def mu_eta_deriv(self, eta: np.ndarray) -> np.ndarray:
        s = expit(eta)
        return 2.0 * s**3 - 3.0 * s**2 + s


TRANSFERS = {
    "identity": Identity,
    "exp": Exponential,
    "logistic": Logistic,
}


def get_transfer(name: str) -> Transfer:
    """
    Instantiate a transfer function by name.

    Raises
    ------
    UnknownTransferError
        If `name` is not one of TRANSFERS.
    """
    try:
        cls = TRANSFERS[name]
    except (KeyError, TypeError):
        raise UnknownTransferError(name, TRANSFERS) from None
    return cls()


__all__ = ["Transfer", "Identity", "Exponential", "Logistic", "TRANSFERS", "get_transfer"]
