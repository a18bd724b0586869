"""
GLM family definitions.

Defines variance functions and deviance residuals. The link is
supplied separately by a Transfer (see transfers.py).
"""

import numpy as np
from abc import ABC, abstractmethod

from ..exceptions import UnknownFamilyError


def _y_log_y(y: np.ndarray, mu: np.ndarray) -> np.ndarray:
    """y * log(y/mu), taken as 0 where y == 0."""
    nonzero = y != 0
    safe_y = np.where(nonzero, y, 1.0)
    safe_mu = np.where(nonzero, mu, 1.0)
    return np.where(nonzero, y * np.log(safe_y / safe_mu), 0.0)


class Family(ABC):
    """Base class for GLM families."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Family name."""
        pass

    @abstractmethod
    def variance(self, mu):
        """Variance function: V(μ)"""
        pass

    @abstractmethod
    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        """Deviance residuals."""
        pass

    def deviance(self, y, mu, wt=None) -> float:
        """
        Total deviance: weighted sum of the deviance residuals.

        Parameters
        ----------
        y : array_like
            Responses
        mu : array_like, same shape as y
            Fitted means
        wt : array_like, optional
            Prior weights (ones if omitted)
        """
        y = np.asarray(y, dtype=np.float64).ravel()
        mu = np.asarray(mu, dtype=np.float64).ravel()
        if wt is None:
            wt = np.ones_like(y)
        else:
            wt = np.asarray(wt, dtype=np.float64).ravel()
        if not (y.shape == mu.shape == wt.shape):
            raise ValueError(
                f"y, mu and wt must have the same length "
                f"(got {y.size}, {mu.size}, {wt.size})"
            )
        return float(np.sum(self.dev_resids(y, mu, wt)))

    def __repr__(self):
        return f"{type(self).__name__}()"


class Gaussian(Family):
    """Gaussian family."""

    @property
    def name(self) -> str:
        return "gaussian"

    def variance(self, mu):
        if np.ndim(mu) == 0:
            return 1.0
        return np.ones_like(np.asarray(mu, dtype=np.float64))

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        return wt * (y - mu) ** 2


class Poisson(Family):
    """
    Poisson family.

    y*log(y/mu) is taken as 0 at y == 0, so a zero count contributes
    2*wt*mu to the deviance.
    """

    @property
    def name(self) -> str:
        return "poisson"

    def variance(self, mu):
        if np.ndim(mu) == 0:
            return float(mu)
        return np.asarray(mu, dtype=np.float64).copy()

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        return 2.0 * wt * (_y_log_y(y, mu) - (y - mu))


class Binomial(Family):
    """
    Binomial family.

    R does not expose binomial dev.resids; this uses the symmetric form
    2*wt*(y*log(y/mu) + (1-y)*log((1-y)/(1-mu))), with each y*log term
    taken as 0 when its y is 0.
    """

    @property
    def name(self) -> str:
        return "binomial"

    def variance(self, mu):
        if np.ndim(mu) == 0:
            return float(mu) * (1.0 - float(mu))
        mu = np.asarray(mu, dtype=np.float64)
        return mu * (1 - mu)

    def dev_resids(
        self,
        y: np.ndarray,
        mu: np.ndarray,
        wt: np.ndarray
    ) -> np.ndarray:
        return 2.0 * wt * (_y_log_y(y, mu) + _y_log_y(1.0 - y, 1.0 - mu))


FAMILIES = {
    "gaussian": Gaussian,
    "poisson": Poisson,
    "binomial": Binomial,
}


def get_family(name: str) -> Family:
    """
    Instantiate a family by name.

    Raises
    ------
    UnknownFamilyError
        If `name` is not one of FAMILIES.
    """
    try:
        cls = FAMILIES[name]
    except (KeyError, TypeError):
        raise UnknownFamilyError(name, FAMILIES) from None
    return cls()


__all__ = ["Family", "Gaussian", "Poisson", "Binomial", "FAMILIES", "get_family"]
