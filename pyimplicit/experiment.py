"""
Experiment: the fitted-model configuration.

Binds a transfer function, a family and a learning-rate schedule, and
exposes the per-observation update used by the fitting loop.
"""

import numpy as np
from typing import Optional

from ._core.transfers import Transfer, get_transfer
from ._core.families import Family, get_family
from ._core.learning_rates import LearningRate, UniDimLearningRate, PxDimLearningRate
from ._core.score import score_function
from ._core.implicit import solve_implicit, DEFAULT_XTOL, DEFAULT_MAXITER
from ._utils import check_vector, check_option
from .data import DataPoint


UPDATE_METHODS = ("implicit", "explicit")


class Experiment:
    """
    Online GLM experiment.

    Examples
    --------
    >>> from pyimplicit import Experiment, DataPoint
    >>> exp = Experiment('gaussian', 'identity', p=1)
    >>> exp.init_uni_dim_learning_rate(gamma=1, alpha=1, c=1, scale=1)
    >>> exp.explicit_update(np.zeros(1), DataPoint([1.0], 5.0), 0.0, 1)
    array([2.5])
    """

    def __init__(
        self,
        family: str,
        transfer: str,
        p: Optional[int] = None,
        *,
        offset: Optional[np.ndarray] = None,
        weights: Optional[np.ndarray] = None,
        start: Optional[np.ndarray] = None,
        epsilon: float = 1e-5,
        n_iters: Optional[int] = None,
        trace: bool = False,
        dev: bool = False,
        convergence: bool = False,
    ):
        """
        Parameters
        ----------
        family : str
            'gaussian', 'poisson' or 'binomial'
        transfer : str
            'identity', 'exp' or 'logistic'
        p : int, optional
            Number of coefficients. Required for the px-dim learning rate;
            otherwise taken from the first update.
        offset : ndarray, shape (n,), optional
            Per-observation offsets
        weights : ndarray, shape (n,), optional
            Prior weights for the deviance
        start : ndarray, shape (p,), optional
            Starting coefficients (zeros if omitted)
        epsilon : float, default=1e-5
            Convergence tolerance on mean |θ_t - θ_{t-1}|
        n_iters : int, optional
            Maximum number of observations to process
        trace : bool
            Log the deviance at every iteration
        dev : bool
            Check the deviance for finiteness at every iteration
        convergence : bool
            Stop once the convergence criterion is met

        Raises
        ------
        UnknownFamilyError, UnknownTransferError
        """
        self.model_name = family
        self.transfer_name = transfer
        self._family: Family = get_family(family)
        self._transfer: Transfer = get_transfer(transfer)
        self._lr: Optional[LearningRate] = None
        self.lr_type = None

        self.p = p
        self.offset = None if offset is None else check_vector(offset, name='offset')
        self.weights = None if weights is None else check_vector(weights, name='weights')
        self.start = None if start is None else check_vector(start, name='start', length=p)
        if self.start is not None and self.p is None:
            self.p = len(self.start)
        self.epsilon = epsilon
        self.n_iters = n_iters
        self.trace = trace
        self.dev = dev
        self.convergence = convergence

    # ------------------------------------------------------------------
    # Learning rate
    # ------------------------------------------------------------------

    def init_uni_dim_learning_rate(self, gamma: float = 1.0, alpha: float = 1.0,
                                   c: float = 1.0, scale: float = 1.0) -> None:
        """Use the scalar rate scale·γ·(1 + α·γ·t)^(-c)."""
        self._lr = UniDimLearningRate(gamma=gamma, alpha=alpha, c=c, scale=scale)
        self.lr_type = self._lr.lr_type

    def init_px_dim_learning_rate(self) -> None:
        """Use the per-coordinate adaptive rate, with fresh state."""
        if self.p is None:
            raise ValueError("p must be set before init_px_dim_learning_rate()")
        self._lr = PxDimLearningRate(self.p)
        self.lr_type = self._lr.lr_type

    def reinit_learning_rate(self) -> None:
        """Reset schedule state before an independent fitting run."""
        if self._lr is not None and self.p is not None:
            self._lr.reinit(self.p)

    def learning_rate(self, theta_old: np.ndarray, data_point: DataPoint,
                      offset: float, t: int) -> np.ndarray:
        """p × p learning-rate matrix for iteration t."""
        if self._lr is None:
            raise RuntimeError(
                "No learning rate initialized. Call init_uni_dim_learning_rate() "
                "or init_px_dim_learning_rate() first"
            )
        p = self.p if self.p is not None else len(theta_old)
        return self._lr.learning_rate(theta_old, data_point, offset, t, p,
                                      score_func=self.score_function)

    # ------------------------------------------------------------------
    # Model accessors
    # ------------------------------------------------------------------

    @property
    def family(self) -> Family:
        return self._family

    @property
    def transfer(self) -> Transfer:
        return self._transfer

    def score_function(self, theta_old: np.ndarray, data_point: DataPoint,
                       offset: float) -> np.ndarray:
        return score_function(theta_old, data_point, offset, self._transfer)

    def h_transfer(self, u):
        return self._transfer.transfer(u)

    def h_first_derivative(self, u):
        return self._transfer.first_derivative(u)

    def h_second_derivative(self, u):
        return self._transfer.second_derivative(u)

    def variance(self, mu):
        return self._family.variance(mu)

    def deviance(self, y, mu, wt=None) -> float:
        return self._family.deviance(y, mu, wt)

    def valideta(self, eta) -> bool:
        return self._transfer.valideta(eta)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def _check_theta(self, theta_old) -> np.ndarray:
        theta_old = check_vector(theta_old, name='theta_old', length=self.p)
        if self.p is None:
            self.p = len(theta_old)
        return theta_old

    def explicit_update(self, theta_old: np.ndarray, data_point: DataPoint,
                        offset: float, t: int,
                        lr: Optional[np.ndarray] = None) -> np.ndarray:
        """
        θ_t = θ_{t-1} + A_t · score(θ_{t-1}).

        A precomputed learning-rate matrix `lr` is used as-is; otherwise
        the schedule is queried (advancing any schedule state).
        """
        theta_old = self._check_theta(theta_old)
        at = self.learning_rate(theta_old, data_point, offset, t) if lr is None else lr
        return theta_old + at @ self.score_function(theta_old, data_point, offset)

    def implicit_update(self, theta_old: np.ndarray, data_point: DataPoint,
                        offset: float, t: int, xtol: float = DEFAULT_XTOL,
                        maxiter: int = DEFAULT_MAXITER,
                        root_method: str = "halley",
                        lr: Optional[np.ndarray] = None) -> np.ndarray:
        """
        θ_t = θ_{t-1} + A_t·x·(y - h(x·θ_t + offset)), solved for θ_t.

        With a_t = mean(diag(A_t)) and direction d = diag(A_t)·x / a_t,
        θ_t = θ_{t-1} + ξ*·d where ξ* solves the scalar equation in
        solve_implicit() with normx = x·d. A precomputed `lr` matrix is
        used as-is.

        Raises
        ------
        NoRootBracketedError, RootFindingDidNotConvergeError
        """
        theta_old = self._check_theta(theta_old)
        if lr is None:
            lr = self.learning_rate(theta_old, data_point, offset, t)
        diag_lr = np.diag(lr)
        at = float(np.mean(diag_lr))
        if at == 0.0:
            return theta_old.copy()

        direction = diag_lr * data_point.x / at
        normx = float(np.dot(data_point.x, direction))
        if normx == 0.0:
            return theta_old.copy()

        ksi = solve_implicit(at, theta_old, data_point, normx, offset,
                             self._transfer, xtol=xtol, maxiter=maxiter,
                             method=root_method)
        return theta_old + ksi * direction

    def update(self, theta_old: np.ndarray, data_point: DataPoint,
               offset: float, t: int, method: str = "implicit",
               lr: Optional[np.ndarray] = None, **kwargs) -> np.ndarray:
        """
        One SGD step from θ_{t-1} to θ_t.

        Parameters
        ----------
        method : {'implicit', 'explicit'}
            Update rule. Extra keyword arguments go to implicit_update().
        lr : ndarray, shape (p, p), optional
            Precomputed learning-rate matrix for this step
        """
        check_option(method, 'method', UPDATE_METHODS)
        if method == "explicit":
            return self.explicit_update(theta_old, data_point, offset, t, lr=lr)
        return self.implicit_update(theta_old, data_point, offset, t, lr=lr, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def summary(self):
        """Print the experiment configuration."""
        print("  Experiment:")
        print(f"    Family: {self.model_name}")
        print(f"    Transfer function: {self.transfer_name}")
        print(f"    Learning rate: {self.lr_type}")
        print()
        print(f"    Trace: {'On' if self.trace else 'Off'}")
        print(f"    Deviance: {'On' if self.dev else 'Off'}")
        print(f"    Convergence: {'On' if self.convergence else 'Off'}")
        print(f"    Epsilon: {self.epsilon}")
        print()

    def __repr__(self):
        return (f"Experiment(family='{self.model_name}', transfer='{self.transfer_name}', "
                f"p={self.p}, lr_type={self.lr_type!r})")


__all__ = ["Experiment", "UPDATE_METHODS"]
