"""
Implicit-SGD update solver.

The implicit update θ_t = θ_{t-1} + A·x·(y - h(x·θ_t + offset)) has θ_t
on both sides. Along the update direction it reduces to a scalar
equation in ξ:

    F(ξ) = ξ - a_t·g(ξ) = 0,   g(ξ) = y - h(x·θ_{t-1} + normx·ξ + offset)

which is solved with a bracketed, derivative-aware root finder.

Reference:
---------
Toulis, Rennie & Airoldi (2014), "Statistical analysis of stochastic
gradient methods for generalized linear models", ICML.
"""

import numpy as np
from typing import Callable, Tuple
from scipy.optimize import toms748

from .transfers import Transfer
from ..exceptions import NoRootBracketedError, RootFindingDidNotConvergeError


DEFAULT_XTOL = 1e-12
DEFAULT_MAXITER = 100
ROOT_METHODS = ("halley", "toms748")


class ScoreCoefficient:
    """
    Scalar residual g(ξ) along the update direction, with derivatives.

    g(ξ)   = y - h(η₀ + normx·ξ)
    g'(ξ)  = -h'(η₀ + normx·ξ)·normx
    g''(ξ) = -h''(η₀ + normx·ξ)·normx²

    where η₀ = x·θ_{t-1} + offset.
    """

    def __init__(self, transfer: Transfer, data_point, theta_old: np.ndarray,
                 normx: float, offset: float):
        self.transfer = transfer
        self.y = data_point.y
        self.eta0 = float(np.dot(theta_old, data_point.x)) + offset
        self.normx = normx

    def __call__(self, ksi: float) -> float:
        return self.y - self.transfer.transfer(self.eta0 + self.normx * ksi)

    def first_derivative(self, ksi: float) -> float:
        return -self.transfer.first_derivative(self.eta0 + self.normx * ksi) * self.normx

    def second_derivative(self, ksi: float) -> float:
        return (-self.transfer.second_derivative(self.eta0 + self.normx * ksi)
                * self.normx * self.normx)


class ImplicitFunction:
    """F(ξ) = ξ - a_t·g(ξ), returning (F, F', F'') at a trial point."""

    def __init__(self, at: float, g: ScoreCoefficient):
        self.at = at
        self.g = g

    def __call__(self, u: float) -> Tuple[float, float, float]:
        value = u - self.at * self.g(u)
        first = 1.0 - self.at * self.g.first_derivative(u)
        second = -self.at * self.g.second_derivative(u)
        return value, first, second

    def value(self, u: float) -> float:
        return u - self.at * self.g(u)


def halley_bracketed(
    func: Callable[[float], Tuple[float, float, float]],
    lower: float,
    upper: float,
    xtol: float = DEFAULT_XTOL,
    maxiter: int = DEFAULT_MAXITER,
) -> float:
    """
    Safeguarded Halley iteration on a sign-changing bracket.

    Each step uses (f, f', f''); a step that leaves the current bracket,
    or disagrees in direction with the Newton step, is replaced by
    bisection. The bracket shrinks every iteration.

    Parameters
    ----------
    func : callable
        func(x) -> (f(x), f'(x), f''(x))
    lower, upper : float
        Bracket with f(lower) and f(upper) of opposite sign
    xtol : float
        Stop when the step is below xtol·max(1, |x|)
    maxiter : int
        Iteration cap

    Raises
    ------
    RootFindingDidNotConvergeError
        If maxiter is reached first.
    """
    f_lower = func(lower)[0]
    x = 0.5 * (lower + upper)

    for _ in range(maxiter):
        f, f1, f2 = func(x)
        if f == 0.0:
            return x

        # Keep the sign change inside [lower, upper]
        if np.sign(f) == np.sign(f_lower):
            lower, f_lower = x, f
        else:
            upper = x

        x_new = np.nan
        if f1 != 0.0 and np.isfinite(f1):
            newton = f / f1
            denom = 2.0 * f1 * f1 - f * f2
            delta = 2.0 * f * f1 / denom if denom != 0.0 and np.isfinite(f2) else newton
            if np.sign(delta) != np.sign(newton):
                delta = newton
            x_new = x - delta

        if not (lower < x_new < upper):
            x_new = 0.5 * (lower + upper)

        if abs(x_new - x) <= xtol * max(1.0, abs(x_new)):
            return x_new
        x = x_new

    raise RootFindingDidNotConvergeError(maxiter, x, lower, upper)


def _toms748(F: ImplicitFunction, lower: float, upper: float,
             xtol: float, maxiter: int) -> float:
    root, info = toms748(F.value, lower, upper, xtol=xtol, maxiter=maxiter,
                         full_output=True, disp=False)
    if not info.converged:
        raise RootFindingDidNotConvergeError(maxiter, root, lower, upper)
    return root


def solve_implicit(
    at: float,
    theta_old: np.ndarray,
    data_point,
    normx: float,
    offset: float,
    transfer: Transfer,
    xtol: float = DEFAULT_XTOL,
    maxiter: int = DEFAULT_MAXITER,
    method: str = "halley",
) -> float:
    """
    Solve F(ξ) = ξ - a_t·g(ξ) = 0 for the implicit step size ξ*.

    The root lies between 0 and r = a_t·g(0) whenever h is monotone
    non-decreasing; that interval is the search bracket.

    Parameters
    ----------
    at : float
        Scalar learning rate for this step
    theta_old : ndarray, shape (p,)
        Coefficients before the update
    data_point : DataPoint
        Current observation
    normx : float
        Coupling of the update direction to the linear predictor
    offset : float
        Offset for this observation
    transfer : Transfer
        Bound transfer function
    xtol : float
        Root tolerance
    maxiter : int
        Iteration cap for the root finder
    method : {'halley', 'toms748'}
        Root finder

    Returns
    -------
    ksi : float

    Raises
    ------
    NoRootBracketedError
        F does not change sign over [min(0, r), max(0, r)].
    RootFindingDidNotConvergeError
        The root finder hit maxiter.
    """
    if method not in ROOT_METHODS:
        raise ValueError(
            f"Unknown root method: '{method}'\n"
            f"Valid options: {', '.join(repr(m) for m in ROOT_METHODS)}"
        )

    g = ScoreCoefficient(transfer, data_point, theta_old, normx, offset)
    F = ImplicitFunction(at, g)

    r = at * g(0.0)
    if r == 0.0:
        return 0.0
    lower, upper = (0.0, r) if r > 0 else (r, 0.0)

    f_lower = F.value(lower)
    f_upper = F.value(upper)
    if f_lower == 0.0:
        return lower
    if f_upper == 0.0:
        return upper
    if not (np.isfinite(f_lower) and np.isfinite(f_upper)) or np.sign(f_lower) == np.sign(f_upper):
        raise NoRootBracketedError(lower, upper, f_lower, f_upper)

    if method == "toms748":
        return _toms748(F, lower, upper, xtol, maxiter)
    return halley_bracketed(F, lower, upper, xtol=xtol, maxiter=maxiter)


__all__ = [
    "ScoreCoefficient",
    "ImplicitFunction",
    "halley_bracketed",
    "solve_implicit",
    "DEFAULT_XTOL",
    "DEFAULT_MAXITER",
    "ROOT_METHODS",
]
