"""
Online GLM fitting with R-style interface.

fit() is the driving loop: one update per observation, in order.
sgd() is the user-facing entry point, in the spirit of R's sgd().
"""

import warnings
import numpy as np
import pandas as pd
from typing import Optional, Union, List
from dataclasses import dataclass

from loguru import logger

from .data import Dataset, OnlineOutput
from .experiment import Experiment, UPDATE_METHODS
from .exceptions import RootFindingError, NonFiniteVarianceError
from .validity import check_model
from ._core.implicit import DEFAULT_XTOL, DEFAULT_MAXITER, ROOT_METHODS
from ._utils import check_option


FALLBACKS = ("explicit", None)
LEARNING_RATES = ("uni-dim", "px-dim")

# Canonical transfer for each family
CANONICAL_TRANSFER = {
    "gaussian": "identity",
    "poisson": "exp",
    "binomial": "logistic",
}


@dataclass
class FitState:
    """Bookkeeping from one run of fit()."""
    converged: bool = False
    n_fallbacks: int = 0
    last_deviance: Optional[float] = None


def fit(
    dataset: Dataset,
    experiment: Experiment,
    method: str = "implicit",
    fallback: Optional[str] = "explicit",
    xtol: float = DEFAULT_XTOL,
    maxiter: int = DEFAULT_MAXITER,
    root_method: str = "halley",
    state: Optional[FitState] = None,
) -> OnlineOutput:
    """
    Process every observation of `dataset` once, in order.

    Parameters
    ----------
    dataset : Dataset
        Observations
    experiment : Experiment
        Model configuration with an initialized learning rate. Its
        schedule state is reset at the start of the run.
    method : {'implicit', 'explicit'}
        Update rule
    fallback : {'explicit', None}
        What to do when an implicit solve fails: take an explicit step
        (with a RuntimeWarning) or re-raise
    xtol, maxiter, root_method
        Root-finder settings for implicit updates
    state : FitState, optional
        Filled in with convergence and fallback counts

    Returns
    -------
    OnlineOutput
        One column per processed observation

    Raises
    ------
    NoRootBracketedError, RootFindingDidNotConvergeError
        Only with fallback=None
    NonFiniteVarianceError
        When an update produces a NaN or Inf coefficient
    InvalidEtaError, NonFiniteVarianceError, NonFiniteDevianceError
        From the validity checks when experiment.dev or experiment.trace
    """
    check_option(method, 'method', UPDATE_METHODS)
    check_option(fallback, 'fallback', FALLBACKS)
    check_option(root_method, 'root_method', ROOT_METHODS)
    if state is None:
        state = FitState()

    n, p = dataset.size.nsamples, dataset.size.p
    if experiment.p is None:
        experiment.p = p
    elif experiment.p != p:
        raise ValueError(f"Experiment has p={experiment.p} but dataset has {p} features")
    if experiment.offset is not None and len(experiment.offset) != n:
        raise ValueError(f"offset has length {len(experiment.offset)}, expected {n}")
    if experiment.weights is not None and len(experiment.weights) != n:
        raise ValueError(f"weights has length {len(experiment.weights)}, expected {n}")

    theta = experiment.start.copy() if experiment.start is not None else np.zeros(p)
    output = OnlineOutput.for_dataset(dataset, theta)
    experiment.reinit_learning_rate()

    n_steps = n if experiment.n_iters is None else min(n, experiment.n_iters)

    for t in range(1, n_steps + 1):
        data_point = dataset.data_point(t)
        offset = 0.0 if experiment.offset is None else float(experiment.offset[t - 1])

        # One schedule query per step, shared with a fallback step
        lr = experiment.learning_rate(theta, data_point, offset, t)
        if method == "explicit":
            theta_new = experiment.explicit_update(theta, data_point, offset, t, lr=lr)
        else:
            try:
                theta_new = experiment.implicit_update(
                    theta, data_point, offset, t, xtol=xtol, maxiter=maxiter,
                    root_method=root_method, lr=lr,
                )
            except RootFindingError as e:
                if fallback is None:
                    raise
                warnings.warn(
                    f"Implicit update failed in iteration {t}: {e}\n"
                    f"Taking an explicit step instead",
                    RuntimeWarning,
                )
                state.n_fallbacks += 1
                theta_new = experiment.explicit_update(theta, data_point, offset, t, lr=lr)

        if not np.all(np.isfinite(theta_new)):
            eta = float(np.dot(data_point.x, theta_new)) + offset
            raise NonFiniteVarianceError(t, eta, theta_new)

        output.append(theta_new)

        if experiment.dev or experiment.trace:
            state.last_deviance = check_model(dataset, theta_new, t, experiment)

        if experiment.convergence and np.mean(np.abs(theta_new - theta)) < experiment.epsilon:
            state.converged = True
            theta = theta_new
            if experiment.trace:
                logger.info("Converged in iteration {}", t)
            break
        theta = theta_new

    return output


@dataclass
class SGDResult:
    """Results from online fitting."""
    coef: pd.Series           # Final coefficients, named
    estimates: OnlineOutput   # Full estimate path
    experiment: Experiment    # Configuration used
    method: str               # 'implicit' or 'explicit'
    converged: bool           # Stopped on the convergence criterion?
    n_fallbacks: int          # Explicit steps taken after failed solves

    @property
    def n_processed(self) -> int:
        return self.estimates.n_processed

    def summary(self):
        """Print a summary of the fit."""
        print()
        print("=" * 60)
        print(f"ONLINE GLM ({self.method.upper()} SGD)")
        print("=" * 60)
        self.experiment.summary()
        print(f"Observations processed: {self.n_processed}")
        print(f"Converged: {'yes' if self.converged else 'no'}")
        if self.n_fallbacks:
            print(f"Explicit fallback steps: {self.n_fallbacks}")
        print()
        print("Coefficients:")
        print("-" * 60)
        for name, value in self.coef.items():
            print(f"{name:<20} {value:>12.4f}")
        print("-" * 60)
        print()

    def __repr__(self):
        return (f"SGDResult(method='{self.method}', n={self.n_processed}, "
                f"p={len(self.coef)}, converged={self.converged})")


def sgd(
    y: Union[str, np.ndarray],
    X: Union[List[str], np.ndarray],
    data: Optional[pd.DataFrame] = None,
    family: str = "gaussian",
    transfer: Optional[str] = None,
    method: str = "implicit",
    lr: str = "uni-dim",
    lr_control: Optional[dict] = None,
    fallback: Optional[str] = "explicit",
    xtol: float = DEFAULT_XTOL,
    maxiter: int = DEFAULT_MAXITER,
    root_method: str = "halley",
    **kwargs
) -> SGDResult:
    """
    Fit a GLM online by explicit or implicit SGD (convenience function).

    Parameters
    ----------
    y : str or array
        Response variable
        - If string: column name in data
        - If array: numeric values
    X : list of str or array
        Predictor variables
        - If list of strings: column names in data
        - If array: numeric matrix (n × p)
    data : DataFrame, optional
        Dataset containing y and X variables
    family : str
        'gaussian', 'poisson' or 'binomial'
    transfer : str, optional
        'identity', 'exp' or 'logistic' (canonical for the family if omitted)
    method : {'implicit', 'explicit'}
        Update rule
    lr : {'uni-dim', 'px-dim'}
        Learning-rate schedule
    lr_control : dict, optional
        gamma, alpha, c, scale for the uni-dim schedule
    fallback : {'explicit', None}
        Behaviour when an implicit solve fails
    xtol, maxiter, root_method
        Root-finder settings
    **kwargs
        Passed to Experiment (offset, weights, start, epsilon, n_iters,
        trace, dev, convergence)

    Returns
    -------
    SGDResult

    Examples
    --------
    >>> result = sgd(y='count', X=['dose', 'age'], data=df, family='poisson')
    >>> result.coef
    >>> result.estimates.to_frame()
    """
    check_option(lr, 'learning rate', LEARNING_RATES)

    y_is_name = isinstance(y, str)
    X_is_names = isinstance(X, str) or (isinstance(X, list) and all(isinstance(x, str) for x in X))
    if y_is_name != X_is_names:
        raise ValueError(
            "y and X must both be column names or both be arrays; "
            f"got y as {type(y).__name__} and X as {type(X).__name__}"
        )
    if y_is_name:
        if data is None:
            raise ValueError("Must provide data when y or X are column names")
        dataset = Dataset.from_frame(data, y, X)
    else:
        dataset = Dataset(X, y)

    if transfer is None:
        transfer = CANONICAL_TRANSFER.get(family, "identity")

    experiment = Experiment(family, transfer, p=dataset.size.p, **kwargs)
    if lr == "px-dim":
        experiment.init_px_dim_learning_rate()
    else:
        experiment.init_uni_dim_learning_rate(**(lr_control or {}))

    state = FitState()
    output = fit(dataset, experiment, method=method, fallback=fallback,
                 xtol=xtol, maxiter=maxiter, root_method=root_method, state=state)

    return SGDResult(
        coef=pd.Series(output.last_estimate(), index=dataset.feature_names),
        estimates=output,
        experiment=experiment,
        method=method,
        converged=state.converged,
        n_fallbacks=state.n_fallbacks,
    )


__all__ = ["fit", "sgd", "FitState", "SGDResult", "CANONICAL_TRANSFER"]
