"""
Per-iteration validity checks on the current estimate.

Reads already-computed quantities from the Experiment; raises on the
first problem found.
"""

import numpy as np
from typing import Optional

from loguru import logger

from .data import Dataset
from .exceptions import InvalidEtaError, NonFiniteVarianceError, NonFiniteDevianceError


def _dataset_deviance(dataset: Dataset, theta: np.ndarray, experiment) -> float:
    eta = dataset.X @ theta
    if experiment.offset is not None:
        eta = eta + experiment.offset
    mu = experiment.h_transfer(eta)
    return experiment.deviance(dataset.Y, mu, experiment.weights)


def check_model(dataset: Dataset, theta: np.ndarray, t: int, experiment) -> Optional[float]:
    """
    Validate estimate θ_t against observation t and the whole dataset.

    1. η = x_t·θ + offset_t must satisfy experiment.valideta
    2. V(h(η)) must be finite
    3. with experiment.dev, the dataset deviance must be finite
    4. with experiment.trace, the deviance is logged

    Parameters
    ----------
    dataset : Dataset
    theta : ndarray, shape (p,)
    t : int
        Iteration index (1-based)
    experiment : Experiment

    Returns
    -------
    deviance : float or None
        Dataset deviance if it was computed

    Raises
    ------
    InvalidEtaError, NonFiniteVarianceError, NonFiniteDevianceError
    """
    eta = float(np.dot(dataset.data_point(t).x, theta))
    if experiment.offset is not None:
        eta += float(experiment.offset[t - 1])
    if not experiment.valideta(eta):
        raise InvalidEtaError(eta, t)

    mu_var = experiment.variance(experiment.h_transfer(eta))
    if not np.isfinite(mu_var):
        raise NonFiniteVarianceError(t, eta, theta)

    deviance = None
    if experiment.dev:
        deviance = _dataset_deviance(dataset, theta, experiment)
        if not np.isfinite(deviance):
            raise NonFiniteDevianceError(t, deviance)

    if experiment.trace:
        if deviance is None:
            deviance = _dataset_deviance(dataset, theta, experiment)
        logger.info("Deviance = {}, Iterations - {}", deviance, t)

    return deviance


__all__ = ["check_model"]
