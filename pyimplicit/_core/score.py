"""
Score (gradient) contribution of a single observation.
"""

import numpy as np

from .transfers import Transfer


def score_function(theta: np.ndarray, data_point, offset: float, transfer: Transfer) -> np.ndarray:
    """
    Gradient contribution (y - h(x·θ + offset)) · x.

    Parameters
    ----------
    theta : ndarray, shape (p,)
        Current coefficients
    data_point : DataPoint
        Observation with features x (p,) and response y
    offset : float
        Offset added to the linear predictor
    transfer : Transfer
        Bound transfer function h

    Returns
    -------
    score : ndarray, shape (p,)
    """
    x = data_point.x
    eta = float(np.dot(x, theta)) + offset
    return (data_point.y - transfer.transfer(eta)) * x
