"""
Utility functions.
"""

import numpy as np


def check_array(X, name='X', dtype=np.float64):
    """Validate array input."""
    X = np.asarray(X, dtype=dtype)
    if X.ndim != 2:
        raise ValueError(f"{name} must be 2-dimensional")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or Inf")
    return X


def check_vector(y, name='y', dtype=np.float64, length=None):
    """Validate vector input, optionally against an expected length."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim == 2 and 1 in y.shape:
        # Accept (n, 1) and (1, n) columns/rows
        y = y.ravel()
    if y.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional")
    if not np.all(np.isfinite(y)):
        raise ValueError(f"{name} contains NaN or Inf")
    if length is not None and len(y) != length:
        raise ValueError(f"{name} has length {len(y)}, expected {length}")
    return y


def check_option(value, name, valid):
    """Validate a string option against its allowed values."""
    if value not in valid:
        raise ValueError(
            f"Unknown {name}: '{value}'\n"
            f"Valid options: {', '.join(repr(v) for v in valid)}"
        )
    return value
