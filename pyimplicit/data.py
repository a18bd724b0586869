"""
Data containers for online fitting.

DataPoint and Dataset hold observations; OnlineOutput collects one
coefficient column per processed observation.
"""

import numpy as np
import pandas as pd
from typing import Optional, Union, List
from dataclasses import dataclass, field

from ._utils import check_array, check_vector


@dataclass(frozen=True)
class Size:
    """Dataset shape."""
    nsamples: int
    p: int


@dataclass(frozen=True, eq=False)
class DataPoint:
    """A single observation: features x (p,) and response y.

    Compared and hashed by identity, since x is an array.
    """
    x: np.ndarray
    y: float

    def __post_init__(self):
        x = np.array(self.x, dtype=np.float64).ravel()
        x.flags.writeable = False
        object.__setattr__(self, 'x', x)
        object.__setattr__(self, 'y', float(self.y))


class Dataset:
    """
    Design matrix X (n × p) and response Y (n,).

    Rows are read one at a time as DataPoint by the fitting loop.
    """

    def __init__(self, X: np.ndarray, Y: np.ndarray,
                 feature_names: Optional[List[str]] = None):
        self.X = check_array(X, name='X')
        self.Y = check_vector(Y, name='Y', length=self.X.shape[0])
        if feature_names is None:
            feature_names = [f'x{i}' for i in range(self.X.shape[1])]
        elif len(feature_names) != self.X.shape[1]:
            raise ValueError(
                f"Got {len(feature_names)} feature names for {self.X.shape[1]} columns"
            )
        self.feature_names = list(feature_names)

    @classmethod
    def from_frame(
        cls,
        data: pd.DataFrame,
        y: str,
        X: Union[str, List[str]],
    ) -> "Dataset":
        """
        Build a Dataset from DataFrame columns.

        Parameters
        ----------
        data : DataFrame
            Source data
        y : str
            Response column
        X : str or list of str
            Feature columns
        """
        if isinstance(X, str):
            X = [X]
        return cls(data[X].values, data[y].values, feature_names=list(X))

    @property
    def size(self) -> Size:
        return Size(nsamples=self.X.shape[0], p=self.X.shape[1])

    def covariance(self) -> np.ndarray:
        """Covariance matrix of the feature columns (p × p)."""
        return np.atleast_2d(np.cov(self.X, rowvar=False))

    def data_point(self, t: int) -> DataPoint:
        """Observation for iteration t (1-based)."""
        if not 1 <= t <= len(self):
            raise IndexError(f"Iteration {t} out of range 1..{len(self)}")
        return self[t - 1]

    def __getitem__(self, i: int) -> DataPoint:
        return DataPoint(self.X[i], self.Y[i])

    def __len__(self) -> int:
        return self.X.shape[0]

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __str__(self):
        return (f"  Dataset:\n"
                f"    X has {self.X.shape[1]} features\n"
                f"    Total of {self.X.shape[0]} data points")

    def __repr__(self):
        return f"Dataset(n={self.X.shape[0]}, p={self.X.shape[1]})"


@dataclass
class OnlineOutput:
    """
    Sequence of coefficient estimates, one column per processed observation.

    Columns are appended by the fitting loop and never removed.
    """
    initial: np.ndarray
    capacity: int = 0
    names: Optional[List[str]] = None
    _buffer: np.ndarray = field(init=False, repr=False)
    _n: int = field(init=False, default=0, repr=False)

    def __post_init__(self):
        self.initial = check_vector(self.initial, name='initial')
        self._buffer = np.empty((self.p, max(self.capacity, 1)), dtype=np.float64)

    @classmethod
    def for_dataset(cls, dataset: Dataset, initial: np.ndarray) -> "OnlineOutput":
        """Output sized to hold one column per observation of `dataset`."""
        return cls(initial, capacity=len(dataset), names=dataset.feature_names)

    @property
    def p(self) -> int:
        return self.initial.shape[0]

    @property
    def n_processed(self) -> int:
        return self._n

    @property
    def estimates(self) -> np.ndarray:
        """p × k matrix of estimates (read-only view)."""
        view = self._buffer[:, :self._n]
        view.flags.writeable = False
        return view

    def append(self, theta: np.ndarray) -> None:
        theta = check_vector(theta, name='theta', length=self.p)
        if self._n == self._buffer.shape[1]:
            grown = np.empty((self.p, 2 * self._buffer.shape[1]), dtype=np.float64)
            grown[:, :self._n] = self._buffer[:, :self._n]
            self._buffer = grown
        self._buffer[:, self._n] = theta
        self._n += 1

    def last_estimate(self) -> np.ndarray:
        """Most recent estimate, or the initial vector if none yet."""
        if self._n == 0:
            return self.initial.copy()
        return self._buffer[:, self._n - 1].copy()

    def to_frame(self) -> pd.DataFrame:
        """Estimates as a DataFrame: one row per coefficient, one column per iteration."""
        index = self.names if self.names is not None else [f'x{i}' for i in range(self.p)]
        return pd.DataFrame(
            self._buffer[:, :self._n].copy(),
            index=index,
            columns=pd.RangeIndex(1, self._n + 1, name='iteration'),
        )

    def __len__(self) -> int:
        return self._n


__all__ = ["Size", "DataPoint", "Dataset", "OnlineOutput"]
