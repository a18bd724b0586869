"""
Learning-rate schedules.

Each schedule returns a p×p matrix used to precondition the raw
gradient step. The px-dim schedule is stateful: one instance belongs
to one fitting run and must be reset with reinit() before reuse.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, Optional


ScoreFunc = Callable[[np.ndarray, object, float], np.ndarray]


class LearningRate(ABC):
    """Base class for learning-rate schedules."""

    @property
    @abstractmethod
    def lr_type(self) -> str:
        """Human-readable label used by diagnostics."""
        pass

    @abstractmethod
    def learning_rate(
        self,
        theta_old: np.ndarray,
        data_point,
        offset: float,
        t: int,
        p: int,
        score_func: Optional[ScoreFunc] = None,
    ) -> np.ndarray:
        """
        Learning-rate matrix for iteration t.

        Parameters
        ----------
        theta_old : ndarray, shape (p,)
            Coefficients before the update
        data_point : DataPoint
            Current observation
        offset : float
            Offset for this observation
        t : int
            Iteration index (1-based)
        p : int
            Number of coefficients
        score_func : callable, optional
            score_func(theta, data_point, offset) -> (p,) gradient.
            Passed per call so schedules never reference the Experiment.

        Returns
        -------
        ndarray, shape (p, p)
        """
        pass

    def reinit(self, p: int) -> None:
        """Reset per-run state. Stateless schedules have nothing to reset."""
        pass


class UniDimLearningRate(LearningRate):
    """
    Scalar learning rate scale·γ·(1 + α·γ·t)^(-c), expanded to rate·I.

    One-dimensional rate suggested in Xu (2011) for averaged SGD.
    """

    def __init__(self, gamma: float = 1.0, alpha: float = 1.0, c: float = 1.0,
                 scale: float = 1.0):
        self.gamma = gamma
        self.alpha = alpha
        self.c = c
        self.scale = scale

    @property
    def lr_type(self) -> str:
        return "Uni-dimension learning rate"

    def rate(self, t: int) -> float:
        """Scalar rate at iteration t."""
        return self.scale * self.gamma * (1.0 + self.alpha * self.gamma * t) ** (-self.c)

    def learning_rate(self, theta_old, data_point, offset, t, p, score_func=None):
        return np.eye(p) * self.rate(t)

    def __repr__(self):
        return (f"UniDimLearningRate(gamma={self.gamma}, alpha={self.alpha}, "
                f"c={self.c}, scale={self.scale})")


class PxDimLearningRate(LearningRate):
    """
    Per-coordinate adaptive rate (AdaGrad-style diagonal).

    Accumulates Idiag += diag(s·sᵀ) for the score s at every call and
    returns the elementwise inverse of the diagonal. Entries whose
    magnitude is at or below THRESHOLD are returned as accumulated,
    not inverted.
    """

    THRESHOLD = 1e-8

    def __init__(self, p: int):
        self.Idiag = None
        self.reinit(p)

    @property
    def lr_type(self) -> str:
        return "Px-dimension learning rate"

    @property
    def p(self) -> int:
        return self.Idiag.shape[0]

    def reinit(self, p: int) -> None:
        if p < 1:
            raise ValueError(f"p must be positive, got {p}")
        self.Idiag = np.zeros((p, p), dtype=np.float64)

    def learning_rate(self, theta_old, data_point, offset, t, p, score_func=None):
        if score_func is None:
            raise ValueError("PxDimLearningRate requires a score function")
        if p != self.p:
            raise ValueError(
                f"Learning-rate state has dimension {self.p}, got p={p}; "
                f"call reinit({p}) first"
            )

        Gi = np.asarray(score_func(theta_old, data_point, offset), dtype=np.float64)
        self.Idiag[np.diag_indices(p)] += Gi * Gi

        Idiag_inv = self.Idiag.copy()
        d = np.diag(Idiag_inv)
        invert = np.abs(d) > self.THRESHOLD
        Idiag_inv[np.diag_indices(p)] = np.where(invert, 1.0 / np.where(invert, d, 1.0), d)
        return Idiag_inv

    def __repr__(self):
        return f"PxDimLearningRate(p={self.p})"


__all__ = ["LearningRate", "UniDimLearningRate", "PxDimLearningRate"]
