"""
Core algorithms: transfers, families, learning rates, implicit solver.
"""

from .transfers import Transfer, Identity, Exponential, Logistic, get_transfer
from .families import Family, Gaussian, Poisson, Binomial, get_family
from .learning_rates import LearningRate, UniDimLearningRate, PxDimLearningRate
from .score import score_function
from .implicit import solve_implicit, halley_bracketed

__all__ = [
    "Transfer",
    "Identity",
    "Exponential",
    "Logistic",
    "get_transfer",
    "Family",
    "Gaussian",
    "Poisson",
    "Binomial",
    "get_family",
    "LearningRate",
    "UniDimLearningRate",
    "PxDimLearningRate",
    "score_function",
    "solve_implicit",
    "halley_bracketed",
]
