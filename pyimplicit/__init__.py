"""
PyImplicit: online GLM estimation by explicit and implicit SGD.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .sgd import sgd, fit, SGDResult
from .experiment import Experiment
from .data import DataPoint, Dataset, OnlineOutput, Size
from .validity import check_model

# Error kinds
from .exceptions import (
    ImplicitSGDError,
    UnknownFamilyError,
    UnknownTransferError,
    InvalidEtaError,
    NonFiniteVarianceError,
    NonFiniteDevianceError,
    RootFindingError,
    NoRootBracketedError,
    RootFindingDidNotConvergeError,
)

__all__ = [
    'sgd',
    'fit',
    'SGDResult',
    'Experiment',
    'DataPoint',
    'Dataset',
    'OnlineOutput',
    'Size',
    'check_model',
    'ImplicitSGDError',
    'UnknownFamilyError',
    'UnknownTransferError',
    'InvalidEtaError',
    'NonFiniteVarianceError',
    'NonFiniteDevianceError',
    'RootFindingError',
    'NoRootBracketedError',
    'RootFindingDidNotConvergeError',
]
