"""
Solver modules
"""

from .epnp_solver import EPnPSolver, PnPResult
from .exceptions import (
    PnPError,
    InsufficientCorrespondencesError,
    SingularBasisError,
    NumericallySingularSystemError,
    DegenerateHypothesisError,
    AllHypothesesFailedError,
)

__all__ = [
    'EPnPSolver',
    'PnPResult',
    'PnPError',
    'InsufficientCorrespondencesError',
    'SingularBasisError',
    'NumericallySingularSystemError',
    'DegenerateHypothesisError',
    'AllHypothesesFailedError',
]
