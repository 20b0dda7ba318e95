"""
Core infrastructure for pypredfit.

This module provides shared abstractions, utilities, and numeric
infrastructure used by the fitters (regression, nonlinear, mixed) and by
the prediction layer.

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    datasource: Column container used for training data and newdata
    compute: Timing, tolerances, linear algebra primitives
"""

from pypredfit.core.protocols import Backend
from pypredfit.core.result import Result
from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import (
    PyPredFitError,
    ValidationError,
    DimensionError,
    MissingParameterError,
    UnsupportedModelError,
    NumericalError,
    SingularMatrixError,
    NotPositiveDefiniteError,
    ConvergenceError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Data
    "DataSource",
    # Exceptions
    "PyPredFitError",
    "ValidationError",
    "DimensionError",
    "MissingParameterError",
    "UnsupportedModelError",
    "NumericalError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
    "ConvergenceError",
]
