"""
Linear models.

Public API:
    lm(formula, data, ...) -> LinearModel

The lm() function is the only entry point. It handles:
    - Formula evaluation
    - Design construction
    - Backend selection
    - Result wrapping

Example:
    >>> from pypredfit.regression import lm
    >>> model = lm("y ~ x", df)
    >>> print(model.summary())
"""

from pypredfit.regression.design import RegressionDesign
from pypredfit.regression.solution import LinearModel, LinearParams
from pypredfit.regression.solvers import lm

__all__ = [
    "lm",
    "RegressionDesign",
    "LinearModel",
    "LinearParams",
]
