"""
Fitting entry point for linear models.

This module provides the lm() function (public API) and backend selection.
"""

import logging
from typing import Any, Literal

from pypredfit.regression.design import RegressionDesign
from pypredfit.regression.solution import LinearModel
from pypredfit.regression.backends.cpu import CPUQRBackend

logger = logging.getLogger(__name__)

BackendChoice = Literal['auto', 'cpu', 'cpu_qr']


def lm(
    formula: str,
    data: Any,
    *,
    backend: BackendChoice = 'auto',
) -> LinearModel:
    """
    Fit a linear model by ordinary least squares.

    Solves min_β ||y - Xβ||² where y and X come from evaluating the formula
    on the data. The training data is stored on the returned model so that
    predictions default to it.

    Args:
        formula: Two-sided patsy formula, e.g. "y ~ x + I(x**2)"
        data: DataFrame, mapping of columns, file path or DataSource
        backend: Computational backend ('auto', 'cpu' or 'cpu_qr')

    Returns:
        LinearModel

    Raises:
        ValidationError: If the formula or data are invalid
        SingularMatrixError: If the design matrix is rank-deficient

    Example:
        >>> from pypredfit.regression import lm
        >>> model = lm("y ~ x", {'x': [1, 2, 3, 4, 5], 'y': [2.1, 3.9, 6.2, 7.8, 10.1]})
        >>> model.coefficients
    """
    design = RegressionDesign.build(formula, data)
    backend_impl = _get_backend(backend)

    logger.debug(
        "lm: %s on n=%d, p=%d with backend %s",
        formula, design.n, design.p, backend_impl.name,
    )
    result = backend_impl.solve(design)

    return LinearModel(_result=result, _design=design)


def _get_backend(choice: BackendChoice) -> CPUQRBackend:
    """
    Select and instantiate the appropriate backend.

    Raises:
        ValueError: If unknown backend specified
    """
    if choice in ('auto', 'cpu', 'cpu_qr'):
        return CPUQRBackend()
    raise ValueError(f"Unknown backend: {choice!r}")
