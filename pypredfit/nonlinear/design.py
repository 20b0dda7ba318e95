"""
Design validation for nonlinear least-squares models.

NonlinearDesign pulls the predictor matrix and the response out of a
DataSource in the order the ModelFunction declares them, and keeps the
DataSource as the model's training data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import MissingParameterError
from pypredfit.core.validation import (
    check_array, check_finite, check_1d, check_min_samples,
)
from pypredfit.nonlinear._common import ModelFunction


@dataclass(frozen=True)
class NonlinearDesign:
    """Validated design for a nonlinear model.

    Attributes:
        X: Predictor matrix (n, m), columns in model_fn.variables order.
        y: Response vector (n,).
        model_fn: The mean function.
        response: Name of the response column.
        source: Training data.
        n: Number of observations.
        p: Number of coefficients.
    """
    X: NDArray
    y: NDArray
    model_fn: ModelFunction
    response: str
    source: DataSource
    n: int
    p: int

    @staticmethod
    def build(model_fn: ModelFunction, data: Any, response: str) -> 'NonlinearDesign':
        """Validate inputs and create a NonlinearDesign.

        Raises:
            MissingParameterError: If a predictor or the response is absent.
            ValidationError: On non-numeric or non-finite values, or when
                there are not more observations than coefficients.
        """
        source = DataSource.build(data)

        for name in (*model_fn.variables, response):
            if name not in source:
                raise MissingParameterError(
                    f"data: missing column '{name}'. Available: {list(source.columns)}",
                    parameter=name,
                )

        X = check_array(source.matrix(model_fn.variables), 'X')
        y = check_array(source[response], response)
        check_1d(y, response)
        check_finite(X, 'X')
        check_finite(y, response)

        p = len(model_fn.parameters)
        check_min_samples(X, p + 1, 'X')

        return NonlinearDesign(
            X=X,
            y=y,
            model_fn=model_fn,
            response=response,
            source=source,
            n=X.shape[0],
            p=p,
        )
