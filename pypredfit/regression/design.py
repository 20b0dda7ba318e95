"""
Regression Design.

Design evaluates a model formula on a DataSource and holds the resulting
X (design matrix) and y (response) together with the bound formula and
the training data. It knows it's building a regression; DataSource doesn't.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pypredfit.core.datasource import DataSource
from pypredfit.core.formula import ModelFormula
from pypredfit.core.validation import (
    check_finite, check_2d, check_1d, check_consistent_length, check_min_samples,
)


@dataclass(frozen=True)
class RegressionDesign:
    """
    Regression design matrix specification.

    Immutable after construction. The training data is captured here once,
    so later predictions without newdata never need to look it up again.

    Construction:
        RegressionDesign.build("y ~ x", df)
        RegressionDesign.build("y ~ x + I(x**2)", {'x': x, 'y': y})
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _formula: ModelFormula
    _source: DataSource

    @classmethod
    def build(cls, formula: str, data: Any) -> RegressionDesign:
        """
        Build a design from a formula and training data.

        Args:
            formula: Two-sided patsy formula
            data: DataFrame, mapping of columns, file path or DataSource

        Returns:
            Validated RegressionDesign

        Raises:
            ValidationError: If the formula cannot be evaluated, values are
                non-finite, or there are not more observations than columns
        """
        source = DataSource.build(data)
        bound, y, X = ModelFormula.build(formula, source)

        check_2d(X, 'X')
        check_1d(y, 'y')
        check_finite(X, 'X')
        check_finite(y, 'y')
        check_consistent_length(X, y, names=('X', 'y'))

        n, p = X.shape
        # One residual degree of freedom at least, so sigma is defined
        check_min_samples(X, p + 1, 'X')

        return cls(_X=X, _y=y, _n=n, _p=p, _formula=bound, _source=source)

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p)."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of design columns."""
        return self._p

    @property
    def formula(self) -> ModelFormula:
        """Formula bound to the training data."""
        return self._formula

    @property
    def source(self) -> DataSource:
        """Training data."""
        return self._source
