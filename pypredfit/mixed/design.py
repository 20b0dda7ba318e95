"""
Design validation for mixed models.

MixedDesign evaluates the fixed-effects formula on the training data and
encodes the grouping factor of the random intercept.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import MissingParameterError, ValidationError
from pypredfit.core.formula import ModelFormula
from pypredfit.core.validation import check_finite, check_min_samples


@dataclass(frozen=True)
class MixedDesign:
    """Validated design for a random-intercept mixed model.

    Attributes:
        y: Response vector (n,).
        X: Fixed effects design matrix (n, p).
        codes: Integer group index per observation (n,).
        levels: Group labels, indexed by codes.
        group: Name of the grouping column.
        formula: Fixed-effects formula bound to the training data.
        source: Training data.
        n: Number of observations.
        p: Number of fixed effect columns.
    """
    y: NDArray
    X: NDArray
    codes: NDArray
    levels: NDArray
    group: str
    formula: ModelFormula
    source: DataSource
    n: int
    p: int

    @staticmethod
    def build(formula: str, data: Any, group: str) -> 'MixedDesign':
        """Validate inputs and create a MixedDesign.

        Raises:
            MissingParameterError: If the grouping column is absent.
            ValidationError: On invalid formula, non-finite values, or
                fewer than 2 groups.
        """
        source = DataSource.build(data)
        if group not in source:
            raise MissingParameterError(
                f"group: column '{group}' not found. Available: {list(source.columns)}",
                parameter=group,
            )

        bound, y, X = ModelFormula.build(formula, source)
        check_finite(X, 'X')
        check_finite(y, 'y')

        n, p = X.shape
        if n < 3:
            raise ValidationError(f"Need at least 3 observations, got {n}")
        check_min_samples(X, p + 1, 'X')

        levels, codes = np.unique(source[group], return_inverse=True)
        if len(levels) < 2:
            raise ValidationError(
                f"Group '{group}' has only {len(levels)} level(s), need at least 2"
            )

        return MixedDesign(
            y=y,
            X=X,
            codes=codes.reshape(-1),
            levels=levels,
            group=group,
            formula=bound,
            source=source,
            n=n,
            p=p,
        )
