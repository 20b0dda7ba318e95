"""
Model formulas for linear and mixed models.

A ModelFormula is a Wilkinson-style formula string ("y ~ x + I(x**2)")
parsed and evaluated by patsy. It is frozen against the training data at
fit time: the resulting patsy DesignInfo remembers factor levels and
stateful transforms, so a design matrix built later from newdata has
exactly the training columns.

The formula also knows which data columns its right-hand side refers to.
That set is what newdata has to provide.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
import patsy

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import ValidationError, MissingParameterError
from pypredfit.core.validation import check_finite

# Namespace formulas are evaluated in, on top of patsy's own builtins (I, C, ...)
_FORMULA_NAMESPACE = {'np': np, 'numpy': np}


@dataclass(frozen=True)
class ModelFormula:
    """
    A formula bound to the training data it was first evaluated on.

    Attributes:
        formula: The full formula string
        response: Name of the response expression (left-hand side)
        rhs: The right-hand side expression
        variables: Training-data columns referenced by the right-hand side
        design_info: patsy DesignInfo of the right-hand side design matrix
    """
    formula: str
    response: str
    rhs: str
    variables: tuple[str, ...]
    design_info: Any

    @classmethod
    def build(
        cls, formula: str, data: DataSource
    ) -> tuple[ModelFormula, NDArray[np.floating[Any]], NDArray[np.floating[Any]]]:
        """
        Parse a formula and evaluate it on training data.

        Args:
            formula: Two-sided formula, e.g. "y ~ x + I(x**2)"
            data: Training data

        Returns:
            (bound formula, response vector y (n,), design matrix X (n x p))

        Raises:
            ValidationError: If the formula is one-sided or patsy cannot
                evaluate it on the data
            MissingParameterError: If a referenced column is absent
        """
        if not isinstance(formula, str) or '~' not in formula:
            raise ValidationError(
                f"formula: expected a two-sided formula 'response ~ terms', got {formula!r}"
            )
        lhs, rhs = (part.strip() for part in formula.split('~', 1))
        if not lhs or not rhs:
            raise ValidationError(f"formula: empty side in {formula!r}")

        variables = _referenced_columns(rhs, data.columns)
        response_vars = _referenced_columns(lhs, data.columns)
        if not response_vars:
            raise MissingParameterError(
                f"formula: response '{lhs}' refers to no column of the data. "
                f"Available: {list(data.columns)}",
                parameter=lhs,
            )

        try:
            y, X = patsy.dmatrices(
                formula,
                data.as_dict(),
                eval_env=patsy.EvalEnvironment([_FORMULA_NAMESPACE]),
                NA_action='raise',
                return_type='matrix',
            )
        except patsy.PatsyError as e:
            raise ValidationError(f"formula: cannot evaluate {formula!r}: {e}") from e

        y_arr = np.asarray(y, dtype=np.float64)
        if y_arr.shape[1] != 1:
            raise ValidationError(
                f"formula: response must be a single column, got {y_arr.shape[1]}"
            )

        bound = cls(
            formula=formula,
            response=lhs,
            rhs=rhs,
            variables=variables,
            design_info=X.design_info,
        )
        return bound, y_arr[:, 0], np.asarray(X, dtype=np.float64)

    @property
    def column_names(self) -> tuple[str, ...]:
        """Names of the design-matrix columns (coefficient names)."""
        return tuple(self.design_info.column_names)

    def check_columns(self, data: DataSource) -> None:
        """
        Verify data provides every column the right-hand side refers to.

        Raises:
            MissingParameterError: Naming the first absent column
        """
        for name in self.variables:
            if name not in data:
                raise MissingParameterError(
                    f"newdata: missing predictor column '{name}' required by "
                    f"'{self.rhs}'. Available: {list(data.columns)}",
                    parameter=name,
                )

    def design_matrix(self, data: DataSource) -> NDArray[np.floating[Any]]:
        """
        Build the right-hand-side design matrix for (new) data.

        Raises:
            MissingParameterError: If a referenced column is absent
            ValidationError: If patsy rejects the data (e.g. unseen factor level)
        """
        self.check_columns(data)
        try:
            (X,) = patsy.build_design_matrices(
                [self.design_info], data.as_dict(), NA_action='raise'
            )
        except patsy.PatsyError as e:
            raise ValidationError(
                f"newdata: cannot build design matrix for '{self.rhs}': {e}"
            ) from e
        X = np.asarray(X, dtype=np.float64)
        check_finite(X, 'newdata')
        return X


def _referenced_columns(expression: str, columns: tuple[str, ...]) -> tuple[str, ...]:
    """Data columns named anywhere in a patsy expression, in column order."""
    try:
        desc = patsy.ModelDesc.from_formula(expression)
    except patsy.PatsyError as e:
        raise ValidationError(f"formula: cannot parse {expression!r}: {e}") from e

    names: set[str] = set()
    for term in desc.lhs_termlist + desc.rhs_termlist:
        for factor in term.factors:
            code = getattr(factor, 'code', None)
            if code is None:
                continue
            tree = ast.parse(code, mode='eval')
            names.update(node.id for node in ast.walk(tree) if isinstance(node, ast.Name))

    return tuple(c for c in columns if c in names)
