"""
Regression solution types.

Contains the parameter payload and the fitted LinearModel, which is one of
the three FittedModel variants the prediction layer accepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from pypredfit.core.result import Result
from pypredfit.core.datasource import DataSource
from pypredfit.core.compute.linalg.solve import gram_inverse_diag

if TYPE_CHECKING:
    from pypredfit.core.formula import ModelFormula
    from pypredfit.regression.design import RegressionDesign


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for linear regression.

    This is the immutable data computed by backends.
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]          # triangular factor of X (p x p)
    rss: float
    tss: float
    rank: int
    df_residual: int


@dataclass(frozen=True)
class LinearModel:
    """
    Fitted linear model.

    Wraps the backend Result together with the design it was fit on.
    Read-only; predictions never modify it.
    """
    _result: Result[LinearParams]
    _design: 'RegressionDesign'

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def coefficient_names(self) -> tuple[str, ...]:
        return self._design.formula.column_names

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def R(self) -> NDArray[np.floating[Any]]:
        """Upper triangular factor of the design matrix."""
        return self._result.params.R

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def sigma(self) -> float:
        """Residual standard deviation sqrt(RSS / df)."""
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def vcov(self) -> NDArray[np.floating[Any]]:
        """Coefficient covariance matrix σ² (R'R)⁻¹."""
        R_inv = solve_triangular(self.R, np.eye(self.R.shape[0]), lower=False)
        return self.sigma ** 2 * (R_inv @ R_inv.T)

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """Standard errors of coefficients, sqrt(diag(σ² (R'R)⁻¹))."""
        p = len(self.coefficients)
        return self.sigma * np.sqrt(gram_inverse_diag(np.eye(p), self.R))

    @property
    def formula(self) -> 'ModelFormula':
        return self._design.formula

    @property
    def variables(self) -> tuple[str, ...]:
        """Data columns the right-hand side of the formula refers to."""
        return self._design.formula.variables

    @property
    def data(self) -> DataSource:
        """Training data captured at fit time."""
        return self._design.source

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    def predict(
        self,
        newdata: Any = None,
        se_fit: bool = False,
    ) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]] | None, int]:
        """
        Closed-form predictions of the mean response.

        The prediction x'β is a linear combination of the coefficients, so
        its standard error is σ sqrt(x'(R'R)⁻¹x) exactly.

        Args:
            newdata: Data to predict at; defaults to the training data
            se_fit: Also return standard errors

        Returns:
            (fit, se or None, residual degrees of freedom)

        Raises:
            MissingParameterError: If newdata lacks a predictor column
        """
        source = self.data if newdata is None else DataSource.build(newdata)
        X = self._design.formula.design_matrix(source)
        fit = X @ self.coefficients
        se = self.sigma * np.sqrt(gram_inverse_diag(X, self.R)) if se_fit else None
        return fit, se, self.df_residual

    def summary(self) -> str:
        """Generate R-style coefficient table."""
        lines = [
            "Linear Model",
            "=" * 60,
            f"Formula: {self.formula.formula}",
            f"Observations: {self._design.n}",
            f"Residual Std. Error: {self.sigma:.6f} on {self.df_residual} DF",
            "",
            "Coefficients:",
            "-" * 60,
            f"{'':<20} {'Estimate':>14} {'Std.Error':>12}",
            "-" * 60,
        ]
        for name, coef, se in zip(
            self.coefficient_names, self.coefficients, self.standard_errors
        ):
            lines.append(f"{name:<20} {coef:14.6f} {se:12.6f}")
        lines.append("-" * 60)
        lines.append(f"Backend: {self.backend_name}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LinearModel(formula={self.formula.formula!r}, n={self._design.n}, "
            f"p={self._design.p}, sigma={self.sigma:.4g})"
        )
