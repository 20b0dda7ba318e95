"""
Fitted nonlinear least-squares model.

NonlinearModel wraps Result[NonlinearParams] and exposes what the
prediction layer consumes: the mean function, the coefficients, the
triangular factor R of the gradient at convergence, the residual standard
deviation and degrees of freedom, and the algorithm tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray, ArrayLike
from scipy.linalg import solve_triangular

from pypredfit.core.result import Result
from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import MissingParameterError, ValidationError
from pypredfit.core.validation import check_array, check_choice, check_finite, check_square
from pypredfit.core.compute.linalg.solve import gram_inverse_diag
from pypredfit.nonlinear._common import ModelFunction, NonlinearParams, ALGORITHMS
from pypredfit.nonlinear.design import NonlinearDesign


@dataclass(frozen=True)
class NonlinearModel:
    """Fitted nonlinear regression model.

    Construct with nls(), or with from_estimates() for a model fit elsewhere.
    """
    _result: Result[NonlinearParams]
    _design: NonlinearDesign

    @classmethod
    def from_estimates(
        cls,
        model_fn: ModelFunction,
        data: Any,
        response: str,
        *,
        coefficients: ArrayLike,
        R: ArrayLike,
        sigma: float | None = None,
        df_residual: int | None = None,
        algorithm: str = 'default',
    ) -> 'NonlinearModel':
        """Wrap estimates produced by an external fitting routine.

        Args:
            model_fn: Mean function the estimates belong to.
            data: Training data.
            response: Response column name.
            coefficients: Estimated coefficients, in model_fn.parameters order.
            R: Upper triangular factor of the gradient at the estimates.
            sigma: Residual standard deviation; computed from the residuals
                when omitted.
            df_residual: Residual degrees of freedom; n - p when omitted.
            algorithm: Algorithm the external fit used ('default', 'port'
                or 'plinear').

        Raises:
            ValidationError: If R is not p x p upper triangular.
        """
        algorithm = check_choice(algorithm, ALGORITHMS, 'algorithm')
        design = NonlinearDesign.build(model_fn, data, response)

        theta = check_array(coefficients, 'coefficients').reshape(-1)
        if theta.shape[0] != design.p:
            raise ValidationError(
                f"coefficients: expected {design.p} values for "
                f"{model_fn.parameters}, got {theta.shape[0]}"
            )
        R_arr = check_array(R, 'R')
        check_square(R_arr, design.p, 'R')
        if np.any(np.tril(R_arr, -1) != 0):
            raise ValidationError(
                "R: must be upper triangular (the factor of the gradient at "
                "convergence); got non-zero entries below the diagonal"
            )

        fitted = model_fn.evaluate(theta, design.X)
        residuals = design.y - fitted
        rss = float(residuals @ residuals)
        df = design.n - design.p if df_residual is None else int(df_residual)
        if df < 1:
            raise ValidationError(f"df_residual: must be positive, got {df}")
        sd = float(np.sqrt(rss / df)) if sigma is None else float(sigma)

        params = NonlinearParams(
            coefficients=theta,
            fitted_values=fitted,
            residuals=residuals,
            R=np.asarray(R_arr, dtype=np.float64),
            rss=rss,
            sigma=sd,
            df_residual=df,
            algorithm=algorithm,
            converged=True,
            iterations=0,
        )
        result = Result(
            params=params,
            info={'method': 'external', 'algorithm': algorithm},
            timing=None,
            backend_name='external',
        )
        return cls(_result=result, _design=design)

    @property
    def params(self) -> NonlinearParams:
        return self._result.params

    @property
    def coefficients(self) -> NDArray:
        return self.params.coefficients

    @property
    def coefficient_names(self) -> tuple[str, ...]:
        return self._design.model_fn.parameters

    @property
    def coef(self) -> dict[str, float]:
        """Coefficients as name -> value dict."""
        return dict(zip(self.coefficient_names, self.coefficients.tolist()))

    @property
    def fitted_values(self) -> NDArray:
        return self.params.fitted_values

    @property
    def residuals(self) -> NDArray:
        return self.params.residuals

    @property
    def R(self) -> NDArray:
        """Upper triangular factor of the gradient at the estimates."""
        return self.params.R

    @property
    def sigma(self) -> float:
        return self.params.sigma

    @property
    def df_residual(self) -> int:
        return self.params.df_residual

    @property
    def algorithm(self) -> str:
        return self.params.algorithm

    @property
    def converged(self) -> bool:
        return self.params.converged

    @property
    def formula(self) -> ModelFunction:
        return self._design.model_fn

    @property
    def variables(self) -> tuple[str, ...]:
        return self._design.model_fn.variables

    @property
    def response(self) -> str:
        return self._design.response

    @property
    def data(self) -> DataSource:
        """Training data captured at fit time."""
        return self._design.source

    @property
    def vcov(self) -> NDArray:
        """Approximate coefficient covariance σ² (R'R)⁻¹."""
        R_inv = solve_triangular(self.R, np.eye(self.R.shape[0]), lower=False)
        return self.sigma ** 2 * (R_inv @ R_inv.T)

    @property
    def standard_errors(self) -> NDArray:
        p = len(self.coefficients)
        return self.sigma * np.sqrt(gram_inverse_diag(np.eye(p), self.R))

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    # --- Prediction capabilities ---

    def predictor_matrix(self, newdata: Any = None) -> NDArray:
        """Predictor columns of newdata (default: training data) in model order.

        Raises:
            MissingParameterError: If newdata lacks a predictor column.
        """
        source = self.data if newdata is None else DataSource.build(newdata)
        shared = [name for name in self.variables if name in source]
        if len(shared) != len(self.variables):
            missing = [name for name in self.variables if name not in source]
            raise MissingParameterError(
                f"newdata: missing predictor column(s) {missing} required by "
                f"{self.formula!r}. Available: {list(source.columns)}",
                parameter=missing[0],
            )
        X = source.matrix(shared)
        check_finite(X, 'newdata')
        return X

    def predict(self, newdata: Any = None) -> NDArray:
        """Mean response at newdata (default: training data)."""
        X = self.predictor_matrix(newdata)
        return self.formula.evaluate(self.coefficients, X)

    def gradient(self, newdata: Any = None) -> NDArray | None:
        """Analytic gradient at newdata, or None if the model supplies none."""
        X = self.predictor_matrix(newdata)
        return self.formula.analytic_gradient(self.coefficients, X)

    # --- Summary ---

    def summary(self) -> str:
        """R-style summary of parameter estimates."""
        lines = [
            "Nonlinear regression model",
            "=" * 60,
            f"  model: {self.response} ~ {self.formula!r}",
            f"  algorithm: {self.algorithm}",
            "",
            f"{'':<12} {'Estimate':>14} {'Std. Error':>12}",
        ]
        for name, est, se in zip(
            self.coefficient_names, self.coefficients, self.standard_errors
        ):
            lines.append(f"{name:<12} {est:14.6f} {se:12.6f}")
        lines.append("")
        lines.append(
            f"Residual standard error: {self.sigma:.6g} on {self.df_residual} "
            f"degrees of freedom"
        )
        if self.params.iterations:
            lines.append(f"Number of iterations to convergence: {self.params.iterations}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"NonlinearModel({self.formula!r}, algorithm={self.algorithm!r}, "
            f"n={self._design.n}, sigma={self.sigma:.4g})"
        )
