"""
Fitted linear mixed-effects model.

MixedEffectsModel wraps Result[MixedParams] and exposes what population
level prediction needs: the fixed-effects formula (to rebuild a design
matrix from newdata), the fixed-effects estimates and their covariance
matrix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray, ArrayLike

from pypredfit.core.result import Result
from pypredfit.core.datasource import DataSource
from pypredfit.core.formula import ModelFormula
from pypredfit.core.exceptions import ValidationError
from pypredfit.core.validation import check_array, check_finite, check_square
from pypredfit.mixed._common import MixedParams


@dataclass(frozen=True)
class MixedEffectsModel:
    """Fitted linear mixed-effects model.

    Construct with lme(), or with from_estimates() for a model fit elsewhere.
    """
    _result: Result[MixedParams]
    _formula: ModelFormula
    _source: DataSource
    _group: str | None = None

    @classmethod
    def from_estimates(
        cls,
        formula: str,
        data: Any,
        *,
        coefficients: ArrayLike,
        vcov: ArrayLike,
        sigma: float,
        sigma_group: float = 0.0,
        group: str | None = None,
        reml: bool = True,
    ) -> 'MixedEffectsModel':
        """Wrap fixed-effects estimates produced by an external fitting routine.

        Args:
            formula: Fixed-effects formula, e.g. "y ~ x".
            data: Training data.
            coefficients: Fixed-effects estimates, in design-column order.
            vcov: Covariance matrix of the fixed-effects estimates.
            sigma: Residual standard deviation.
            sigma_group: Random-effect standard deviation.
            group: Name of the grouping column, informational.
            reml: Whether the external fit used REML.
        """
        source = DataSource.build(data)
        bound, y, X = ModelFormula.build(formula, source)
        p = X.shape[1]

        beta = check_array(coefficients, 'coefficients').reshape(-1)
        if beta.shape[0] != p:
            raise ValidationError(
                f"coefficients: expected {p} values for {bound.column_names}, "
                f"got {beta.shape[0]}"
            )
        V = check_array(vcov, 'vcov')
        check_square(V, p, 'vcov')
        check_finite(V, 'vcov')
        if not np.allclose(V, V.T):
            raise ValidationError("vcov: must be symmetric")

        fitted = X @ beta
        params = MixedParams(
            coefficients=beta,
            coefficient_names=bound.column_names,
            vcov=V,
            sigma=float(sigma),
            sigma_group=float(sigma_group),
            theta=float(sigma_group) / float(sigma) if sigma > 0 else 0.0,
            log_likelihood=float('nan'),
            reml=reml,
            n_obs=X.shape[0],
            n_groups=len(np.unique(source[group])) if group is not None else 0,
            fitted_values=fitted,
            residuals=y - fitted,
            converged=True,
            n_iter=0,
        )
        result = Result(
            params=params,
            info={'method': 'external'},
            timing=None,
            backend_name='external',
        )
        return cls(_result=result, _formula=bound, _source=source, _group=group)

    @property
    def params(self) -> MixedParams:
        return self._result.params

    # --- Fixed effects ---

    @property
    def coefficients(self) -> NDArray:
        """Fixed effect estimates β̂."""
        return self.params.coefficients

    @property
    def coefficient_names(self) -> tuple[str, ...]:
        return self.params.coefficient_names

    @property
    def fixef(self) -> dict[str, float]:
        """Fixed effects as name → value dict."""
        return dict(zip(self.params.coefficient_names, self.params.coefficients.tolist()))

    @property
    def vcov(self) -> NDArray:
        """Covariance matrix of the fixed-effects estimates."""
        return self.params.vcov

    def fixed_effects_vcov(self) -> NDArray:
        return self.params.vcov

    @property
    def se(self) -> NDArray:
        """Standard errors of fixed effects."""
        return np.sqrt(np.diag(self.params.vcov))

    # --- Variance components ---

    @property
    def sigma(self) -> float:
        return self.params.sigma

    @property
    def sigma_group(self) -> float:
        return self.params.sigma_group

    @property
    def icc(self) -> float:
        """Intraclass correlation σ_b² / (σ_b² + σ²)."""
        vb = self.params.sigma_group ** 2
        total = vb + self.params.sigma ** 2
        return vb / total if total > 0 else 0.0

    # --- Data and formula ---

    @property
    def formula(self) -> ModelFormula:
        return self._formula

    @property
    def variables(self) -> tuple[str, ...]:
        return self._formula.variables

    @property
    def group(self) -> str | None:
        return self._group

    @property
    def data(self) -> DataSource:
        """Training data captured at fit time."""
        return self._source

    @property
    def fitted_values(self) -> NDArray:
        """Population-level fitted values Xβ̂."""
        return self.params.fitted_values

    @property
    def residuals(self) -> NDArray:
        return self.params.residuals

    @property
    def log_likelihood(self) -> float:
        return self.params.log_likelihood

    @property
    def converged(self) -> bool:
        return self.params.converged

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Prediction capabilities ---

    def design_matrix(self, newdata: Any = None) -> NDArray:
        """Fixed-effects design matrix for newdata (default: training data).

        Raises:
            MissingParameterError: If newdata lacks a fixed-effects column.
        """
        source = self._source if newdata is None else DataSource.build(newdata)
        return self._formula.design_matrix(source)

    def predict_population(self, newdata: Any = None) -> NDArray:
        """Population-level predictions Xβ̂ (random effects set to zero)."""
        return self.design_matrix(newdata) @ self.params.coefficients

    # --- Summary ---

    def summary(self) -> str:
        """R-style summary of variance components and fixed effects."""
        params = self.params
        method = 'REML' if params.reml else 'ML'

        lines = []
        lines.append(f"Linear mixed-effects model fit by {method}")
        lines.append(f"  Fixed: {self._formula.formula}")
        if self._group is not None:
            lines.append(f"  Random: ~ 1 | {self._group}")
        lines.append("")
        lines.append("Random effects:")
        lines.append(f" {'(Intercept)':<12s} Std.Dev. {params.sigma_group:10.4f}")
        lines.append(f" {'Residual':<12s} Std.Dev. {params.sigma:10.4f}")
        lines.append("")
        lines.append("Fixed effects:")
        lines.append(f" {'':>15s} {'Value':>10s} {'Std.Error':>10s}")
        for name, est, se in zip(params.coefficient_names, params.coefficients, self.se):
            lines.append(f" {name:>15s} {est:10.4f} {se:10.4f}")
        lines.append("")
        group_part = f", groups: {params.n_groups}" if params.n_groups else ""
        lines.append(f"Number of obs: {params.n_obs}{group_part}")

        if not params.converged:
            lines.append("")
            lines.append("WARNING: Model did not converge")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        method = 'REML' if self.params.reml else 'ML'
        return (
            f"MixedEffectsModel({method}, "
            f"n={self.params.n_obs}, "
            f"fixed={len(self.params.coefficients)}, "
            f"groups={self.params.n_groups})"
        )
