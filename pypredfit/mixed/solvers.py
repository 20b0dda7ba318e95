"""
Fitting entry point for linear mixed-effects models.

Public API:
    lme(): fit a random-intercept linear mixed model (REML or ML)
"""

from __future__ import annotations

import logging
import warnings
from typing import Any

import numpy as np
from scipy.linalg import cho_solve
from scipy.optimize import minimize_scalar

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.mixed._common import MixedParams
from pypredfit.mixed._deviance import GroupSums, solve_gls, profiled_deviance
from pypredfit.mixed.design import MixedDesign
from pypredfit.mixed.solution import MixedEffectsModel

logger = logging.getLogger(__name__)

# θ̂ below this is reported as a singular (boundary) fit
SINGULAR_THETA_TOL = 1e-4


def lme(
    formula: str,
    data: Any,
    group: str,
    *,
    reml: bool = True,
    theta_max: float = 1e3,
    tol: float = 1e-10,
    max_iter: int = 500,
) -> MixedEffectsModel:
    """Fit a linear mixed model with a random intercept per group.

        y_ij = x_ij'β + b_i + e_ij,  b_i ~ N(0, σ_b²),  e_ij ~ N(0, σ²)

    The variance ratio θ = σ_b / σ is found by bounded scalar minimisation
    of the profiled deviance; β̂, σ̂² and Cov(β̂) = σ̂² (X'V⁻¹X)⁻¹ follow
    in closed form at θ̂.

    Args:
        formula: Fixed-effects formula, e.g. "y ~ x".
        data: Training data (DataFrame, mapping of columns, DataSource).
        group: Name of the grouping column.
        reml: If True (default), use REML estimation. If False, use ML.
        theta_max: Upper bound on θ searched by the optimizer.
        tol: Absolute tolerance on θ.
        max_iter: Maximum optimizer iterations.

    Returns:
        MixedEffectsModel.

    Examples:
        >>> model = lme("reaction ~ days", df, group='subject')
        >>> model.fixef
    """
    timer = Timer()
    timer.start()

    design = MixedDesign.build(formula, data, group)

    with timer.section('setup'):
        sums = GroupSums.build(design.X, design.y, design.codes, len(design.levels))

    logger.debug(
        "lme: %s | %s on n=%d, p=%d, groups=%d, %s",
        formula, group, design.n, design.p, len(design.levels),
        'REML' if reml else 'ML',
    )

    with timer.section('optimization'):
        opt_result = minimize_scalar(
            profiled_deviance,
            bounds=(0.0, theta_max),
            args=(design.X, design.y, design.codes, sums, reml),
            method='bounded',
            options={'xatol': tol, 'maxiter': max_iter},
        )

    converged = bool(opt_result.success)
    theta_hat = float(opt_result.x)
    n_iter = int(getattr(opt_result, 'nit', opt_result.nfev))

    if not converged:
        warnings.warn(
            f"LME optimizer did not converge after {n_iter} iterations. "
            f"Message: {opt_result.message}",
            RuntimeWarning,
            stacklevel=2,
        )

    with timer.section('final_solve'):
        gls = solve_gls(theta_hat, design.X, design.y, design.codes, sums)
        df = design.n - design.p if reml else design.n
        sigma_sq = gls.q / df
        vcov = sigma_sq * cho_solve(gls.cho, np.eye(design.p))
        vcov = 0.5 * (vcov + vcov.T)

    fitted = design.X @ gls.beta
    sigma = float(np.sqrt(sigma_sq))

    timer.stop()

    params = MixedParams(
        coefficients=gls.beta,
        coefficient_names=design.formula.column_names,
        vcov=vcov,
        sigma=sigma,
        sigma_group=theta_hat * sigma,
        theta=theta_hat,
        log_likelihood=-0.5 * float(opt_result.fun),
        reml=reml,
        n_obs=design.n,
        n_groups=len(design.levels),
        fitted_values=fitted,
        residuals=design.y - fitted,
        converged=converged,
        n_iter=n_iter,
    )

    warn_list = []
    if not converged:
        warn_list.append(f"Optimizer did not converge: {opt_result.message}")
    if theta_hat < SINGULAR_THETA_TOL:
        message = "Random-intercept variance estimated at zero (singular fit)"
        warnings.warn(message, UserWarning, stacklevel=2)
        warn_list.append(message)

    result = Result(
        params=params,
        info={
            'method': 'REML' if reml else 'ML',
            'optimizer': 'bounded',
            'converged': converged,
            'n_iter': n_iter,
            'deviance': float(opt_result.fun),
        },
        timing=timer.result(),
        backend_name='cpu_lme',
        warnings=tuple(warn_list),
    )

    return MixedEffectsModel(
        _result=result,
        _formula=design.formula,
        _source=design.source,
        _group=group,
    )
