"""
Fitting entry point for nonlinear least-squares models.

Public API:
    nls(): fit y = f(theta, X) + error by nonlinear least squares
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal

import numpy as np
from scipy.optimize import least_squares

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.core.compute.derivatives import numeric_jacobian
from pypredfit.core.compute.linalg.qr import qr_cpu
from pypredfit.core.exceptions import (
    ConvergenceError, MissingParameterError, SingularMatrixError, ValidationError,
)
from pypredfit.core.validation import check_array, check_choice, check_finite
from pypredfit.nonlinear._common import ModelFunction, NonlinearParams, ALGORITHMS
from pypredfit.nonlinear.design import NonlinearDesign
from pypredfit.nonlinear.solution import NonlinearModel

logger = logging.getLogger(__name__)


def nls(
    model_fn: ModelFunction,
    data: Any,
    response: str,
    *,
    start: Mapping[str, float] | Sequence[float] | None = None,
    algorithm: Literal['default', 'port', 'plinear'] = 'default',
    bounds: tuple[Any, Any] | None = None,
    tol: float = 1e-10,
    max_nfev: int | None = None,
) -> NonlinearModel:
    """Fit a nonlinear regression model by least squares.

    Minimises sum((y - f(theta, X))**2) with scipy.optimize.least_squares
    and stores the upper triangular factor R of the gradient at the
    solution; R'R is the Gauss-Newton approximation to the Hessian used by
    delta-method prediction standard errors.

    Args:
        model_fn: Mean function. Self-start models (SSlogis, SSasymp,
            SSmicmen) need no start.
        data: Training data (DataFrame, mapping of columns, DataSource).
        response: Name of the response column.
        start: Starting values, by name or in model_fn.parameters order.
        algorithm: 'default' (Levenberg-Marquardt, unbounded) or 'port'
            (trust-region reflective, honours bounds). 'plinear' is not
            implemented.
        bounds: (lower, upper) coefficient bounds, 'port' only.
        tol: ftol/xtol/gtol passed to the optimizer.
        max_nfev: Maximum function evaluations; optimizer default if None.

    Returns:
        NonlinearModel.

    Raises:
        NotImplementedError: For algorithm='plinear'.
        MissingParameterError: If start is needed but missing.
        ConvergenceError: If the optimizer does not converge.
        SingularMatrixError: If the gradient at the solution is singular.

    Examples:
        >>> from pypredfit.nonlinear import nls, SSmicmen
        >>> model = nls(SSmicmen('conc'), df, 'rate')
        >>> model.coef
    """
    algorithm = check_choice(algorithm, ALGORITHMS, 'algorithm')
    if algorithm == 'plinear':
        raise NotImplementedError(
            "The Golub-Pereyra algorithm for partially linear least-squares "
            "models is not implemented"
        )
    if bounds is not None and algorithm != 'port':
        raise ValidationError("bounds: only supported with algorithm='port'")

    design = NonlinearDesign.build(model_fn, data, response)
    theta0 = _starting_values(model_fn, design, start)

    timer = Timer()
    timer.start()

    X, y = design.X, design.y

    def residual(theta):
        return model_fn.evaluate(theta, X) - y

    if model_fn.gradient is not None:
        def jac(theta):
            return model_fn.analytic_gradient(theta, X)
    else:
        jac = '2-point'

    logger.debug(
        "nls: %r on n=%d, p=%d, algorithm=%s, start=%s",
        model_fn, design.n, design.p, algorithm, theta0,
    )

    with timer.section('optimize'):
        if algorithm == 'port':
            lower, upper = bounds if bounds is not None else (-np.inf, np.inf)
            fit = least_squares(
                residual, theta0, jac=jac, bounds=(lower, upper), method='trf',
                ftol=tol, xtol=tol, gtol=tol, max_nfev=max_nfev,
            )
        else:
            fit = least_squares(
                residual, theta0, jac=jac, method='lm',
                ftol=tol, xtol=tol, gtol=tol, max_nfev=max_nfev,
            )

    if not fit.success:
        raise ConvergenceError(
            f"nls did not converge: {fit.message}",
            iterations=int(fit.nfev),
            final_change=float(fit.optimality),
            reason='max_iterations' if fit.status == 0 else 'optimizer',
            threshold=tol,
        )

    theta = np.asarray(fit.x, dtype=np.float64)

    with timer.section('gradient'):
        G = model_fn.analytic_gradient(theta, X)
        if G is None:
            G = numeric_jacobian(model_fn.evaluate, theta, X)

    with timer.section('qr'):
        qr_result = qr_cpu(G, mode='reduced')
        if qr_result.rank < design.p:
            raise SingularMatrixError(
                f"singular gradient at the solution: rank={qr_result.rank}, "
                f"expected={design.p}",
                matrix_name='gradient',
                rank=qr_result.rank,
                expected_rank=design.p,
            )

    fitted = model_fn.evaluate(theta, X)
    residuals = y - fitted
    rss = float(residuals @ residuals)
    df = design.n - design.p

    timer.stop()

    params = NonlinearParams(
        coefficients=theta,
        fitted_values=fitted,
        residuals=residuals,
        R=qr_result.R,
        rss=rss,
        sigma=float(np.sqrt(rss / df)),
        df_residual=df,
        algorithm=algorithm,
        converged=True,
        iterations=int(fit.nfev),
    )
    result = Result(
        params=params,
        info={
            'method': 'least_squares',
            'algorithm': algorithm,
            'optimizer': 'lm' if algorithm == 'default' else 'trf',
            'message': fit.message,
            'analytic_gradient': model_fn.gradient is not None,
        },
        timing=timer.result(),
        backend_name='cpu_nls',
    )
    return NonlinearModel(_result=result, _design=design)


def _starting_values(
    model_fn: ModelFunction,
    design: NonlinearDesign,
    start: Mapping[str, float] | Sequence[float] | None,
) -> np.ndarray:
    """Resolve starting values from `start` or the self-start routine."""
    if start is None:
        if model_fn.initial is None:
            raise MissingParameterError(
                f"start: required for {model_fn!r}, which is not self-starting",
                parameter='start',
            )
        theta0 = np.asarray(model_fn.initial(design.X, design.y), dtype=np.float64)
    elif isinstance(start, Mapping):
        missing = [name for name in model_fn.parameters if name not in start]
        if missing:
            raise MissingParameterError(
                f"start: no value for parameter(s) {missing}", parameter=missing[0]
            )
        theta0 = np.array([start[name] for name in model_fn.parameters], dtype=np.float64)
    else:
        theta0 = check_array(start, 'start').reshape(-1)

    if theta0.shape[0] != design.p:
        raise ValidationError(
            f"start: expected {design.p} values for {model_fn.parameters}, "
            f"got {theta0.shape[0]}"
        )
    check_finite(theta0, 'start')
    return theta0
