"""
Finite-difference Jacobians.

A mean function is passed in as a plain callable fn(theta, X) of an
explicit coefficient vector and predictor matrix; each column of the
Jacobian is obtained by perturbing one coefficient.
"""

from collections.abc import Callable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.compute.tolerances import NumericDerivSettings, FORWARD_DIFFERENCE
from pypredfit.core.exceptions import NumericalError

MeanFunction = Callable[[NDArray[np.floating[Any]], NDArray[np.floating[Any]]], Any]


def numeric_jacobian(
    fn: MeanFunction,
    theta: NDArray[np.floating[Any]],
    X: NDArray[np.floating[Any]],
    settings: NumericDerivSettings = FORWARD_DIFFERENCE,
) -> NDArray[np.floating[Any]]:
    """
    Jacobian of fn(theta, X) with respect to theta.

    Column j uses the step h_j = eps * |theta_j| (eps when theta_j == 0),
    with forward differences (f(θ + h_j e_j) - f(θ)) / h_j or central
    differences (f(θ + h_j e_j) - f(θ - h_j e_j)) / 2h_j.

    Args:
        fn: Mean function returning a length-n vector
        theta: Coefficient vector (p,)
        X: Predictor matrix (n x m)
        settings: Difference scheme and step size

    Returns:
        Jacobian matrix (n x p)

    Raises:
        NumericalError: If fn or any difference quotient is non-finite
    """
    theta = np.asarray(theta, dtype=np.float64)
    f0 = np.asarray(fn(theta, X), dtype=np.float64).reshape(-1)
    if not np.all(np.isfinite(f0)):
        raise NumericalError(
            "Mean function is non-finite at the coefficient estimates; "
            "cannot differentiate numerically"
        )

    eps = settings.step
    J = np.empty((f0.shape[0], theta.shape[0]), dtype=np.float64)

    for j in range(theta.shape[0]):
        h = eps * abs(theta[j]) if theta[j] != 0 else eps
        upper = theta.copy()
        upper[j] += h
        f_up = np.asarray(fn(upper, X), dtype=np.float64).reshape(-1)
        if settings.central:
            lower = theta.copy()
            lower[j] -= h
            f_down = np.asarray(fn(lower, X), dtype=np.float64).reshape(-1)
            J[:, j] = (f_up - f_down) / (2.0 * h)
        else:
            J[:, j] = (f_up - f0) / h

    if not np.all(np.isfinite(J)):
        bad = sorted({int(c) for c in np.where(~np.isfinite(J))[1]})
        raise NumericalError(
            f"Numerical differentiation produced non-finite values for "
            f"coefficient(s) at position(s) {bad}"
        )
    return J
