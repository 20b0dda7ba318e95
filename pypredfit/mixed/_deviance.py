"""
Profiled deviance for the random-intercept linear mixed model.

With θ = σ_b / σ the marginal covariance of group g is
σ² V_g, V_g = I + θ² 11', and

    V_g⁻¹ = I - c_g 11',    c_g = θ² / (1 + n_g θ²)
    log|V_g| = log(1 + n_g θ²)

so every generalized least-squares quantity reduces to per-group column
sums. β and σ² are profiled out analytically, leaving a function of θ.

ML:   d(θ) = n [1 + log(2π q/n)] + Σ log(1 + n_g θ²)
REML: d(θ) = (n-p) [1 + log(2π q/(n-p))] + Σ log(1 + n_g θ²) + log|X'V⁻¹X|

where q = r'V⁻¹r is the generalized residual sum of squares.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_factor, cho_solve, LinAlgError

from pypredfit.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class GroupSums:
    """Per-group sufficient statistics, computed once per fit."""
    XtX: NDArray          # X'X (p, p)
    Xty: NDArray          # X'y (p,)
    sx: NDArray           # column sums of X per group (G, p)
    sy: NDArray           # sums of y per group (G,)
    size: NDArray         # n_g (G,)

    @classmethod
    def build(cls, X: NDArray, y: NDArray, codes: NDArray, n_groups: int) -> 'GroupSums':
        sx = np.zeros((n_groups, X.shape[1]))
        np.add.at(sx, codes, X)
        return cls(
            XtX=X.T @ X,
            Xty=X.T @ y,
            sx=sx,
            sy=np.bincount(codes, weights=y, minlength=n_groups),
            size=np.bincount(codes, minlength=n_groups).astype(np.float64),
        )


@dataclass(frozen=True)
class GLSSolution:
    """Generalized least-squares solution at fixed θ."""
    beta: NDArray
    cho: tuple                 # Cholesky factor of X'V⁻¹X (scipy cho_factor)
    log_det_xvx: float         # log|X'V⁻¹X|
    log_det_v: float           # Σ log(1 + n_g θ²)
    q: float                   # r'V⁻¹r


def solve_gls(theta: float, X: NDArray, y: NDArray, codes: NDArray, sums: GroupSums) -> GLSSolution:
    """Solve for β̂(θ) and the quantities the deviance needs.

    Raises:
        SingularMatrixError: If X'V⁻¹X is not positive definite.
    """
    c = theta ** 2 / (1.0 + sums.size * theta ** 2)

    xvx = sums.XtX - (sums.sx.T * c) @ sums.sx
    xvy = sums.Xty - sums.sx.T @ (c * sums.sy)

    try:
        cho = cho_factor(xvx, lower=False)
    except LinAlgError as e:
        raise SingularMatrixError(
            "X'V⁻¹X is singular: fixed-effects design is rank-deficient",
            matrix_name="X'V⁻¹X",
        ) from e

    beta = cho_solve(cho, xvy)
    r = y - X @ beta
    r_sums = np.bincount(codes, weights=r, minlength=len(sums.size))
    q = float(r @ r - np.sum(c * r_sums ** 2))

    return GLSSolution(
        beta=beta,
        cho=cho,
        log_det_xvx=float(2.0 * np.sum(np.log(np.abs(np.diag(cho[0]))))),
        log_det_v=float(np.sum(np.log1p(sums.size * theta ** 2))),
        q=q,
    )


def profiled_deviance(
    theta: float,
    X: NDArray,
    y: NDArray,
    codes: NDArray,
    sums: GroupSums,
    reml: bool = True,
) -> float:
    """Profiled REML (or ML) deviance at θ (scalar to minimize)."""
    n, p = X.shape
    gls = solve_gls(theta, X, y, codes, sums)
    q = max(gls.q, np.finfo(np.float64).tiny)

    if reml:
        df = n - p
        return float(df * (1.0 + np.log(2.0 * np.pi * q / df))
                     + gls.log_det_v + gls.log_det_xvx)
    return float(n * (1.0 + np.log(2.0 * np.pi * q / n)) + gls.log_det_v)
