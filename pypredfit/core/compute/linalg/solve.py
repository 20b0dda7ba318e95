"""
Triangular solves and quadratic forms.

Both prediction standard-error formulas reduce to the diagonal of a
quadratic form F A F' with A a covariance-type matrix:

    nonlinear:  A = (R'R)⁻¹, R the triangular factor of the fit
    mixed:      A = V, the fixed-effects covariance matrix

The helpers here compute only that diagonal, row by row, without ever
forming the n x n product.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular
from scipy.linalg.lapack import dtrcon

from pypredfit.core.compute.tolerances import SINGULARITY_RTOL, NEGATIVE_VARIANCE_RTOL
from pypredfit.core.exceptions import SingularMatrixError, NotPositiveDefiniteError


def check_triangular_factor(R: NDArray[np.floating[Any]], name: str = 'R') -> None:
    """
    Verify an upper triangular factor is numerically non-singular.

    A (near) zero on the diagonal is reported with the numerical rank it
    implies. Otherwise LAPACK's 1-norm reciprocal condition estimate of R
    (dtrcon) is compared against SINGULARITY_RTOL, which also catches
    factors with a well-scaled diagonal and huge off-diagonal entries.

    Raises:
        SingularMatrixError: If any diagonal entry is zero, non-finite, or
            smaller than SINGULARITY_RTOL times the largest one, or if the
            reciprocal condition number of R is below SINGULARITY_RTOL
    """
    diag_R = np.abs(np.diag(R))
    p = len(diag_R)
    if p == 0:
        raise SingularMatrixError(
            f"{name}: empty triangular factor", matrix_name=name, rank=0
        )
    if not np.all(np.isfinite(R)):
        raise SingularMatrixError(
            f"{name}: triangular factor contains non-finite values",
            matrix_name=name,
        )

    largest = float(np.max(diag_R))
    rank = int(np.sum(diag_R > SINGULARITY_RTOL * largest)) if largest > 0 else 0
    if rank < p:
        condition = float(largest / np.min(diag_R)) if np.min(diag_R) > 0 else np.inf
        raise SingularMatrixError(
            f"{name}'{name} is singular or nearly singular: "
            f"numerical rank {rank} of {p}",
            matrix_name=f"{name}'{name}",
            condition_number=condition,
            rank=rank,
            expected_rank=p,
        )

    rcond, info = dtrcon(np.asarray(R, dtype=np.float64), norm='1', uplo='U', diag='N')
    if info != 0 or not rcond >= SINGULARITY_RTOL:
        condition = float(1.0 / rcond) if rcond > 0 else np.inf
        raise SingularMatrixError(
            f"{name}'{name} is nearly singular: reciprocal condition number "
            f"of {name} is {rcond:.3g}",
            matrix_name=f"{name}'{name}",
            condition_number=condition,
            rank=p,
            expected_rank=p,
        )


def gram_inverse_diag(
    F: NDArray[np.floating[Any]],
    R: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Compute diag(F (R'R)⁻¹ F') through a triangular solve.

    With B = R⁻ᵀ F', F (R'R)⁻¹ F' = B'B, so each diagonal entry is the
    squared norm of a column of B.

    Args:
        F: Matrix of row vectors (n x p)
        R: Upper triangular factor (p x p)

    Returns:
        Non-negative vector of length n

    Raises:
        SingularMatrixError: If R is singular or nearly singular
    """
    check_triangular_factor(R)
    B = solve_triangular(R, F.T, trans='T', lower=False)
    return np.sum(B * B, axis=0)


def quadratic_form_diag(
    X: NDArray[np.floating[Any]],
    V: NDArray[np.floating[Any]],
    name: str = 'V',
) -> NDArray[np.floating[Any]]:
    """
    Compute diag(X V X') for a symmetric covariance matrix V.

    Small negative values produced by round-off are clipped to zero.

    Raises:
        NotPositiveDefiniteError: If any entry is negative beyond round-off,
            i.e. V is not positive semi-definite along some row of X
        NumericalError: If V contains non-finite values
    """
    if not np.all(np.isfinite(V)):
        raise NotPositiveDefiniteError(
            f"{name}: covariance matrix contains non-finite values",
            matrix_name=name,
        )

    q = np.einsum('ij,jk,ik->i', X, V, X)
    scale = np.einsum('ij,jk,ik->i', np.abs(X), np.abs(V), np.abs(X))
    allowed = -NEGATIVE_VARIANCE_RTOL * scale

    if np.any(q < allowed):
        raise NotPositiveDefiniteError(
            f"{name} is not positive semi-definite: quadratic form "
            f"reached {float(np.min(q)):.6g}",
            matrix_name=name,
            min_eigenvalue=float(np.min(q)),
        )
    return np.maximum(q, 0.0)
