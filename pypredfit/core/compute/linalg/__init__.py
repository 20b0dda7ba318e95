"""
Linear algebra kernels for pypredfit.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood)
    - Each decomposition returns a structured result dataclass
    - Errors are raised immediately with clear messages, never as NaN

Submodules:
    qr: QR decomposition and least-squares solve
    solve: Triangular solves and quadratic-form diagonals
"""

from pypredfit.core.compute.linalg.qr import (
    QRResult,
    qr_cpu,
    qr_solve_cpu,
)
from pypredfit.core.compute.linalg.solve import (
    check_triangular_factor,
    gram_inverse_diag,
    quadratic_form_diag,
)

__all__ = [
    "QRResult",
    "qr_cpu",
    "qr_solve_cpu",
    "check_triangular_factor",
    "gram_inverse_diag",
    "quadratic_form_diag",
]
