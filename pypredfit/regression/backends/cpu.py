"""
CPU reference backend for linear regression.

Uses QR decomposition via LAPACK (through NumPy/SciPy) to solve the
least-squares problem. The triangular factor R is kept on the result:
it is all that closed-form prediction standard errors need.
"""

from typing import Any
import numpy as np

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.core.compute.linalg.qr import qr_solve_cpu
from pypredfit.regression.design import RegressionDesign
from pypredfit.regression.solution import LinearParams


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Solves RegressionDesign -> LinearParams.
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: RegressionDesign) -> Result[LinearParams]:
        """
        Solve OLS via QR decomposition.

        Algorithm:
            1. Compute QR decomposition: X = QR
            2. Solve: β = R⁻¹ Q'y
            3. Compute residuals, fitted values, and diagnostics

        Raises:
            SingularMatrixError: If X is rank-deficient
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p

        with timer.section('qr_solve'):
            coefficients, qr_result = qr_solve_cpu(X, y, check_rank=True)

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values

        with timer.section('statistics'):
            rss = float(residuals @ residuals)
            tss = float(np.sum((y - np.mean(y)) ** 2))

        timer.stop()

        params = LinearParams(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted_values,
            R=qr_result.R[:p, :p],
            rss=rss,
            tss=tss,
            rank=qr_result.rank,
            df_residual=n - qr_result.rank,
        )

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'formula': design.formula.formula,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )
