"""
Prediction backend for nonlinear least-squares models.

Standard errors follow from the delta method. With F0 the n x p gradient
of the mean function with respect to the coefficients, evaluated at
newdata, and R1 the triangular factor of the fit,

    se_i = σ sqrt([F0 (R1'R1)⁻¹ F0']_ii)

F0 comes from the model's analytic gradient when it carries one
(self-start models) and from finite differences otherwise.
"""

import logging
from typing import Any

import numpy as np

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.core.compute.derivatives import numeric_jacobian
from pypredfit.core.compute.linalg.solve import gram_inverse_diag
from pypredfit.core.compute.tolerances import NumericDerivSettings, FORWARD_DIFFERENCE
from pypredfit.core.exceptions import UnsupportedModelError
from pypredfit.nonlinear.solution import NonlinearModel
from pypredfit.prediction._common import FamilyPrediction
from pypredfit.prediction.design import PredictionDesign

logger = logging.getLogger(__name__)

UNSUPPORTED_ALGORITHMS = {
    'plinear': "the Golub-Pereyra algorithm for partially linear least-squares models",
}


def check_algorithm(model: NonlinearModel) -> None:
    """
    Reject models fit with an algorithm the delta method does not cover.

    Raises:
        UnsupportedModelError: Naming the algorithm
    """
    if model.algorithm in UNSUPPORTED_ALGORITHMS:
        raise UnsupportedModelError(
            f"Nonlinear models fit with algorithm={model.algorithm!r} "
            f"({UNSUPPORTED_ALGORITHMS[model.algorithm]}) are not supported",
            variant=model.algorithm,
        )


class NonlinearBackend:
    """
    Backend for NonlinearModel -> FamilyPrediction.

    Args:
        deriv: Finite-difference settings used when the model has no
            analytic gradient
    """

    def __init__(self, deriv: NumericDerivSettings = FORWARD_DIFFERENCE):
        self._deriv = deriv

    @property
    def name(self) -> str:
        return 'nonlinear_delta'

    def solve(self, model: NonlinearModel, design: PredictionDesign) -> Result[FamilyPrediction]:
        """
        Predict from a nonlinear model.

        Raises:
            UnsupportedModelError: For partially linear (plinear) fits
            MissingParameterError: If newdata lacks a predictor column
            NumericalError: If differentiation fails or R1'R1 is singular
        """
        check_algorithm(model)

        timer = Timer()
        timer.start()

        with timer.section('predict'):
            X = model.predictor_matrix(design.newdata)
            fit = model.predict(design.newdata)

        se = None
        gradient_source = None
        if design.needs_se:
            theta = model.coefficients
            with timer.section('gradient'):
                F0 = model.formula.analytic_gradient(theta, X)
                gradient_source = 'analytic'
                if F0 is None:
                    F0 = numeric_jacobian(model.formula.evaluate, theta, X, self._deriv)
                    gradient_source = 'central' if self._deriv.central else 'forward'

            with timer.section('delta_method'):
                v0 = gram_inverse_diag(F0, model.R)
                se = model.sigma * np.sqrt(v0)

            logger.debug(
                "nonlinear delta method: n=%d, p=%d, gradient=%s",
                X.shape[0], len(theta), gradient_source,
            )

        timer.stop()

        params = FamilyPrediction(
            fit=fit,
            se=se,
            df=model.df_residual,
            sigma=model.sigma,
            n_coefficients=len(model.coefficients),
        )
        info: dict[str, Any] = {
            'family': 'nonlinear',
            'algorithm': model.algorithm,
            'gradient': gradient_source,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
        )
