"""
Prediction backend for linear models.

The mean response x'β is exactly linear in the coefficients, so the
model's own closed-form predict() already yields exact standard errors;
no gradient is involved.
"""

from typing import Any

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.regression.solution import LinearModel
from pypredfit.prediction._common import FamilyPrediction
from pypredfit.prediction.design import PredictionDesign


class LinearBackend:
    """Backend for LinearModel -> FamilyPrediction."""

    @property
    def name(self) -> str:
        return 'linear_closed_form'

    def solve(self, model: LinearModel, design: PredictionDesign) -> Result[FamilyPrediction]:
        """
        Predict from a linear model.

        Raises:
            MissingParameterError: If newdata lacks a predictor column
        """
        timer = Timer()
        timer.start()

        with timer.section('predict'):
            fit, se, df = model.predict(design.newdata, se_fit=design.needs_se)

        timer.stop()

        params = FamilyPrediction(
            fit=fit,
            se=se,
            df=df,
            sigma=model.sigma,
            n_coefficients=len(model.coefficients),
        )
        info: dict[str, Any] = {'family': 'linear'}

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
        )
