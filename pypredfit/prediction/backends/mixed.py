"""
Prediction backend for linear mixed-effects models.

Predictions are population level: random effects are set to zero, so the
fit is Xβ̂ and its standard error sqrt(diag(X V X')) with V the
fixed-effects covariance matrix.

No degrees of freedom are forwarded, so no intervals are ever built for
this family; an interval request yields fit and standard errors only,
with a warning.
"""

import warnings
from typing import Any

import numpy as np

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.core.compute.linalg.solve import quadratic_form_diag
from pypredfit.mixed.solution import MixedEffectsModel
from pypredfit.prediction._common import FamilyPrediction
from pypredfit.prediction.design import PredictionDesign

INTERVAL_WARNING = (
    "Intervals are not constructed for mixed-effects models; "
    "returning population-level fit and standard errors only"
)


class MixedBackend:
    """Backend for MixedEffectsModel -> FamilyPrediction."""

    @property
    def name(self) -> str:
        return 'mixed_population'

    def solve(self, model: MixedEffectsModel, design: PredictionDesign) -> Result[FamilyPrediction]:
        """
        Predict from a mixed-effects model at the population level.

        Raises:
            MissingParameterError: If newdata lacks a fixed-effects column
            NotPositiveDefiniteError: If the covariance matrix yields a
                negative variance
        """
        timer = Timer()
        timer.start()

        with timer.section('predict'):
            fit = model.predict_population(design.newdata)

        se = None
        if design.se_fit:
            with timer.section('quadratic_form'):
                X = model.design_matrix(design.newdata)
                se = np.sqrt(quadratic_form_diag(X, model.fixed_effects_vcov(), 'vcov'))

        timer.stop()

        warn_list = []
        if design.interval != 'none':
            warnings.warn(INTERVAL_WARNING, UserWarning, stacklevel=3)
            warn_list.append(INTERVAL_WARNING)

        params = FamilyPrediction(
            fit=fit,
            se=se,
            df=None,
            sigma=model.sigma,
            n_coefficients=len(model.coefficients),
        )
        info: dict[str, Any] = {'family': 'mixed', 'level': 'population'}

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warn_list),
        )
