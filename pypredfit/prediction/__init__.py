"""
Predictions with standard errors and simultaneous intervals.

Public API:
    predict_fit(model, newdata, ...) -> PredictionResult
    critical_value(...)              -> float
    build_interval(...)              -> (lwr, upr)

predict_fit() dispatches on the fitted model (LinearModel, NonlinearModel,
MixedEffectsModel), computes point predictions and standard errors with
the family backend, then builds confidence or prediction intervals with
an optional Bonferroni or Scheffé adjustment.
"""

from pypredfit.prediction.critical import critical_value
from pypredfit.prediction.intervals import build_interval
from pypredfit.prediction.design import PredictionDesign
from pypredfit.prediction.solution import PredictionResult
from pypredfit.prediction.solvers import predict_fit, FittedModel

__all__ = [
    "predict_fit",
    "critical_value",
    "build_interval",
    "PredictionDesign",
    "PredictionResult",
    "FittedModel",
]
