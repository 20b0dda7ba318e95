"""
PyPredFit: predictions with standard errors and simultaneous intervals
for fitted linear, nonlinear and mixed-effects models.

Submodules:
    regression: Linear models fit by QR least squares
    nonlinear: Nonlinear least squares and self-starting models
    mixed: Random-intercept linear mixed models
    prediction: predict_fit() and interval machinery
"""

__version__ = "0.1.0"
__author__ = "Hai-Shuo"
__email__ = "contact@sgcx.org"

from pypredfit import regression
from pypredfit import nonlinear
from pypredfit import mixed
from pypredfit import prediction

from pypredfit.regression import lm, LinearModel
from pypredfit.nonlinear import nls, NonlinearModel, ModelFunction, SSlogis, SSasymp, SSmicmen
from pypredfit.mixed import lme, MixedEffectsModel
from pypredfit.prediction import predict_fit, PredictionResult, critical_value

__all__ = [
    "__version__",
    "regression",
    "nonlinear",
    "mixed",
    "prediction",
    "lm",
    "nls",
    "lme",
    "predict_fit",
    "critical_value",
    "LinearModel",
    "NonlinearModel",
    "MixedEffectsModel",
    "PredictionResult",
    "ModelFunction",
    "SSlogis",
    "SSasymp",
    "SSmicmen",
]
