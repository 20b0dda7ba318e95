"""
Prediction backends, one per fitted-model family.

Available backends:
    LinearBackend: closed-form standard errors from the model's own predict()
    NonlinearBackend: delta-method standard errors through the model gradient
    MixedBackend: population-level fit and fixed-effects quadratic-form errors
"""

from pypredfit.prediction.backends.linear import LinearBackend
from pypredfit.prediction.backends.nonlinear import NonlinearBackend, check_algorithm
from pypredfit.prediction.backends.mixed import MixedBackend

__all__ = [
    "LinearBackend",
    "NonlinearBackend",
    "MixedBackend",
    "check_algorithm",
]
