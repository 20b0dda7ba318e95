"""
Nonlinear least-squares models.

Public API:
    nls(model_fn, data, response, ...) -> NonlinearModel
    ModelFunction(fn, parameters, variables, ...)
    SSlogis, SSasymp, SSmicmen: self-starting models with analytic gradients

NonlinearModel.from_estimates() wraps coefficients fitted elsewhere.
"""

from pypredfit.nonlinear._common import ModelFunction
from pypredfit.nonlinear.selfstart import SSlogis, SSasymp, SSmicmen
from pypredfit.nonlinear.solution import NonlinearModel
from pypredfit.nonlinear.solvers import nls

__all__ = [
    "nls",
    "ModelFunction",
    "NonlinearModel",
    "SSlogis",
    "SSasymp",
    "SSmicmen",
]
