"""
Linear mixed-effects models.

Public API:
    lme(formula, data, group, ...) -> MixedEffectsModel

MixedEffectsModel.from_estimates() wraps fixed effects fitted elsewhere.
"""

from pypredfit.mixed.solvers import lme
from pypredfit.mixed.solution import MixedEffectsModel

__all__ = [
    "lme",
    "MixedEffectsModel",
]
