"""
Prediction dispatch.

This module provides predict_fit() (public API) and the selection of the
family backend. The set of supported models is closed: a LinearModel, a
NonlinearModel or a MixedEffectsModel. Anything else is rejected before
any arithmetic.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from pypredfit.core.result import Result
from pypredfit.core.compute.timing import Timer
from pypredfit.core.exceptions import UnsupportedModelError
from pypredfit.regression.solution import LinearModel
from pypredfit.nonlinear.solution import NonlinearModel
from pypredfit.mixed.solution import MixedEffectsModel
from pypredfit.prediction._common import AdjustMethod, IntervalKind, PredictionParams
from pypredfit.prediction.backends import (
    LinearBackend, NonlinearBackend, MixedBackend, check_algorithm,
)
from pypredfit.prediction.critical import critical_value
from pypredfit.prediction.design import PredictionDesign
from pypredfit.prediction.intervals import build_interval
from pypredfit.prediction.solution import PredictionResult

logger = logging.getLogger(__name__)

FittedModel = Union[LinearModel, NonlinearModel, MixedEffectsModel]


def predict_fit(
    model: FittedModel,
    newdata: Any = None,
    *,
    se_fit: bool = True,
    interval: IntervalKind = 'none',
    level: float = 0.95,
    adjust: AdjustMethod = 'none',
    k: int | None = None,
) -> PredictionResult:
    """
    Predictions, standard errors and intervals from a fitted model.

    Propagates the uncertainty already estimated by the fit onto newdata:

        - LinearModel: closed-form standard errors
        - NonlinearModel: delta-method standard errors
        - MixedEffectsModel: population-level fit with fixed-effects
          standard errors; never builds intervals

    Args:
        model: Fitted model; read-only
        newdata: Data to predict at (DataFrame, mapping of columns, file
            path or DataSource); defaults to the model's training data
        se_fit: Return standard errors of the mean response
        interval: 'none', 'confidence' (mean response) or 'prediction'
            (new individual observation)
        level: Confidence level in (0, 1)
        adjust: Simultaneous-inference adjustment: 'none', 'Bonferroni'
            or 'Scheffe'
        k: Number of simultaneous intervals; required unless adjust='none'

    Returns:
        PredictionResult with fit, se_fit (iff se_fit), lwr/upr (iff interval)

    Raises:
        UnsupportedModelError: For any other model type, or a nonlinear
            model fit with algorithm='plinear'
        MissingParameterError: If adjust requires k and none was given, or
            newdata lacks a predictor column
        ValidationError: On invalid option values
        NumericalError: If a matrix is singular or a gradient fails

    Example:
        >>> from pypredfit import lm, predict_fit
        >>> model = lm("y ~ x", df)
        >>> res = predict_fit(model, {'x': [1.5, 2.5]}, interval='prediction',
        ...                   adjust='Bonferroni', k=2)
        >>> res.lwr, res.upr
    """
    backend = _get_backend(model)

    design = PredictionDesign.build(
        model.data,
        newdata,
        se_fit=se_fit,
        interval=interval,
        level=level,
        adjust=adjust,
        k=k,
    )

    logger.debug(
        "predict_fit: %s via %s on %d rows (interval=%s, adjust=%s)",
        type(model).__name__, backend.name, design.newdata.n_observations,
        design.interval, design.adjust,
    )

    timer = Timer()
    timer.start()

    family_result = backend.solve(model, design)
    family = family_result.params

    crit = None
    lwr = upr = None
    if design.interval != 'none' and family.df is not None:
        with timer.section('critical_value'):
            crit = critical_value(
                design.interval,
                design.adjust,
                design.level,
                family.df,
                k=design.k,
                p=family.n_coefficients,
            )
        with timer.section('intervals'):
            lwr, upr = build_interval(
                family.fit, family.se, family.sigma, crit, design.interval
            )

    timer.stop()

    params = PredictionParams(
        fit=family.fit,
        se_fit=family.se if design.se_fit else None,
        lwr=lwr,
        upr=upr,
        df=family.df,
        sigma=family.sigma,
        critical_value=crit,
    )

    timing = dict(family_result.timing or {})
    timing.update(timer.result())
    timing['total_seconds'] = (
        (family_result.timing or {}).get('total_seconds', 0.0)
        + timer.result()['total_seconds']
    )

    info = dict(family_result.info)
    info.update({
        'interval': design.interval,
        'level': design.level,
        'adjust': design.adjust,
        'k': design.k,
        'newdata': 'training' if design.uses_training_data else 'supplied',
    })

    return PredictionResult(Result(
        params=params,
        info=info,
        timing=timing,
        backend_name=family_result.backend_name,
        warnings=family_result.warnings,
    ))


def _get_backend(model: FittedModel) -> LinearBackend | NonlinearBackend | MixedBackend:
    """
    Select the backend for a fitted model.

    Raises:
        UnsupportedModelError: If the model type is not one of the three
            supported families, or the nonlinear algorithm is unsupported
    """
    if isinstance(model, LinearModel):
        return LinearBackend()
    elif isinstance(model, NonlinearModel):
        check_algorithm(model)
        return NonlinearBackend()
    elif isinstance(model, MixedEffectsModel):
        return MixedBackend()
    else:
        raise UnsupportedModelError(
            f"No prediction backend for model type {type(model).__name__!r}; "
            f"expected LinearModel, NonlinearModel or MixedEffectsModel",
            variant=type(model).__name__,
        )
