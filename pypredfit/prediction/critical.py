"""
Critical values for confidence and prediction intervals.

The multiplier applied to a standard error depends on the interval kind
and on the simultaneous-inference adjustment:

    adjust       interval     critical value
    ----------   ----------   ------------------------------------------
    none         either       t_{(level + 1) / 2, df}
    Bonferroni   either       t_{(level + 2k - 1) / (2k), df}
    Scheffe      confidence   sqrt(p F_{level; p, df})   Working-Hotelling
    Scheffe      prediction   sqrt(k F_{level; k, df})

The Scheffé F-quantile is taken at `level` for every model family.

References:
    Kutner, M. H., Nachtsheim, C. J., Neter, J., & Li, W. (2005).
    Applied Linear Statistical Models (5th ed.), Sections 4.3 and 4.6.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import stats

from pypredfit.core.exceptions import MissingParameterError, NumericalError, ValidationError
from pypredfit.core.validation import check_choice, check_count, check_probability
from pypredfit.prediction._common import ADJUSTMENTS, INTERVALS

logger = logging.getLogger(__name__)


def critical_value(
    interval: str,
    adjust: str,
    level: float,
    df: float,
    k: int | None = None,
    p: int | None = None,
) -> float:
    """
    Multiplier applied to the standard error of a prediction.

    Args:
        interval: 'confidence' or 'prediction'
        adjust: 'none', 'Bonferroni' or 'Scheffe'
        level: Confidence level in (0, 1)
        df: Residual degrees of freedom (> 0)
        k: Number of simultaneous intervals; required unless adjust='none'
        p: Number of estimated coefficients; required for Scheffé
            confidence bands

    Returns:
        Non-negative critical value

    Raises:
        ValidationError: On an unknown interval/adjust, level outside
            (0, 1) or non-positive df
        MissingParameterError: If k (or p for Working-Hotelling bands) is
            missing or less than 1
        NumericalError: If the quantile is not finite
    """
    interval = check_choice(interval, INTERVALS[1:], 'interval')
    adjust = check_choice(adjust, ADJUSTMENTS, 'adjust')
    level = check_probability(level, 'level')
    if not df > 0:
        raise ValidationError(f"df: must be positive, got {df}")

    if adjust == 'Bonferroni':
        k = check_count(k, 'k')
        crit = stats.t.ppf((level + 2 * k - 1) / (2 * k), df)

    elif adjust == 'Scheffe':
        k = check_count(k, 'k')
        if interval == 'confidence':
            if p is None:
                raise MissingParameterError(
                    "p: number of coefficients required for a Working-Hotelling band",
                    parameter='p',
                )
            p = check_count(p, 'p')
            crit = np.sqrt(p * stats.f.ppf(level, p, df))
        else:
            crit = np.sqrt(k * stats.f.ppf(level, k, df))

    else:
        crit = stats.t.ppf((level + 1) / 2, df)

    crit = float(crit)
    if not np.isfinite(crit):
        raise NumericalError(
            f"critical value is not finite for interval={interval!r}, "
            f"adjust={adjust!r}, level={level}, df={df}, k={k}, p={p}"
        )

    logger.debug(
        "critical value %.6g (interval=%s, adjust=%s, level=%s, df=%s, k=%s, p=%s)",
        crit, interval, adjust, level, df, k, p,
    )
    return crit
