"""
Interval construction from point predictions and standard errors.

    confidence:  fit ± c · se
    prediction:  fit ± c · sqrt(σ² + se²)

A prediction interval bounds a new individual observation rather than the
mean response, so the residual variance σ² enters under the square root.
"""

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.exceptions import ValidationError
from pypredfit.core.validation import check_choice, check_consistent_length
from pypredfit.prediction._common import INTERVALS


def interval_half_width(
    se_fit: NDArray,
    sigma: float,
    crit: float,
    interval: str,
) -> NDArray:
    """Half-width c·se (confidence) or c·sqrt(σ² + se²) (prediction)."""
    interval = check_choice(interval, INTERVALS[1:], 'interval')
    if crit < 0:
        raise ValidationError(f"crit: must be non-negative, got {crit}")
    if interval == 'confidence':
        return crit * se_fit
    if sigma < 0:
        raise ValidationError(f"sigma: must be non-negative, got {sigma}")
    return crit * np.sqrt(sigma ** 2 + se_fit ** 2)


def build_interval(
    fit: NDArray,
    se_fit: NDArray,
    sigma: float,
    crit: float,
    interval: str,
) -> tuple[NDArray, NDArray]:
    """
    Lower and upper interval bounds.

    Args:
        fit: Point predictions (n,)
        se_fit: Standard errors of the mean response (n,)
        sigma: Residual standard deviation
        crit: Critical value from critical_value()
        interval: 'confidence' or 'prediction'

    Returns:
        (lwr, upr), with lwr <= fit <= upr elementwise
    """
    fit = np.asarray(fit, dtype=np.float64)
    se_fit = np.asarray(se_fit, dtype=np.float64)
    check_consistent_length(fit, se_fit, names=('fit', 'se_fit'))

    half = interval_half_width(se_fit, sigma, crit, interval)
    return fit - half, fit + half
