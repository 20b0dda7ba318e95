"""
Prediction request.

PredictionDesign is the validated, immutable form of one predict_fit()
call: where to predict, what to return, and how to build intervals.
Validation happens here, once, at the public boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pypredfit.core.datasource import DataSource
from pypredfit.core.exceptions import ValidationError
from pypredfit.core.validation import check_choice, check_count, check_probability
from pypredfit.prediction._common import ADJUSTMENTS, INTERVALS


@dataclass(frozen=True)
class PredictionDesign:
    """
    Validated prediction request.

    Attributes:
        newdata: Where to predict; the model's training data when the
            caller supplied none
        se_fit: Return standard errors
        interval: 'none', 'confidence' or 'prediction'
        level: Confidence level in (0, 1)
        adjust: 'none', 'Bonferroni' or 'Scheffe'
        k: Number of simultaneous intervals, None when adjust='none'
        uses_training_data: True when newdata defaulted to the training data
    """
    newdata: DataSource
    se_fit: bool
    interval: str
    level: float
    adjust: str
    k: int | None
    uses_training_data: bool

    @classmethod
    def build(
        cls,
        training_data: DataSource,
        newdata: Any = None,
        *,
        se_fit: bool = True,
        interval: str = 'none',
        level: float = 0.95,
        adjust: str = 'none',
        k: int | None = None,
    ) -> PredictionDesign:
        """
        Validate a request.

        Raises:
            ValidationError: On unknown interval/adjust values, level
                outside (0, 1), non-boolean se_fit or non-integer k
            MissingParameterError: If adjust is not 'none' and k is missing
                or less than 1
        """
        if not isinstance(se_fit, bool):
            raise ValidationError(f"se_fit: must be a bool, got {se_fit!r}")
        interval = check_choice(interval, INTERVALS, 'interval')
        adjust = check_choice(adjust, ADJUSTMENTS, 'adjust')
        level = check_probability(level, 'level')

        if adjust != 'none':
            k = check_count(k, 'k')
        elif k is not None:
            k = check_count(k, 'k')

        uses_training_data = newdata is None
        source = training_data if uses_training_data else DataSource.build(newdata)
        if source.n_observations == 0:
            raise ValidationError("newdata: has no rows")

        return cls(
            newdata=source,
            se_fit=se_fit,
            interval=interval,
            level=level,
            adjust=adjust,
            k=k,
            uses_training_data=uses_training_data,
        )

    @property
    def needs_se(self) -> bool:
        """Standard errors are needed for output or for interval bounds."""
        return self.se_fit or self.interval != 'none'
