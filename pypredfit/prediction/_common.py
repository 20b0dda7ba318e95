"""
Common data types for the prediction layer.

Contains the request vocabularies and the frozen payloads that go inside
Result[P] envelopes. Payloads are pure data containers.
"""

from dataclasses import dataclass
from typing import Literal

from numpy.typing import NDArray

IntervalKind = Literal['none', 'confidence', 'prediction']
AdjustMethod = Literal['none', 'Bonferroni', 'Scheffe']

INTERVALS: tuple[str, ...] = ('none', 'confidence', 'prediction')
ADJUSTMENTS: tuple[str, ...] = ('none', 'Bonferroni', 'Scheffe')


@dataclass(frozen=True)
class FamilyPrediction:
    """
    What a family backend hands back to the dispatcher.

    Attributes:
        fit: Point predictions (n,)
        se: Standard errors of the mean response (n,), or None if not computed
        df: Residual degrees of freedom for critical values, or None when the
            family does not support interval construction
        sigma: Residual standard deviation of the model
        n_coefficients: Number of estimated (fixed-effect) coefficients
    """
    fit: NDArray
    se: NDArray | None
    df: int | None
    sigma: float
    n_coefficients: int


@dataclass(frozen=True)
class PredictionParams:
    """
    Parameter payload of a completed prediction request.

    se_fit is present iff requested; lwr/upr are present iff an interval was
    requested and the model family supports one.
    """
    fit: NDArray
    se_fit: NDArray | None
    lwr: NDArray | None
    upr: NDArray | None
    df: int | None
    sigma: float
    critical_value: float | None
