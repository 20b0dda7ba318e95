"""
Prediction result.

PredictionResult wraps Result[PredictionParams]: the fit, and (when
requested) standard errors and interval bounds, one entry per row of
newdata, plus the request settings and provenance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.result import Result
from pypredfit.prediction._common import PredictionParams

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class PredictionResult:
    """
    User-facing prediction results.

    Fields absent from the request are None: se_fit unless se_fit=True,
    lwr/upr unless an interval was requested (and supported).
    """
    _result: Result[PredictionParams]

    @property
    def params(self) -> PredictionParams:
        return self._result.params

    @property
    def fit(self) -> NDArray[np.floating[Any]]:
        return self.params.fit

    @property
    def se_fit(self) -> NDArray[np.floating[Any]] | None:
        return self.params.se_fit

    @property
    def lwr(self) -> NDArray[np.floating[Any]] | None:
        return self.params.lwr

    @property
    def upr(self) -> NDArray[np.floating[Any]] | None:
        return self.params.upr

    @property
    def df(self) -> int | None:
        """Residual degrees of freedom used for critical values."""
        return self.params.df

    @property
    def sigma(self) -> float:
        """Residual standard deviation of the model."""
        return self.params.sigma

    @property
    def critical_value(self) -> float | None:
        return self.params.critical_value

    @property
    def has_interval(self) -> bool:
        return self.params.lwr is not None

    @property
    def n(self) -> int:
        return int(self.params.fit.shape[0])

    @property
    def interval(self) -> str:
        return self._result.info['interval']

    @property
    def level(self) -> float:
        return self._result.info['level']

    @property
    def adjust(self) -> str:
        return self._result.info['adjust']

    @property
    def k(self) -> int | None:
        return self._result.info['k']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def has_warning(self, substring: str) -> bool:
        return self._result.has_warning(substring)

    def to_dict(self) -> dict[str, NDArray[np.floating[Any]]]:
        """Present fields only, in the order fit, lwr, upr, se_fit."""
        out = {'fit': self.fit}
        if self.lwr is not None:
            out['lwr'] = self.lwr
            out['upr'] = self.upr
        if self.se_fit is not None:
            out['se_fit'] = self.se_fit
        return out

    def to_frame(self) -> 'pd.DataFrame':
        """Present fields as columns of a pandas DataFrame."""
        import pandas as pd
        return pd.DataFrame(self.to_dict())

    def summary(self, max_rows: int = 10) -> str:
        """Tabular summary of the first rows."""
        fields = self.to_dict()
        lines = [
            "Predictions",
            "=" * 60,
            f"Rows: {self.n}",
            f"Interval: {self.interval}"
            + (f" (level={self.level}, adjust={self.adjust}"
               + (f", k={self.k}" if self.k is not None else "") + ")"
               if self.interval != 'none' else ""),
        ]
        if self.critical_value is not None:
            lines.append(f"Critical value: {self.critical_value:.6f} on {self.df} DF")
        lines.append("-" * 60)
        lines.append(" ".join(f"{name:>14}" for name in fields))
        for i in range(min(self.n, max_rows)):
            lines.append(" ".join(f"{values[i]:14.6f}" for values in fields.values()))
        if self.n > max_rows:
            lines.append(f"... {self.n - max_rows} more rows")
        lines.append("-" * 60)
        lines.append(f"Backend: {self.backend_name}")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PredictionResult(n={self.n}, interval={self.interval!r}, "
            f"se_fit={self.se_fit is not None}, backend={self.backend_name!r})"
        )
