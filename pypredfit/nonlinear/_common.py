"""
Common data types for nonlinear least-squares models.

ModelFunction replaces a symbolic right-hand side: it is a closed-form
mean function of an explicit coefficient vector and predictor matrix,
together with the names that tie the two to a data frame. Self-start
models additionally carry an analytic gradient and an initial-value
routine (see selfstart.py).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pypredfit.core.exceptions import ValidationError, NumericalError

ArrayFn = Callable[[NDArray[np.floating[Any]], NDArray[np.floating[Any]]], Any]
InitialFn = Callable[[NDArray[np.floating[Any]], NDArray[np.floating[Any]]], Any]

# Algorithms a NonlinearModel may report having been fit with
ALGORITHMS = ('default', 'port', 'plinear')


@dataclass(frozen=True)
class ModelFunction:
    """
    Mean function of a nonlinear regression model.

    Attributes:
        fn: f(theta, X) -> (n,) mean response, theta (p,), X (n x m)
        parameters: Coefficient names, in theta order
        variables: Predictor column names, in X column order
        gradient: Optional analytic Jacobian g(theta, X) -> (n x p)
        initial: Optional self-start routine (X, y) -> theta0
        name: Label used in summaries
    """
    fn: ArrayFn
    parameters: tuple[str, ...]
    variables: tuple[str, ...]
    gradient: ArrayFn | None = None
    initial: InitialFn | None = None
    name: str = 'f'

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise ValidationError("fn: must be callable")
        if len(self.parameters) == 0:
            raise ValidationError("parameters: at least one coefficient required")
        if len(set(self.parameters)) != len(self.parameters):
            raise ValidationError(f"parameters: duplicate names in {self.parameters}")
        if len(self.variables) == 0:
            raise ValidationError("variables: at least one predictor required")
        # Normalise lists to tuples so instances stay hashable
        object.__setattr__(self, 'parameters', tuple(self.parameters))
        object.__setattr__(self, 'variables', tuple(self.variables))

    @property
    def is_self_start(self) -> bool:
        """True when the model supplies its own analytic gradient."""
        return self.gradient is not None

    def evaluate(
        self, theta: NDArray[np.floating[Any]], X: NDArray[np.floating[Any]]
    ) -> NDArray[np.floating[Any]]:
        """Mean response at theta, shaped (n,)."""
        values = np.asarray(self.fn(theta, X), dtype=np.float64).reshape(-1)
        if values.shape[0] != X.shape[0]:
            raise ValidationError(
                f"{self.name}: returned {values.shape[0]} values for {X.shape[0]} rows"
            )
        return values

    def analytic_gradient(
        self, theta: NDArray[np.floating[Any]], X: NDArray[np.floating[Any]]
    ) -> NDArray[np.floating[Any]] | None:
        """
        Analytic Jacobian (n x p), or None when the model carries none.

        Raises:
            NumericalError: If the supplied gradient is non-finite
        """
        if self.gradient is None:
            return None
        G = np.asarray(self.gradient(theta, X), dtype=np.float64)
        if G.ndim == 1:
            G = G.reshape(-1, 1)
        if G.shape != (X.shape[0], len(self.parameters)):
            raise ValidationError(
                f"{self.name}: gradient has shape {G.shape}, expected "
                f"({X.shape[0]}, {len(self.parameters)})"
            )
        if not np.all(np.isfinite(G)):
            raise NumericalError(f"{self.name}: analytic gradient is non-finite")
        return G

    def __repr__(self) -> str:
        return (
            f"{self.name}({', '.join(self.variables)}; "
            f"{', '.join(self.parameters)})"
        )


@dataclass(frozen=True)
class NonlinearParams:
    """
    Parameter payload for a fitted nonlinear least-squares model.

    Pure data container: no methods, no computation.
    """
    coefficients: NDArray          # θ̂ (p,)
    fitted_values: NDArray         # f(θ̂, X) (n,)
    residuals: NDArray             # y - f(θ̂, X) (n,)
    R: NDArray                     # triangular factor of the gradient at θ̂ (p x p)
    rss: float
    sigma: float                   # residual standard deviation
    df_residual: int
    algorithm: str
    converged: bool
    iterations: int
