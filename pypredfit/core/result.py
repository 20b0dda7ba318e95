"""
Generic result container for all pypredfit computations.

The Result class provides a standardized envelope used by model fits and
predictions alike. Fitters and prediction backends define their own
parameter payloads; the envelope carries timing, provenance and non-fatal
warnings next to them.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (method, algorithm, convergence)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True)
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (coefficients, predictions, ...)
        info: Structured metadata (method, convergence, request settings)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> # Direct method (no convergence notion)
        >>> Result(
        ...     params=LinearParams(coefficients=beta, ...),
        ...     info={'method': 'qr', 'rank': 2},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_qr'
        ... )

        >>> # Prediction
        >>> Result(
        ...     params=PredictionParams(fit=fit, se_fit=se, ...),
        ...     info={'interval': 'confidence', 'level': 0.95},
        ...     timing={'total_seconds': 0.002, 'gradient': 0.001},
        ...     backend_name='nonlinear_delta'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
