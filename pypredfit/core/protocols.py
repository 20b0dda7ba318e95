"""
Core protocols for pypredfit.

These define structural interfaces that family-specific implementations
must satisfy. Protocol (structural typing) is used rather than ABC so that
backends stay plain classes with no shared base.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Type-safe: generics preserve model and payload types through dispatch
"""

from typing import Protocol, TypeVar, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from pypredfit.core.result import Result

M = TypeVar('M', contravariant=True)  # Fitted model type
D = TypeVar('D', contravariant=True)  # Request/design type
P = TypeVar('P', covariant=True)      # Parameter payload type


@runtime_checkable
class Backend(Protocol[M, D, P]):
    """
    Protocol for prediction backends.

    Each backend knows how to take one fitted-model family plus a validated
    request and produce point predictions and standard errors for it.

    Backends are stateless: the model is read-only input and the request
    carries everything else. One backend instance may serve concurrent
    requests against the same model.

    Type Parameters:
        M: The fitted model type this backend accepts
        D: The request type
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{family}_{method}'
        Examples: 'linear_closed_form', 'nonlinear_delta', 'mixed_population'
        """
        ...

    def solve(self, model: M, design: D) -> 'Result[P]':
        """
        Execute the prediction.

        Args:
            model: Fitted model, never mutated
            design: Validated prediction request

        Returns:
            Result envelope containing parameter payload and metadata

        Raises:
            UnsupportedModelError: If the model variant is not handled
            MissingParameterError: If newdata lacks a predictor column
            NumericalError: If numerical issues prevent a solution
        """
        ...
