"""
Tests for the Result[P] envelope.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - Default warnings and has_warning()
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pypredfit.core.result import Result


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


class TestResultConstruction:

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={"interval": "confidence"},
            timing={"total_seconds": 0.01},
            backend_name="linear_closed_form",
        )
        assert result.params.value == 42.0
        assert result.info["interval"] == "confidence"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "linear_closed_form"

    def test_timing_none(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="external")
        assert result.timing is None


class TestWarnings:

    def test_default_empty_tuple(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        assert result.warnings == ()
        assert isinstance(result.warnings, tuple)

    def test_has_warning_substring(self):
        result = Result(
            params=FakeParams(1.0), info={}, timing=None, backend_name="cpu",
            warnings=("Intervals are not constructed for mixed-effects models",),
        )
        assert result.has_warning("not constructed")
        assert not result.has_warning("singular")


class TestImmutability:

    def test_cannot_reassign_params(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(2.0)

    def test_cannot_reassign_warnings(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.warnings = ("x",)
