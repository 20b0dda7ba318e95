"""
Tests for input validation utilities.

Validates the helpers in core/validation.py, including the option,
probability and count checks used by prediction requests.
"""

import numpy as np
import pytest

from pypredfit.core.exceptions import DimensionError, MissingParameterError, ValidationError
from pypredfit.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_choice,
    check_consistent_length,
    check_count,
    check_finite,
    check_min_samples,
    check_probability,
    check_square,
)


# ═══════════════════════════════════════════════════════════════════════
# Arrays
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "X")
        assert np.issubdtype(result.dtype, np.floating)
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_rejects_strings(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(["a", "b"], "X")

    def test_rejects_mixed_object(self):
        with pytest.raises(ValidationError, match="X"):
            check_array(np.array([1, "a", None], dtype=object), "X")


class TestShapeChecks:

    def test_check_finite_reports_counts(self):
        with pytest.raises(ValidationError, match=r"1 NaN, 1 Inf"):
            check_finite(np.array([1.0, np.nan, np.inf]), "y")

    def test_check_1d_rejects_2d(self):
        with pytest.raises(DimensionError):
            check_1d(np.ones((2, 2)), "y")

    def test_check_2d_rejects_1d(self):
        with pytest.raises(DimensionError):
            check_2d(np.ones(3), "X")

    def test_check_square_wrong_size(self):
        with pytest.raises(DimensionError, match=r"\(3, 3\)"):
            check_square(np.eye(2), 3, "vcov")

    def test_check_square_ok(self):
        check_square(np.eye(3), 3, "vcov")

    def test_consistent_length(self):
        with pytest.raises(DimensionError, match="fit=3, se_fit=2"):
            check_consistent_length(np.ones(3), np.ones(2), names=("fit", "se_fit"))

    def test_min_samples(self):
        with pytest.raises(ValidationError, match="at least 4"):
            check_min_samples(np.ones((3, 2)), 4, "X")


# ═══════════════════════════════════════════════════════════════════════
# Options
# ═══════════════════════════════════════════════════════════════════════


class TestCheckChoice:

    def test_canonical_spelling_returned(self):
        assert check_choice("bonferroni", ("none", "Bonferroni"), "adjust") == "Bonferroni"
        assert check_choice("SCHEFFE", ("none", "Scheffe"), "adjust") == "Scheffe"

    def test_unknown_value(self):
        with pytest.raises(ValidationError, match="adjust"):
            check_choice("holm", ("none", "Bonferroni", "Scheffe"), "adjust")

    def test_non_string(self):
        with pytest.raises(ValidationError):
            check_choice(None, ("none",), "interval")


class TestCheckProbability:

    @pytest.mark.parametrize("value", [0.0, 1.0, -0.1, 1.5])
    def test_outside_open_interval(self, value):
        with pytest.raises(ValidationError, match="level"):
            check_probability(value, "level")

    def test_rejects_bool_and_string(self):
        with pytest.raises(ValidationError):
            check_probability(True, "level")
        with pytest.raises(ValidationError):
            check_probability("0.95", "level")

    def test_returns_float(self):
        assert check_probability(np.float32(0.5), "level") == 0.5


class TestCheckCount:

    def test_none_is_missing(self):
        with pytest.raises(MissingParameterError) as exc:
            check_count(None, "k")
        assert exc.value.parameter == "k"

    def test_zero_is_missing(self):
        with pytest.raises(MissingParameterError):
            check_count(0, "k")

    def test_non_integer(self):
        with pytest.raises(ValidationError):
            check_count(2.5, "k")

    def test_numpy_integer_accepted(self):
        assert check_count(np.int64(3), "k") == 3
