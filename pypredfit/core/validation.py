"""
Input validation utilities for pypredfit.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from collections.abc import Sequence
from numbers import Integral, Real
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pypredfit.core.exceptions import (
    ValidationError,
    DimensionError,
    MissingParameterError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    # Reject non-numeric dtypes (strings, bytes, datetime, etc.)
    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_square(array: NDArray[np.floating[Any]], size: int, name: str) -> None:
    """
    Verify array is a (size x size) matrix.

    Raises:
        DimensionError: If array is not square with the expected size
    """
    check_2d(array, name)
    if array.shape != (size, size):
        raise DimensionError(
            f"{name}: expected shape ({size}, {size}), got {array.shape}"
        )


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_choice(value: Any, choices: Sequence[str], name: str) -> str:
    """
    Match a string option against its allowed values, ignoring case.

    Args:
        value: User-supplied option
        choices: Allowed values in canonical spelling
        name: Parameter name for error messages

    Returns:
        The canonical spelling of the matched choice

    Raises:
        ValidationError: If value is not a string or matches no choice
    """
    if isinstance(value, str):
        for choice in choices:
            if value.lower() == choice.lower():
                return choice
    raise ValidationError(
        f"{name}: must be one of {list(choices)}, got {value!r}"
    )


def check_probability(value: Any, name: str) -> float:
    """
    Verify a value lies strictly inside the open interval (0, 1).

    Raises:
        ValidationError: If value is not a real number in (0, 1)
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name}: must be a real number, got {value!r}")
    value = float(value)
    if not 0.0 < value < 1.0:
        raise ValidationError(f"{name}: must be in (0, 1), got {value}")
    return value


def check_count(value: Any, name: str) -> int:
    """
    Verify a value is a supplied positive integer.

    Args:
        value: Candidate count, or None when not supplied
        name: Parameter name for error messages

    Returns:
        The count as a Python int

    Raises:
        MissingParameterError: If value is None or less than 1
        ValidationError: If value is not an integer
    """
    if value is None:
        raise MissingParameterError(f"{name}: must be supplied", parameter=name)
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(f"{name}: must be an integer, got {value!r}")
    if value < 1:
        raise MissingParameterError(
            f"{name}: must be a positive integer, got {value}", parameter=name
        )
    return int(value)
