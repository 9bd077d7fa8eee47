# exuber/core/validation.py

"""
Validation utilities for exuber.

This module provides the argument checks shared by the recursive statistics,
the critical value simulators and the presentation layer. All checks run
before any computation starts, and every failure names the offending argument
together with the constraint it violated, e.g.
``Argument 'nrep' should be a positive integer``.
"""

import numbers
from typing import Any, Optional, Sequence

import numpy as np

from exuber.core.exceptions import (
    ParameterError, DimensionError, ModelSpecificationError,
    raise_parameter_error, raise_dimension_error
)
from exuber.core.types import Windowed


def _as_integer(value: Any) -> Optional[int]:
    """Return ``value`` as an int if it is integral, otherwise None."""
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real) and np.isfinite(value) and float(value).is_integer():
        return int(value)
    return None


def validate_positive_int(value: Any, name: str) -> int:
    """Validate that an argument is a positive integer.

    Integral floats such as ``5.0`` are accepted and converted.

    Args:
        value: Value to validate
        name: Argument name for error messages

    Returns:
        int: The validated value

    Raises:
        ParameterError: If the value is not a positive integer
    """
    integer = _as_integer(value)
    if integer is None or integer <= 0:
        raise_parameter_error(
            f"Argument '{name}' should be a positive integer",
            param_name=name,
            param_value=value,
            constraint="positive integer"
        )
    return integer


def validate_nonnegative_int(value: Any, name: str) -> int:
    """Validate that an argument is a non-negative integer.

    Args:
        value: Value to validate
        name: Argument name for error messages

    Returns:
        int: The validated value

    Raises:
        ParameterError: If the value is not a non-negative integer
    """
    integer = _as_integer(value)
    if integer is None or integer < 0:
        raise_parameter_error(
            f"Argument '{name}' should be a non-negative integer",
            param_name=name,
            param_value=value,
            constraint="non-negative integer"
        )
    return integer


def validate_option(value: Any, name: str, valid_options: Sequence[str]) -> str:
    """Validate that an argument is one of a fixed set of strings.

    Args:
        value: Value to validate
        name: Argument name for error messages
        valid_options: Accepted values

    Returns:
        str: The validated (lower-cased) option

    Raises:
        ParameterError: If the value is not one of the accepted options
    """
    if not isinstance(value, str) or value.lower() not in valid_options:
        options = ", ".join(f"'{option}'" for option in valid_options)
        raise_parameter_error(
            f"Argument '{name}' should be one of {options}",
            param_name=name,
            param_value=value,
            constraint=f"one of {options}"
        )
    return value.lower()


def validate_window(minw: int, lag: int, nobs: int) -> None:
    """Validate a minimum window and lag order against the sample size.

    A window of ``minw`` regression rows must leave at least one residual
    degree of freedom for a regression with ``lag + 2`` regressors, and the
    series must be long enough for at least two end-points:
    ``nobs >= minw + lag + 2``.

    Args:
        minw: Minimum window (regression rows)
        lag: Lag order
        nobs: Number of observations of the series

    Raises:
        ParameterError: If the window is too small or the series too short
    """
    nregressors = lag + 2
    if minw <= nregressors:
        raise_parameter_error(
            f"Argument 'minw' should be greater than lag + 2 = {nregressors}",
            param_name="minw",
            param_value=minw,
            constraint=f"minw > {nregressors}"
        )
    if nobs < minw + lag + 2:
        raise_parameter_error(
            f"Argument 'minw' is too large for a series of {nobs} observations "
            f"with lag {lag}; the series should have at least minw + lag + 2 = "
            f"{minw + lag + 2} observations",
            param_name="minw",
            param_value=minw,
            constraint=f"minw <= {nobs - lag - 2}"
        )


def validate_minw_compatible(x: Windowed, y: Windowed) -> None:
    """Validate that t-statistics and critical values share a minimum window.

    Args:
        x: Recursive test statistics
        y: Critical values

    Raises:
        ParameterError: If the minimum windows differ
    """
    if x.minw != y.minw:
        raise ParameterError(
            "The critical values should have the same minimum window with the t-statistics!",
            param_name="minw",
            param_value=(x.minw, y.minw),
            constraint="equal minimum windows"
        )


def validate_length(values: Sequence[Any], expected: int, name: str) -> None:
    """Validate that a replacement vector has the expected length.

    Raises:
        DimensionError: If the lengths differ
    """
    if len(values) != expected:
        raise_dimension_error(
            f"length of {name} vectors does not match",
            array_name=name,
            expected_shape=(expected,),
            actual_shape=(len(values),)
        )


def validate_option_combination(option: str, method: str) -> None:
    """Reject testing options that a critical value method cannot support.

    Wild bootstrap critical values only support the "gsadf" option.

    Raises:
        ModelSpecificationError: For the "sadf" option with wild bootstrap values
    """
    if option == "sadf" and method == "Wild Bootstrap":
        raise ModelSpecificationError(
            "Explosive periods with Wild Bootstrapped critical values "
            "apply only for the option 'gsadf'",
            parameter="option",
            valid_options=["gsadf"]
        )
