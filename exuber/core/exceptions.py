'''
Custom exception classes for exuber.

This module defines the hierarchy of exception classes used throughout the
package. Each exception carries a primary message, optional details and a
context dictionary so that error reports name the offending argument and the
constraint it violated.

The hierarchy separates the four failure categories of recursive unit-root
testing:

- input validation (``ValidationError`` and its subclasses), raised before any
  computation starts;
- statistical inconclusiveness (``InconclusiveError``), raised by the
  diagnostics and date-stamping layer;
- numerical failure (``NumericError``), raised by the regression kernel for a
  degenerate window and contained by the recursive sweep;
- fatal worker errors (``SimulationError``), raised when a unit of a parallel
  batch fails.
'''

from typing import Any, Dict, List, Optional, Tuple, Union
import inspect
import warnings
import numpy as np
from pathlib import Path


class ExuberError(Exception):
    """Base exception class for all exuber errors.

    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the ExuberError.

        Args:
            message: The primary error message
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"

        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"

        # Add caller information for better debugging
        frame = inspect.currentframe()
        if frame:
            try:
                # Skip subclass constructors and the raise_* helpers
                here = frame.f_code.co_filename
                while frame and frame.f_code.co_filename == here:
                    frame = frame.f_back
                if frame:
                    caller_info = inspect.getframeinfo(frame)
                    full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
            finally:
                del frame  # Avoid reference cycles

        super().__init__(full_message)


class ValidationError(ExuberError, ValueError):
    """Base class for input-validation errors.

    Validation errors are never retryable: they are reported immediately and
    before any computation has started.
    """


class ParameterError(ValidationError):
    """Exception raised for an invalid argument value.

    Attributes:
        param_name: The name of the argument that caused the error
        param_value: The invalid value
        constraint: Description of the constraint that was violated
    """

    def __init__(self,
                 message: str,
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the ParameterError.

        Args:
            message: The primary error message
            param_name: The name of the argument that caused the error
            param_value: The invalid value
            constraint: Description of the constraint that was violated
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.param_name = param_name
        self.param_value = param_value
        self.constraint = constraint

        context_dict = context or {}
        if param_name:
            context_dict["Parameter"] = param_name
        if param_value is not None:
            context_dict["Value"] = param_value
        if constraint:
            context_dict["Constraint"] = constraint

        super().__init__(message, details, context_dict)


class DimensionError(ValidationError):
    """Exception raised for incompatible array or index dimensions.

    Attributes:
        array_name: The name of the array that caused the error
        expected_shape: The expected shape of the array
        actual_shape: The actual shape of the array
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the DimensionError.

        Args:
            message: The primary error message
            array_name: The name of the array that caused the error
            expected_shape: The expected shape of the array
            actual_shape: The actual shape of the array
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = context or {}
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape

        super().__init__(message, details, context_dict)


class DataError(ValidationError):
    """Exception raised for unusable input data.

    Attributes:
        data_name: The name of the data that caused the error
        issue: Description of the issue with the data
        index: The index or location where the issue was detected
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = context or {}
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class ModelSpecificationError(ValidationError):
    """Exception raised for an unsupported combination of options.

    Attributes:
        parameter: The option that is incorrectly specified
        valid_options: List of valid options for the parameter
    """

    def __init__(self,
                 message: str,
                 parameter: Optional[str] = None,
                 valid_options: Optional[List[Any]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.parameter = parameter
        self.valid_options = valid_options

        context_dict = context or {}
        if parameter:
            context_dict["Parameter"] = parameter
        if valid_options:
            context_dict["Valid Options"] = valid_options

        super().__init__(message, details, context_dict)


class InconclusiveError(ExuberError):
    """Exception raised when the statistical evidence does not support the request.

    Used by the diagnostics and date-stamping layer when no series rejects the
    null hypothesis, or when a minimum-duration filter removes every explosive
    episode.

    Attributes:
        option: The testing option ("gsadf" or "sadf")
        significance: The significance level that was required
    """

    def __init__(self,
                 message: str,
                 option: Optional[str] = None,
                 significance: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.option = option
        self.significance = significance

        context_dict = context or {}
        if option:
            context_dict["Option"] = option
        if significance:
            context_dict["Significance"] = significance

        super().__init__(message, details, context_dict)


class NumericError(ExuberError):
    """Exception raised for numerical computation failures.

    The regression kernel raises this for a singular regressor matrix or a
    degenerate residual variance. The recursive sweep contains these failures
    and reports the affected windows as NaN.

    Attributes:
        operation: The operation that caused the error
        values: The values that caused the error
        error_type: The type of numerical error (e.g. "singular matrix")
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 values: Optional[Any] = None,
                 error_type: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.values = values
        self.error_type = error_type

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if values is not None:
            if isinstance(values, np.ndarray) and values.size > 10:
                # Truncate large arrays for readability
                context_dict["Values"] = f"Array with shape {values.shape}"
            else:
                context_dict["Values"] = values
        if error_type:
            context_dict["Error Type"] = error_type

        super().__init__(message, details, context_dict)


class SimulationError(ExuberError):
    """Exception raised when a unit of a simulation batch fails.

    Attributes:
        simulation_type: The simulation or batch that failed
        unit: Position of the failing unit in the submitted work
        issue: Description of the failure
    """

    def __init__(self,
                 message: str,
                 simulation_type: Optional[str] = None,
                 unit: Optional[int] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.simulation_type = simulation_type
        self.unit = unit
        self.issue = issue

        context_dict = context or {}
        if simulation_type:
            context_dict["Simulation Type"] = simulation_type
        if unit is not None:
            context_dict["Unit"] = unit
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class ConfigurationError(ExuberError):
    """Exception raised for invalid configuration sections, options or values.

    Attributes:
        section: The configuration section
        option: The configuration option
        value: The rejected value
    """

    def __init__(self,
                 message: str,
                 section: Optional[str] = None,
                 option: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.section = section
        self.option = option
        self.value = value

        context_dict = context or {}
        if section:
            context_dict["Section"] = section
        if option:
            context_dict["Option"] = option
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


class ExuberWarning(Warning):
    """Base warning class for all exuber warnings."""

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}

        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"

        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"

        super().__init__(full_message)


class NumericWarning(ExuberWarning):
    """Warning for numerical issues that did not abort a computation.

    Attributes:
        operation: The operation where the issue was detected
        issue: Description of the numerical issue
        value: The value associated with the issue
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue
        self.value = value

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


def raise_parameter_error(message: str,
                          param_name: Optional[str] = None,
                          param_value: Optional[Any] = None,
                          constraint: Optional[str] = None,
                          details: Optional[str] = None) -> None:
    """Raise a ParameterError with the given information.

    Raises:
        ParameterError: Always raised with the provided information
    """
    raise ParameterError(message, param_name=param_name, param_value=param_value,
                         constraint=constraint, details=details)


def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                          actual_shape: Optional[Tuple[int, ...]] = None,
                          details: Optional[str] = None) -> None:
    """Raise a DimensionError with the given information.

    Raises:
        DimensionError: Always raised with the provided information
    """
    raise DimensionError(message, array_name=array_name, expected_shape=expected_shape,
                         actual_shape=actual_shape, details=details)


def raise_data_error(message: str,
                     data_name: Optional[str] = None,
                     issue: Optional[str] = None,
                     index: Optional[Union[int, Tuple[int, ...], str]] = None,
                     details: Optional[str] = None) -> None:
    """Raise a DataError with the given information.

    Raises:
        DataError: Always raised with the provided information
    """
    raise DataError(message, data_name=data_name, issue=issue, index=index, details=details)


def warn_numeric(message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None) -> None:
    """Issue a NumericWarning with the given information."""
    warnings.warn(
        NumericWarning(message, operation=operation, issue=issue, value=value, details=details),
        stacklevel=2
    )
