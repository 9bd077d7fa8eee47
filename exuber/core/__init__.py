"""
exuber Core Module

This module provides the foundation shared by the statistics, the simulators
and the presentation layer: the exception hierarchy, argument validation,
configuration, type definitions and the immutable result containers.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("exuber.core")

from .exceptions import (
    ExuberError,
    ValidationError,
    ParameterError,
    DimensionError,
    DataError,
    ModelSpecificationError,
    InconclusiveError,
    NumericError,
    SimulationError,
    ConfigurationError,
    ExuberWarning,
    NumericWarning
)

from .types import (
    CONFIDENCE_LEVELS,
    CVMethod,
    Significance,
    Windowed,
    Named,
    Dated
)

from .config import (
    get_config,
    set_config,
    reset_config,
    initialize_config
)

from .results import (
    RadfMetadata,
    RadfResult,
    CriticalValueMetadata,
    CriticalValues,
    SeriesCriticalValues,
    MonteCarloCV,
    WildBootstrapCV,
    MonteCarloDistribution
)

__all__ = [
    'ExuberError', 'ValidationError', 'ParameterError', 'DimensionError', 'DataError',
    'ModelSpecificationError', 'InconclusiveError', 'NumericError', 'SimulationError',
    'ConfigurationError', 'ExuberWarning', 'NumericWarning',
    'CONFIDENCE_LEVELS', 'CVMethod', 'Significance', 'Windowed', 'Named', 'Dated',
    'get_config', 'set_config', 'reset_config', 'initialize_config',
    'RadfMetadata', 'RadfResult', 'CriticalValueMetadata', 'CriticalValues',
    'SeriesCriticalValues', 'MonteCarloCV', 'WildBootstrapCV', 'MonteCarloDistribution',
]
