# exuber/__init__.py
"""
exuber - Recursive unit-root testing for explosive regimes

exuber computes the recursive right-tailed augmented Dickey-Fuller statistics
of Phillips, Shi and Yu (ADF, SADF, GSADF and the BADF/BSADF surfaces), their
Monte Carlo and wild bootstrap critical values, and the date-stamping of
explosive episodes.

The package provides:
- A recursive least-squares regression kernel accelerated with Numba
- The :func:`radf` batch driver over one or more series
- Critical value simulators (:func:`mc_cv`, :func:`wb_cv`) with optional
  parallel fan-out over a :class:`WorkerPool`
- :func:`report`, :func:`diagnostics` and :func:`datestamp`

Example:
    >>> import exuber
    >>> x = exuber.radf(data)
    >>> y = exuber.mc_cv(len(data), nrep=500, seed=1)
    >>> exuber.datestamp(x, y)
"""

import importlib
import logging
import os
import warnings
from typing import Union

# Set up package-wide logger
logger = logging.getLogger("exuber")
_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(_handler)

_log_level = os.environ.get("EXUBER_LOG_LEVEL", "INFO").upper()
if _log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    warnings.warn(f"Invalid EXUBER_LOG_LEVEL '{_log_level}', using INFO", UserWarning)
    _log_level = "INFO"
logger.setLevel(getattr(logging, _log_level))

from .version import __version__, __dependencies__


def _check_dependencies() -> None:
    """
    Check for required dependencies and their versions.

    Warns if a dependency is older than the supported minimum.
    """
    required_packages = {name: spec.lstrip(">=") for name, spec in __dependencies__.items()}

    def parse(version: str) -> tuple:
        parts = []
        for part in version.split(".")[:3]:
            digits = "".join(ch for ch in part if ch.isdigit())
            parts.append(int(digits) if digits else 0)
        return tuple(parts)

    missing_required = []
    for package, min_version in required_packages.items():
        try:
            imported = importlib.import_module(package)
        except ImportError:
            missing_required.append(package)
            continue
        pkg_version = getattr(imported, "__version__", None)
        if pkg_version is None:
            logger.warning(f"Cannot determine version for {package}")
        elif parse(pkg_version) < parse(min_version):
            warnings.warn(
                f"{package} version {pkg_version} is older than the recommended "
                f"version {min_version}. This may cause compatibility issues.",
                UserWarning
            )

    if missing_required:
        logger.error(f"Required packages missing: {', '.join(missing_required)}")
        raise ImportError(
            f"exuber requires the following packages: "
            f"{', '.join(missing_required)}. Please install them with pip."
        )


_check_dependencies()

from .core import (
    CVMethod, Significance, RadfResult, MonteCarloCV, WildBootstrapCV,
    MonteCarloDistribution, get_config, set_config, reset_config,
    ExuberError, ValidationError, ParameterError, DimensionError, DataError,
    ModelSpecificationError, InconclusiveError, NumericError, SimulationError,
    ConfigurationError, NumericWarning
)
from .models import (
    radf, default_minw, mc_cv, mc_cv_async, mc_distribution, wb_cv, wb_cv_async,
    report, diagnostics, datestamp
)
from .utils import WorkerPool


def get_version() -> str:
    """
    Return the version of exuber.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level of the ``exuber`` logger.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module

    Raises:
        ConfigurationError: If the level is not a known logging level
    """
    if not isinstance(level, str):
        level = logging.getLevelName(level)
    set_config("core", "log_level", level)
    logger.info(f"Log level set to {get_config('core', 'log_level')}")


__all__ = [
    # Statistics and critical values
    'radf',
    'default_minw',
    'mc_cv',
    'mc_cv_async',
    'mc_distribution',
    'wb_cv',
    'wb_cv_async',

    # Presentation
    'report',
    'diagnostics',
    'datestamp',

    # Types and results
    'CVMethod',
    'Significance',
    'RadfResult',
    'MonteCarloCV',
    'WildBootstrapCV',
    'MonteCarloDistribution',
    'WorkerPool',

    # Configuration
    'get_config',
    'set_config',
    'reset_config',

    # Exceptions
    'ExuberError',
    'ValidationError',
    'ParameterError',
    'DimensionError',
    'DataError',
    'ModelSpecificationError',
    'InconclusiveError',
    'NumericError',
    'SimulationError',
    'ConfigurationError',
    'NumericWarning',

    # Public functions
    'get_version',
    'set_log_level',
    '__version__',
]

logger.debug(f"exuber v{__version__} initialized successfully")
