'''
Configuration management for exuber.

This module provides the configuration layer shared by the recursive
statistics, the critical value simulators and the worker pool. Settings are
grouped into dataclass sections and resolved in layers:

1. Defaults built into the package
2. An optional JSON file named by ``EXUBER_CONFIG_FILE``
3. Environment variables of the form ``EXUBER_<SECTION>_<OPTION>``
4. Runtime modifications through :func:`set_config`

Environment values are strings and are converted to the type declared on the
dataclass field, so ``EXUBER_SIMULATION_NREP=500`` yields the integer 500 and
``EXUBER_CORE_RANDOM_SEED=none`` clears the seed.
'''

import json
import logging
import os
from dataclasses import dataclass, field, asdict, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from .exceptions import ConfigurationError

# Set up module-level logger
logger = logging.getLogger("exuber.core.config")

CONFIG_ENV_PREFIX = "EXUBER_"
CONFIG_FILE_ENV = "EXUBER_CONFIG_FILE"
LOG_LEVEL_ENV = "EXUBER_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
POOL_BACKENDS = ("process", "thread", "sequential")

_TRUE_STRINGS = ("true", "yes", "1", "y", "on")
_FALSE_STRINGS = ("false", "no", "0", "n", "off")
_NONE_STRINGS = ("none", "null", "")


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    CORE = "core"
    NUMERICAL = "numerical"
    SIMULATION = "simulation"
    PERFORMANCE = "performance"


@dataclass
class CoreConfig:
    """
    Core configuration settings.

    Attributes:
        random_seed: Default seed for the critical value simulators; None
            draws fresh entropy on every call
        log_level: Level of the ``exuber`` package logger
    """
    random_seed: Optional[int] = None
    log_level: str = field(default_factory=lambda: os.environ.get(LOG_LEVEL_ENV, "INFO").upper())


@dataclass
class NumericalConfig:
    """
    Numerical settings of the recursive regression kernel.

    Attributes:
        refresh_interval: Number of rank-1 updates after which a window is
            re-fitted from scratch to bound accumulated drift; 0 disables
            refreshing
        rank_tolerance: Relative singular value tolerance used to detect a
            rank-deficient regressor matrix
    """
    refresh_interval: int = 100
    rank_tolerance: float = 1e-10


@dataclass
class SimulationConfig:
    """
    Critical value simulation settings.

    Attributes:
        nrep: Number of Monte Carlo replications
        nboot: Number of wild bootstrap replications
        quantiles: Quantile levels reported as the 90%, 95% and 99% values
    """
    nrep: int = 2000
    nboot: int = 1000
    quantiles: Tuple[float, ...] = (0.90, 0.95, 0.99)


@dataclass
class PerformanceConfig:
    """
    Parallel fan-out settings.

    Attributes:
        parallel: Whether simulators create a worker pool when none is given
        max_workers: Number of workers; None uses the CPU count minus one
        backend: Executor backend ("process", "thread" or "sequential")
        chunksize: Units submitted per task; None picks a size from the
            number of units and workers
    """
    parallel: bool = False
    max_workers: Optional[int] = None
    backend: str = "process"
    chunksize: Optional[int] = None


@dataclass
class ExuberConfig:
    """Complete configuration, one attribute per section."""
    core: CoreConfig = field(default_factory=CoreConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


def _coerce(value: Any, hint: Any, section: str, option: str) -> Any:
    """Convert ``value`` to the type declared by a dataclass field."""
    origin = get_origin(hint)

    if origin is Union:
        if value is None or (isinstance(value, str) and value.strip().lower() in _NONE_STRINGS):
            return None
        inner = [arg for arg in get_args(hint) if arg is not type(None)][0]
        return _coerce(value, inner, section, option)

    try:
        if hint is bool:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
                raise ValueError(f"cannot interpret {value!r} as a boolean")
            if isinstance(value, bool):
                return value
            raise TypeError(f"expected a boolean, got {type(value).__name__}")
        if hint is int:
            if isinstance(value, bool):
                raise TypeError("expected an integer, got bool")
            if isinstance(value, float):
                if not value.is_integer():
                    raise ValueError(f"{value} is not integral")
                return int(value)
            return int(value)
        if hint is float:
            return float(value)
        if hint is str:
            if not isinstance(value, str):
                raise TypeError(f"expected a string, got {type(value).__name__}")
            return value
        if origin is tuple:
            if isinstance(value, str):
                value = [item for item in value.split(",") if item.strip()]
            return tuple(float(item) for item in value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for configuration option {section}.{option}: {value!r}",
            section=section,
            option=option,
            value=value,
            details=str(e)
        ) from e

    return value


def _check_constraints(section: str, obj: Any) -> None:
    """Validate the value constraints of a configuration section.

    Raises:
        ConfigurationError: If any option violates its constraint
    """
    def fail(option: str, constraint: str) -> None:
        value = getattr(obj, option)
        raise ConfigurationError(
            f"Invalid value for configuration option {section}.{option}: "
            f"{value!r} ({constraint})",
            section=section,
            option=option,
            value=value
        )

    if section == "core":
        if obj.random_seed is not None and obj.random_seed < 0:
            fail("random_seed", "must be None or a non-negative integer")
        if obj.log_level.upper() not in LOG_LEVELS:
            fail("log_level", f"must be one of {', '.join(LOG_LEVELS)}")
    elif section == "numerical":
        if obj.refresh_interval < 0:
            fail("refresh_interval", "must be a non-negative integer")
        if not obj.rank_tolerance > 0:
            fail("rank_tolerance", "must be positive")
    elif section == "simulation":
        if obj.nrep <= 0:
            fail("nrep", "must be a positive integer")
        if obj.nboot <= 0:
            fail("nboot", "must be a positive integer")
        q = obj.quantiles
        if len(q) != 3 or not all(0 < a < 1 for a in q) or not (q[0] < q[1] < q[2]):
            fail("quantiles", "must be three increasing levels in (0, 1)")
    elif section == "performance":
        if obj.max_workers is not None and obj.max_workers < 1:
            fail("max_workers", "must be None or a positive integer")
        if obj.backend not in POOL_BACKENDS:
            fail("backend", f"must be one of {', '.join(POOL_BACKENDS)}")
        if obj.chunksize is not None and obj.chunksize < 1:
            fail("chunksize", "must be None or a positive integer")


class ConfigManager:
    """
    Manager of the layered exuber configuration.

    The manager is initialized lazily on first access; it then reads the JSON
    file named by ``EXUBER_CONFIG_FILE`` (if any) and applies environment
    variable overrides on top of the defaults.
    """

    def __init__(self) -> None:
        self._config = ExuberConfig()
        self._initialized = False

    def initialize(self) -> None:
        """Load the configuration file and apply environment overrides."""
        self._config = ExuberConfig()
        self._load_config_file()
        self._apply_environment_overrides()
        self._initialized = True
        logger.debug("Configuration initialized")

    def _section(self, section: str) -> Any:
        try:
            ConfigSection(section)
        except ValueError:
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                section=section,
                details=f"Valid sections: {', '.join(s.value for s in ConfigSection)}"
            ) from None
        return getattr(self._config, section)

    def _hint(self, section: str, option: str) -> Any:
        section_obj = self._section(section)
        hints = get_type_hints(type(section_obj))
        if option not in hints:
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                section=section,
                option=option,
                details=f"Valid options: {', '.join(hints)}"
            )
        return hints[option]

    def _load_config_file(self) -> None:
        """Load overrides from the JSON file named by ``EXUBER_CONFIG_FILE``."""
        filename = os.environ.get(CONFIG_FILE_ENV)
        if not filename:
            return

        path = Path(filename).expanduser()
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration file {path}",
                option=CONFIG_FILE_ENV,
                value=str(path),
                details=str(e)
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {path} must contain a JSON object of sections",
                value=str(path)
            )

        for section, options in data.items():
            if not isinstance(options, dict):
                raise ConfigurationError(
                    f"Configuration section '{section}' in {path} must be a JSON object",
                    section=section,
                    value=options
                )
            for option, value in options.items():
                self.set(section, option, value)

        logger.debug(f"Loaded configuration from {path}")

    def _apply_environment_overrides(self) -> None:
        """Apply ``EXUBER_<SECTION>_<OPTION>`` environment variables."""
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var == CONFIG_FILE_ENV:
                continue

            if env_var == LOG_LEVEL_ENV:
                section, option = "core", "log_level"
            else:
                key = env_var[len(CONFIG_ENV_PREFIX):].lower()
                section, _, option = key.partition("_")
                if section not in {s.value for s in ConfigSection}:
                    continue
                if option not in {f.name for f in fields(getattr(self._config, section))}:
                    continue

            try:
                self.set(section, option, value)
                logger.debug(f"Applied environment override: {env_var}={value}")
            except ConfigurationError as e:
                logger.warning(f"Failed to apply environment override {env_var}: {e.message}")

    def get(self, section: str, option: str) -> Any:
        """
        Get a configuration value.

        Args:
            section: The configuration section
            option: The configuration option

        Returns:
            The configuration value

        Raises:
            ConfigurationError: If the section or option is not found
        """
        self._hint(section, option)
        return getattr(self._section(section), option)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        The value is converted to the field type and checked against the
        option's constraint before it replaces the current value.

        Args:
            section: The configuration section
            option: The configuration option
            value: The value to set

        Raises:
            ConfigurationError: If the section or option is not found, or the
                value is invalid
        """
        typed_value = _coerce(value, self._hint(section, option), section, option)
        if option == "log_level":
            typed_value = typed_value.upper()

        updated = replace(self._section(section), **{option: typed_value})
        _check_constraints(section, updated)
        setattr(self._config, section, updated)

        if option == "log_level":
            logging.getLogger("exuber").setLevel(getattr(logging, typed_value))

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to default values.

        Args:
            section: The configuration section to reset, or None to reset all
            option: The configuration option to reset, or None to reset the
                entire section

        Raises:
            ConfigurationError: If the section or option is not found
        """
        defaults = ExuberConfig()
        if section is None:
            self._config = defaults
            logger.debug("Reset all configuration to defaults")
            return

        self._section(section)
        default_section = getattr(defaults, section)
        if option is None:
            setattr(self._config, section, default_section)
            logger.debug(f"Reset configuration section: {section}")
            return

        self._hint(section, option)
        self.set(section, option, getattr(default_section, option))
        logger.debug(f"Reset configuration option: {section}.{option}")

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Return the configuration as a nested dictionary."""
        return asdict(self._config)


# Create a singleton instance of the configuration manager
_config_manager = ConfigManager()


def initialize_config() -> None:
    """
    Initialize the configuration system.

    Re-reads the configuration file and the environment, discarding runtime
    modifications.
    """
    _config_manager.initialize()


def get_config(section: str, option: str) -> Any:
    """
    Get a configuration value.

    Args:
        section: The configuration section
        option: The configuration option

    Returns:
        The configuration value

    Raises:
        ConfigurationError: If the section or option is not found
    """
    if not _config_manager._initialized:
        initialize_config()

    return _config_manager.get(section, option)


def set_config(section: str, option: str, value: Any) -> None:
    """
    Set a configuration value.

    Args:
        section: The configuration section
        option: The configuration option
        value: The value to set

    Raises:
        ConfigurationError: If the section or option is not found, or the
            value is invalid
    """
    if not _config_manager._initialized:
        initialize_config()

    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """
    Reset configuration to default values.

    Args:
        section: The configuration section to reset, or None to reset all
        option: The configuration option to reset, or None to reset the entire section

    Raises:
        ConfigurationError: If the section or option is not found
    """
    if not _config_manager._initialized:
        initialize_config()

    _config_manager.reset(section, option)


def to_dict() -> Dict[str, Dict[str, Any]]:
    """Return the current configuration as a nested dictionary."""
    if not _config_manager._initialized:
        initialize_config()

    return _config_manager.to_dict()


def get_config_manager() -> ConfigManager:
    """
    Get the configuration manager instance.

    Returns:
        The configuration manager instance
    """
    if not _config_manager._initialized:
        initialize_config()

    return _config_manager
