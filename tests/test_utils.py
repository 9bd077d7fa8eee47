# tests/test_utils.py
"""
Tests for the supporting utilities of exuber.

This module covers argument validation and its error messages, input
conversion of arrays, Series and DataFrames, the layered configuration
(defaults, JSON file, environment overrides and runtime changes), the error
hierarchy and the small enumerations shared across the package.
"""

import json
import logging

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_array_equal

import exuber
from exuber.core.config import (
    get_config, initialize_config, reset_config, set_config, to_dict
)
from exuber.core.exceptions import (
    ConfigurationError, DataError, DimensionError, ExuberError, InconclusiveError,
    ParameterError, ValidationError
)
from exuber.core.types import CVMethod, Significance
from exuber.core.validation import (
    validate_length, validate_nonnegative_int, validate_option, validate_positive_int,
    validate_window
)
from exuber.utils.data_transformations import extract_panel


# ---- Validation Tests ----

class TestValidation:
    """Tests for the argument checks."""

    @pytest.mark.parametrize("value", [1, 7, np.int64(3), 4.0])
    def test_positive_int_accepts(self, value):
        assert validate_positive_int(value, "nrep") == int(value)

    @pytest.mark.parametrize("value", [0, -3, 2.5, "10", None, True, np.nan])
    def test_positive_int_rejects(self, value):
        with pytest.raises(ParameterError, match="Argument 'nrep' should be a positive integer") as info:
            validate_positive_int(value, "nrep")
        assert info.value.param_name == "nrep"

    def test_nonnegative_int(self):
        assert validate_nonnegative_int(0, "lag") == 0
        with pytest.raises(ParameterError, match="Argument 'lag' should be a non-negative integer"):
            validate_nonnegative_int(-1, "lag")

    def test_option(self):
        assert validate_option("GSADF", "option", ("gsadf", "sadf")) == "gsadf"
        with pytest.raises(ParameterError, match="Argument 'option' should be one of 'gsadf', 'sadf'"):
            validate_option("badf", "option", ("gsadf", "sadf"))

    def test_window(self):
        validate_window(10, 2, 14)
        with pytest.raises(ParameterError, match="lag \\+ 2 = 4"):
            validate_window(4, 2, 100)
        with pytest.raises(ParameterError, match="at least minw \\+ lag \\+ 2 = 14"):
            validate_window(10, 2, 13)

    def test_length(self):
        validate_length([1, 2], 2, "index")
        with pytest.raises(DimensionError, match="length of index vectors does not match"):
            validate_length([1, 2, 3], 2, "index")


# ---- Data Conversion Tests ----

class TestExtractPanel:
    """Tests for converting input data."""

    def test_array(self):
        values, index, names = extract_panel([1, 2, 3, 4])
        assert values.shape == (4, 1)
        assert values.dtype == np.float64
        assert index.equals(pd.RangeIndex(4))
        assert names == ["Series1"]

    def test_matrix(self):
        values, _, names = extract_panel(np.arange(12).reshape(6, 2))
        assert values.shape == (6, 2)
        assert values.flags["C_CONTIGUOUS"]
        assert names == ["Series1", "Series2"]

    def test_series(self):
        dates = pd.date_range("2020-01-01", periods=5, freq="D")
        values, index, names = extract_panel(pd.Series(np.arange(5.0), index=dates, name="px"))
        assert names == ["px"]
        assert index.equals(dates)
        assert_array_equal(values[:, 0], np.arange(5.0))

        _, _, names = extract_panel(pd.Series(np.arange(5.0)))
        assert names == ["Series1"]

    def test_dataframe(self):
        frame = pd.DataFrame({"a": [1.0, 2.0, 3.0], 7: [4, 5, 6]}, index=[10, 20, 30])
        values, index, names = extract_panel(frame)
        assert names == ["a", "7"]
        assert list(index) == [10, 20, 30]
        assert_array_equal(values[:, 1], [4.0, 5.0, 6.0])

    def test_non_numeric(self):
        with pytest.raises(DataError, match="Data must be numeric"):
            extract_panel(pd.DataFrame({"a": ["x", "y"]}))

    def test_missing_values_name_the_series(self):
        frame = pd.DataFrame({"a": [1.0, 2.0], "b": [np.nan, 1.0]})
        with pytest.raises(DataError, match="Series 'b' contains missing or infinite values"):
            extract_panel(frame)

    def test_dimensions(self):
        with pytest.raises(DimensionError):
            extract_panel(np.zeros((2, 2, 2)))
        with pytest.raises(DimensionError):
            extract_panel([])


# ---- Configuration Tests ----

class TestConfiguration:
    """Tests for the layered configuration."""

    def test_defaults(self):
        assert get_config("numerical", "refresh_interval") == 100
        assert get_config("numerical", "rank_tolerance") == 1e-10
        assert get_config("simulation", "nrep") == 2000
        assert get_config("simulation", "quantiles") == (0.90, 0.95, 0.99)
        assert get_config("performance", "backend") == "process"
        assert get_config("core", "random_seed") is None

    def test_set_and_reset(self):
        set_config("simulation", "nboot", "250")
        assert get_config("simulation", "nboot") == 250

        reset_config("simulation", "nboot")
        assert get_config("simulation", "nboot") == 1000

        set_config("performance", "parallel", "yes")
        reset_config("performance")
        assert get_config("performance", "parallel") is False

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError):
            set_config("simulation", "nrep", 0)
        with pytest.raises(ConfigurationError):
            set_config("simulation", "nrep", "many")
        with pytest.raises(ConfigurationError):
            set_config("performance", "backend", "cluster")
        with pytest.raises(ConfigurationError):
            set_config("simulation", "quantiles", (0.99, 0.95, 0.90))

    def test_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration section"):
            get_config("plotting", "style")
        with pytest.raises(ConfigurationError, match="Unknown configuration option"):
            get_config("core", "style")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EXUBER_SIMULATION_NREP", "500")
        monkeypatch.setenv("EXUBER_CORE_RANDOM_SEED", "17")
        monkeypatch.setenv("EXUBER_PERFORMANCE_MAX_WORKERS", "none")
        monkeypatch.setenv("EXUBER_SIMULATION_QUANTILES", "0.8,0.9,0.95")
        initialize_config()

        assert get_config("simulation", "nrep") == 500
        assert get_config("core", "random_seed") == 17
        assert get_config("performance", "max_workers") is None
        assert get_config("simulation", "quantiles") == (0.8, 0.9, 0.95)

    def test_invalid_environment_override_is_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("EXUBER_SIMULATION_NREP", "-4")
        with caplog.at_level(logging.WARNING, logger="exuber.core.config"):
            initialize_config()

        assert get_config("simulation", "nrep") == 2000
        assert "EXUBER_SIMULATION_NREP" in caplog.text

    def test_config_file(self, monkeypatch, tmp_path):
        path = tmp_path / "exuber.json"
        path.write_text(json.dumps({"numerical": {"refresh_interval": 25},
                                    "performance": {"backend": "thread"}}))
        monkeypatch.setenv("EXUBER_CONFIG_FILE", str(path))
        monkeypatch.setenv("EXUBER_PERFORMANCE_BACKEND", "sequential")
        initialize_config()

        assert get_config("numerical", "refresh_interval") == 25
        assert get_config("performance", "backend") == "sequential"

    def test_broken_config_file(self, monkeypatch, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        monkeypatch.setenv("EXUBER_CONFIG_FILE", str(path))
        with pytest.raises(ConfigurationError, match="Failed to load configuration file"):
            initialize_config()

    def test_to_dict(self):
        config = to_dict()
        assert set(config) == {"core", "numerical", "simulation", "performance"}
        assert config["simulation"]["nboot"] == 1000

    def test_log_level(self):
        exuber.set_log_level("DEBUG")
        assert get_config("core", "log_level") == "DEBUG"
        assert logging.getLogger("exuber").level == logging.DEBUG
        exuber.set_log_level("info")
        assert logging.getLogger("exuber").level == logging.INFO


# ---- Exceptions and enumerations ----

class TestExceptions:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ParameterError, ValidationError)
        assert issubclass(ValidationError, ValueError)
        assert issubclass(InconclusiveError, ExuberError)
        assert not issubclass(InconclusiveError, ValidationError)

    def test_context_in_message(self):
        error = ParameterError("Argument 'lag' is invalid", param_name="lag", param_value=-1)
        text = str(error)
        assert "Argument 'lag' is invalid" in text
        assert "lag" in text

    def test_location_names_the_raising_module(self):
        error = ParameterError("Argument 'lag' is invalid", param_name="lag")
        assert "Location: test_utils.py:" in str(error)

        with pytest.raises(ParameterError) as info:
            validate_positive_int(0, "nrep")
        assert "Location: validation.py:" in str(info.value)
        assert "exceptions.py" not in str(info.value)


class TestEnumerations:
    """Tests for the shared enumerations."""

    def test_cv_method_values(self):
        assert CVMethod("Monte Carlo") is CVMethod.MONTE_CARLO
        assert CVMethod.WILD_BOOTSTRAP == "Wild Bootstrap"
        with pytest.raises(ValueError):
            CVMethod("sieve")

    def test_significance_order(self):
        assert Significance.P99 > Significance.P95 > Significance.P90 > Significance.REJECT
        assert max([Significance.P90, Significance.P99, Significance.REJECT]) is Significance.P99

    def test_version(self):
        assert exuber.get_version() == exuber.__version__

    def test_version_info(self):
        info = exuber.version.get_version_info()
        assert info["version"] == exuber.__version__
        assert set(info["dependencies"]) == {"numpy", "scipy", "pandas", "numba", "statsmodels"}
