# tests/test_radf.py
"""
Tests for the recursive ADF statistics.

This module checks the supremum invariants of the SADF and GSADF statistics,
the agreement of the surfaces with window-by-window direct fits, lag and index
handling, the result accessors, input validation, and fan-out over a worker
pool.
"""

import numpy as np
import pandas as pd
import pytest
from hypothesis import HealthCheck, given, settings
from numpy.testing import assert_allclose, assert_array_equal

from exuber.core.exceptions import (
    DataError, DimensionError, NumericWarning, ParameterError, ValidationError
)
from exuber.core.types import Dated, Named, Windowed
from exuber.models.recursive._numba_core import unroot
from exuber.models.recursive.kernel import ols_direct
from exuber.models.recursive.radf import default_minw, radf, sweep
from exuber.utils.parallel import WorkerPool
from tests.conftest import series_strategy


def assert_supremum_invariants(result):
    """SADF/GSADF bound their surfaces, and BSADF bounds BADF."""
    for i in range(result.n_series):
        badf = result.badf[:, i]
        bsadf = result.bsadf[:, i]
        finite = np.isfinite(badf)
        assert np.all(result.sadf[i] >= badf[finite])
        finite = np.isfinite(bsadf)
        assert np.all(result.gsadf[i] >= bsadf[finite])
        if np.isfinite(result.sadf[i]):
            assert result.gsadf[i] >= result.sadf[i]
        both = np.isfinite(badf) & np.isfinite(bsadf)
        assert np.all(bsadf[both] >= badf[both])


class TestDefaultWindow:
    """Tests for the default minimum window rule."""

    @pytest.mark.parametrize("n, expected", [(100, 19), (200, 27), (500, 45)])
    def test_rule(self, n, expected):
        assert default_minw(n) == expected

    def test_invalid_n(self):
        with pytest.raises(ParameterError, match="Argument 'n' should be a positive integer"):
            default_minw(0)


class TestRadfStatistics:
    """Tests for the statistics computed by radf."""

    def test_normal_draws(self, rng):
        y = rng.standard_normal(100)
        result = radf(y)

        assert result.minw == 19
        assert result.lag == 0
        assert np.isfinite(result.adf).all()
        assert np.isfinite(result.sadf).all()
        assert np.isfinite(result.gsadf).all()
        assert result.badf.shape == (100 - 19, 1)
        assert result.bsadf.shape == (100 - 19, 1)
        assert np.all(result.gsadf[0] >= result.bsadf[:, 0])
        assert_supremum_invariants(result)

    def test_matches_direct_window_fits(self, rng):
        y = np.cumsum(rng.standard_normal(40))
        minw, lag = 8, 1
        result = radf(y, minw=minw, lag=lag)
        yxmat, xmat = unroot(y, lag)
        m = yxmat.shape[0]

        full = ols_direct(yxmat, xmat)
        assert_allclose(result.adf[0], full.tstat, rtol=1e-8)

        for e in range(minw - 1, m):
            p = e - minw + 1
            badf = ols_direct(yxmat[:e + 1], xmat[:e + 1]).tstat
            bsadf = max(ols_direct(yxmat[s:e + 1], xmat[s:e + 1]).tstat
                        for s in range(0, e - minw + 2))
            assert_allclose(result.badf[p, 0], badf, rtol=1e-8)
            assert_allclose(result.bsadf[p, 0], bsadf, rtol=1e-8)

        assert_allclose(result.sadf[0], result.badf[:, 0].max())
        assert_allclose(result.gsadf[0], result.bsadf[:, 0].max())

    def test_lag_shifts_surfaces(self, random_walk):
        result = radf(random_walk, minw=30, lag=3)
        assert result.badf.shape == (200 - 30 - 3, 1)
        assert len(result.dating_index) == 200 - 30 - 3
        assert result.dating_index[0] == 30 + 3
        assert_supremum_invariants(result)

    def test_multiple_series(self, panel_data):
        result = radf(panel_data)

        assert result.col_names == ["walk", "bubble"]
        assert result.adf.shape == (2,)
        assert result.bsadf.shape == (100 - 19, 2)
        assert result.gsadf[1] > result.gsadf[0]
        assert_supremum_invariants(result)

        single = radf(panel_data["bubble"])
        assert_allclose(single.bsadf[:, 0], result.bsadf[:, 1])

    def test_explosive_series_has_large_gsadf(self, explosive_series):
        result = radf(explosive_series)
        assert result.gsadf[0] > 3.0

    def test_singular_windows_warn(self, rng):
        y = np.concatenate([np.zeros(30), np.cumsum(rng.standard_normal(50))])
        with pytest.warns(NumericWarning):
            result = radf(y, minw=10)

        assert np.isnan(result.badf[0, 0])
        assert np.isfinite(result.gsadf[0])

    def test_refresh_interval_from_config(self, random_walk):
        from exuber.core.config import set_config

        baseline = radf(random_walk, lag=1)
        set_config("numerical", "refresh_interval", 0)
        incremental = radf(random_walk, lag=1)

        assert_allclose(incremental.bsadf, baseline.bsadf, rtol=1e-8)

    @settings(max_examples=25, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(increments=series_strategy)
    def test_invariants_hold_for_any_series(self, increments):
        y = np.cumsum(increments)
        result = radf(y, minw=10, lag=1)
        assert_supremum_invariants(result)


class TestRadfResult:
    """Tests for the result accessors."""

    def test_protocols(self, random_walk):
        result = radf(random_walk)
        assert isinstance(result, Windowed)
        assert isinstance(result, Named)
        assert isinstance(result, Dated)

    def test_pandas_index_is_kept(self, random_walk):
        dates = pd.date_range("2000-01-01", periods=len(random_walk), freq="MS")
        result = radf(pd.Series(random_walk, index=dates, name="price"))

        assert result.col_names == ["price"]
        assert result.index.equals(dates)
        assert result.dating_index.equals(dates[result.minw:])

    def test_default_names(self, rng):
        data = np.cumsum(rng.standard_normal((80, 3)), axis=0)
        result = radf(data)
        assert result.col_names == ["Series1", "Series2", "Series3"]
        assert isinstance(result.index, pd.RangeIndex)

    def test_with_index_and_names(self, random_walk):
        result = radf(random_walk)
        dates = pd.date_range("2001-01-01", periods=200, freq="D")

        renamed = result.with_index(dates).with_col_names(["y"])

        assert renamed.index.equals(dates)
        assert renamed.col_names == ["y"]
        assert result.col_names == ["Series1"]
        assert_array_equal(renamed.bsadf, result.bsadf)

    def test_replacement_length_mismatch(self, random_walk):
        result = radf(random_walk)
        with pytest.raises(DimensionError, match="length of index vectors does not match"):
            result.with_index(range(10))
        with pytest.raises(DimensionError, match="length of col_names vectors does not match"):
            result.with_col_names(["a", "b"])

    def test_results_are_read_only(self, random_walk):
        result = radf(random_walk)
        with pytest.raises(ValueError):
            result.bsadf[0, 0] = 1.0

    def test_to_frame(self, panel_data):
        result = radf(panel_data)

        surface = result.to_frame("badf")
        assert list(surface.columns) == ["walk", "bubble"]
        assert surface.index.equals(result.dating_index)

        scalars = result.to_frame("gsadf")
        assert scalars.shape == (1, 2)
        assert scalars.index[0] == "GSADF"

        with pytest.raises(ParameterError):
            result.to_frame("psy")

    def test_summary(self, panel_data):
        text = radf(panel_data).summary()
        assert "GSADF" in text
        assert "bubble" in text
        assert "Minimum window: 19" in text


class TestRadfValidation:
    """Tests for input validation."""

    def test_negative_lag(self, random_walk):
        with pytest.raises(ParameterError, match="Argument 'lag' should be a non-negative integer"):
            radf(random_walk, lag=-1)

    def test_fractional_minw(self, random_walk):
        with pytest.raises(ParameterError, match="Argument 'minw' should be a positive integer"):
            radf(random_walk, minw=10.5)

    def test_minw_without_degrees_of_freedom(self, random_walk):
        with pytest.raises(ParameterError, match="greater than lag"):
            radf(random_walk, minw=3, lag=1)

    def test_series_too_short(self):
        with pytest.raises(ParameterError, match="too large"):
            radf(np.arange(20.0), minw=18, lag=1)

    def test_missing_values(self, random_walk):
        y = random_walk.copy()
        y[50] = np.nan
        with pytest.raises(DataError, match="missing or infinite"):
            radf(y)

    def test_non_numeric(self):
        with pytest.raises(DataError, match="numeric"):
            radf(["a"] * 50)

    def test_validation_errors_are_value_errors(self, random_walk):
        with pytest.raises(ValidationError):
            radf(random_walk, lag=-2)
        with pytest.raises(ValueError):
            radf(random_walk, lag=-2)


class TestRadfPool:
    """Tests for distributing series over a worker pool."""

    @pytest.mark.parametrize("backend", ["thread", "sequential"])
    def test_pool_matches_sequential(self, panel_data, backend):
        expected = radf(panel_data)
        with WorkerPool(max_workers=2, backend=backend) as pool:
            result = radf(panel_data, pool=pool)

        assert_array_equal(result.bsadf, expected.bsadf)
        assert_array_equal(result.gsadf, expected.gsadf)
        assert result.col_names == expected.col_names

    def test_sweep_unit(self, random_walk):
        stats = sweep(random_walk, 27, 0)
        result = radf(random_walk)
        assert_allclose(stats.gsadf, result.gsadf[0])
        assert stats.n_failed == 0
