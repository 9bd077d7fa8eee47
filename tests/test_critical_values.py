# tests/test_critical_values.py
"""
Tests for the Monte Carlo and wild bootstrap critical values.

These tests cover the shapes and ordering of the simulated quantiles,
reproducibility under a seed, the configuration defaults, the fitted null
model of the wild bootstrap and the asynchronous wrappers.
"""

import numpy as np
import pytest
import statsmodels.api as sm
from numpy.testing import assert_allclose, assert_array_equal

from exuber.core.config import set_config
from exuber.core.exceptions import DataError, ParameterError
from exuber.core.results import MonteCarloCV, WildBootstrapCV
from exuber.core.types import CVMethod
from exuber.models.critical_values.monte_carlo import (
    mc_cv, mc_cv_async, mc_distribution, simulate_replication
)
from exuber.models.critical_values.wild_bootstrap import (
    fit_null_model, wb_cv, wb_cv_async
)


def assert_ordered_levels(values):
    """Critical values must not decrease from 90% to 95% to 99%."""
    values = np.asarray(values)
    finite = np.all(np.isfinite(values), axis=-1)
    ordered = values[finite]
    assert np.all(np.diff(ordered, axis=-1) >= 0)


class FakeRng:
    """Generator stand-in whose Rademacher draws are all +1."""

    def integers(self, low, high, size=None):
        return np.ones(size, dtype=np.int64)

    def standard_normal(self, size=None):
        return np.ones(size)


class TestMonteCarlo:
    """Tests for mc_cv and mc_distribution."""

    def test_shapes(self):
        cv = mc_cv(60, nrep=50, seed=1)

        assert isinstance(cv, MonteCarloCV)
        assert cv.method == CVMethod.MONTE_CARLO
        assert cv.iterations == 50
        assert cv.minw == 14
        assert cv.lag == 0
        assert cv.adf_cv.shape == (3,)
        assert cv.sadf_cv.shape == (3,)
        assert cv.gsadf_cv.shape == (3,)
        assert cv.badf_cv.shape == (60 - 14, 3)
        assert cv.bsadf_cv.shape == (60 - 14, 3)

    def test_levels_are_ordered(self, small_mc_cv):
        for name in ("adf_cv", "sadf_cv", "gsadf_cv", "badf_cv", "bsadf_cv"):
            assert_ordered_levels(getattr(small_mc_cv, name))

    def test_gsadf_critical_values_exceed_sadf(self, small_mc_cv):
        assert np.all(small_mc_cv.gsadf_cv >= small_mc_cv.sadf_cv)

    def test_seed_reproduces(self):
        first = mc_cv(60, nrep=40, seed=7)
        second = mc_cv(60, nrep=40, seed=7)
        other = mc_cv(60, nrep=40, seed=8)

        assert_array_equal(first.gsadf_cv, second.gsadf_cv)
        assert_array_equal(first.bsadf_cv, second.bsadf_cv)
        assert not np.array_equal(first.bsadf_cv, other.bsadf_cv)

    def test_distribution_summarizes_to_critical_values(self):
        distribution = mc_distribution(60, nrep=40, seed=3)
        cv = mc_cv(60, nrep=40, seed=3)

        assert distribution.gsadf.shape == (40,)
        assert distribution.bsadf.shape == (40, 46)
        assert_array_equal(distribution.to_critical_values().bsadf_cv, cv.bsadf_cv)
        assert_allclose(cv.gsadf_cv, np.quantile(distribution.gsadf, [0.90, 0.95, 0.99]))

    def test_replication_is_a_unit_of_work(self):
        children = np.random.SeedSequence(11).spawn(3)
        distribution = mc_distribution(60, nrep=3, seed=11)
        stats = simulate_replication(children[2], 60, 14, 0, 100, 1e-10)

        assert distribution.gsadf[2] == stats.gsadf
        assert_array_equal(distribution.bsadf[2], stats.bsadf)

    def test_lag_and_window(self):
        cv = mc_cv(80, minw=20, lag=2, nrep=30, seed=2)
        assert cv.minw == 20
        assert cv.lag == 2
        assert cv.bsadf_cv.shape == (80 - 20 - 2, 3)

    def test_invalid_nrep(self):
        with pytest.raises(ParameterError, match="Argument 'nrep' should be a positive integer"):
            mc_cv(60, nrep=0)
        with pytest.raises(ParameterError, match="Argument 'nrep' should be a positive integer"):
            mc_cv(60, nrep=2.5)

    def test_invalid_window(self):
        with pytest.raises(ParameterError, match="Argument 'n' should be a positive integer"):
            mc_cv(-5, nrep=10)
        with pytest.raises(ParameterError):
            mc_cv(20, minw=19, nrep=10)

    def test_defaults_from_config(self):
        set_config("simulation", "nrep", 20)
        set_config("core", "random_seed", 5)

        cv = mc_cv(60)

        assert cv.iterations == 20
        assert_array_equal(cv.gsadf_cv, mc_cv(60, nrep=20, seed=5).gsadf_cv)

    def test_configured_levels(self):
        set_config("simulation", "quantiles", (0.5, 0.9, 0.95))
        cv = mc_cv(60, nrep=40, seed=3)
        distribution = mc_distribution(60, nrep=40, seed=3)

        assert_allclose(cv.adf_cv, np.quantile(distribution.adf, [0.5, 0.9, 0.95]))

    def test_summary(self, small_mc_cv):
        text = small_mc_cv.summary()
        assert "Monte Carlo" in text
        assert "GSADF" in text
        assert "Iterations: 200" in text

    def test_for_series_is_pooled(self, small_mc_cv):
        assert small_mc_cv.for_series(0).gsadf is small_mc_cv.for_series(5).gsadf


class TestNullModel:
    """Tests for the restricted null model of the wild bootstrap."""

    def test_drift_only(self, random_walk):
        model = fit_null_model(random_walk, 0)
        dy = np.diff(random_walk)

        assert model.lag == 0
        assert_allclose(model.intercept, dy.mean())
        assert_allclose(model.resid, dy - dy.mean(), atol=1e-10)

    def test_matches_least_squares(self, random_walk):
        lag = 2
        model = fit_null_model(random_walk, lag)
        dy = np.diff(random_walk)
        X = sm.add_constant(np.column_stack([dy[1:-1], dy[:-2]]))
        params = np.linalg.lstsq(X, dy[2:], rcond=None)[0]

        assert model.lag == 2
        assert_allclose(model.intercept, params[0], rtol=1e-8)
        assert_allclose(model.phi, params[1:], rtol=1e-8)
        assert_array_equal(model.dy_init, dy[:2])
        assert model.resid.shape == (len(random_walk) - 1 - lag,)

    @pytest.mark.parametrize("lag", [0, 1, 3])
    def test_unit_weights_reproduce_series(self, random_walk, lag):
        model = fit_null_model(random_walk, lag)
        simulated = model.simulate(FakeRng())

        assert simulated.shape == random_walk.shape
        assert_allclose(simulated, random_walk, rtol=1e-8, atol=1e-8)

    def test_rademacher_weights_flip_signs(self, random_walk):
        model = fit_null_model(random_walk, 0)
        simulated = model.simulate(np.random.default_rng(0))
        shocks = np.diff(simulated) - model.intercept

        assert simulated[0] == random_walk[0]
        assert_allclose(np.abs(shocks), np.abs(model.resid), atol=1e-10)

    def test_normal_weights(self, random_walk):
        model = fit_null_model(random_walk, 1)
        simulated = model.simulate(np.random.default_rng(0), "normal")
        assert simulated.shape == random_walk.shape
        assert np.isfinite(simulated).all()


class TestWildBootstrap:
    """Tests for wb_cv."""

    def test_shapes(self, panel_data):
        cv = wb_cv(panel_data, nboot=30, seed=1)

        assert isinstance(cv, WildBootstrapCV)
        assert cv.method == CVMethod.WILD_BOOTSTRAP
        assert cv.iterations == 30
        assert cv.minw == 19
        assert cv.n_series == 2
        assert cv.col_names == ("walk", "bubble")
        assert cv.adf_cv.shape == (2, 3)
        assert cv.gsadf_cv.shape == (2, 3)
        assert cv.badf_cv.shape == (100 - 19, 3, 2)
        assert cv.bsadf_cv.shape == (100 - 19, 3, 2)

        for name in ("adf_cv", "sadf_cv", "gsadf_cv"):
            assert_ordered_levels(getattr(cv, name))
        for i in range(2):
            assert_ordered_levels(cv.for_series(i).bsadf)

    def test_seed_reproduces(self, random_walk):
        first = wb_cv(random_walk, nboot=25, seed=4)
        second = wb_cv(random_walk, nboot=25, seed=4)

        assert first.col_names == ("Series1",)
        assert_array_equal(first.gsadf_cv, second.gsadf_cv)
        assert_array_equal(first.bsadf_cv, second.bsadf_cv)

    def test_lag_and_normal_multipliers(self, random_walk):
        cv = wb_cv(random_walk, minw=30, lag=2, nboot=20, seed=3, dist="normal")
        assert cv.lag == 2
        assert cv.bsadf_cv.shape == (200 - 30 - 2, 3, 1)

    def test_invalid_arguments(self, random_walk):
        with pytest.raises(ParameterError, match="Argument 'nboot' should be a positive integer"):
            wb_cv(random_walk, nboot=0)
        with pytest.raises(ParameterError, match="Argument 'dist'"):
            wb_cv(random_walk, nboot=10, dist="mammen")

    def test_missing_values(self, random_walk):
        y = random_walk.copy()
        y[3] = np.inf
        with pytest.raises(DataError):
            wb_cv(y, nboot=10)

    def test_for_series_out_of_range(self, random_walk):
        cv = wb_cv(random_walk, nboot=10, seed=1)
        with pytest.raises(ParameterError):
            cv.for_series(1)

    def test_summary_lists_series(self, panel_data):
        text = wb_cv(panel_data, nboot=10, seed=1).summary()
        assert "Wild Bootstrap" in text
        assert "walk" in text
        assert "bubble" in text


class TestAsync:
    """Tests for the asynchronous wrappers."""

    @pytest.mark.asyncio
    async def test_mc_cv_async(self):
        cv = await mc_cv_async(60, nrep=20, seed=2)
        assert_array_equal(cv.gsadf_cv, mc_cv(60, nrep=20, seed=2).gsadf_cv)

    @pytest.mark.asyncio
    async def test_wb_cv_async(self, random_walk):
        cv = await wb_cv_async(random_walk, nboot=10, seed=2)
        assert_array_equal(cv.bsadf_cv, wb_cv(random_walk, nboot=10, seed=2).bsadf_cv)
