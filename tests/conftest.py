'''
Pytest configuration and fixtures for the exuber test suite.

This module provides the data generators shared across the test suite
(random walks, an explosive episode with a collapse), a small Monte Carlo
critical value set, and isolation of the global configuration between tests.
'''

from typing import Tuple

import numpy as np
import pandas as pd
import pytest
from hypothesis import strategies as st
from hypothesis.extra.numpy import arrays

from exuber.core.config import initialize_config, reset_config
from exuber.models.critical_values.monte_carlo import mc_cv
from exuber.models.recursive._numba_core import unroot


# ---- Configuration isolation ----

@pytest.fixture(autouse=True)
def clean_config():
    """Start every test from the default configuration."""
    initialize_config()
    yield
    reset_config()


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def random_walk(rng: np.random.Generator) -> np.ndarray:
    """Gaussian random walk of 200 observations."""
    return np.cumsum(rng.standard_normal(200))


@pytest.fixture
def random_walk_design(random_walk: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """ADF design (response, regressors) of the random walk with one lag."""
    return unroot(random_walk, 1)


def make_explosive(rng: np.random.Generator, n: int = 100, start: int = 40, end: int = 60,
                   rho: float = 1.06, level: float = 100.0) -> np.ndarray:
    """Random walk with an explosive episode between ``start`` and ``end`` and a collapse after it."""
    e = rng.standard_normal(n)
    y = np.empty(n)
    y[0] = level
    for t in range(1, n):
        if start <= t <= end:
            y[t] = rho * y[t - 1] + e[t]
        elif t == end + 1:
            y[t] = y[start - 1] + e[t]
        else:
            y[t] = y[t - 1] + e[t]
    return y


@pytest.fixture
def explosive_series(rng: np.random.Generator) -> np.ndarray:
    """100 observations with an explosive episode at indices 40-60."""
    return make_explosive(rng)


@pytest.fixture
def panel_data(rng: np.random.Generator) -> pd.DataFrame:
    """A random walk and an explosive series as DataFrame columns."""
    walk = 100.0 + np.cumsum(rng.standard_normal(100))
    bubble = make_explosive(rng)
    return pd.DataFrame({"walk": walk, "bubble": bubble})


# ---- Critical value fixtures ----

@pytest.fixture(scope="session")
def small_mc_cv():
    """Monte Carlo critical values for n = 100 from 200 replications."""
    return mc_cv(100, nrep=200, seed=123)


# ---- Hypothesis strategies ----

series_strategy = arrays(
    dtype=np.float64,
    shape=st.integers(min_value=30, max_value=60),
    elements=st.floats(min_value=-3.0, max_value=3.0, allow_nan=False, allow_infinity=False),
)
