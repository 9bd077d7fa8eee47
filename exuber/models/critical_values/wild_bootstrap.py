'''
Wild bootstrap critical values for the recursive ADF statistics.

For every series a restricted null model, a random walk with drift and
``lag`` lagged differences

    dy_t = mu + sum_{j=1..lag} phi_j * dy_{t-j} + e_t,

is fitted by least squares. Each bootstrap replication multiplies the
residuals by independent Rademacher draws (or standard-normal draws),
rebuilds the differences recursively from the fitted model, cumulates them
from the first observation and runs the recursive sweep on the result.
Sign-flipping keeps the heteroskedasticity of each series, so the critical
values are series specific.

Series k uses child k of ``numpy.random.SeedSequence(seed)``, and its
replication b uses child b of that sequence.
'''

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import statsmodels.api as sm
from scipy import signal

from exuber.core.config import get_config
from exuber.core.results import CriticalValueMetadata, WildBootstrapCV, empirical_quantiles
from exuber.core.types import BootstrapDistribution, CVMethod, PanelData, ProgressCallback
from exuber.core.validation import (
    validate_nonnegative_int, validate_option, validate_positive_int, validate_window
)
from exuber.models.recursive.radf import SeriesStatistics, default_minw, report_failures, sweep
from exuber.utils.data_transformations import extract_panel
from exuber.utils.parallel import WorkerPool, pool_scope

# Set up module-level logger
logger = logging.getLogger("exuber.models.critical_values.wild_bootstrap")

DISTRIBUTIONS = ("rademacher", "normal")


@dataclass(frozen=True, eq=False)
class NullModel:
    """Fitted unit-root null model of one series.

    Attributes:
        y0: First observation of the level series
        dy_init: The first ``lag`` differences, used as initial conditions
        intercept: Drift of the differences
        phi: Coefficients of the lagged differences, shape (lag,)
        resid: Residuals, shape (n - 1 - lag,)
    """
    y0: float
    dy_init: np.ndarray
    intercept: float
    phi: np.ndarray
    resid: np.ndarray

    @property
    def lag(self) -> int:
        return self.phi.shape[0]

    def simulate(self, rng: np.random.Generator, dist: str = "rademacher") -> np.ndarray:
        """
        Draw one bootstrap level series.

        Args:
            rng: Generator of the replication
            dist: Multiplier distribution, "rademacher" or "normal"

        Returns:
            np.ndarray: Bootstrap series of the original length
        """
        m = self.resid.shape[0]
        if dist == "normal":
            weights = rng.standard_normal(m)
        else:
            weights = rng.integers(0, 2, size=m) * 2.0 - 1.0
        shocks = self.intercept + weights * self.resid

        if self.lag == 0:
            dy_new = shocks
        else:
            a = np.concatenate(([1.0], -self.phi))
            zi = signal.lfiltic([1.0], a, self.dy_init[::-1])
            dy_new, _ = signal.lfilter([1.0], a, shocks, zi=zi)

        dy = np.concatenate((self.dy_init, dy_new))
        return self.y0 + np.concatenate(([0.0], np.cumsum(dy)))


def fit_null_model(y: np.ndarray, lag: int) -> NullModel:
    """
    Fit the restricted null model of a series by least squares.

    Args:
        y: Level series of length n
        lag: Number of lagged differences

    Returns:
        NullModel: Drift, lag coefficients and residuals
    """
    dy = np.diff(y)
    m = dy.shape[0] - lag
    X = np.ones((m, lag + 1))
    for j in range(1, lag + 1):
        X[:, j] = dy[lag - j:lag - j + m]

    fit = sm.OLS(dy[lag:], X).fit()
    params = np.asarray(fit.params)
    return NullModel(
        y0=float(y[0]),
        dy_init=dy[:lag].copy(),
        intercept=float(params[0]),
        phi=params[1:].copy(),
        resid=np.asarray(fit.resid).copy()
    )


def bootstrap_replication(unit: Tuple[int, np.random.SeedSequence],
                          models: Sequence[NullModel], dist: str, minw: int, lag: int,
                          refresh_interval: int, rank_tol: float) -> SeriesStatistics:
    """Simulate and sweep one bootstrap series of series ``unit[0]``."""
    series, seed = unit
    rng = np.random.default_rng(seed)
    y = models[series].simulate(rng, dist)
    return sweep(y, minw, lag, refresh_interval=refresh_interval, rank_tol=rank_tol)


def wb_cv(data: PanelData,
          minw: Optional[int] = None,
          lag: int = 0,
          nboot: Optional[int] = None,
          seed: Optional[int] = None,
          dist: BootstrapDistribution = "rademacher",
          *,
          pool: Optional[WorkerPool] = None,
          parallel: Optional[bool] = None,
          progress_callback: Optional[ProgressCallback] = None) -> WildBootstrapCV:
    """
    Wild bootstrap critical values, one set per series.

    Args:
        data: A series or several series (one column per series)
        minw: Minimum window; defaults to floor((0.01 + 1.8 / sqrt(n)) * n)
        lag: Lag order of the null model and of the recursive regressions
        nboot: Number of bootstrap replications per series; defaults to
            ``simulation.nboot``
        seed: Seed of the replications; defaults to ``core.random_seed``
        dist: Multiplier distribution, "rademacher" or "normal"
        pool: Worker pool over which the replications are distributed
        parallel: Create a pool from the ``performance`` options when no pool
            is given; defaults to ``performance.parallel``
        progress_callback: Called with the completed fraction and a message

    Returns:
        WildBootstrapCV: Critical values of shape (K, 3) for ADF, SADF and
        GSADF and of shape (n - minw - lag, 3, K) for the BADF and BSADF
        surfaces

    Raises:
        ParameterError: If an argument is invalid
        DataError: If the data contains non-numeric, missing or infinite values
        SimulationError: If a replication fails
    """
    lag = validate_nonnegative_int(lag, "lag")
    nboot = validate_positive_int(get_config("simulation", "nboot") if nboot is None else nboot, "nboot")
    if seed is None:
        seed = get_config("core", "random_seed")
    if seed is not None:
        seed = validate_nonnegative_int(seed, "seed")
    dist = validate_option(dist, "dist", DISTRIBUTIONS)
    if minw is not None:
        minw = validate_positive_int(minw, "minw")

    values, _, col_names = extract_panel(data)
    n_obs, n_series = values.shape
    if minw is None:
        minw = default_minw(n_obs)
    validate_window(minw, lag, n_obs)

    logger.info(f"Simulating {nboot} wild bootstrap replications for {n_series} series "
                f"(n={n_obs}, minw={minw}, lag={lag}, dist={dist})")

    models = [fit_null_model(values[:, j], lag) for j in range(n_series)]
    series_seeds = np.random.SeedSequence(seed).spawn(n_series)
    units = [(j, child) for j in range(n_series) for child in series_seeds[j].spawn(nboot)]

    func = partial(
        bootstrap_replication,
        models=models,
        dist=dist,
        minw=minw,
        lag=lag,
        refresh_interval=get_config("numerical", "refresh_interval"),
        rank_tol=get_config("numerical", "rank_tolerance")
    )
    with pool_scope(pool, parallel) as workers:
        stats: List[SeriesStatistics] = workers.map(
            func, units, progress_callback, "wild bootstrap replications"
        )

    report_failures(sum(s.n_failed for s in stats), "wild bootstrap replications")

    levels = get_config("simulation", "quantiles")
    per_series = [stats[j * nboot:(j + 1) * nboot] for j in range(n_series)]

    def quantiles(name: str) -> List[np.ndarray]:
        if name in ("badf", "bsadf"):
            return [empirical_quantiles(np.vstack([getattr(s, name) for s in block]), levels)
                    for block in per_series]
        return [empirical_quantiles(np.array([getattr(s, name) for s in block]), levels)
                for block in per_series]

    logger.info(f"Finished {nboot} wild bootstrap replications for {n_series} series")

    return WildBootstrapCV(
        adf_cv=np.vstack(quantiles("adf")),
        sadf_cv=np.vstack(quantiles("sadf")),
        gsadf_cv=np.vstack(quantiles("gsadf")),
        badf_cv=np.stack(quantiles("badf"), axis=-1),
        bsadf_cv=np.stack(quantiles("bsadf"), axis=-1),
        metadata=CriticalValueMetadata(
            method=CVMethod.WILD_BOOTSTRAP,
            iterations=nboot,
            minw=minw,
            lag=lag,
            n_obs=n_obs
        ),
        col_names=tuple(col_names)
    )


async def wb_cv_async(data: PanelData, *args: Any, **kwargs: Any) -> WildBootstrapCV:
    """
    Asynchronously compute wild bootstrap critical values.

    Runs :func:`wb_cv` in the event loop's default executor so that the
    caller is not blocked. Arguments are those of :func:`wb_cv`.

    Returns:
        WildBootstrapCV: The critical values
    """
    loop = asyncio.get_event_loop()
    result = await loop.run_in_executor(None, lambda: wb_cv(data, *args, **kwargs))
    return result
