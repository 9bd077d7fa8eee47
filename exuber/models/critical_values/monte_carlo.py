'''
Monte Carlo critical values for the recursive ADF statistics.

Critical values are simulated under the unit-root null: each replication
draws a Gaussian random walk of the requested length, runs the recursive
sweep on it and keeps the ADF, SADF and GSADF statistics together with the
BADF and BSADF surfaces. Empirical 90%, 95% and 99% quantiles across the
replications give the critical values, per statistic and per end-point.

Replication r draws from a generator seeded with child r of
``numpy.random.SeedSequence(seed)``, so results depend only on the seed and
the replication number, never on how replications are spread over workers.
'''

import asyncio
import logging
from functools import partial
from typing import Any, Optional

import numpy as np

from exuber.core.config import get_config
from exuber.core.results import CriticalValueMetadata, MonteCarloCV, MonteCarloDistribution
from exuber.core.types import CVMethod, ProgressCallback
from exuber.core.validation import (
    validate_nonnegative_int, validate_positive_int, validate_window
)
from exuber.models.recursive.radf import SeriesStatistics, default_minw, report_failures, sweep
from exuber.utils.parallel import WorkerPool, pool_scope

# Set up module-level logger
logger = logging.getLogger("exuber.models.critical_values.monte_carlo")


def simulate_replication(seed: np.random.SeedSequence, n: int, minw: int, lag: int,
                         refresh_interval: int, rank_tol: float) -> SeriesStatistics:
    """Draw one standard-normal random walk of length ``n`` and sweep it."""
    rng = np.random.default_rng(seed)
    y = np.cumsum(rng.standard_normal(n))
    return sweep(y, minw, lag, refresh_interval=refresh_interval, rank_tol=rank_tol)


def mc_distribution(n: int,
                    minw: Optional[int] = None,
                    lag: int = 0,
                    nrep: Optional[int] = None,
                    seed: Optional[int] = None,
                    *,
                    pool: Optional[WorkerPool] = None,
                    parallel: Optional[bool] = None,
                    progress_callback: Optional[ProgressCallback] = None) -> MonteCarloDistribution:
    """
    Simulate the null distribution of the recursive statistics.

    Args:
        n: Sample size of the simulated random walks
        minw: Minimum window; defaults to floor((0.01 + 1.8 / sqrt(n)) * n)
        lag: Lag order of the regressions
        nrep: Number of replications; defaults to ``simulation.nrep``
        seed: Seed of the replications; defaults to ``core.random_seed``
        pool: Worker pool over which the replications are distributed
        parallel: Create a pool from the ``performance`` options when no pool
            is given; defaults to ``performance.parallel``
        progress_callback: Called with the completed fraction and a message

    Returns:
        MonteCarloDistribution: Statistics of every replication

    Raises:
        ParameterError: If an argument is invalid
        SimulationError: If a replication fails
    """
    n = validate_positive_int(n, "n")
    lag = validate_nonnegative_int(lag, "lag")
    nrep = validate_positive_int(get_config("simulation", "nrep") if nrep is None else nrep, "nrep")
    if seed is None:
        seed = get_config("core", "random_seed")
    if seed is not None:
        seed = validate_nonnegative_int(seed, "seed")
    minw = default_minw(n) if minw is None else validate_positive_int(minw, "minw")
    validate_window(minw, lag, n)

    logger.info(f"Simulating {nrep} Monte Carlo replications (n={n}, minw={minw}, lag={lag})")

    func = partial(
        simulate_replication,
        n=n,
        minw=minw,
        lag=lag,
        refresh_interval=get_config("numerical", "refresh_interval"),
        rank_tol=get_config("numerical", "rank_tolerance")
    )
    children = np.random.SeedSequence(seed).spawn(nrep)
    with pool_scope(pool, parallel) as workers:
        stats = workers.map(func, children, progress_callback, "Monte Carlo replications")

    report_failures(sum(s.n_failed for s in stats), "Monte Carlo replications")
    logger.info(f"Finished {nrep} Monte Carlo replications")

    return MonteCarloDistribution(
        adf=np.array([s.adf for s in stats]),
        sadf=np.array([s.sadf for s in stats]),
        gsadf=np.array([s.gsadf for s in stats]),
        badf=np.vstack([s.badf for s in stats]),
        bsadf=np.vstack([s.bsadf for s in stats]),
        metadata=CriticalValueMetadata(
            method=CVMethod.MONTE_CARLO,
            iterations=nrep,
            minw=minw,
            lag=lag,
            n_obs=n
        )
    )


def mc_cv(n: int,
          minw: Optional[int] = None,
          lag: int = 0,
          nrep: Optional[int] = None,
          seed: Optional[int] = None,
          *,
          pool: Optional[WorkerPool] = None,
          parallel: Optional[bool] = None,
          progress_callback: Optional[ProgressCallback] = None) -> MonteCarloCV:
    """
    Monte Carlo critical values of the recursive statistics.

    Arguments are those of :func:`mc_distribution`. The critical values are
    the NaN-aware empirical quantiles at the ``simulation.quantiles`` levels
    (90%, 95% and 99% by default).

    Returns:
        MonteCarloCV: Critical values of shape (3,) for ADF, SADF and GSADF
        and of shape (n - minw - lag, 3) for the BADF and BSADF surfaces
    """
    distribution = mc_distribution(
        n, minw, lag, nrep, seed,
        pool=pool, parallel=parallel, progress_callback=progress_callback
    )
    return distribution.to_critical_values(get_config("simulation", "quantiles"))


async def mc_cv_async(n: int, *args: Any, **kwargs: Any) -> MonteCarloCV:
    """
    Asynchronously compute Monte Carlo critical values.

    Runs :func:`mc_cv` in the event loop's default executor so that the
    caller is not blocked. Arguments are those of :func:`mc_cv`.

    Returns:
        MonteCarloCV: The critical values
    """
    loop = asyncio.get_event_loop()
    result = await loop.run_in_executor(None, lambda: mc_cv(n, *args, **kwargs))
    return result
