'''
Recursive right-tailed ADF statistics (ADF, SADF, GSADF).

This module implements the Phillips-Shi-Yu recursive unit-root statistics
used to detect explosive regimes. For one series and a minimum window of
``minw`` regression rows it computes:

- ADF: the Dickey-Fuller t-statistic over the full sample;
- BADF: the statistic of the windows starting at the first row, one value per
  end-point; SADF is its supremum;
- BSADF: for every end-point, the supremum over all admissible window starts;
  GSADF is its supremum.

The windows are fitted with the recursive least-squares kernel, so that each
start costs one direct fit followed by cheap rank-1 updates.

Example:
    >>> import numpy as np
    >>> from exuber import radf
    >>> y = np.cumsum(np.random.default_rng(1).standard_normal(100))
    >>> result = radf(y)
    >>> result.gsadf >= result.sadf
    array([ True])
'''

import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Optional

import numpy as np

from exuber.core.config import get_config
from exuber.core.exceptions import warn_numeric
from exuber.core.results import RadfMetadata, RadfResult
from exuber.core.types import PanelData
from exuber.core.validation import (
    validate_nonnegative_int, validate_positive_int, validate_window
)
from exuber.models.recursive._numba_core import recursive_sweep
from exuber.utils.data_transformations import extract_panel
from exuber.utils.parallel import WorkerPool

# Set up module-level logger
logger = logging.getLogger("exuber.models.recursive.radf")


def default_minw(n: int) -> int:
    """
    Default minimum window for a sample of ``n`` observations.

    Follows the rule of Phillips, Shi and Yu (2015): floor((0.01 + 1.8 / sqrt(n)) * n).

    Args:
        n: Number of observations

    Returns:
        int: Minimum window in regression rows
    """
    n = validate_positive_int(n, "n")
    return int(np.floor((0.01 + 1.8 / np.sqrt(n)) * n))


def _nanmax(values: np.ndarray) -> float:
    finite = values[np.isfinite(values)]
    return float(finite.max()) if finite.size else np.nan


@dataclass(frozen=True, eq=False)
class SeriesStatistics:
    """Recursive statistics of a single series.

    Attributes:
        adf: Full-sample ADF statistic
        sadf: Supremum of the BADF surface
        gsadf: Supremum of the BSADF surface
        badf: BADF surface, shape (n - minw - lag,)
        bsadf: BSADF surface, shape (n - minw - lag,)
        n_failed: Number of windows with a singular or degenerate fit
    """
    adf: float
    sadf: float
    gsadf: float
    badf: np.ndarray
    bsadf: np.ndarray
    n_failed: int


def sweep(y: np.ndarray, minw: int, lag: int,
          refresh_interval: Optional[int] = None,
          rank_tol: Optional[float] = None) -> SeriesStatistics:
    """
    Compute the recursive statistics of one series.

    The window arguments are assumed to be validated; this is the unit of work
    submitted to a :class:`~exuber.utils.parallel.WorkerPool`.

    Args:
        y: Level series of length n
        minw: Minimum window (regression rows)
        lag: Lag order
        refresh_interval: Rank-1 updates between direct re-fits; defaults to
            the ``numerical.refresh_interval`` option
        rank_tol: Relative singular value tolerance; defaults to the
            ``numerical.rank_tolerance`` option

    Returns:
        SeriesStatistics: ADF, SADF, GSADF and the BADF/BSADF surfaces
    """
    if refresh_interval is None:
        refresh_interval = get_config("numerical", "refresh_interval")
    if rank_tol is None:
        rank_tol = get_config("numerical", "rank_tolerance")

    y = np.ascontiguousarray(y, dtype=np.float64)
    adf, badf, bsadf, n_failed = recursive_sweep(y, minw, lag, refresh_interval, rank_tol)
    return SeriesStatistics(
        adf=float(adf),
        sadf=_nanmax(badf),
        gsadf=_nanmax(bsadf),
        badf=badf,
        bsadf=bsadf,
        n_failed=int(n_failed)
    )


def report_failures(n_failed: int, context: str) -> None:
    """Log and warn about windows whose regression could not be fitted."""
    if n_failed > 0:
        message = (f"{n_failed} regression windows in {context} were singular or had "
                   f"no residual variance; their statistics are NaN")
        logger.warning(message)
        warn_numeric(message, operation=context, issue="singular window", value=n_failed)


def radf(data: PanelData,
         minw: Optional[int] = None,
         lag: int = 0,
         *,
         pool: Optional[WorkerPool] = None) -> RadfResult:
    """
    Recursive ADF statistics of one or more series.

    Args:
        data: A series (1-D array, list, pandas Series) or several series
            (2-D array with one column per series, pandas DataFrame)
        minw: Minimum window in regression rows; defaults to
            floor((0.01 + 1.8 / sqrt(n)) * n)
        lag: Number of lagged differences in every regression
        pool: Optional worker pool over which the series are distributed

    Returns:
        RadfResult: ADF, SADF and GSADF per series, the BADF and BSADF
        surfaces of length n - minw - lag, and the window, lag, index and
        series names

    Raises:
        ParameterError: If ``minw`` or ``lag`` is invalid for the sample
        DataError: If the data contains non-numeric, missing or infinite values
        SimulationError: If a series fails on a worker of ``pool``
    """
    lag = validate_nonnegative_int(lag, "lag")
    if minw is not None:
        minw = validate_positive_int(minw, "minw")

    values, index, col_names = extract_panel(data)
    n_obs, n_series = values.shape
    if minw is None:
        minw = default_minw(n_obs)
    validate_window(minw, lag, n_obs)

    logger.debug(f"Computing recursive statistics for {n_series} series "
                 f"(n={n_obs}, minw={minw}, lag={lag})")

    func = partial(
        sweep,
        minw=minw,
        lag=lag,
        refresh_interval=get_config("numerical", "refresh_interval"),
        rank_tol=get_config("numerical", "rank_tolerance")
    )
    columns = [values[:, j].copy() for j in range(n_series)]
    if pool is None:
        stats: List[SeriesStatistics] = [func(column) for column in columns]
    else:
        stats = pool.map(func, columns, description="series")

    report_failures(sum(s.n_failed for s in stats), "radf")

    return RadfResult(
        adf=np.array([s.adf for s in stats]),
        sadf=np.array([s.sadf for s in stats]),
        gsadf=np.array([s.gsadf for s in stats]),
        badf=np.column_stack([s.badf for s in stats]),
        bsadf=np.column_stack([s.bsadf for s in stats]),
        metadata=RadfMetadata(
            minw=minw,
            lag=lag,
            index=index,
            col_names=tuple(col_names),
            n_obs=n_obs
        )
    )
