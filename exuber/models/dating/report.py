'''
Summary, diagnostics and date-stamping of recursive unit-root tests.

This module combines a :class:`~exuber.core.results.RadfResult` with a set of
critical values:

- :func:`report` tabulates the ADF, SADF and GSADF statistics of every series
  next to their 90%, 95% and 99% critical values;
- :func:`diagnostics` classifies each series by the highest significance
  level at which it rejects the unit-root null in favour of an explosive root;
- :func:`datestamp` finds the origination, termination and duration of the
  explosive episodes of every series that rejects the null at the 95% level.

All three reject statistics and critical values computed with different
minimum windows. Critical value surfaces are aligned with the statistics by
observation, so critical values simulated for a longer sample or without lags
for a lagged regression can be used for dating.
'''

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np
import pandas as pd

from exuber.core.exceptions import (
    DimensionError, InconclusiveError, ParameterError, raise_dimension_error
)
from exuber.core.results import CriticalValues, RadfResult, WildBootstrapCV
from exuber.core.types import CONFIDENCE_LEVELS, CVMethod, Significance, TestOption
from exuber.core.validation import (
    validate_minw_compatible, validate_nonnegative_int, validate_option,
    validate_option_combination
)

# Set up module-level logger
logger = logging.getLogger("exuber.models.dating.report")

OPTIONS = ("gsadf", "sadf")


def _check_inputs(x: RadfResult, y: CriticalValues) -> None:
    if not isinstance(x, RadfResult):
        raise ParameterError(
            "Argument 'x' should be the result of radf()",
            param_name="x",
            param_value=type(x).__name__,
            constraint="RadfResult"
        )
    if not isinstance(y, CriticalValues):
        raise ParameterError(
            "Argument 'y' should be the result of mc_cv() or wb_cv()",
            param_name="y",
            param_value=type(y).__name__,
            constraint="CriticalValues"
        )
    validate_minw_compatible(x, y)
    if isinstance(y, WildBootstrapCV) and y.n_series != x.n_series:
        raise_dimension_error(
            "Wild bootstrap critical values must have one set per series",
            array_name="y",
            expected_shape=(x.n_series,),
            actual_shape=(y.n_series,)
        )


def align_surface(cv: np.ndarray, length: int, offset: int = 0) -> np.ndarray:
    """
    Select the critical values of the statistics' end-points.

    Critical value position q belongs to observation q + minw + lag of the
    simulated sample, so with equal minimum windows statistic position p pairs
    with q = p + ``offset``, where ``offset`` is the lag of the statistics
    minus the lag of the critical values.

    Args:
        cv: Critical value surface, shape (m_cv, 3)
        length: Number of end-points of the statistics' surface
        offset: Lag of the statistics minus the lag of the critical values

    Returns:
        np.ndarray: Surface of shape (length, 3)

    Raises:
        DimensionError: If the critical values do not cover every end-point
            of the statistics
    """
    if offset < 0 or cv.shape[0] < offset + length:
        raise DimensionError(
            "Critical value surface does not cover the test statistic surface",
            array_name="critical values",
            expected_shape=(offset + length, cv.shape[1]),
            actual_shape=cv.shape,
            details=f"End-points {offset} to {offset + length - 1} are required"
        )
    return cv[offset:offset + length]


@dataclass(frozen=True, eq=False)
class Report:
    """Tabular summary of the test statistics and their critical values.

    Attributes:
        tables: One DataFrame per series, rows ADF/SADF/GSADF and columns
            tstat, 90%, 95%, 99%
        minw: Minimum window
        lag: Lag order
        method: Method of the critical values
        iterations: Replications or bootstrap draws behind the critical values
    """
    tables: Dict[str, pd.DataFrame]
    minw: int
    lag: int
    method: CVMethod
    iterations: int

    def __getitem__(self, name: str) -> pd.DataFrame:
        return self.tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    def summary(self) -> str:
        """Generate a text summary of the report."""
        rule = "-" * 45
        iterations = "iterations" if self.method == CVMethod.MONTE_CARLO else "bootstraps"
        text = "\nRecursive Unit Root Testing Summary\n"
        text += rule + "\n"
        text += "H0: Unit root\nH1: Explosive root\n"
        text += rule + "\n"
        text += f"Critical values are generated by: {self.method.value}\n"
        text += f"Number of {iterations}: {self.iterations}\n"
        text += f"Minimum window is set to: {self.minw}\n"
        text += f"Lag is set to: {self.lag}\n"
        text += rule + "\n"
        for name, table in self.tables.items():
            text += f"\n{name}\n{table.to_string(float_format=lambda v: f'{v:.4f}')}\n"
        return text

    def __str__(self) -> str:
        return self.summary()


def report(x: RadfResult, y: CriticalValues) -> Report:
    """
    Tabulate the test statistics of every series next to their critical values.

    Args:
        x: Recursive test statistics
        y: Monte Carlo or wild bootstrap critical values

    Returns:
        Report: One table per series

    Raises:
        ParameterError: If the inputs have the wrong type or different minimum windows
    """
    _check_inputs(x, y)

    tables = {}
    for i, name in enumerate(x.col_names):
        cv = y.for_series(i)
        rows = [
            np.concatenate(([x.adf[i]], cv.adf)),
            np.concatenate(([x.sadf[i]], cv.sadf)),
            np.concatenate(([x.gsadf[i]], cv.gsadf)),
        ]
        tables[name] = pd.DataFrame(
            rows, index=["ADF", "SADF", "GSADF"], columns=["tstat", *CONFIDENCE_LEVELS]
        )

    return Report(tables=tables, minw=y.minw, lag=x.lag, method=y.method, iterations=y.iterations)


@dataclass(frozen=True)
class Diagnostics:
    """Significance classification of every series.

    Attributes:
        col_names: Names of all series
        significance: Classification of each series
        option: Testing option ("gsadf" or "sadf")
    """
    col_names: Tuple[str, ...]
    significance: Tuple[Significance, ...]
    option: str

    @property
    def accepted(self) -> List[str]:
        """Series that reject the null at the 95% level or above."""
        return [name for name, sig in zip(self.col_names, self.significance)
                if sig >= Significance.P95]

    @property
    def positions(self) -> List[int]:
        """Positions of the accepted series."""
        return [i for i, sig in enumerate(self.significance) if sig >= Significance.P95]

    def summary(self) -> str:
        """Generate a text summary of the diagnostics."""
        rule = "-" * 45
        text = "\nDiagnostics (option = " + self.option + "):\n" + rule + "\n"
        for name, sig in zip(self.col_names, self.significance):
            if sig == Significance.REJECT:
                text += f"{name}: Cannot reject H0!\n"
            else:
                text += f"{name}: Rejects H0 for significance level {sig.value}\n"
        text += rule + "\n"
        text += f"Proceed for date stamping for variable(s): {', '.join(self.accepted)}\n"
        return text

    def __str__(self) -> str:
        return self.summary()


def diagnostics(x: RadfResult, y: CriticalValues, option: TestOption = "gsadf") -> Diagnostics:
    """
    Classify every series by the significance at which it rejects the null.

    Each statistic (GSADF or SADF) is compared with its 90%, 95% and 99%
    critical values; the series is classified at the highest level it reaches.

    Args:
        x: Recursive test statistics
        y: Monte Carlo or wild bootstrap critical values
        option: "gsadf" or "sadf"; wild bootstrap critical values support only "gsadf"

    Returns:
        Diagnostics: Classification of every series

    Raises:
        ParameterError: If the inputs have the wrong type or different minimum
            windows, or the option is unknown
        ModelSpecificationError: For the "sadf" option with wild bootstrap critical values
        InconclusiveError: If no series rejects the null at 90%, or none at 95%
    """
    _check_inputs(x, y)
    option = validate_option(option, "option", OPTIONS)
    validate_option_combination(option, y.method)

    significance = []
    for i in range(x.n_series):
        cv = getattr(y.for_series(i), option)
        statistic = getattr(x, option)[i]
        significance.append(Significance.classify(statistic, cv[0], cv[1], cv[2]))

    if all(sig == Significance.REJECT for sig in significance):
        raise InconclusiveError(
            "Cannot reject H0, do not proceed for date stamping",
            option=option,
            significance="90%"
        )

    result = Diagnostics(
        col_names=tuple(x.col_names), significance=tuple(significance), option=option
    )
    if not result.accepted:
        raise InconclusiveError(
            "You cannot reject H0 for significance level 95%",
            option=option,
            significance="95%"
        )

    logger.debug(f"Series rejecting H0 at 95%: {result.accepted}")
    return result


def _runs(positions: np.ndarray) -> List[Tuple[int, int]]:
    """Split increasing positions into runs of consecutive values."""
    if positions.size == 0:
        return []
    breaks = np.flatnonzero(np.diff(positions) != 1)
    starts = np.concatenate(([positions[0]], positions[breaks + 1]))
    ends = np.concatenate((positions[breaks], [positions[-1]]))
    return list(zip(starts.tolist(), ends.tolist()))


@dataclass(frozen=True, eq=False)
class Datestamp:
    """Explosive episodes of every series that rejects the null.

    Attributes:
        episodes: One DataFrame per series with columns Start, End and Duration
        option: Testing option ("gsadf" or "sadf")
        min_duration: Minimum duration of a reported episode
    """
    episodes: Dict[str, pd.DataFrame]
    option: str
    min_duration: int = 0

    def __getitem__(self, name: str) -> pd.DataFrame:
        return self.episodes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.episodes)

    def __len__(self) -> int:
        return len(self.episodes)

    def to_frame(self) -> pd.DataFrame:
        """All episodes in one DataFrame with a leading Series column."""
        frames = [table.assign(Series=name) for name, table in self.episodes.items()]
        combined = pd.concat(frames, ignore_index=True)
        return combined[["Series", "Start", "End", "Duration"]]

    def summary(self) -> str:
        """Generate a text summary of the episodes."""
        text = ""
        for name, table in self.episodes.items():
            text += f"\n{name}\n{table.to_string()}\n"
        return text

    def __str__(self) -> str:
        return self.summary()


def datestamp(x: RadfResult,
              y: CriticalValues,
              option: TestOption = "gsadf",
              min_duration: int = 0) -> Datestamp:
    """
    Date the explosive episodes of every series that rejects the null at 95%.

    An episode is a run of consecutive end-points at which the BSADF ("gsadf")
    or BADF ("sadf") statistic exceeds the 95% critical value of the same
    end-point. Its duration is the number of periods in the run.

    Args:
        x: Recursive test statistics
        y: Monte Carlo or wild bootstrap critical values
        option: "gsadf" or "sadf"; wild bootstrap critical values support only "gsadf"
        min_duration: Episodes shorter than this are dropped

    Returns:
        Datestamp: Start, End and Duration of every episode, per series

    Raises:
        ParameterError: If the inputs are incompatible or ``min_duration`` is not
            a non-negative integer
        DimensionError: If the critical values do not cover every end-point of
            the statistics (a shorter sample, or more lags than the statistics)
        ModelSpecificationError: For the "sadf" option with wild bootstrap critical values
        InconclusiveError: If no series rejects the null, no end-point exceeds
            its 95% critical value, or ``min_duration`` removes every episode
    """
    _check_inputs(x, y)
    min_duration = validate_nonnegative_int(min_duration, "min_duration")
    diag = diagnostics(x, y, option)
    option = diag.option
    surface = "bsadf" if option == "gsadf" else "badf"

    dating = x.dating_index
    n_end = len(dating)
    episodes = {}
    for i in diag.positions:
        cv = align_surface(getattr(y.for_series(i), surface), n_end, x.lag - y.lag)[:, 1]
        stat = getattr(x, surface)[:, i]
        with np.errstate(invalid="ignore"):
            exceed = np.flatnonzero(stat > cv)

        rows = [(dating[start], dating[end], end - start + 1)
                for start, end in _runs(exceed) if end - start + 1 >= min_duration]
        if rows:
            episodes[x.col_names[i]] = pd.DataFrame(rows, columns=["Start", "End", "Duration"])

    if not episodes and min_duration == 0:
        raise InconclusiveError(
            "No end-point exceeds the 95% critical value",
            option=option,
            significance="95%"
        )
    if not episodes:
        raise InconclusiveError(
            "Argument 'min_duration' excludes all the explosive periods",
            option=option,
            significance="95%"
        )

    logger.debug(f"Dated {sum(len(t) for t in episodes.values())} episodes "
                 f"in {len(episodes)} series")
    return Datestamp(episodes=episodes, option=option, min_duration=min_duration)
