'''
Result containers for exuber.

This module provides the immutable dataclasses returned by the recursive
statistics and the critical value simulators. Each container carries its
numeric payload together with a typed metadata record (minimum window, lag
order, index and names for statistics; method, iteration count, window and
sample size for critical values).

Containers never hold a reference to the input data. "Replacing" the index or
the series names returns a new object.
'''

import warnings
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from exuber.core.exceptions import DimensionError, ParameterError
from exuber.core.types import CONFIDENCE_LEVELS, CVMethod, IndexLike
from exuber.core.validation import validate_length

STATISTICS = ("adf", "sadf", "gsadf", "badf", "bsadf")


def default_col_names(k: int) -> List[str]:
    """Return the default series names ``Series1`` .. ``SeriesK``."""
    return [f"Series{i + 1}" for i in range(k)]


def empirical_quantiles(values: np.ndarray, levels: Sequence[float]) -> np.ndarray:
    """NaN-aware quantiles of simulated statistics across replications.

    Args:
        values: Replications along axis 0, shape (R,) or (R, m)
        levels: Quantile levels

    Returns:
        np.ndarray: Quantiles with the level axis last, shape (len(levels),)
        or (m, len(levels)). Entries with no finite replication are NaN.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        q = np.nanquantile(np.asarray(values, dtype=np.float64), levels, axis=0)
    return np.moveaxis(q, 0, -1)


def _check_stat(stat: str) -> str:
    if not isinstance(stat, str) or stat.lower() not in STATISTICS:
        raise ParameterError(
            f"Argument 'stat' should be one of {', '.join(STATISTICS)}",
            param_name="stat",
            param_value=stat,
            constraint=f"one of {', '.join(STATISTICS)}"
        )
    return stat.lower()


@dataclass(frozen=True, eq=False)
class RadfMetadata:
    """Metadata of a set of recursive test statistics.

    Attributes:
        minw: Minimum window (regression rows)
        lag: Lag order of the regressions
        index: Observation index of the input series
        col_names: One name per series
        n_obs: Number of observations per series
    """
    minw: int
    lag: int
    index: pd.Index
    col_names: Tuple[str, ...]
    n_obs: int


@dataclass(frozen=True, eq=False)
class RadfResult:
    """Recursive ADF test statistics for one or more series.

    Attributes:
        adf: ADF statistic over the full sample, shape (K,)
        sadf: Sup ADF statistic, shape (K,)
        gsadf: Generalized sup ADF statistic, shape (K,)
        badf: Backward ADF surface with a fixed start, shape (n - minw - lag, K)
        bsadf: Backward sup ADF surface, shape (n - minw - lag, K)
        metadata: Window, lag, index and names
    """
    adf: np.ndarray
    sadf: np.ndarray
    gsadf: np.ndarray
    badf: np.ndarray
    bsadf: np.ndarray
    metadata: RadfMetadata

    def __post_init__(self) -> None:
        k = len(self.metadata.col_names)
        m = self.metadata.n_obs - self.metadata.minw - self.metadata.lag
        for name in ("adf", "sadf", "gsadf"):
            value = np.asarray(getattr(self, name), dtype=np.float64)
            if value.shape != (k,):
                raise DimensionError(
                    f"{name} must have one entry per series",
                    array_name=name,
                    expected_shape=(k,),
                    actual_shape=value.shape
                )
            value.setflags(write=False)
            object.__setattr__(self, name, value)
        for name in ("badf", "bsadf"):
            value = np.asarray(getattr(self, name), dtype=np.float64)
            if value.shape != (m, k):
                raise DimensionError(
                    f"{name} must have shape (n - minw - lag, K)",
                    array_name=name,
                    expected_shape=(m, k),
                    actual_shape=value.shape
                )
            value.setflags(write=False)
            object.__setattr__(self, name, value)
        if len(self.metadata.index) != self.metadata.n_obs:
            raise DimensionError(
                "length of index vectors does not match",
                array_name="index",
                expected_shape=(self.metadata.n_obs,),
                actual_shape=(len(self.metadata.index),)
            )

    @property
    def minw(self) -> int:
        return self.metadata.minw

    @property
    def lag(self) -> int:
        return self.metadata.lag

    @property
    def index(self) -> pd.Index:
        return self.metadata.index

    @property
    def col_names(self) -> List[str]:
        return list(self.metadata.col_names)

    @property
    def n_obs(self) -> int:
        return self.metadata.n_obs

    @property
    def n_series(self) -> int:
        return len(self.metadata.col_names)

    @property
    def dating_index(self) -> pd.Index:
        """Index labels of the surface end-points (the trailing n - minw - lag labels)."""
        return self.metadata.index[self.minw + self.lag:]

    def with_index(self, values: IndexLike) -> 'RadfResult':
        """Return a copy carrying a new observation index.

        Raises:
            DimensionError: If the new index does not have one label per observation
        """
        validate_length(values, self.n_obs, "index")
        return replace(self, metadata=replace(self.metadata, index=pd.Index(values)))

    def with_col_names(self, values: Sequence[str]) -> 'RadfResult':
        """Return a copy carrying new series names.

        Raises:
            DimensionError: If the number of names differs from the number of series
        """
        validate_length(values, self.n_series, "col_names")
        return replace(
            self, metadata=replace(self.metadata, col_names=tuple(str(v) for v in values))
        )

    def to_frame(self, stat: str = "bsadf") -> pd.DataFrame:
        """Return one statistic as a DataFrame with one column per series.

        Surfaces are indexed by :attr:`dating_index`; scalar statistics give a
        single row labelled with the statistic name.
        """
        stat = _check_stat(stat)
        values = getattr(self, stat)
        if values.ndim == 1:
            return pd.DataFrame([values], index=[stat.upper()], columns=self.col_names)
        return pd.DataFrame(values, index=self.dating_index, columns=self.col_names)

    def summary(self) -> str:
        """Generate a text summary of the test statistics."""
        header = "Recursive Unit-Root Test Statistics\n"
        header += "=" * (len(header) - 1) + "\n"
        header += f"Minimum window: {self.minw}    Lag: {self.lag}    Observations: {self.n_obs}\n\n"

        table = f"{'Series':<20} {'ADF':>12} {'SADF':>12} {'GSADF':>12}\n"
        table += "-" * 59 + "\n"
        for i, name in enumerate(self.col_names):
            table += (f"{name:<20} {self.adf[i]:>12.4f} {self.sadf[i]:>12.4f} "
                      f"{self.gsadf[i]:>12.4f}\n")
        return header + table

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(minw={self.minw}, lag={self.lag}, "
                f"n_obs={self.n_obs}, col_names={self.col_names})")


@dataclass(frozen=True)
class CriticalValueMetadata:
    """Metadata of a set of critical values.

    Attributes:
        method: Method that produced the values
        iterations: Number of replications (Monte Carlo) or bootstrap draws
        minw: Minimum window used in the simulated sweeps
        lag: Lag order used in the simulated sweeps
        n_obs: Sample size of the simulated series
    """
    method: CVMethod
    iterations: int
    minw: int
    lag: int
    n_obs: int


@dataclass(frozen=True)
class SeriesCriticalValues:
    """Critical values that apply to one series.

    Scalar statistics have shape (3,) and surfaces shape (m, 3), with the
    columns ordered 90%, 95%, 99%.
    """
    adf: np.ndarray
    sadf: np.ndarray
    gsadf: np.ndarray
    badf: np.ndarray
    bsadf: np.ndarray


@dataclass(frozen=True, eq=False)
class CriticalValues:
    """Base class of critical value sets.

    Attributes:
        adf_cv: Critical values of the ADF statistic
        sadf_cv: Critical values of the SADF statistic
        gsadf_cv: Critical values of the GSADF statistic
        badf_cv: Per end-point critical values of the BADF surface
        bsadf_cv: Per end-point critical values of the BSADF surface
        metadata: Method, iterations, window, lag and sample size
    """
    adf_cv: np.ndarray
    sadf_cv: np.ndarray
    gsadf_cv: np.ndarray
    badf_cv: np.ndarray
    bsadf_cv: np.ndarray
    metadata: CriticalValueMetadata

    def __post_init__(self) -> None:
        for name in ("adf_cv", "sadf_cv", "gsadf_cv", "badf_cv", "bsadf_cv"):
            value = np.asarray(getattr(self, name), dtype=np.float64)
            value.setflags(write=False)
            object.__setattr__(self, name, value)

    @property
    def method(self) -> CVMethod:
        return self.metadata.method

    @property
    def iterations(self) -> int:
        return self.metadata.iterations

    @property
    def minw(self) -> int:
        return self.metadata.minw

    @property
    def lag(self) -> int:
        return self.metadata.lag

    @property
    def n_obs(self) -> int:
        return self.metadata.n_obs

    def for_series(self, i: int) -> SeriesCriticalValues:
        """Return the critical values applicable to series ``i``."""
        raise NotImplementedError("Subclasses must implement for_series")

    def summary(self) -> str:
        """Generate a text summary of the scalar critical values."""
        header = f"Critical Values ({self.method.value})\n"
        header += "=" * (len(header) - 1) + "\n"
        header += (f"Iterations: {self.iterations}    Minimum window: {self.minw}    "
                   f"Lag: {self.lag}    Observations: {self.n_obs}\n\n")
        return header

    def __str__(self) -> str:
        return self.summary()


def _cv_table(title: str, values: SeriesCriticalValues) -> str:
    table = f"{title}\n"
    table += f"{'':<8}" + "".join(f"{level:>10}" for level in CONFIDENCE_LEVELS) + "\n"
    for name in ("adf", "sadf", "gsadf"):
        row = getattr(values, name)
        table += f"{name.upper():<8}" + "".join(f"{v:>10.4f}" for v in row) + "\n"
    return table


@dataclass(frozen=True, eq=False)
class MonteCarloCV(CriticalValues):
    """Monte Carlo critical values, pooled across series.

    Scalar fields have shape (3,); surfaces have shape (n - minw - lag, 3).
    """

    def __post_init__(self) -> None:
        super().__post_init__()
        m = self.n_obs - self.minw - self.lag
        for name in ("adf_cv", "sadf_cv", "gsadf_cv"):
            if getattr(self, name).shape != (3,):
                raise DimensionError(
                    f"{name} must hold one value per confidence level",
                    array_name=name,
                    expected_shape=(3,),
                    actual_shape=getattr(self, name).shape
                )
        for name in ("badf_cv", "bsadf_cv"):
            if getattr(self, name).shape != (m, 3):
                raise DimensionError(
                    f"{name} must have shape (n - minw - lag, 3)",
                    array_name=name,
                    expected_shape=(m, 3),
                    actual_shape=getattr(self, name).shape
                )

    def for_series(self, i: int) -> SeriesCriticalValues:
        return SeriesCriticalValues(
            adf=self.adf_cv,
            sadf=self.sadf_cv,
            gsadf=self.gsadf_cv,
            badf=self.badf_cv,
            bsadf=self.bsadf_cv
        )

    def summary(self) -> str:
        return super().summary() + _cv_table("Pooled", self.for_series(0))


@dataclass(frozen=True, eq=False)
class WildBootstrapCV(CriticalValues):
    """Wild bootstrap critical values, one set per series.

    Scalar fields have shape (K, 3); surfaces have shape
    (n - minw - lag, 3, K).

    Attributes:
        col_names: One name per series
    """
    col_names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        k = self.adf_cv.shape[0] if self.adf_cv.ndim == 2 else -1
        m = self.n_obs - self.minw - self.lag
        for name in ("adf_cv", "sadf_cv", "gsadf_cv"):
            if getattr(self, name).shape != (k, 3):
                raise DimensionError(
                    f"{name} must have shape (K, 3)",
                    array_name=name,
                    expected_shape=(k, 3),
                    actual_shape=getattr(self, name).shape
                )
        for name in ("badf_cv", "bsadf_cv"):
            if getattr(self, name).shape != (m, 3, k):
                raise DimensionError(
                    f"{name} must have shape (n - minw - lag, 3, K)",
                    array_name=name,
                    expected_shape=(m, 3, k),
                    actual_shape=getattr(self, name).shape
                )
        if not self.col_names:
            object.__setattr__(self, "col_names", tuple(default_col_names(k)))
        else:
            validate_length(self.col_names, k, "col_names")
            object.__setattr__(self, "col_names", tuple(str(v) for v in self.col_names))

    @property
    def n_series(self) -> int:
        return self.adf_cv.shape[0]

    def for_series(self, i: int) -> SeriesCriticalValues:
        if not 0 <= i < self.n_series:
            raise ParameterError(
                f"Series position {i} is out of range for {self.n_series} series",
                param_name="i",
                param_value=i,
                constraint=f"0 <= i < {self.n_series}"
            )
        return SeriesCriticalValues(
            adf=self.adf_cv[i],
            sadf=self.sadf_cv[i],
            gsadf=self.gsadf_cv[i],
            badf=self.badf_cv[:, :, i],
            bsadf=self.bsadf_cv[:, :, i]
        )

    def summary(self) -> str:
        tables = [_cv_table(name, self.for_series(i)) for i, name in enumerate(self.col_names)]
        return super().summary() + "\n".join(tables)


@dataclass(frozen=True, eq=False)
class MonteCarloDistribution:
    """Raw Monte Carlo replications of the recursive statistics.

    Attributes:
        adf: ADF statistic per replication, shape (R,)
        sadf: SADF statistic per replication, shape (R,)
        gsadf: GSADF statistic per replication, shape (R,)
        badf: BADF surface per replication, shape (R, n - minw - lag)
        bsadf: BSADF surface per replication, shape (R, n - minw - lag)
        metadata: Method, iterations, window, lag and sample size
    """
    adf: np.ndarray
    sadf: np.ndarray
    gsadf: np.ndarray
    badf: np.ndarray
    bsadf: np.ndarray
    metadata: CriticalValueMetadata

    @property
    def minw(self) -> int:
        return self.metadata.minw

    @property
    def lag(self) -> int:
        return self.metadata.lag

    @property
    def iterations(self) -> int:
        return self.metadata.iterations

    def to_critical_values(self, levels: Sequence[float] = (0.90, 0.95, 0.99)) -> MonteCarloCV:
        """Summarize the replications into 90/95/99% critical values.

        Args:
            levels: The three quantile levels to report

        Returns:
            MonteCarloCV: Empirical quantiles per statistic and per end-point
        """
        return MonteCarloCV(
            adf_cv=empirical_quantiles(self.adf, levels),
            sadf_cv=empirical_quantiles(self.sadf, levels),
            gsadf_cv=empirical_quantiles(self.gsadf, levels),
            badf_cv=empirical_quantiles(self.badf, levels),
            bsadf_cv=empirical_quantiles(self.bsadf, levels),
            metadata=self.metadata
        )
