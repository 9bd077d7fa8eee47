# exuber/core/types.py

"""
Core type annotations and custom types for exuber.

This module defines the type aliases, enumerations and protocol classes that
establish the type contract between the recursive statistics, the critical
value simulators and the presentation layer (report, diagnostics and
datestamp).

Result objects are not dispatched on a class tag. Instead, each result type
implements a small set of capabilities (``Windowed``, ``Named``, ``Dated``),
expressed as runtime-checkable protocols, and consumers depend only on the
capabilities they use.
"""

from enum import Enum
from typing import (
    Any, Callable, List, Literal, Protocol, Sequence, Tuple, Union,
    runtime_checkable
)

import numpy as np
import pandas as pd

# Input data accepted by the batch driver and the wild bootstrap
PanelData = Union[np.ndarray, pd.Series, pd.DataFrame, Sequence[float]]

# Index labels: integers, floats or dates
IndexLike = Union[pd.Index, np.ndarray, Sequence[Any]]

# Callback for reporting progress: (fraction complete in [0, 1], message)
ProgressCallback = Callable[[float, str], None]

# Testing options accepted by diagnostics and datestamp
TestOption = Literal["gsadf", "sadf"]

# Multiplier distributions for the wild bootstrap
BootstrapDistribution = Literal["rademacher", "normal"]

# Worker pool backends
PoolBackend = Literal["process", "thread", "sequential"]

# Confidence levels reported by every critical value set
CONFIDENCE_LEVELS: Tuple[str, str, str] = ("90%", "95%", "99%")


class CVMethod(str, Enum):
    """Method used to generate a set of critical values."""

    MONTE_CARLO = "Monte Carlo"
    """Pooled critical values from simulated Gaussian random walks."""

    WILD_BOOTSTRAP = "Wild Bootstrap"
    """Per-series critical values from sign-flipped residual resampling."""


class Significance(str, Enum):
    """Significance classification of a test statistic.

    Members are ordered; comparisons use the declaration order so that
    ``Significance.P95 >= Significance.P90`` holds.
    """

    REJECT = "Reject"
    """Statistic below the 90% critical value: the null is not rejected."""

    P90 = "90%"
    """Statistic at or above the 90% critical value."""

    P95 = "95%"
    """Statistic at or above the 95% critical value."""

    P99 = "99%"
    """Statistic at or above the 99% critical value."""

    @property
    def rank(self) -> int:
        return _SIGNIFICANCE_ORDER.index(self)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Significance):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Significance):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Significance):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Significance):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def classify(cls, statistic: float, cv90: float, cv95: float, cv99: float) -> 'Significance':
        """Classify a statistic with an ordered threshold comparison.

        Args:
            statistic: Test statistic
            cv90: 90% critical value
            cv95: 95% critical value
            cv99: 99% critical value

        Returns:
            Significance: The highest level whose critical value the statistic
            reaches; REJECT when it is below the 90% value or not finite
        """
        if not np.isfinite(statistic):
            return cls.REJECT
        if statistic >= cv99:
            return cls.P99
        if statistic >= cv95:
            return cls.P95
        if statistic >= cv90:
            return cls.P90
        return cls.REJECT


_SIGNIFICANCE_ORDER: List[Significance] = [
    Significance.REJECT, Significance.P90, Significance.P95, Significance.P99
]


@runtime_checkable
class Windowed(Protocol):
    """Objects produced with a minimum window and lag order."""

    @property
    def minw(self) -> int:
        ...

    @property
    def lag(self) -> int:
        ...


@runtime_checkable
class Named(Protocol):
    """Objects carrying one name per series."""

    @property
    def col_names(self) -> List[str]:
        ...


@runtime_checkable
class Dated(Protocol):
    """Objects carrying the observation index of the input series."""

    @property
    def index(self) -> pd.Index:
        ...
