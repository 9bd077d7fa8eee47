"""
Recursive ADF statistics.

The regression kernel (:mod:`.kernel`, :mod:`._numba_core`) and the batch
driver :func:`radf`.
"""

from .kernel import RegressionState, DirectFit, ols_direct
from .radf import radf, default_minw, sweep, SeriesStatistics

__all__ = [
    'RegressionState', 'DirectFit', 'ols_direct',
    'radf', 'default_minw', 'sweep', 'SeriesStatistics',
]
