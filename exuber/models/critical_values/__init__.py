"""
Critical values of the recursive ADF statistics.

Monte Carlo values simulated from Gaussian random walks and per-series wild
bootstrap values.
"""

from .monte_carlo import mc_cv, mc_cv_async, mc_distribution
from .wild_bootstrap import wb_cv, wb_cv_async, fit_null_model, NullModel

__all__ = [
    'mc_cv', 'mc_cv_async', 'mc_distribution',
    'wb_cv', 'wb_cv_async', 'fit_null_model', 'NullModel',
]
