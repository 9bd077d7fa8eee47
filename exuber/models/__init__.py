"""
exuber Models Module

Recursive unit-root statistics, their critical values and the date-stamping
of explosive episodes.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("exuber.models")

from .recursive import radf, default_minw, RegressionState, ols_direct
from .critical_values import (
    mc_cv, mc_cv_async, mc_distribution, wb_cv, wb_cv_async
)
from .dating import report, diagnostics, datestamp, Report, Diagnostics, Datestamp

__all__ = [
    'radf', 'default_minw', 'RegressionState', 'ols_direct',
    'mc_cv', 'mc_cv_async', 'mc_distribution', 'wb_cv', 'wb_cv_async',
    'report', 'diagnostics', 'datestamp', 'Report', 'Diagnostics', 'Datestamp',
]
