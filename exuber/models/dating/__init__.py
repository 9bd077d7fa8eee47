"""
Summary, diagnostics and date-stamping of explosive episodes.
"""

from .report import report, diagnostics, datestamp, Report, Diagnostics, Datestamp

__all__ = ['report', 'diagnostics', 'datestamp', 'Report', 'Diagnostics', 'Datestamp']
