"""
exuber Utilities

Input conversion and the worker pool used for parallel fan-out.
"""

from .data_transformations import extract_panel, check_finite
from .parallel import WorkerPool, default_workers, pool_scope

__all__ = ['extract_panel', 'check_finite', 'WorkerPool', 'default_workers', 'pool_scope']
