"""
exuber Test Suite

This package contains tests for exuber: the recursive least-squares kernel,
the recursive ADF statistics, the Monte Carlo and wild bootstrap critical
values, the worker pool, and the report, diagnostics and date-stamping layer.
"""

import os

# Simulation-heavy tests can be skipped with SKIP_SLOW_TESTS=true
SKIP_SLOW_TESTS = os.environ.get("SKIP_SLOW_TESTS", "false").lower() == "true"
