'''
Recursive least-squares regression kernel.

This module exposes the sufficient statistics of a least-squares window fit
as an immutable :class:`RegressionState`. A state is created by a direct fit
over an initial window and advanced one observation at a time with a
Sherman-Morrison rank-1 update, so that extending a window costs O(k^2)
instead of a full refit.

The compiled sweep in :mod:`exuber.models.recursive._numba_core` uses the
same fit and update functions; this module adds the error reporting and the
direct SciPy solve used to measure accumulated drift.
'''

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import linalg

from exuber.core.config import get_config
from exuber.core.exceptions import DimensionError, NumericError
from exuber.models.recursive._numba_core import ols_fit, rls_update, tstat

# Set up module-level logger
logger = logging.getLogger("exuber.models.recursive.kernel")


def _check_design(y: np.ndarray, X: np.ndarray) -> None:
    if X.ndim != 2 or y.ndim != 1 or X.shape[0] != y.shape[0]:
        raise DimensionError(
            "Regressors must be a matrix with one row per response",
            array_name="X",
            expected_shape=(y.shape[0], "k"),
            actual_shape=X.shape
        )
    if X.shape[1] < 2:
        raise DimensionError(
            "Regressors must contain a constant and the lagged level",
            array_name="X",
            expected_shape=(y.shape[0], ">= 2"),
            actual_shape=X.shape
        )


@dataclass(frozen=True)
class DirectFit:
    """Result of a direct least-squares solve.

    Attributes:
        beta: Coefficients, shape (k,)
        inv: Inverse of X'X, shape (k, k)
        rss: Residual sum of squares
        tstat: t-statistic of the lagged-level coefficient
    """
    beta: np.ndarray
    inv: np.ndarray
    rss: float
    tstat: float


def ols_direct(y: np.ndarray, X: np.ndarray) -> DirectFit:
    """
    Solve a window regression directly through a Cholesky factorization of X'X.

    This is the reference the incremental state is compared against.

    Args:
        y: Response, shape (m,)
        X: Regressors, shape (m, k), with the lagged level in column 1

    Returns:
        DirectFit: Coefficients, inverse cross-product, RSS and t-statistic

    Raises:
        NumericError: If X'X is not positive definite or the residual
            variance is not positive
    """
    y = np.asarray(y, dtype=np.float64)
    X = np.asarray(X, dtype=np.float64)
    _check_design(y, X)
    m, k = X.shape

    try:
        factor = linalg.cho_factor(X.T @ X)
    except linalg.LinAlgError as e:
        raise NumericError(
            "Regressor cross-product matrix is not positive definite",
            operation="ols_direct",
            values=X,
            error_type="singular matrix"
        ) from e

    beta = linalg.cho_solve(factor, X.T @ y)
    inv = linalg.cho_solve(factor, np.eye(k))
    resid = y - X @ beta
    rss = float(resid @ resid)
    if m <= k or not rss > 0:
        raise NumericError(
            "Residual variance of the window is not positive",
            operation="ols_direct",
            values=rss,
            error_type="degenerate variance"
        )

    t = beta[1] / np.sqrt(rss / (m - k) * inv[1, 1])
    return DirectFit(beta=beta, inv=inv, rss=rss, tstat=float(t))


@dataclass(frozen=True, eq=False)
class RegressionState:
    """
    Sufficient statistics of a least-squares window fit.

    Attributes:
        inv: Inverse of X'X, shape (k, k)
        beta: Coefficients, shape (k,)
        rss: Residual sum of squares
        nobs: Number of rows in the window
    """
    inv: np.ndarray
    beta: np.ndarray
    rss: float
    nobs: int

    @property
    def k(self) -> int:
        """Number of regressors."""
        return self.beta.shape[0]

    @property
    def sigma2(self) -> float:
        """Residual variance estimate rss / (nobs - k)."""
        return self.rss / (self.nobs - self.k)

    @property
    def tstat(self) -> float:
        """t-statistic of the lagged-level coefficient."""
        return float(tstat(self.beta, self.inv, self.rss, self.nobs))

    @classmethod
    def fit(cls, y: np.ndarray, X: np.ndarray,
            rank_tol: Optional[float] = None) -> 'RegressionState':
        """
        Fit an initial window directly.

        Args:
            y: Response, shape (m,)
            X: Regressors, shape (m, k)
            rank_tol: Relative singular value tolerance; defaults to the
                ``numerical.rank_tolerance`` configuration option

        Returns:
            RegressionState: State of the fitted window

        Raises:
            NumericError: If X is rank deficient or the residual sum of
                squares is not positive
        """
        y = np.ascontiguousarray(y, dtype=np.float64)
        X = np.ascontiguousarray(X, dtype=np.float64)
        _check_design(y, X)
        if rank_tol is None:
            rank_tol = get_config("numerical", "rank_tolerance")

        beta, inv, rss, ok = ols_fit(y, X, rank_tol)
        if not ok:
            raise NumericError(
                "Window regression is singular or has no residual variance",
                operation="RegressionState.fit",
                values=X,
                error_type="singular matrix"
            )
        return cls(inv=inv, beta=beta, rss=float(rss), nobs=X.shape[0])

    def update(self, x: np.ndarray, y: float) -> 'RegressionState':
        """
        Extend the window by one observation.

        Args:
            x: Regressors of the new observation, shape (k,)
            y: Response of the new observation

        Returns:
            RegressionState: State of the extended window

        Raises:
            NumericError: If the update produces a non-positive denominator or
                residual sum of squares
        """
        x = np.ascontiguousarray(x, dtype=np.float64)
        if x.shape != (self.k,):
            raise DimensionError(
                "New observation must have one value per regressor",
                array_name="x",
                expected_shape=(self.k,),
                actual_shape=x.shape
            )
        beta = self.beta.copy()
        inv = self.inv.copy()
        rss, ok = rls_update(beta, inv, self.rss, x, float(y))
        if not ok:
            raise NumericError(
                "Rank-1 update produced a degenerate window",
                operation="RegressionState.update",
                values=rss,
                error_type="degenerate variance"
            )
        return RegressionState(inv=inv, beta=beta, rss=float(rss), nobs=self.nobs + 1)

    def drift(self, y: np.ndarray, X: np.ndarray) -> float:
        """
        Maximum relative deviation from a direct solve over the same rows.

        Args:
            y: Response of every row covered by the state
            X: Regressors of every row covered by the state

        Returns:
            float: Largest relative difference over the coefficients and the
            t-statistic
        """
        if np.shape(y)[0] != self.nobs:
            raise DimensionError(
                "Drift must be measured over the rows covered by the state",
                array_name="y",
                expected_shape=(self.nobs,),
                actual_shape=np.shape(y)
            )
        direct = ols_direct(y, X)
        scale = np.maximum(np.abs(direct.beta), 1.0)
        beta_drift = np.max(np.abs(self.beta - direct.beta) / scale)
        t_drift = abs(self.tstat - direct.tstat) / max(abs(direct.tstat), 1.0)
        drift = float(max(beta_drift, t_drift))
        logger.debug(f"Drift after {self.nobs} rows: {drift:.3e}")
        return drift
