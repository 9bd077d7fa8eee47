"""
Numba-accelerated core functions for recursive unit-root regressions.

This module provides the JIT-compiled kernels behind the recursive ADF
statistics: construction of the augmented Dickey-Fuller design, a direct
least-squares fit over a window, the Sherman-Morrison rank-1 update that
extends a window by one observation, and the double loop over window starts
and window ends that produces the BADF and BSADF surfaces.

All functions are compiled with ``nogil=True`` so that sweeps over independent
series can run concurrently in a thread pool.

These functions are designed to be called from the higher-level
:mod:`exuber.models.recursive.radf` driver and are not typically used
directly by end users.
"""

from typing import Tuple
import numpy as np
from numba import jit


@jit(nopython=True, nogil=True, cache=True)
def unroot(y: np.ndarray, lag: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the augmented Dickey-Fuller regression design of a series.

    Row i of the design describes

        dy_t = a + b * y_{t-1} + sum_{j=1..lag} phi_j * dy_{t-j} + e_t

    for t = i + lag + 1 (0-based observation of the level series), with the
    regressors ordered as constant, lagged level and lagged differences.

    Args:
        y: Level series of length n
        lag: Number of lagged differences

    Returns:
        Tuple[np.ndarray, np.ndarray]: Response of shape (n - 1 - lag,) and
        regressors of shape (n - 1 - lag, 2 + lag)
    """
    n = y.shape[0]
    m = n - 1 - lag
    k = 2 + lag

    dy = np.empty(n - 1)
    for t in range(n - 1):
        dy[t] = y[t + 1] - y[t]

    yxmat = np.empty(m)
    xmat = np.empty((m, k))
    for i in range(m):
        t = i + lag
        yxmat[i] = dy[t]
        xmat[i, 0] = 1.0
        xmat[i, 1] = y[t]
        for j in range(1, lag + 1):
            xmat[i, 1 + j] = dy[t - j]

    return yxmat, xmat


@jit(nopython=True, nogil=True, cache=True)
def ols_fit(
    yxmat: np.ndarray,
    xmat: np.ndarray,
    rank_tol: float
) -> Tuple[np.ndarray, np.ndarray, float, bool]:
    """
    Fit a window by least squares through a thin singular value decomposition.

    The regressor matrix is declared singular when its smallest singular value
    falls below ``rank_tol`` times the largest one.

    Args:
        yxmat: Response of the window, shape (m,)
        xmat: Regressors of the window, shape (m, k)
        rank_tol: Relative singular value tolerance

    Returns:
        Tuple containing the coefficients (k,), the inverse cross-product
        matrix (k, k), the residual sum of squares and a success flag.
        On failure the arrays are filled with NaN.
    """
    m, k = xmat.shape
    beta = np.full(k, np.nan)
    inv = np.full((k, k), np.nan)

    if m <= k:
        return beta, inv, np.nan, False

    xmat = np.ascontiguousarray(xmat)
    u, s, vt = np.linalg.svd(xmat, False)
    if not s[0] > 0.0 or s[k - 1] <= rank_tol * s[0]:
        return beta, inv, np.nan, False

    uty = u.T @ yxmat
    v = vt.T
    for i in range(k):
        beta[i] = 0.0
        for j in range(k):
            beta[i] += v[i, j] * uty[j] / s[j]
    for i in range(k):
        for l in range(k):
            acc = 0.0
            for j in range(k):
                acc += v[i, j] * v[l, j] / (s[j] * s[j])
            inv[i, l] = acc

    resid = yxmat - xmat @ beta
    rss = 0.0
    for i in range(m):
        rss += resid[i] * resid[i]

    if not rss > 0.0 or not np.isfinite(rss):
        return beta, inv, rss, False

    return beta, inv, rss, True


@jit(nopython=True, nogil=True, cache=True)
def rls_update(
    beta: np.ndarray,
    inv: np.ndarray,
    rss: float,
    x: np.ndarray,
    y: float
) -> Tuple[float, bool]:
    """
    Extend a least-squares fit by one observation (Sherman-Morrison update).

    ``beta`` and ``inv`` are updated in place:

        Px = inv x,  d = 1 + x'Px,  r = y - x'beta
        beta += Px r / d,  inv -= Px Px' / d,  rss += r^2 / d

    Args:
        beta: Coefficients, shape (k,)
        inv: Inverse cross-product matrix, shape (k, k)
        rss: Residual sum of squares before the update
        x: Regressors of the new observation, shape (k,)
        y: Response of the new observation

    Returns:
        Tuple[float, bool]: Updated residual sum of squares and a success flag
    """
    k = beta.shape[0]
    px = inv @ x
    d = 1.0
    r = y
    for i in range(k):
        d += x[i] * px[i]
        r -= x[i] * beta[i]

    if not d > 0.0 or not np.isfinite(d):
        return rss, False

    for i in range(k):
        beta[i] += px[i] * r / d
        for j in range(k):
            inv[i, j] -= px[i] * px[j] / d
    rss = rss + r * r / d

    if not rss > 0.0 or not np.isfinite(rss):
        return rss, False

    return rss, True


@jit(nopython=True, nogil=True, cache=True)
def tstat(beta: np.ndarray, inv: np.ndarray, rss: float, m: int) -> float:
    """
    t-statistic of the lagged-level coefficient of a fitted window.

    Args:
        beta: Coefficients, shape (k,)
        inv: Inverse cross-product matrix, shape (k, k)
        rss: Residual sum of squares
        m: Number of rows in the window

    Returns:
        float: beta[1] / sqrt(rss / (m - k) * inv[1, 1]), or NaN when the
        variance is not positive
    """
    k = beta.shape[0]
    variance = rss / (m - k) * inv[1, 1]
    if not variance > 0.0 or not np.isfinite(variance):
        return np.nan
    return beta[1] / np.sqrt(variance)


@jit(nopython=True, nogil=True, cache=True)
def recursive_sweep(
    y: np.ndarray,
    minw: int,
    lag: int,
    refresh_interval: int,
    rank_tol: float
) -> Tuple[float, np.ndarray, np.ndarray, int]:
    """
    Compute the ADF statistic and the BADF/BSADF surfaces of one series.

    For every window start s the first window of ``minw`` rows is fitted
    directly and then extended one row at a time with :func:`rls_update`.
    Every ``refresh_interval`` updates (0 disables) the window is re-fitted
    directly to bound accumulated rounding drift. A window whose fit or update
    fails is recorded as NaN and the next window starts from a direct fit.

    Position p of a surface corresponds to observation p + minw + lag of the
    level series.

    Args:
        y: Level series of length n
        minw: Minimum window (regression rows)
        lag: Number of lagged differences
        refresh_interval: Updates between direct re-fits
        rank_tol: Relative singular value tolerance

    Returns:
        Tuple containing the full-sample ADF statistic, the BADF surface,
        the BSADF surface (both of length n - minw - lag) and the number of
        failed windows
    """
    yxmat, xmat = unroot(y, lag)
    m = yxmat.shape[0]
    n_end = m - minw + 1

    badf = np.full(n_end, np.nan)
    bsadf = np.full(n_end, -np.inf)
    n_failed = 0

    beta, inv, rss, ok = ols_fit(yxmat, xmat, rank_tol)
    adf = np.nan
    if ok:
        adf = tstat(beta, inv, rss, m)
    if not np.isfinite(adf):
        adf = np.nan
        n_failed += 1

    for s in range(n_end):
        ok = False
        steps = 0
        for e in range(s + minw - 1, m):
            if not ok or (refresh_interval > 0 and steps >= refresh_interval):
                beta, inv, rss, ok = ols_fit(yxmat[s:e + 1], xmat[s:e + 1], rank_tol)
                steps = 0
            else:
                rss, ok = rls_update(beta, inv, rss, xmat[e], yxmat[e])
                steps += 1

            t = np.nan
            if ok:
                t = tstat(beta, inv, rss, e - s + 1)
            if not np.isfinite(t):
                t = np.nan
                ok = False
                n_failed += 1

            p = e - minw + 1
            if s == 0:
                badf[p] = t
            if t > bsadf[p]:
                bsadf[p] = t

    for p in range(n_end):
        if bsadf[p] == -np.inf:
            bsadf[p] = np.nan

    return adf, badf, bsadf, n_failed
