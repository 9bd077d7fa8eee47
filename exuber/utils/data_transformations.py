'''
Input conversion for exuber.

This module turns the inputs accepted by the batch driver and the wild
bootstrap (NumPy arrays, lists, pandas Series and DataFrames) into a float
matrix with one column per series, together with the observation index and
the series names that the result objects carry.

Functions:
    extract_panel: Convert input data to a (n, K) matrix, index and names
    check_finite: Reject missing or infinite observations
'''

import logging
from typing import List, Tuple

import numpy as np
import pandas as pd

from exuber.core.exceptions import raise_data_error, raise_dimension_error
from exuber.core.results import default_col_names
from exuber.core.types import PanelData

# Set up module-level logger
logger = logging.getLogger("exuber.utils.data_transformations")


def check_finite(values: np.ndarray, col_names: List[str]) -> None:
    """
    Reject missing or infinite observations.

    Args:
        values: Data matrix of shape (n, K)
        col_names: Series names used in the error message

    Raises:
        DataError: If any observation is NaN or infinite
    """
    bad = ~np.isfinite(values)
    if bad.any():
        row, col = (int(i) for i in np.argwhere(bad)[0])
        raise_data_error(
            f"Series '{col_names[col]}' contains missing or infinite values",
            data_name=col_names[col],
            issue="NaN or infinite value",
            index=row,
            details=f"{int(bad.sum())} non-finite observations in total"
        )


def extract_panel(data: PanelData) -> Tuple[np.ndarray, pd.Index, List[str]]:
    """
    Convert input data to a float matrix with one column per series.

    A pandas index becomes the observation index and DataFrame columns (or the
    name of a Series) become the series names. Other inputs receive the index
    ``0..n-1`` and the names ``Series1..SeriesK``.

    Args:
        data: 1-D or 2-D array-like, pandas Series or DataFrame

    Returns:
        Tuple containing the (n, K) float matrix, the index and the names

    Raises:
        DataError: If the data is not numeric or has non-finite values
        DimensionError: If the data has more than two dimensions or no observations
    """
    if isinstance(data, pd.DataFrame):
        index = data.index
        col_names = [str(c) for c in data.columns]
        raw = data.to_numpy()
    elif isinstance(data, pd.Series):
        index = data.index
        col_names = [str(data.name)] if data.name is not None else default_col_names(1)
        raw = data.to_numpy()
    else:
        raw = np.asarray(data)
        index = None
        col_names = None

    try:
        values = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise_data_error(
            "Data must be numeric",
            data_name="data",
            issue=f"cannot convert {raw.dtype} values to float",
            details=str(e)
        )

    if values.ndim == 1:
        values = values[:, np.newaxis]
    if values.ndim != 2:
        raise_dimension_error(
            "Data must be a vector or a matrix with one column per series",
            array_name="data",
            expected_shape="(n,) or (n, K)",
            actual_shape=values.shape
        )
    if values.shape[0] == 0 or values.shape[1] == 0:
        raise_dimension_error(
            "Data must contain at least one observation of one series",
            array_name="data",
            expected_shape="(n, K) with n, K > 0",
            actual_shape=values.shape
        )

    if index is None:
        index = pd.RangeIndex(values.shape[0])
    if col_names is None:
        col_names = default_col_names(values.shape[1])

    check_finite(values, col_names)
    logger.debug(f"Extracted {values.shape[1]} series of {values.shape[0]} observations")
    return np.ascontiguousarray(values), index, col_names
