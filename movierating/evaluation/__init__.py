"""
Evaluation metrics for rating prediction.

This module provides:
- Root-mean-square error (RMSE) between true and predicted ratings
- A results table comparing the RMSE of several models
"""

import logging
from typing import Any, Sequence

import numpy as np
import polars as pl

from .reporting import report

logger = logging.getLogger(__name__)


class DimensionMismatch(ValueError):
    """Raised when true and predicted values are not the same length."""


def _to_float_array(values: Any) -> np.ndarray:
    # None and NaN both end up as NaN
    if isinstance(values, pl.Series):
        return values.cast(pl.Float64).to_numpy()
    if isinstance(values, np.ndarray):
        return values.astype(np.float64).ravel()
    return np.array([np.nan if v is None else v for v in values], dtype=np.float64)


def rmse(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """
    Calculate the root-mean-square error.

    RMSE = sqrt(mean((actual - predicted)^2))

    Pairs where either value is missing (None or NaN) are left out of the mean.

    Args:
        actual: True ratings
        predicted: Predicted ratings, aligned with ``actual``

    Returns:
        float: RMSE, or NaN when no complete pair is left

    Raises:
        DimensionMismatch: If ``actual`` and ``predicted`` differ in length
    """
    actual_arr = _to_float_array(actual)
    predicted_arr = _to_float_array(predicted)

    if actual_arr.shape[0] != predicted_arr.shape[0]:
        raise DimensionMismatch(
            f"actual has {actual_arr.shape[0]} values but predicted has {predicted_arr.shape[0]}"
        )

    mask = ~(np.isnan(actual_arr) | np.isnan(predicted_arr))
    if not mask.any():
        logger.warning("No complete (actual, predicted) pairs; RMSE is undefined")
        return float("nan")

    errors = actual_arr[mask] - predicted_arr[mask]
    return float(np.sqrt(np.mean(errors**2)))


__all__ = [
    "DimensionMismatch",
    "report",
    "rmse",
]
