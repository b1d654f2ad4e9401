"""Results table for comparing models."""

from typing import Iterable

import polars as pl

from movierating.schemas import ModelResult


def report(entries: Iterable[ModelResult | tuple[str, float]]) -> pl.DataFrame:
    """Build a ``method``/``rmse`` table, one row per entry, in the given order.

    Args:
        entries: ModelResult objects or ``(label, metric)`` pairs

    Returns:
        polars.DataFrame with columns ``method`` and ``rmse``
    """
    labels: list[str] = []
    metrics: list[float] = []
    for entry in entries:
        if isinstance(entry, ModelResult):
            label, metric = entry.label, entry.rmse
        else:
            label, metric = entry
        labels.append(str(label))
        metrics.append(float(metric))

    return pl.DataFrame(
        {"method": labels, "rmse": metrics},
        schema={"method": pl.Utf8, "rmse": pl.Float64},
    )
