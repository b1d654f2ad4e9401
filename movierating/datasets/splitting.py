"""Deterministic train/holdout partitioning of rating data."""

import logging
from typing import Sequence

import numpy as np
import polars as pl

from movierating.utils.constants import (
    DEFAULT_ITEM_COL,
    DEFAULT_RATING_COL,
    DEFAULT_USER_COL,
)

from .polars_df_utils import filter_by, keep_by

logger = logging.getLogger(__name__)

_ROW_COL = "_split_row"
_DRAW_COL = "_split_draw"
_SELECTED_COL = "_split_selected"


def stratified_split(
    df: pl.DataFrame,
    fraction: float,
    seed: int,
    strata_col: str = DEFAULT_RATING_COL,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Split ``df`` so that each stratum contributes ``fraction`` of its rows to the second part.

    Within every value of ``strata_col``, ``ceil(fraction * n)`` rows are drawn
    with a numpy generator seeded by ``seed``; the same inputs always give the
    same partitions. Row order of the input is kept in both outputs.

    Args:
        df: Data to split
        fraction: Share of each stratum sent to the second partition, in (0, 1)
        seed: Random seed
        strata_col: Column defining the strata

    Returns:
        Tuple of (remaining rows, sampled rows)

    Raises:
        ValueError: If ``fraction`` is out of range or either partition would be empty
    """
    if not 0 < fraction < 1:
        raise ValueError(f"fraction must be in (0, 1). Got: {fraction}")
    if strata_col not in df.columns:
        raise ValueError(f"Missing strata column: {strata_col}")

    rng = np.random.default_rng(seed)
    ranked = df.with_columns(pl.Series(_DRAW_COL, rng.random(df.height))).with_columns(
        (
            pl.col(_DRAW_COL).rank("ordinal").over(strata_col)
            <= (pl.len().over(strata_col) * fraction).ceil()
        ).alias(_SELECTED_COL)
    )

    remaining = ranked.filter(~pl.col(_SELECTED_COL)).drop(_DRAW_COL, _SELECTED_COL)
    sampled = ranked.filter(pl.col(_SELECTED_COL)).drop(_DRAW_COL, _SELECTED_COL)

    if remaining.height == 0 or sampled.height == 0:
        raise ValueError(
            f"Split of {df.height} rows with fraction={fraction} leaves an empty partition"
        )

    return remaining, sampled


def holdout_split(
    df: pl.DataFrame,
    fraction: float,
    seed: int,
    keys: Sequence[str] = (DEFAULT_ITEM_COL, DEFAULT_USER_COL),
    strata_col: str = DEFAULT_RATING_COL,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Split ``df`` into training and holdout parts sharing every movie and user.

    Holdout rows whose key values (by default movie and user) never occur in
    the training part are moved back into training, so every key referenced
    by the holdout can be estimated.

    Returns:
        Tuple of (train, holdout)

    Raises:
        ValueError: If the holdout is empty after filtering
    """
    indexed = df.with_row_index(_ROW_COL)
    train, candidates = stratified_split(indexed, fraction, seed, strata_col)

    holdout = candidates
    for key in keys:
        holdout = keep_by(holdout, train, [key])

    removed = filter_by(candidates, holdout, [_ROW_COL])
    if holdout.height == 0:
        raise ValueError("Holdout is empty after removing rows with keys unseen in training")

    train = pl.concat([train, removed]).sort(_ROW_COL).drop(_ROW_COL)
    holdout = holdout.sort(_ROW_COL).drop(_ROW_COL)

    logger.info(
        f"Split {df.height} ratings into train={train.height}, holdout={holdout.height} "
        f"({removed.height} moved back to train)"
    )
    return train, holdout
