# Copyright (c) Recommenders contributors.
# Licensed under the MIT License.

import logging

import polars as pl


logger = logging.getLogger(__name__)


def filter_by(
    df: pl.DataFrame,
    filter_by_df: pl.DataFrame,
    filter_by_cols: list[str],
) -> pl.DataFrame:
    """From the input DataFrame `df`, remove the records whose target column
    `filter_by_cols` values exist in the filter-by DataFrame `filter_by_df`.

    Args:
        df: Source dataframe.
        filter_by_df: Filter dataframe.
        filter_by_cols: Filter columns.

    Returns:
        Dataframe filtered by `filter_by_df` on `filter_by_cols`.
    """
    # Use anti-join to exclude rows that exist in filter_by_df
    return df.join(
        filter_by_df.select(filter_by_cols).unique(subset=filter_by_cols),
        on=filter_by_cols,
        how="anti",
    )


def keep_by(
    df: pl.DataFrame,
    keep_by_df: pl.DataFrame,
    keep_by_cols: list[str],
) -> pl.DataFrame:
    """Keep only the records of `df` whose `keep_by_cols` values also exist in `keep_by_df`.

    Args:
        df: Source dataframe.
        keep_by_df: Reference dataframe.
        keep_by_cols: Columns to match on.

    Returns:
        Dataframe restricted to values present in `keep_by_df`.
    """
    return df.join(
        keep_by_df.select(keep_by_cols).unique(subset=keep_by_cols),
        on=keep_by_cols,
        how="semi",
    )
