"""Exploratory summaries of a rating dataset."""

import logging

import polars as pl

from movierating.utils.constants import (
    DEFAULT_GENRES_COL,
    DEFAULT_ITEM_COL,
    DEFAULT_RATING_COL,
    DEFAULT_USER_COL,
)

logger = logging.getLogger(__name__)

GENRE_SEPARATOR = "|"


def dataset_overview(df: pl.DataFrame) -> pl.DataFrame:
    """One-row summary: number of ratings, users, movies, genre combinations and mean rating."""
    return df.select(
        pl.len().alias("n_ratings"),
        pl.col(DEFAULT_USER_COL).n_unique().alias("n_users"),
        pl.col(DEFAULT_ITEM_COL).n_unique().alias("n_movies"),
        pl.col(DEFAULT_GENRES_COL).n_unique().alias("n_genre_combinations"),
        pl.col(DEFAULT_RATING_COL).mean().alias("mean_rating"),
    )


def rating_distribution(df: pl.DataFrame) -> pl.DataFrame:
    """Count of every rating value, lowest rating first."""
    return df.group_by(DEFAULT_RATING_COL).agg(pl.len().alias("count")).sort(DEFAULT_RATING_COL)


def top_genres(df: pl.DataFrame, n: int = 10) -> pl.DataFrame:
    """Most rated single genres, splitting each genre combination on ``|``."""
    return (
        df.select(pl.col(DEFAULT_GENRES_COL).str.split(GENRE_SEPARATOR).alias("genre"))
        .explode("genre")
        .group_by("genre")
        .agg(pl.len().alias("count"))
        .sort(["count", "genre"], descending=[True, False])
        .head(n)
    )


def ratings_per_key(df: pl.DataFrame, key: str) -> pl.DataFrame:
    """Number of ratings for every value of ``key``, most rated first."""
    return (
        df.group_by(key)
        .agg(pl.len().alias("n_ratings"))
        .sort(["n_ratings", key], descending=[True, False])
    )


def mean_rating_by(df: pl.DataFrame, key: str, min_ratings: int = 1) -> pl.DataFrame:
    """Mean rating and rating count for each value of ``key`` with at least ``min_ratings`` ratings."""
    return (
        df.group_by(key)
        .agg(
            pl.col(DEFAULT_RATING_COL).mean().alias("mean_rating"),
            pl.len().alias("n_ratings"),
        )
        .filter(pl.col("n_ratings") >= min_ratings)
        .sort(key, nulls_last=True)
    )


def log_summary(df: pl.DataFrame) -> None:
    """Log the overview, rating distribution and top genres."""
    overview = dataset_overview(df).row(0, named=True)
    logger.info(
        f"{overview['n_ratings']} ratings from {overview['n_users']} users on "
        f"{overview['n_movies']} movies ({overview['n_genre_combinations']} genre combinations), "
        f"mean rating {overview['mean_rating']:.4f}"
    )
    for row in rating_distribution(df).iter_rows(named=True):
        logger.info(f"  rating {row[DEFAULT_RATING_COL]}: {row['count']}")
    genres = ", ".join(f"{row['genre']} ({row['count']})" for row in top_genres(df).iter_rows(named=True))
    logger.info(f"Top genres: {genres}")
