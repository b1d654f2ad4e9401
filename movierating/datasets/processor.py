"""
Loading and cleaning of MovieLens rating data.

Supports:
- MovieLens 10M ``::``-delimited ``ratings.dat`` / ``movies.dat`` via load_movielens()
- Generic CSV/Parquet files via read_file()
- Feature derivation (release year, review date, review delay) via clean_ratings()
"""

import logging
from pathlib import Path

import polars as pl

from movierating.utils.constants import (
    DEFAULT_GENRES_COL,
    DEFAULT_ITEM_COL,
    DEFAULT_RATING_COL,
    DEFAULT_RELEASE_YEAR_COL,
    DEFAULT_REVIEW_DATE_COL,
    DEFAULT_REVIEW_DELAY_COL,
    DEFAULT_TIMESTAMP_COL,
    DEFAULT_TITLE_COL,
    DEFAULT_USER_COL,
    SUPPORTED_DATE_UNITS,
)

logger = logging.getLogger(__name__)


# ── MovieLens .dat layouts ─────────────────────────────────────────────

MOVIELENS_SEPARATOR = "::"

RATINGS_SCHEMA = {
    DEFAULT_USER_COL: pl.Int64,
    DEFAULT_ITEM_COL: pl.Int64,
    DEFAULT_RATING_COL: pl.Float64,
    DEFAULT_TIMESTAMP_COL: pl.Int64,
}

MOVIES_SCHEMA = {
    DEFAULT_ITEM_COL: pl.Int64,
    DEFAULT_TITLE_COL: pl.Utf8,
    DEFAULT_GENRES_COL: pl.Utf8,
}

# "Toy Story (1995)" -> 1995
TITLE_YEAR_PATTERN = r"\((\d{4})\)\s*$"


# Helpers

def read_file(path: str | Path) -> pl.DataFrame:
    """Read CSV or Parquet file."""
    path = Path(path)
    ext = path.suffix.lower()

    if ext == ".csv":
        return pl.read_csv(path)
    if ext == ".parquet":
        return pl.read_parquet(path)

    raise ValueError(f"Unsupported file format: {ext}")


def read_dat(path: str | Path, schema: dict[str, pl.DataType]) -> pl.DataFrame:
    """Read a ``::``-delimited MovieLens file into typed columns.

    polars only accepts single-byte separators, so each line is read whole
    and split afterwards.
    """
    columns = list(schema)
    lines = pl.read_csv(
        path,
        has_header=False,
        separator="\x1f",
        quote_char=None,
        schema={"line": pl.Utf8},
        encoding="utf8-lossy",
    )

    return (
        lines.filter(pl.col("line").str.strip_chars() != "")
        .select(
            pl.col("line")
            .str.strip_chars()
            .str.split_exact(MOVIELENS_SEPARATOR, len(columns) - 1)
            .struct.rename_fields(columns)
            .alias("fields")
        )
        .unnest("fields")
        .with_columns(pl.col(name).cast(dtype) for name, dtype in schema.items())
    )


def load_movielens(ratings_path: str | Path, movies_path: str | Path) -> pl.DataFrame:
    """Load MovieLens ratings and attach each movie's title and genres."""
    logger.info(f"Loading ratings from {ratings_path}")
    ratings = read_dat(ratings_path, RATINGS_SCHEMA)
    logger.info(f"Loading movies from {movies_path}")
    movies = read_dat(movies_path, MOVIES_SCHEMA)

    df = ratings.join(movies, on=DEFAULT_ITEM_COL, how="left")
    logger.info(f"Loaded {df.height} ratings for {movies.height} movies")
    return df


def clean_ratings(df: pl.DataFrame, date_unit: str = "day") -> pl.DataFrame:
    """Derive the covariates used by the effects model.

    Adds:
        release_year: year in trailing parentheses of the title, null if absent
        review_date: rating timestamp rounded to ``date_unit``
        review_delay: review year minus release year, null if release year is unknown

    The release year is removed from ``title``.

    Args:
        df: Ratings with title and timestamp columns
        date_unit: "day" or "week"

    Returns:
        polars.DataFrame: A new frame with the derived columns
    """
    if date_unit not in SUPPORTED_DATE_UNITS:
        raise ValueError(
            f"Unsupported date unit: {date_unit}. Must be one of {sorted(SUPPORTED_DATE_UNITS)}"
        )

    missing = [c for c in (DEFAULT_TITLE_COL, DEFAULT_TIMESTAMP_COL) if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    every = SUPPORTED_DATE_UNITS[date_unit]

    cleaned = df.with_columns(
        pl.col(DEFAULT_TITLE_COL)
        .str.extract(TITLE_YEAR_PATTERN, 1)
        .cast(pl.Int32, strict=False)
        .alias(DEFAULT_RELEASE_YEAR_COL),
        pl.col(DEFAULT_TITLE_COL)
        .str.replace(TITLE_YEAR_PATTERN, "")
        .str.strip_chars()
        .alias(DEFAULT_TITLE_COL),
        pl.from_epoch(DEFAULT_TIMESTAMP_COL, time_unit="s")
        .dt.round(every)
        .dt.date()
        .alias(DEFAULT_REVIEW_DATE_COL),
    ).with_columns(
        (
            pl.col(DEFAULT_REVIEW_DATE_COL).dt.year().cast(pl.Int32)
            - pl.col(DEFAULT_RELEASE_YEAR_COL)
        ).alias(DEFAULT_REVIEW_DELAY_COL)
    )

    n_unknown_year = cleaned.get_column(DEFAULT_RELEASE_YEAR_COL).null_count()
    if n_unknown_year:
        logger.info(f"{n_unknown_year} ratings have no parseable release year")

    return cleaned
