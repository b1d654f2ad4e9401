"""
Dataset loading, cleaning, exploration and splitting for movierating.

Quick start:
    from movierating.datasets import load_movielens, clean_ratings, holdout_split

    ratings = load_movielens("data/ml-10M100K/ratings.dat", "data/ml-10M100K/movies.dat")
    edx, final_holdout = holdout_split(ratings, fraction=0.1, seed=1)
    edx = clean_ratings(edx, date_unit="day")
"""

from .exploration import (
    dataset_overview,
    log_summary,
    mean_rating_by,
    rating_distribution,
    ratings_per_key,
    top_genres,
)
from .processor import (
    clean_ratings,
    load_movielens,
    read_dat,
    read_file,
)
from .splitting import (
    holdout_split,
    stratified_split,
)

__all__ = [
    # Loading and cleaning
    "clean_ratings",
    "load_movielens",
    "read_dat",
    "read_file",
    # Exploration
    "dataset_overview",
    "log_summary",
    "mean_rating_by",
    "rating_distribution",
    "ratings_per_key",
    "top_genres",
    # Splitting
    "holdout_split",
    "stratified_split",
]
