"""Shared rating fixtures for the effects and regularization tests.

The datasets are small enough that every expected effect can be worked out
by hand.
"""

import polars as pl
import pytest


@pytest.fixture
def scenario_ratings():
    """Two movies rated by three users; mean rating 3.5.

    Movie A: 3, 4, 5 (users 1, 2, 3) -> mean residual +0.5
    Movie B: 2, 3, 4 (users 1, 2, 3) -> mean residual -0.5
    """
    return pl.DataFrame(
        {
            "movieId": ["A", "A", "A", "B", "B", "B"],
            "userId": [1, 2, 3, 1, 2, 3],
            "rating": [3.0, 4.0, 5.0, 2.0, 3.0, 4.0],
        }
    )


@pytest.fixture
def scenario_holdout():
    return pl.DataFrame(
        {
            "movieId": ["A", "B"],
            "userId": [1, 2],
            "rating": [4.0, 2.0],
        }
    )


@pytest.fixture
def unbalanced_ratings():
    """Four ratings where movie and user are not crossed evenly, so the
    estimation order of the two effects changes the fit."""
    return pl.DataFrame(
        {
            "movieId": ["A", "A", "B", "A"],
            "userId": [1, 2, 1, 1],
            "rating": [5.0, 3.0, 2.0, 4.0],
        }
    )


@pytest.fixture
def constant_ratings():
    return pl.DataFrame(
        {
            "movieId": ["A", "A", "B", "B", "C"],
            "userId": [1, 2, 1, 3, 2],
            "rating": [4.0, 4.0, 4.0, 4.0, 4.0],
        }
    )


@pytest.fixture
def sparse_ratings():
    """Movies with very different numbers of ratings, for shrinkage tests."""
    movies = ["A"] * 8 + ["B"] * 2 + ["C"]
    users = [1, 2, 3, 4, 5, 6, 7, 8, 1, 2, 3]
    ratings = [4.0, 5.0, 4.5, 4.0, 3.5, 5.0, 4.0, 4.5, 1.0, 1.5, 5.0]
    return pl.DataFrame({"movieId": movies, "userId": users, "rating": ratings})
