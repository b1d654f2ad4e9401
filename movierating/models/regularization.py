"""Shrinkage parameter search for the additive effects model."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

import polars as pl

from movierating.evaluation import rmse
from movierating.schemas import LambdaTrial, SearchResult
from movierating.utils.constants import DEFAULT_RATING_COL

from .effects import fit_chain

logger = logging.getLogger(__name__)


class EmptySearchSpace(ValueError):
    """Raised when a search is started without any shrinkage candidates."""


def lambda_grid(start: float, stop: float, step: float) -> list[float]:
    """Inclusive, ascending grid of shrinkage candidates.

    Example:
        >>> lambda_grid(0, 1, 0.25)
        [0.0, 0.25, 0.5, 0.75, 1.0]
    """
    if step <= 0:
        raise ValueError(f"Step must be > 0. Got: {step}")
    if stop < start:
        raise ValueError(f"Stop ({stop}) must be >= start ({start})")

    n_steps = int(round((stop - start) / step))
    # rounding keeps 0.1-style steps from drifting (0.30000000000000004)
    return [round(start + i * step, 10) for i in range(n_steps + 1)]


def search(
    training_set: pl.DataFrame,
    evaluation_set: pl.DataFrame,
    baseline: float,
    chain: Sequence[str],
    lambda_candidates: Sequence[float],
    n_jobs: int = 1,
    col_rating: str = DEFAULT_RATING_COL,
) -> SearchResult:
    """Find the shrinkage value that minimises the full-chain RMSE.

    Every candidate is an independent trial: the whole chain is re-estimated
    with that value and scored on ``evaluation_set``. On equal RMSE the
    smaller candidate wins.

    Args:
        training_set: Training ratings
        evaluation_set: Ratings used to score each trial
        baseline: Global mean rating of the training set
        chain: Grouping keys in estimation order
        lambda_candidates: Shrinkage values to try
        n_jobs: Number of worker threads; 1 runs the trials serially
        col_rating: Rating column name

    Returns:
        SearchResult: best value, its RMSE and all trials in candidate order

    Raises:
        EmptySearchSpace: If ``lambda_candidates`` is empty
        ValueError: If a candidate is negative or ``n_jobs`` < 1
    """
    candidates = [float(lam) for lam in lambda_candidates]
    if not candidates:
        raise EmptySearchSpace("At least one shrinkage candidate is required")
    negative = [lam for lam in candidates if lam < 0]
    if negative:
        raise ValueError(f"Shrinkage candidates must be >= 0. Got: {negative}")
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be >= 1. Got: {n_jobs}")

    actual = evaluation_set.get_column(col_rating)

    def run_trial(lam: float) -> float:
        model = fit_chain(training_set, baseline, chain, lam, col_rating)
        score = rmse(actual, model.predict(evaluation_set))
        logger.info(f"lambda={lam:g}: RMSE={score:.5f}")
        return score

    logger.info(f"Searching {len(candidates)} shrinkage candidates (n_jobs={n_jobs})")

    scores: list[float] = [float("nan")] * len(candidates)
    if n_jobs == 1:
        for i, lam in enumerate(candidates):
            scores[i] = run_trial(lam)
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            futures = {executor.submit(run_trial, lam): i for i, lam in enumerate(candidates)}
            for future in as_completed(futures):
                scores[futures[future]] = future.result()

    best_index = 0
    for i in range(1, len(candidates)):
        if scores[i] < scores[best_index] or (
            scores[i] == scores[best_index] and candidates[i] < candidates[best_index]
        ):
            best_index = i

    result = SearchResult(
        best_lambda=candidates[best_index],
        best_rmse=scores[best_index],
        trials=tuple(
            LambdaTrial(lam=lam, rmse=score) for lam, score in zip(candidates, scores)
        ),
    )
    logger.info(f"Best lambda={result.best_lambda:g} with RMSE={result.best_rmse:.5f}")
    return result
