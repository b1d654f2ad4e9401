"""End-to-end effects study: split, clean, fit the effect chain, tune shrinkage, score the holdout.

The flow mirrors the analysis the package was built for:

1. Set aside a final holdout (never used for model selection)
2. Clean both parts, deriving release year and review delay
3. Split the remaining data into train and test
4. Score the naive mean and every prefix of the effect chain on test
5. Search the shrinkage parameter on test
6. Refit the regularized chain on all non-holdout data and score the holdout once
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import polars as pl

from movierating.config import Settings, get_settings
from movierating.datasets import clean_ratings, dataset_overview, holdout_split, log_summary
from movierating.evaluation import report, rmse
from movierating.models import build_chain, fit_chain, model_label, search
from movierating.schemas import ModelResult, SearchResult
from movierating.utils.constants import DEFAULT_CHAIN, DEFAULT_RATING_COL, NAIVE_MODEL_LABEL

logger = logging.getLogger(__name__)

HOLDOUT_SUFFIX = " (final holdout)"


@dataclass(frozen=True, eq=False)
class StudyResult:
    """Everything the reporting and plotting stages need.

    Attributes:
        results: ``method``/``rmse`` table, in the order the models were built
        search: Shrinkage search outcome, including the full RMSE curve
        holdout_rmse: RMSE of the final regularized model on the holdout
        overview: One-row summary of the modelling data
    """

    results: pl.DataFrame
    search: SearchResult
    holdout_rmse: float
    overview: pl.DataFrame


def run_study(
    ratings: pl.DataFrame,
    settings: Settings | None = None,
    chain: Sequence[str] = DEFAULT_CHAIN,
) -> StudyResult:
    """Run the whole study on raw ratings joined with their movie titles and genres.

    Args:
        ratings: Ratings with userId, movieId, rating, timestamp, title and genres
        settings: Study settings, defaults to ``get_settings()``
        chain: Grouping keys in estimation order

    Returns:
        StudyResult
    """
    settings = settings or get_settings()

    if settings.date_units_differ:
        logger.warning(
            f"Review dates are rounded by '{settings.review_date_unit}' for modelling data but "
            f"by '{settings.holdout_review_date_unit}' for the holdout; review delays of the "
            f"two parts are not computed the same way"
        )

    edx_raw, holdout_raw = holdout_split(ratings, settings.holdout_fraction, settings.split_seed)
    edx = clean_ratings(edx_raw, settings.review_date_unit)
    holdout = clean_ratings(holdout_raw, settings.holdout_review_date_unit)

    log_summary(edx)
    overview = dataset_overview(edx)

    train, test = holdout_split(edx, settings.test_fraction, settings.split_seed)
    actual = test.get_column(DEFAULT_RATING_COL)
    baseline = train.get_column(DEFAULT_RATING_COL).mean()

    naive_rmse = rmse(actual, np.full(test.height, baseline))
    logger.info(f"{NAIVE_MODEL_LABEL}: RMSE={naive_rmse:.5f}")
    entries = [ModelResult(label=NAIVE_MODEL_LABEL, rmse=naive_rmse)]

    entries.extend(build_chain(train, test, baseline, chain))

    search_result = search(
        train,
        test,
        baseline,
        chain,
        settings.lambda_candidates(),
        n_jobs=settings.n_jobs,
    )
    regularized_label = model_label(chain, search_result.best_lambda)
    entries.append(ModelResult(label=regularized_label, rmse=search_result.best_rmse))

    # Final model: same lambda, refit on all modelling data, scored once
    final_model = fit_chain(
        edx,
        edx.get_column(DEFAULT_RATING_COL).mean(),
        chain,
        search_result.best_lambda,
    )
    holdout_rmse = rmse(holdout.get_column(DEFAULT_RATING_COL), final_model.predict(holdout))
    logger.info(f"{regularized_label}{HOLDOUT_SUFFIX}: RMSE={holdout_rmse:.5f}")
    entries.append(ModelResult(label=f"{regularized_label}{HOLDOUT_SUFFIX}", rmse=holdout_rmse))

    return StudyResult(
        results=report(entries),
        search=search_result,
        holdout_rmse=holdout_rmse,
        overview=overview,
    )
