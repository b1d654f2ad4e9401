#!/usr/bin/env python
"""
Movie Effects Study Script

Loads MovieLens ratings, fits the chain of additive effects (movie, user,
genre combination, release year, review delay), tunes the shrinkage
parameter and scores the final regularized model on the holdout set.
Results can optionally be logged to MLFlow.

Usage:
    python scripts/run_effects_study.py [--ratings-path ratings.dat] [--movies-path movies.dat] [--mlflow]

Settings not given on the command line are read from MOVIERATING_* environment
variables or the .env file at the project root.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

import mlflow
import polars as pl
from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables from .env file
load_dotenv(project_root / ".env")

from movierating.config import Settings
from movierating.datasets import load_movielens
from movierating.study import StudyResult, run_study

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def log_to_mlflow(settings: Settings, result: StudyResult, run_name: str) -> str:
    """Log settings, the shrinkage curve and the results table to MLFlow."""
    logger.info("Logging to MLFlow...")

    if settings.mlflow_tracking_uri:
        mlflow.set_tracking_uri(settings.mlflow_tracking_uri)
    mlflow.set_experiment(settings.experiment_name)

    with mlflow.start_run(run_name=run_name):
        mlflow.log_params({
            "holdout_fraction": settings.holdout_fraction,
            "test_fraction": settings.test_fraction,
            "split_seed": settings.split_seed,
            "lambda_start": settings.lambda_start,
            "lambda_stop": settings.lambda_stop,
            "lambda_step": settings.lambda_step,
            "review_date_unit": settings.review_date_unit,
            "holdout_review_date_unit": settings.holdout_review_date_unit,
        })

        for step, trial in enumerate(result.search.trials):
            mlflow.log_metric("rmse_by_lambda", trial.rmse, step=step)

        mlflow.log_metrics({
            "best_lambda": result.search.best_lambda,
            "best_test_rmse": result.search.best_rmse,
            "holdout_rmse": result.holdout_rmse,
        })

        mlflow.log_table(data=result.results.to_dict(as_series=False), artifact_file="results.json")
        mlflow.log_table(data=result.search.to_frame().to_dict(as_series=False), artifact_file="lambda_curve.json")

        mlflow.set_tags({
            "model_type": "additive_effects",
            "framework": "movierating",
        })

        run_id = mlflow.active_run().info.run_id
        logger.info(f"MLFlow run ID: {run_id}")
        return run_id


def main(settings: Settings, use_mlflow: bool = False) -> StudyResult:
    """Main study pipeline."""
    logger.info("=" * 60)
    logger.info("Starting Movie Effects Study")
    logger.info("=" * 60)

    logger.info("Configuration:")
    for key, value in settings.model_dump().items():
        logger.info(f"  {key}: {value}")

    ratings = load_movielens(settings.ratings_path, settings.movies_path)
    result = run_study(ratings, settings)

    with pl.Config(tbl_rows=-1, fmt_str_lengths=80):
        logger.info(f"Results:\n{result.results}")

    if use_mlflow:
        run_name = f"effects_lambda_{result.search.best_lambda:g}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        log_to_mlflow(settings, result, run_name)

    logger.info("=" * 60)
    logger.info("Study Complete!")
    logger.info(f"Best lambda: {result.search.best_lambda:g}")
    logger.info(f"Holdout RMSE: {result.holdout_rmse:.5f}")
    logger.info("=" * 60)

    return result


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Fit and regularize the movie effects model")
    parser.add_argument(
        "--ratings-path",
        type=str,
        default=None,
        help="Path to MovieLens ratings.dat",
    )
    parser.add_argument(
        "--movies-path",
        type=str,
        default=None,
        help="Path to MovieLens movies.dat",
    )
    parser.add_argument(
        "--lambda-start",
        type=float,
        default=None,
        help="Smallest shrinkage value to try",
    )
    parser.add_argument(
        "--lambda-stop",
        type=float,
        default=None,
        help="Largest shrinkage value to try",
    )
    parser.add_argument(
        "--lambda-step",
        type=float,
        default=None,
        help="Step between shrinkage values",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=None,
        help="Number of threads for the shrinkage search",
    )
    parser.add_argument(
        "--mlflow",
        action="store_true",
        help="Log settings and results to MLFlow",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    overrides = {
        "ratings_path": args.ratings_path,
        "movies_path": args.movies_path,
        "lambda_start": args.lambda_start,
        "lambda_stop": args.lambda_stop,
        "lambda_step": args.lambda_step,
        "n_jobs": args.n_jobs,
    }
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})

    main(settings, use_mlflow=args.mlflow)
