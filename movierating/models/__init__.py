"""Additive effects models and shrinkage search.

Example:
    >>> from movierating.models import build_chain, lambda_grid, search
    >>> results = build_chain(train, test, baseline, ["movieId", "userId"])
    >>> best = search(train, test, baseline, ["movieId", "userId"], lambda_grid(0, 10, 0.25))
"""

from .effects import (
    AdditiveModel,
    EffectTable,
    build_chain,
    estimate_effect,
    fit_chain,
    model_label,
    predict,
)
from .regularization import (
    EmptySearchSpace,
    lambda_grid,
    search,
)

__all__ = [
    # Effects
    "AdditiveModel",
    "EffectTable",
    "build_chain",
    "estimate_effect",
    "fit_chain",
    "model_label",
    "predict",
    # Regularization
    "EmptySearchSpace",
    "lambda_grid",
    "search",
]
