"""Additive effects model: baseline plus one bias term per grouping key.

A model is the global mean rating plus a chain of effects, each estimated on
the residual that the baseline and all earlier effects leave behind:

    residual = rating - baseline - sum(b_k(record[k]) for earlier keys k)
    b(g)     = sum(residual over group g) / (count(group g) + lam)

With ``lam = 0`` an effect is the plain mean residual of its group; larger
values pull effects of sparsely rated groups towards zero.

Example:
    >>> model = fit_chain(train_df, baseline=train_df["rating"].mean(),
    ...                   chain=["movieId", "userId"], lam=5.0)
    >>> predictions = model.predict(test_df)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import numpy as np
import polars as pl

from movierating.evaluation import rmse
from movierating.schemas import ModelResult
from movierating.utils.constants import (
    DEFAULT_RATING_COL,
    EFFECT_LABELS,
    NAIVE_MODEL_LABEL,
    UNKNOWN_KEY,
)

logger = logging.getLogger(__name__)

KEY_COL = "key"
EFFECT_COL = "effect"
COUNT_COL = "n_ratings"

_ROW_INDEX_COL = "_row_index"
_RESIDUAL_COL = "_residual"
_OFFSET_COL = "_offset"


def _key_expr(df: pl.DataFrame, key_name: str) -> pl.Expr:
    """Normalise a grouping column so the same value matches at fit and predict time.

    Keys become strings. Whole floats are written as integers so ``1995.0``
    and ``1995`` are the same key, and NaN counts as missing.
    """
    col = pl.col(key_name)
    if df.schema[key_name].is_float():
        col = col.fill_nan(None)
        col = (
            pl.when(col.is_finite() & (col == col.round(0)))
            .then(col.cast(pl.Int64, strict=False).cast(pl.Utf8))
            .otherwise(col.cast(pl.Utf8))
        )
    else:
        col = col.cast(pl.Utf8)
    return col.fill_null(UNKNOWN_KEY)


def _normalize_key(value: Any) -> str:
    if value is None:
        return UNKNOWN_KEY
    if isinstance(value, float):
        if math.isnan(value):
            return UNKNOWN_KEY
        if value.is_integer():
            return str(int(value))
    return str(value)


def _check_lambda(lam: float) -> None:
    if lam < 0:
        raise ValueError(f"Shrinkage parameter must be >= 0. Got: {lam}")


def _require_columns(df: pl.DataFrame, columns: Sequence[str]) -> None:
    missing = [col for col in dict.fromkeys(columns) if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


@dataclass(frozen=True, eq=False)
class EffectTable:
    """Effect of every observed value of one grouping key.

    Attributes:
        key_name: Column the effect is grouped by
        frame: DataFrame with columns ``key`` (str), ``effect`` and ``n_ratings``
        lam: Shrinkage used when estimating the effects
    """

    key_name: str
    frame: pl.DataFrame
    lam: float = 0.0
    _lookup: dict[str, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        mapping = dict(
            zip(
                self.frame.get_column(KEY_COL).to_list(),
                self.frame.get_column(EFFECT_COL).to_list(),
            )
        )
        object.__setattr__(self, "_lookup", mapping)

    def __len__(self) -> int:
        return self.frame.height

    def __contains__(self, key: Any) -> bool:
        return _normalize_key(key) in self._lookup

    def lookup(self, key: Any) -> Optional[float]:
        """Return the effect for ``key``, or None when the key was never observed.

        A missing key (None or NaN) is looked up as the "unknown" group, and
        a whole float matches the integer key of the same value.
        """
        return self._lookup.get(_normalize_key(key))

    def to_dict(self) -> dict[str, float]:
        return dict(self._lookup)


@dataclass(frozen=True, eq=False)
class AdditiveModel:
    """Baseline plus an ordered chain of effect tables."""

    baseline: float
    effects: tuple[EffectTable, ...] = ()
    lam: float = 0.0

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(table.key_name for table in self.effects)

    @property
    def label(self) -> str:
        return model_label(self.keys, self.lam)

    def predict(self, evaluation_set: pl.DataFrame) -> np.ndarray:
        return predict(evaluation_set, self.baseline, self.effects)


def model_label(keys: Sequence[str], lam: float = 0.0) -> str:
    """Name a model after the effects it includes.

    Examples:
        >>> model_label(["movieId"])
        'Movie Effect Model'
        >>> model_label(["movieId", "userId"], lam=5.0)
        'Regularized Movie + User Effects Model'
    """
    if not keys:
        return NAIVE_MODEL_LABEL

    names = " + ".join(EFFECT_LABELS.get(key, key) for key in keys)
    suffix = "Effect Model" if len(keys) == 1 else "Effects Model"
    prefix = "Regularized " if lam > 0 else ""
    return f"{prefix}{names} {suffix}"


def _effect_contribution(df: pl.DataFrame, table: EffectTable) -> np.ndarray:
    """Effect of ``table`` for every row of ``df``, 0 where the key is unmatched."""
    keys = df.select(_key_expr(df, table.key_name).alias(KEY_COL)).with_row_index(_ROW_INDEX_COL)
    joined = keys.join(
        table.frame.select(KEY_COL, EFFECT_COL),
        on=KEY_COL,
        how="left",
    ).sort(_ROW_INDEX_COL)
    return joined.get_column(EFFECT_COL).fill_null(0.0).to_numpy()


def _offsets(df: pl.DataFrame, baseline: float, effects: Sequence[EffectTable]) -> np.ndarray:
    offsets = np.full(df.height, float(baseline), dtype=np.float64)
    for table in effects:
        offsets = offsets + _effect_contribution(df, table)
    return offsets


def estimate_effect(
    training_set: pl.DataFrame,
    baseline: float,
    prior_effects: Sequence[EffectTable],
    group_key: str,
    lam: float = 0.0,
    col_rating: str = DEFAULT_RATING_COL,
) -> EffectTable:
    """Estimate one effect table from the residual of the earlier effects.

    Args:
        training_set: Training ratings
        baseline: Global mean rating
        prior_effects: Effects already in the chain, in estimation order
        group_key: Column to group the residuals by
        lam: Shrinkage added to each group's observation count
        col_rating: Rating column name

    Returns:
        EffectTable: ``sum(residual) / (count + lam)`` per group value. Rows with
        a missing ``group_key`` form the "unknown" group.

    Raises:
        ValueError: If ``lam`` is negative or a required column is missing
    """
    _check_lambda(lam)
    _require_columns(
        training_set,
        [col_rating, group_key, *(table.key_name for table in prior_effects)],
    )

    residuals = (
        training_set.select(
            _key_expr(training_set, group_key).alias(KEY_COL),
            pl.col(col_rating).cast(pl.Float64),
        )
        .with_columns(pl.Series(_OFFSET_COL, _offsets(training_set, baseline, prior_effects)))
        .select(KEY_COL, (pl.col(col_rating) - pl.col(_OFFSET_COL)).alias(_RESIDUAL_COL))
    )

    frame = (
        residuals.group_by(KEY_COL, maintain_order=True)
        .agg(
            pl.col(_RESIDUAL_COL).sum().alias(_RESIDUAL_COL),
            pl.len().alias(COUNT_COL),
        )
        .select(
            KEY_COL,
            (pl.col(_RESIDUAL_COL) / (pl.col(COUNT_COL) + lam)).alias(EFFECT_COL),
            COUNT_COL,
        )
    )

    logger.debug(f"Estimated {group_key} effect for {frame.height} groups (lam={lam})")
    return EffectTable(key_name=group_key, frame=frame, lam=lam)


def predict(
    evaluation_set: pl.DataFrame,
    baseline: float,
    effects: Sequence[EffectTable],
) -> np.ndarray:
    """Predict a rating for every row of ``evaluation_set``.

    prediction = baseline + sum of the matched effect of every table. A key
    value absent from its table contributes 0, so an unseen movie or user
    falls back to the remaining terms.

    Returns:
        numpy.ndarray: One prediction per row, in row order
    """
    _require_columns(evaluation_set, [table.key_name for table in effects])
    return _offsets(evaluation_set, baseline, effects)


def fit_chain(
    training_set: pl.DataFrame,
    baseline: float,
    chain: Sequence[str],
    lam: float = 0.0,
    col_rating: str = DEFAULT_RATING_COL,
) -> AdditiveModel:
    """Estimate every effect in ``chain`` in order, each on the residual of the ones before it."""
    effects: tuple[EffectTable, ...] = ()
    for key in chain:
        table = estimate_effect(training_set, baseline, effects, key, lam, col_rating)
        effects = effects + (table,)
    return AdditiveModel(baseline=float(baseline), effects=effects, lam=lam)


def build_chain(
    training_set: pl.DataFrame,
    evaluation_set: pl.DataFrame,
    baseline: float,
    chain: Sequence[str],
    lam: float = 0.0,
    col_rating: str = DEFAULT_RATING_COL,
) -> list[ModelResult]:
    """Fit one model per prefix of ``chain`` and score each on ``evaluation_set``.

    The model for prefix ``i`` uses exactly the effects of keys ``1..i``.

    Returns:
        list[ModelResult]: One entry per prefix, shortest first
    """
    _check_lambda(lam)
    _require_columns(evaluation_set, [col_rating, *chain])
    actual = evaluation_set.get_column(col_rating)

    results = []
    effects: tuple[EffectTable, ...] = ()
    for i, key in enumerate(chain, start=1):
        table = estimate_effect(training_set, baseline, effects, key, lam, col_rating)
        effects = effects + (table,)
        score = rmse(actual, predict(evaluation_set, baseline, effects))
        label = model_label(chain[:i], lam)
        logger.info(f"{label}: RMSE={score:.5f}")
        results.append(ModelResult(label=label, rmse=score))

    return results
