"""Result schemas shared by the model builder, the search and the reporter."""

import polars as pl
from pydantic import BaseModel, ConfigDict, Field


class ModelResult(BaseModel):
    """Accuracy of one fitted model.

    Attributes:
        label: Human readable model name, e.g. "Movie + User Effects Model"
        rmse: Root-mean-square error on the evaluation set
    """

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Model name")
    rmse: float = Field(..., description="Evaluation RMSE")


class LambdaTrial(BaseModel):
    """Full-chain RMSE obtained with one shrinkage value."""

    model_config = ConfigDict(frozen=True)

    lam: float = Field(..., description="Shrinkage parameter", ge=0.0)
    rmse: float = Field(..., description="Evaluation RMSE of the full chain")


class SearchResult(BaseModel):
    """Outcome of a regularization search.

    Attributes:
        best_lambda: Shrinkage value with the lowest RMSE
        best_rmse: RMSE reached with ``best_lambda``
        trials: Every trial, in candidate order
    """

    model_config = ConfigDict(frozen=True)

    best_lambda: float = Field(..., ge=0.0)
    best_rmse: float
    trials: tuple[LambdaTrial, ...]

    def to_frame(self) -> pl.DataFrame:
        """Return the shrinkage curve as a ``lam``/``rmse`` DataFrame."""
        return pl.DataFrame(
            {
                "lam": [trial.lam for trial in self.trials],
                "rmse": [trial.rmse for trial in self.trials],
            },
            schema={"lam": pl.Float64, "rmse": pl.Float64},
        )
