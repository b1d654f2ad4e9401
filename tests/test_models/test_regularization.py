"""Tests for the shrinkage search."""

import math

import pytest

from movierating.models.effects import build_chain
from movierating.models.regularization import EmptySearchSpace, lambda_grid, search
from movierating.schemas import SearchResult


CHAIN = ["movieId", "userId"]


class TestLambdaGrid:
    def test_inclusive_grid(self):
        assert lambda_grid(0, 1, 0.25) == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_no_float_drift(self):
        grid = lambda_grid(5, 5.1, 0.05)

        assert grid == [5.0, 5.05, 5.1]

    def test_single_value(self):
        assert lambda_grid(3, 3, 0.5) == [3.0]

    def test_invalid_step_raises(self):
        with pytest.raises(ValueError, match="Step must be > 0"):
            lambda_grid(0, 1, 0)

    def test_reversed_range_raises(self):
        with pytest.raises(ValueError, match="must be >= start"):
            lambda_grid(2, 1, 0.5)


class TestSearch:
    """Tests for search."""

    def test_empty_candidates_raise(self, scenario_ratings):
        with pytest.raises(EmptySearchSpace):
            search(scenario_ratings, scenario_ratings, 3.5, CHAIN, [])

    def test_empty_search_space_is_value_error(self):
        assert issubclass(EmptySearchSpace, ValueError)

    def test_negative_candidate_raises(self, scenario_ratings):
        with pytest.raises(ValueError, match="must be >= 0"):
            search(scenario_ratings, scenario_ratings, 3.5, CHAIN, [1.0, -0.5])

    def test_invalid_n_jobs_raises(self, scenario_ratings):
        with pytest.raises(ValueError, match="n_jobs"):
            search(scenario_ratings, scenario_ratings, 3.5, CHAIN, [1.0], n_jobs=0)

    def test_tie_prefers_first_smallest_lambda(self, constant_ratings):
        """Constant ratings give zero effects and identical RMSE for every lambda."""
        result = search(constant_ratings, constant_ratings, 4.0, CHAIN, [5, 5.05, 5.1])

        assert result.best_lambda == 5
        assert result.best_rmse == 0.0
        assert [trial.rmse for trial in result.trials] == [0.0, 0.0, 0.0]

    def test_tie_prefers_smaller_lambda_in_any_order(self, constant_ratings):
        result = search(constant_ratings, constant_ratings, 4.0, CHAIN, [5.1, 5.05, 5])

        assert result.best_lambda == 5

    def test_trials_keep_candidate_order(self, sparse_ratings):
        candidates = [3.0, 0.0, 10.0, 1.0]

        result = search(sparse_ratings, sparse_ratings, 3.8, CHAIN, candidates)

        assert isinstance(result, SearchResult)
        assert [trial.lam for trial in result.trials] == candidates

    def test_best_is_minimum_of_trials(self, sparse_ratings):
        baseline = sparse_ratings["rating"].mean()
        candidates = [0.0, 0.5, 1.0, 2.0, 5.0, 20.0]

        result = search(sparse_ratings, sparse_ratings, baseline, CHAIN, candidates)

        best = min(result.trials, key=lambda trial: trial.rmse)
        assert result.best_rmse == best.rmse
        assert result.best_lambda == best.lam

    def test_zero_lambda_matches_unregularized_chain(self, scenario_ratings, scenario_holdout):
        result = search(scenario_ratings, scenario_holdout, 3.5, CHAIN, [0.0])
        unregularized = build_chain(scenario_ratings, scenario_holdout, 3.5, CHAIN)

        assert result.best_rmse == pytest.approx(unregularized[-1].rmse)

    def test_training_fit_worsens_with_shrinkage(self, sparse_ratings):
        """Scored on its own training data the unshrunk fit is best."""
        baseline = sparse_ratings["rating"].mean()

        result = search(sparse_ratings, sparse_ratings, baseline, ["movieId"], [0.0, 1.0, 5.0])

        rmses = [trial.rmse for trial in result.trials]
        assert rmses == sorted(rmses)
        assert result.best_lambda == 0.0

    def test_parallel_matches_serial(self, sparse_ratings, scenario_holdout):
        candidates = lambda_grid(0, 5, 0.5)

        serial = search(sparse_ratings, scenario_holdout, 3.8, CHAIN, candidates, n_jobs=1)
        parallel = search(sparse_ratings, scenario_holdout, 3.8, CHAIN, candidates, n_jobs=4)

        assert [t.lam for t in parallel.trials] == [t.lam for t in serial.trials]
        assert [t.rmse for t in parallel.trials] == pytest.approx([t.rmse for t in serial.trials])
        assert parallel.best_lambda == serial.best_lambda

    def test_to_frame(self, constant_ratings):
        result = search(constant_ratings, constant_ratings, 4.0, CHAIN, [0.0, 1.0])

        frame = result.to_frame()

        assert frame.columns == ["lam", "rmse"]
        assert frame["lam"].to_list() == [0.0, 1.0]
        assert all(not math.isnan(value) for value in frame["rmse"].to_list())
