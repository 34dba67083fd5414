"""Tests for grid tuning."""
from functools import partial

import pytest
import numpy as np
from sklearn.tree import DecisionTreeClassifier

from machineshop.data import ResponseType
from machineshop.exceptions import ConfigurationError
from machineshop.metrics import Metric
from machineshop.models import GLMNetModel, SklearnModel
from machineshop.resampling import CVControl, resample
from machineshop.tuning import TuneResult, expand_grid, tune


class TestExpandGrid:
    """Tests for grid expansion."""

    def test_dict_grid(self):
        """Dict grids should expand to every combination."""
        points = expand_grid({"alpha": [0.0, 1.0], "lambda_": [0.1, 0.01]})
        assert len(points) == 4
        assert points[0] == {"alpha": 0.0, "lambda_": 0.1}
        assert points[1] == {"alpha": 0.0, "lambda_": 0.01}

    def test_scalar_values(self):
        """Scalar values should be held fixed."""
        points = expand_grid({"alpha": 0.5, "lambda_": [0.1, 0.2]})
        assert [p["alpha"] for p in points] == [0.5, 0.5]

    def test_list_of_points(self):
        """Lists of dicts should be used as explicit points."""
        grid = [{"max_depth": 1}, {"max_depth": 3, "min_samples_leaf": 5}]
        assert expand_grid(grid) == grid

    @pytest.mark.parametrize("grid", [{}, [], {"alpha": []}])
    def test_empty_grid(self, grid):
        """Empty grids should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            expand_grid(grid)


class TestTune:
    """Tests for tune()."""

    def test_selects_best_mean(self, binary_dataset):
        """The selected point should have the best mean metric."""
        control = CVControl(folds=4, seed=8)
        result = tune(binary_dataset, GLMNetModel, {"lambda_": [0.001, 0.1, 10.0]},
                      control=control, metric="Brier")
        assert isinstance(result, TuneResult)
        assert result.metric == "Brier"
        assert result.maximize is False
        means = result.performance["Brier"]
        assert result.selected == means.idxmin()
        assert result.best_params == result.grid.loc[result.selected].to_dict()
        assert list(result.grid.index) == ["Grid01", "Grid02", "Grid03"]
        assert result.resamples.models == ["Grid01", "Grid02", "Grid03"]

    def test_shared_partitions(self, binary_dataset):
        """Every grid point should be evaluated on the same partitions."""
        result = tune(binary_dataset, GLMNetModel, {"lambda_": [0.01, 0.1]},
                      control=CVControl(folds=3, seed=2))
        cases = result.resamples.cases
        folds = [
            cases[cases["Model"] == m].sort_values("Case")["Resample"].to_numpy()
            for m in result.resamples.models
        ]
        assert np.array_equal(folds[0], folds[1])
        result.resamples.diff()

    def test_default_metric_and_direction(self, iris_dataset):
        """Defaults should use the first metric and its registered direction."""
        result = tune(iris_dataset, partial(SklearnModel, DecisionTreeClassifier()),
                      {"max_depth": [1, 4]}, control=CVControl(folds=3, seed=4))
        assert result.metric == "Accuracy"
        assert result.maximize is True
        assert result.best_params == {"max_depth": 4}

    def test_ties_pick_first(self, numeric_dataset):
        """Equal means should select the first grid point."""
        result = tune(numeric_dataset, GLMNetModel, [{"lambda_": 0.05}, {"lambda_": 0.05}],
                      control=CVControl(folds=3, seed=1), metric="RMSE")
        assert result.selected == "Grid01"

    def test_single_point_equals_resample(self, numeric_dataset):
        """A one-point grid should reproduce an ordinary resample run."""
        control = CVControl(folds=5, seed=6)
        result = tune(numeric_dataset, GLMNetModel, {"lambda_": [0.05]}, control=control)
        direct = resample(numeric_dataset, GLMNetModel(lambda_=0.05), control)
        assert np.allclose(result.resamples.frame["Value"], direct.frame["Value"])

    def test_refit_and_predict(self, numeric_dataset):
        """The winning model should be refit on the full data."""
        result = tune(numeric_dataset, GLMNetModel, {"lambda_": [0.01, 1.0]},
                      control=CVControl(folds=3, seed=1), metric="RMSE")
        preds = result.predict(numeric_dataset)
        assert preds.shape == (numeric_dataset.n_rows,)
        assert result.fitted.adapter == "GLMNetModel"

    def test_explicit_direction(self, numeric_dataset):
        """An explicit maximize flag should override the registry."""
        result = tune(numeric_dataset, GLMNetModel, {"lambda_": [0.01, 5.0]},
                      control=CVControl(folds=3, seed=1), metric="RMSE", maximize=True)
        means = result.performance["RMSE"]
        assert result.selected == means.idxmax()

    def test_unknown_selection_metric(self, numeric_dataset):
        """Selecting on a metric that was not computed should fail."""
        with pytest.raises(ConfigurationError):
            tune(numeric_dataset, GLMNetModel, {"lambda_": [0.01]},
                 control=CVControl(folds=3, seed=1), metrics=["RMSE"], metric="MAE")

    def test_custom_metric_object(self, numeric_dataset):
        """A Metric object outside the registry should select by its own direction."""
        medae = Metric(
            "MedAE",
            lambda observed, predicted, control: float(
                np.median(np.abs(np.asarray(observed, dtype=float) - np.asarray(predicted, dtype=float)))
            ),
            types=frozenset({ResponseType.NUMERIC}),
            maximize=False
        )
        result = tune(numeric_dataset, GLMNetModel, {"lambda_": [0.01, 5.0]},
                      control=CVControl(folds=3, seed=1), metric=medae, metrics=[medae])
        assert result.metric == "MedAE"
        assert result.maximize is False
        assert result.selected == result.performance["MedAE"].idxmin()

    def test_custom_metric_by_name(self, numeric_dataset):
        """A custom metric named in metrics should supply its direction by default."""
        spread = Metric(
            "Spread",
            lambda observed, predicted, control: float(np.std(np.asarray(predicted, dtype=float))),
            types=frozenset({ResponseType.NUMERIC}),
            maximize=True
        )
        result = tune(numeric_dataset, GLMNetModel, {"lambda_": [0.01, 5.0]},
                      control=CVControl(folds=3, seed=1), metric="Spread", metrics=[spread, "RMSE"])
        assert result.maximize is True
        assert result.selected == result.performance["Spread"].idxmax()
