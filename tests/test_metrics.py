"""Tests for the metric registry and metric computations."""
import pytest
import numpy as np
import pandas as pd

from machineshop.data import ResponseType, Surv
from machineshop.exceptions import MetricUnavailableError
from machineshop.metrics import METRICS, MetricRegistry, performance
from machineshop.resampling import CVControl


@pytest.fixture
def binary_observed():
    """Binary observed response with levels 'no' < 'yes'."""
    return pd.Series(pd.Categorical(["no", "yes", "yes", "no", "yes", "no"]))


@pytest.fixture
def binary_probs():
    """Predicted probabilities of 'yes'."""
    return np.array([0.1, 0.8, 0.4, 0.3, 0.9, 0.6])


class TestRegistry:
    """Tests for MetricRegistry."""

    def test_default_tables(self):
        """Default metric tables should depend on the response type."""
        binary = [m.name for m in METRICS.for_type(ResponseType.BINARY)]
        numeric = [m.name for m in METRICS.for_type(ResponseType.NUMERIC)]
        survival = [m.name for m in METRICS.for_type(ResponseType.SURVIVAL)]
        assert binary[0] == "Accuracy"
        assert {"Kappa", "ROCAUC", "Brier", "Sensitivity", "Specificity", "Index"} <= set(binary)
        assert numeric == ["RMSE", "R2", "MAE"]
        assert survival == ["CIndex", "Brier"]

    def test_same_name_variants(self):
        """Brier should resolve to different implementations by response type."""
        factor = METRICS.get("Brier", ResponseType.BINARY)
        surv = METRICS.get("Brier", ResponseType.SURVIVAL)
        assert factor.func is not surv.func
        assert not factor.maximize and not surv.maximize

    def test_unknown_metric(self):
        """Unknown names should raise KeyError."""
        with pytest.raises(KeyError):
            METRICS.get("NotAMetric")

    def test_inapplicable_metric(self):
        """Inapplicable metrics should raise MetricUnavailableError."""
        with pytest.raises(MetricUnavailableError):
            METRICS.get("RMSE", ResponseType.BINARY)

    def test_resolve_skips_inapplicable(self):
        """resolve should drop metrics that do not apply."""
        resolved = METRICS.resolve(["Accuracy", "RMSE"], ResponseType.MULTICLASS)
        assert [m.name for m in resolved] == ["Accuracy"]

    def test_register_custom(self):
        """Custom registries should accept decorated functions."""
        registry = MetricRegistry("custom")

        @registry.register("MaxError", types=[ResponseType.NUMERIC], maximize=False)
        def max_error(observed, predicted, control):
            return float(np.max(np.abs(np.asarray(observed) - predicted)))

        assert "MaxError" in registry
        assert len(registry) == 1
        metric = registry.get("MaxError", ResponseType.NUMERIC)
        assert metric(pd.Series([1.0, 2.0]), np.array([1.5, 4.0]), None) == 2.0

    def test_overlapping_registration(self):
        """Registering a name twice for the same type should fail."""
        registry = MetricRegistry("custom")
        registry.register("M", types=[ResponseType.NUMERIC], maximize=True)(lambda o, p, c: 0.0)
        with pytest.raises(ValueError):
            registry.register("M", types=[ResponseType.NUMERIC], maximize=True)(lambda o, p, c: 1.0)


class TestFactorMetrics:
    """Tests for classification metrics."""

    def test_binary_values(self, binary_observed, binary_probs):
        """Binary metrics should match hand-computed values."""
        values = performance(binary_observed, binary_probs)
        # predictions at cutoff 0.5: no, yes, no, no, yes, yes
        assert values["Accuracy"] == pytest.approx(4 / 6)
        assert values["Sensitivity"] == pytest.approx(2 / 3)
        assert values["Specificity"] == pytest.approx(2 / 3)
        assert values["Index"] == pytest.approx(4 / 3)
        assert values["Brier"] == pytest.approx(np.mean((np.array([0, 1, 1, 0, 1, 0]) - binary_probs) ** 2))

    def test_cutoff(self, binary_observed, binary_probs):
        """The control cutoff should change class predictions."""
        values = performance(binary_observed, binary_probs, metrics=["Accuracy"],
                             control=CVControl(seed=1, cutoff=0.35))
        # predictions at 0.35: no, yes, yes, no, yes, yes
        assert values["Accuracy"] == pytest.approx(5 / 6)

    def test_cutoff_index(self, binary_observed, binary_probs):
        """A custom tradeoff function should drive the Index metric."""
        control = CVControl(seed=1, cutoff_index=lambda sens, spec: min(sens, spec))
        values = performance(binary_observed, binary_probs, metrics=["Index"], control=control)
        assert values["Index"] == pytest.approx(2 / 3)

    def test_roc_auc_single_class(self):
        """ROC AUC should be missing when only one class is observed."""
        observed = pd.Series(pd.Categorical(["yes", "yes"], categories=["no", "yes"]))
        values = performance(observed, np.array([0.2, 0.7]), metrics=["ROCAUC"])
        assert np.isnan(values["ROCAUC"])

    def test_multiclass(self):
        """Multiclass metrics should use argmax class predictions."""
        observed = pd.Series(pd.Categorical(["a", "b", "c", "a"]))
        probs = np.array([
            [0.7, 0.2, 0.1],
            [0.1, 0.8, 0.1],
            [0.5, 0.1, 0.4],
            [0.6, 0.3, 0.1],
        ])
        values = performance(observed, probs)
        assert values["Accuracy"] == pytest.approx(0.75)
        assert "Sensitivity" not in values.index
        assert values["CrossEntropy"] == pytest.approx(
            -np.mean(np.log([0.7, 0.8, 0.4, 0.6]))
        )

    def test_ordered_weighted_kappa(self):
        """Ordered responses should include quadratic-weighted kappa."""
        observed = pd.Series(pd.Categorical(["low", "mid", "high"],
                                            categories=["low", "mid", "high"], ordered=True))
        probs = np.eye(3)
        values = performance(observed, probs)
        assert values["WeightedKappa"] == pytest.approx(1.0)
        assert values["Accuracy"] == pytest.approx(1.0)


class TestNumericMetrics:
    """Tests for regression metrics."""

    def test_values(self):
        """Regression metrics should match hand-computed values."""
        observed = pd.Series([1.0, 2.0, 3.0, 4.0])
        predicted = np.array([1.5, 2.0, 2.5, 4.0])
        values = performance(observed, predicted)
        assert values["RMSE"] == pytest.approx(np.sqrt(0.125))
        assert values["MAE"] == pytest.approx(0.25)
        assert values["R2"] == pytest.approx(1 - 0.5 / 5.0)

    def test_matrix_response(self):
        """Multivariate responses should average per-response errors."""
        observed = pd.DataFrame({"a": [1.0, 2.0], "b": [0.0, 0.0]})
        predicted = np.array([[1.0, 1.0], [2.0, 1.0]])
        values = performance(observed, predicted, metrics=["RMSE", "MAE"])
        assert values["RMSE"] == pytest.approx(0.5)
        assert values["MAE"] == pytest.approx(0.5)

    def test_empty_observed(self):
        """No observations should give missing values, not zeros."""
        values = performance(pd.Series([], dtype=float), np.array([]),
                             response_type=ResponseType.NUMERIC)
        assert list(values.index) == ["RMSE", "R2", "MAE"]
        assert values.isna().all()


class TestSurvivalMetrics:
    """Tests for survival metrics."""

    def test_cindex_perfect_ranking(self):
        """Risk scores ordered with event times should give C = 1."""
        observed = Surv([1.0, 2.0, 3.0, 4.0], [1, 1, 1, 1])
        risk = np.array([4.0, 3.0, 2.0, 1.0])
        values = performance(observed, risk)
        assert values["CIndex"] == pytest.approx(1.0)
        assert "Brier" not in values.index

    def test_brier_with_times(self):
        """Survival probabilities at control times should yield a Brier score."""
        observed = Surv([1.0, 2.0, 3.0, 4.0, 5.0], [1, 0, 1, 1, 0])
        control = CVControl(seed=1, times=[2.5, 4.5])
        surv = np.tile([0.6, 0.3], (5, 1))
        values = performance(observed, surv, control=control)
        assert 0 <= values["Brier"] <= 1
        assert 0 <= values["CIndex"] <= 1

    def test_perfect_survival_predictions(self):
        """Predicting observed status exactly should give a zero Brier score."""
        observed = Surv([1.0, 2.0, 3.0], [1, 1, 1])
        control = CVControl(seed=1, times=[1.5])
        surv = np.array([[0.0], [1.0], [1.0]])
        values = performance(observed, surv, metrics=["Brier"], control=control)
        assert values["Brier"] == pytest.approx(0.0)
