"""
Hyperparameter tuning by resampled performance.

Every grid point is resampled under the same control, hence the same seed and
identical partitions, so grid points are compared on paired folds. The grid
point with the best mean selection metric is refit on the full dataset.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import logging

import numpy as np
import pandas as pd
from sklearn.model_selection import ParameterGrid

from ..data.dataset import Dataset
from ..exceptions import ConfigurationError
from ..metrics.registry import METRICS, Metric
from ..models.base import FittedModel, ModelAdapter
from ..performance.resamples import Resamples
from ..resampling.controls import CVControl, MLControl
from ..resampling.driver import ResampleDriver

logger = logging.getLogger(__name__)

Grid = Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]


def expand_grid(grid: Grid) -> List[Dict[str, Any]]:
    """
    Expand a parameter grid into a list of hyperparameter assignments.

    Parameters
    ----------
    grid : dict or list of dict
        A dict maps parameter names to candidate values and is expanded to
        every combination in scikit-learn ``ParameterGrid`` order; scalar
        values are held fixed. A list of dicts is taken as explicit grid
        points.

    Returns
    -------
    points : list of dict

    Raises
    ------
    ConfigurationError
        If the grid has no points.

    Examples
    --------
    >>> expand_grid({"alpha": [0, 1], "lambda_": [0.1]})
    [{'alpha': 0, 'lambda_': 0.1}, {'alpha': 1, 'lambda_': 0.1}]
    """
    if isinstance(grid, Mapping):
        candidates = {
            name: list(values) if isinstance(values, (list, tuple, np.ndarray, range)) else [values]
            for name, values in grid.items()
        }
        empty = [name for name, values in candidates.items() if len(values) == 0]
        if empty:
            raise ConfigurationError(f"No candidate values for grid parameters {empty}")
        points = list(ParameterGrid(candidates)) if candidates else []
    else:
        points = [dict(point) for point in grid]

    if not points:
        raise ConfigurationError("Tuning grid contains no points")
    return points


@dataclass
class TuneResult:
    """Resampled performance over a grid and the selected model.

    Attributes:
        grid: Grid points, one row per point, indexed by model label.
        resamples: Resampled performance with one model per grid point.
        performance: Mean of each metric per grid point.
        selected: Label of the selected grid point.
        best_params: Hyperparameters of the selected grid point.
        best_model: Adapter built with the selected hyperparameters.
        fitted: Selected adapter refit on the full dataset.
        metric: Selection metric name.
        maximize: Whether larger selection metric values are better.
    """
    grid: pd.DataFrame
    resamples: Resamples
    performance: pd.DataFrame
    selected: str
    best_params: Dict[str, Any]
    best_model: ModelAdapter
    fitted: FittedModel
    metric: str
    maximize: bool

    def predict(self, newdata, mode: Optional[str] = None, times: Optional[Sequence[float]] = None):
        """Predict new data with the refit model of the selected grid point."""
        if mode is None:
            mode = self.fitted.response_type.prediction_mode
        if times is None:
            times = self.resamples.control.times
        return self.best_model.predict(self.fitted, newdata, mode, times)


def _labels(n: int) -> List[str]:
    width = max(2, len(str(n)))
    return [f"Grid{i + 1:0{width}d}" for i in range(n)]


def tune(
    dataset: Dataset,
    adapter_factory: Callable[..., ModelAdapter],
    grid: Grid,
    control: Optional[MLControl] = None,
    metric: Optional[Union[str, Metric]] = None,
    maximize: Optional[bool] = None,
    metrics: Optional[Sequence[Union[str, Metric]]] = None,
    executor=None
) -> TuneResult:
    """
    Select model hyperparameters by resampled performance.

    Parameters
    ----------
    dataset : Dataset
        Data to resample.
    adapter_factory : callable
        Called with the hyperparameters of each grid point to build an
        adapter, e.g. an adapter class or ``functools.partial(SklearnModel,
        estimator)``.
    grid : dict or list of dict
        Parameter grid (see ``expand_grid``).
    control : MLControl, optional
        Resampling scheme shared by every grid point; 10-fold
        cross-validation by default.
    metric : str or Metric, optional
        Selection metric; the first metric computed for the response type by
        default.
    maximize : bool, optional
        Whether larger metric values are better; taken from the Metric object
        or, for a metric name, the metric registry by default.
    metrics : sequence of str or Metric, optional
        Metrics to compute at each grid point.
    executor : SequentialExecutor or JoblibExecutor, optional
        Maps partition evaluations within each grid point.

    Returns
    -------
    TuneResult

    Raises
    ------
    ConfigurationError
        If the grid is empty, the selection metric was not computed, or its
        mean is missing at every grid point.

    Examples
    --------
    >>> result = tune(ds, GLMNetModel, {"lambda_": [0.001, 0.01, 0.1]},
    ...               control=CVControl(folds=5, seed=1), metric="ROCAUC")
    >>> result.best_params
    {'lambda_': 0.01}
    """
    points = expand_grid(grid)
    if control is None:
        control = CVControl()
    labels = _labels(len(points))
    adapters = [adapter_factory(**params) for params in points]

    logger.info("Tuning %s over %d grid points", adapters[0].name, len(points))

    driver = ResampleDriver(executor)
    results = []
    for label, adapter in zip(labels, adapters):
        records, cases = driver.collect(dataset, adapter, control, metrics, label)
        results.append(Resamples(records, control, dataset.response_type, cases))
    resamples = Resamples.combine(*results)

    if metric is None:
        metric = resamples.metrics[0]
    if not isinstance(metric, Metric):
        # Custom metric objects passed in metrics carry their own direction
        requested = [metrics] if isinstance(metrics, Metric) else (metrics or [])
        supplied = [m for m in requested if isinstance(m, Metric) and m.name == metric]
        if supplied:
            metric = supplied[0]
    if isinstance(metric, Metric):
        if maximize is None:
            maximize = metric.maximize
        metric = metric.name
    if metric not in resamples.metrics:
        raise ConfigurationError(
            f"Selection metric '{metric}' was not computed. Available: {resamples.metrics}"
        )
    if maximize is None:
        maximize = METRICS.get(metric, dataset.response_type).maximize

    summary = resamples.summary()
    performance = summary["Mean"].unstack("Metric").reindex(index=labels, columns=resamples.metrics)
    means = performance[metric].to_numpy(dtype=float)
    if np.all(np.isnan(means)):
        raise ConfigurationError(f"Mean {metric} is missing at every grid point")

    best = int(np.nanargmax(means) if maximize else np.nanargmin(means))
    logger.info("Selected %s %s with mean %s = %.4f", labels[best], points[best], metric, means[best])

    best_model = adapters[best]
    fitted = best_model.fit(dataset, weights=dataset.weights, seed=control.seed)

    return TuneResult(
        grid=pd.DataFrame(points, index=pd.Index(labels, name="Model")),
        resamples=resamples,
        performance=performance,
        selected=labels[best],
        best_params=points[best],
        best_model=best_model,
        fitted=fitted,
        metric=metric,
        maximize=maximize
    )
