"""
Resampled evaluation of a model adapter.

For each partition of a resampling control the driver fits the adapter to the
training rows, predicts the test rows in the response type's prediction mode
and scores the predictions with the requested metrics. Partitions are
independent and may be evaluated in any order by the supplied executor;
results are always returned sorted by partition id.

Classes:
    PartitionResult: Metric values and held-out predictions of one partition
    ResampleDriver: Runs a fit/predict/score cycle over every partition

Functions:
    resample: Resampled performance of one model as a Resamples object
"""

from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Sequence, Tuple, Union

import logging

import numpy as np
import pandas as pd

from ..data.dataset import Dataset
from ..data.response import ResponseType, Surv
from ..exceptions import PartitionExecutionError
from ..metrics.performance import performance
from ..metrics.registry import Metric
from ..models.base import ModelAdapter
from ..performance.resamples import MetricRecord, Resamples
from .controls import CVControl, MLControl
from .executors import SequentialExecutor
from .partitions import Partition, partitions

logger = logging.getLogger(__name__)


@dataclass
class PartitionResult:
    """Outcome of one partition's fit/predict/score cycle.

    Attributes:
        partition: Partition id.
        label: Partition label.
        values: Metric values indexed by metric name.
        cases: Held-out observed and predicted values, None for an empty
            test set.
    """
    partition: int
    label: str
    values: pd.Series
    cases: Optional[pd.DataFrame] = None

    @property
    def is_empty(self) -> bool:
        return self.cases is None


def _prediction_columns(predicted: np.ndarray, dataset: Dataset, control: MLControl) -> List[str]:
    if predicted.ndim == 1:
        return ["Predicted"]
    if dataset.response_type.is_factor:
        names = dataset.levels
    elif dataset.response_type is ResponseType.SURVIVAL:
        names = [f"{t:g}" for t in control.times]
    else:
        names = list(dataset.schema.response)
    return [f"Predicted.{name}" for name in names]


def _case_frame(partition: Partition, test: Dataset, predicted: np.ndarray,
                control: MLControl) -> pd.DataFrame:
    cases = pd.DataFrame({
        "Resample": partition.id,
        "Label": partition.label,
        "Case": partition.test,
    })

    observed = test.y
    if isinstance(observed, Surv):
        cases["Observed"] = observed.time
        cases["Event"] = observed.event
    elif isinstance(observed, pd.DataFrame):
        for col in observed.columns:
            cases[f"Observed.{col}"] = observed[col].to_numpy()
    elif isinstance(observed.dtype, pd.CategoricalDtype):
        cases["Observed"] = pd.Categorical(
            observed.to_numpy(), categories=observed.cat.categories, ordered=observed.cat.ordered
        )
    else:
        cases["Observed"] = observed.to_numpy()

    predicted = np.asarray(predicted)
    columns = _prediction_columns(predicted, test, control)
    values = predicted.reshape(len(cases), -1)
    for i, col in enumerate(columns):
        cases[col] = values[:, i]
    return cases


def _evaluate_partition(
    dataset: Dataset,
    adapter: ModelAdapter,
    control: MLControl,
    metrics: Optional[Sequence[Union[str, Metric]]],
    partition: Partition
) -> PartitionResult:
    """
    Fit, predict and score a single partition.

    Module level so that process-based executors can pickle it.
    """
    response_type = dataset.response_type

    if partition.is_empty:
        logger.warning("Partition %s has no test cases; metrics recorded as missing",
                       partition.label)
        empty = dataset.subset([])
        values = performance(empty.y, np.empty(0), response_type, metrics, control)
        return PartitionResult(partition.id, partition.label, values)

    logger.debug("Evaluating partition %s (%d train, %d test)",
                 partition.label, len(partition.train), len(partition.test))

    try:
        train = dataset.subset(partition.train)
        test = dataset.subset(partition.test)
        weights = train.weights

        fitted = adapter.fit(train, weights=weights, seed=partition.seed)
        predicted = adapter.predict(fitted, test, response_type.prediction_mode, control.times)
        del fitted

        values = performance(test.y, predicted, response_type, metrics, control)
        cases = _case_frame(partition, test, predicted, control)
    except Exception as e:
        raise PartitionExecutionError(partition.id, partition.label, e) from e

    return PartitionResult(partition.id, partition.label, values, cases)


class ResampleDriver:
    """
    Evaluate a model adapter over every partition of a resampling control.

    Parameters
    ----------
    executor : SequentialExecutor or JoblibExecutor, optional
        Maps partition evaluations; sequential by default.

    Examples
    --------
    >>> driver = ResampleDriver(JoblibExecutor(n_jobs=4))
    >>> records = driver.run(ds, GLMNetModel(), CVControl(folds=5, seed=1))
    """

    def __init__(self, executor=None):
        self.executor = executor if executor is not None else SequentialExecutor()

    def evaluate(
        self,
        dataset: Dataset,
        adapter: ModelAdapter,
        control: MLControl,
        metrics: Optional[Sequence[Union[str, Metric]]] = None
    ) -> List[PartitionResult]:
        """
        Evaluate every partition and return the results sorted by partition id.

        Raises
        ------
        ConfigurationError
            If the adapter does not support the dataset's response type; no
            partition is evaluated.
        PartitionExecutionError
            If fitting or predicting fails in any partition.
        """
        adapter.check_response_type(dataset.response_type)

        logger.info("Resampling %s with %s control (%d partitions, seed=%d)",
                    adapter.name, control.method, control.n_partitions, control.seed)

        task = partial(_evaluate_partition, dataset, adapter, control, metrics)
        results = self.executor.map(task, partitions(dataset, control))
        results = sorted(results, key=lambda r: r.partition)

        # Empty partitions report only the metrics that evaluated partitions produced
        evaluated = [r for r in results if not r.is_empty]
        if evaluated:
            names = list(dict.fromkeys(name for r in evaluated for name in r.values.index))
            for r in results:
                if r.is_empty:
                    r.values = r.values.reindex(names)

        logger.info("Finished resampling %s: %d partitions, %d empty",
                    adapter.name, len(results), len(results) - len(evaluated))
        return results

    def run(
        self,
        dataset: Dataset,
        adapter: ModelAdapter,
        control: MLControl,
        metrics: Optional[Sequence[Union[str, Metric]]] = None,
        label: Optional[str] = None
    ) -> List[MetricRecord]:
        """Metric records of every partition, sorted by partition id."""
        records, _ = self.collect(dataset, adapter, control, metrics, label)
        return records

    def collect(
        self,
        dataset: Dataset,
        adapter: ModelAdapter,
        control: MLControl,
        metrics: Optional[Sequence[Union[str, Metric]]] = None,
        label: Optional[str] = None
    ) -> Tuple[List[MetricRecord], Optional[pd.DataFrame]]:
        """
        Metric records and held-out predictions of every partition.

        Returns
        -------
        records : list of MetricRecord
        cases : DataFrame or None
            Per-case observed and predicted values, None when every test
            set was empty.
        """
        label = label or adapter.name
        results = self.evaluate(dataset, adapter, control, metrics)

        records = []
        for result in results:
            for metric, value in result.values.items():
                missing = bool(np.isnan(value))
                if missing and not result.is_empty:
                    logger.warning("Metric %s is missing for %s in partition %s",
                                   metric, label, result.label)
                records.append(MetricRecord(
                    model=label,
                    partition=result.partition,
                    label=result.label,
                    metric=metric,
                    value=float(value),
                    missing=missing
                ))

        frames = [r.cases for r in results if not r.is_empty]
        cases = None
        if frames:
            cases = pd.concat(frames, ignore_index=True)
            cases.insert(0, "Model", label)
        return records, cases


def resample(
    dataset: Dataset,
    adapter: ModelAdapter,
    control: Optional[MLControl] = None,
    metrics: Optional[Sequence[Union[str, Metric]]] = None,
    executor=None,
    label: Optional[str] = None
) -> Resamples:
    """
    Estimate the predictive performance of a model by resampling.

    Parameters
    ----------
    dataset : Dataset
        Data to resample.
    adapter : ModelAdapter
        Model to fit in each training partition.
    control : MLControl, optional
        Resampling scheme; 10-fold cross-validation by default.
    metrics : sequence of str or Metric, optional
        Metrics to compute; the response type's defaults when omitted.
    executor : SequentialExecutor or JoblibExecutor, optional
        Maps partition evaluations.
    label : str, optional
        Model label in the result; the adapter name by default.

    Returns
    -------
    Resamples

    Examples
    --------
    >>> res = resample(ds, RandomForestModel(), CVControl(folds=5, seed=123))
    >>> res.summary()
    """
    if control is None:
        control = CVControl()
    driver = ResampleDriver(executor)
    records, cases = driver.collect(dataset, adapter, control, metrics, label)
    return Resamples(records, control, dataset.response_type, cases)
