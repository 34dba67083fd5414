"""
Computation of metric sets on observed/predicted pairs.
"""

from typing import Optional, Sequence, Union

import logging

import numpy as np
import pandas as pd

from ..data.response import ResponseType, infer_response_type
from ..exceptions import MetricUnavailableError
from .registry import METRICS, Metric

logger = logging.getLogger(__name__)


def performance(
    observed,
    predicted,
    response_type: Optional[ResponseType] = None,
    metrics: Optional[Sequence[Union[str, Metric]]] = None,
    control=None
) -> pd.Series:
    """
    Compute performance metrics for observed and predicted responses.

    Parameters
    ----------
    observed : Series, DataFrame or Surv
        Observed response values.
    predicted : array-like
        Predictions in the response type's prediction mode (class
        probabilities, numeric estimates, risk scores or survival
        probabilities).
    response_type : ResponseType, optional
        Response type; inferred from ``observed`` when omitted.
    metrics : sequence of str or Metric, optional
        Metrics to compute. Defaults to the response type's metric table.
        Metrics that do not apply to the response type are skipped.
    control : MLControl, optional
        Supplies the cutoff, tradeoff function and survival times.

    Returns
    -------
    values : Series
        Metric values indexed by metric name. Values are NaN (missing) when
        there are no observations.

    Examples
    --------
    >>> performance(ds.y, probs, metrics=["Accuracy", "RMSE"])
    Accuracy    0.86
    dtype: float64
    """
    from ..resampling.controls import MLControl

    if response_type is None:
        response_type = infer_response_type(observed)
    if control is None:
        control = MLControl(seed=0)

    selected = METRICS.resolve(metrics, response_type)
    values = {}

    if len(observed) == 0:
        for metric in selected:
            values[metric.name] = np.nan
        return pd.Series(values, dtype=float)

    for metric in selected:
        try:
            values[metric.name] = float(metric(observed, predicted, control))
        except MetricUnavailableError as e:
            logger.debug("Skipping metric %s: %s", metric.name, e)

    return pd.Series(values, dtype=float)
