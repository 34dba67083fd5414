"""
Lift curves for binary classification.
"""

import numpy as np
import pandas as pd

from ..data.response import ResponseType
from ..exceptions import MetricUnavailableError
from .resamples import Resamples


def lift(resamples: Resamples) -> pd.DataFrame:
    """
    Cumulative lift of held-out binary predictions.

    Predictions pooled across partitions are sorted by decreasing probability
    of the second (positive) response level. At each cutoff, Found is the
    percentage of all positive cases found and Tested the percentage of all
    cases tested.

    Parameters
    ----------
    resamples : Resamples
        Resampled binary classification results with held-out predictions.

    Returns
    -------
    curves : DataFrame
        Columns Model, Tested and Found, each model's curve starting at
        (0, 0) and ending at (100, 100).

    Raises
    ------
    MetricUnavailableError
        For non-binary responses or Resamples without held-out predictions.
    """
    if resamples.response_type is not ResponseType.BINARY:
        raise MetricUnavailableError(
            f"Lift is only available for binary responses, got {resamples.response_type.value}"
        )
    cases = resamples.cases
    if cases is None:
        raise MetricUnavailableError("Resamples contain no held-out predictions")

    curves = []
    for model, group in cases.groupby("Model", sort=False):
        observed = group["Observed"]
        positive = observed.cat.categories[1]
        order = np.argsort(-group["Predicted"].to_numpy(dtype=float), kind="stable")
        hits = (observed.to_numpy() == positive)[order].astype(float)

        n = len(hits)
        n_pos = hits.sum()
        found = np.concatenate([[0.0], np.cumsum(hits)])
        found = 100 * found / n_pos if n_pos > 0 else np.full(n + 1, np.nan)
        tested = 100 * np.arange(n + 1) / n

        curves.append(pd.DataFrame({"Model": model, "Tested": tested, "Found": found}))

    return pd.concat(curves, ignore_index=True)
