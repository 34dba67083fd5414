"""
Response variable types and extraction.

The response type of a dataset decides which metrics apply and which
prediction mode model adapters are asked for, so it is resolved once when a
Dataset is built and carried around as a tagged value rather than being
re-inspected at every call site.
"""

from enum import Enum
from typing import Union

import numpy as np
import pandas as pd


class ResponseType(str, Enum):
    """Supported response variable types."""

    BINARY = "binary"
    MULTICLASS = "multiclass"
    ORDERED = "ordered"
    NUMERIC = "numeric"
    NUMERIC_MATRIX = "numeric_matrix"
    SURVIVAL = "survival"

    @property
    def is_factor(self) -> bool:
        return self in (ResponseType.BINARY, ResponseType.MULTICLASS, ResponseType.ORDERED)

    @property
    def prediction_mode(self) -> str:
        """Output mode requested from model adapters for this type."""
        if self.is_factor:
            return "prob"
        if self is ResponseType.SURVIVAL:
            return "survival"
        return "numeric"


class Surv:
    """
    Right-censored survival response.

    Parameters
    ----------
    time : array-like of shape (n_samples,)
        Follow-up times, non-negative.
    event : array-like of shape (n_samples,)
        Event indicators (1 = event observed, 0 = censored).

    Examples
    --------
    >>> y = Surv([5.0, 3.2, 8.1], [1, 0, 1])
    >>> len(y)
    3
    >>> y[[0, 2]].time
    array([5. , 8.1])
    """

    def __init__(self, time, event):
        time = np.asarray(time, dtype=float)
        event = np.asarray(event)
        if time.ndim != 1 or event.ndim != 1:
            raise ValueError("Survival time and event must be one-dimensional")
        if len(time) != len(event):
            raise ValueError(
                f"Survival time ({len(time)}) and event ({len(event)}) lengths differ"
            )
        if np.any(time < 0):
            raise ValueError("Survival times must be non-negative")
        if event.dtype == bool:
            event = event.astype(int)
        if not np.isin(event, (0, 1)).all():
            raise ValueError("Survival event indicators must be 0/1 or boolean")
        self.time = time
        self.event = event.astype(int)

    def __len__(self) -> int:
        return len(self.time)

    def __getitem__(self, indices) -> "Surv":
        return Surv(self.time[indices], self.event[indices])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Surv):
            return NotImplemented
        return (
            np.array_equal(self.time, other.time)
            and np.array_equal(self.event, other.event)
        )

    def __repr__(self) -> str:
        return f"Surv(n={len(self)}, events={int(self.event.sum())})"

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"time": self.time, "event": self.event})


def infer_response_type(y: Union[pd.Series, pd.DataFrame, Surv]) -> ResponseType:
    """
    Infer the response type of an observed response.

    Parameters
    ----------
    y : Series, DataFrame or Surv
        Observed response as produced by ``Dataset.y``.

    Returns
    -------
    ResponseType
    """
    if isinstance(y, Surv):
        return ResponseType.SURVIVAL

    if isinstance(y, pd.DataFrame):
        if y.shape[1] == 1:
            return infer_response_type(y.iloc[:, 0])
        non_numeric = [c for c in y.columns if not pd.api.types.is_numeric_dtype(y[c])]
        if non_numeric:
            raise TypeError(
                f"Multivariate responses must be numeric; got non-numeric columns {non_numeric}"
            )
        return ResponseType.NUMERIC_MATRIX

    if isinstance(y.dtype, pd.CategoricalDtype):
        n_levels = len(y.cat.categories)
        if n_levels < 2:
            raise ValueError(
                f"Categorical response '{y.name}' needs at least 2 levels, got {n_levels}"
            )
        if y.cat.ordered:
            return ResponseType.ORDERED
        return ResponseType.BINARY if n_levels == 2 else ResponseType.MULTICLASS

    if pd.api.types.is_numeric_dtype(y) and not pd.api.types.is_bool_dtype(y):
        return ResponseType.NUMERIC

    raise TypeError(f"Unsupported response dtype for '{y.name}': {y.dtype}")


def response(obj):
    """
    Extract the observed response variable from an object.

    Parameters
    ----------
    obj : Dataset or FittedModel
        Object containing a response.

    Returns
    -------
    Series, DataFrame or Surv
        The observed response values (training values for fitted models).
    """
    from ..models.base import FittedModel
    from .dataset import Dataset

    if isinstance(obj, Dataset):
        return obj.y
    if isinstance(obj, FittedModel):
        return obj.y
    raise TypeError(f"Cannot extract a response from {type(obj).__name__}")
