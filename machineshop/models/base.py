"""
Base class for model adapters.

A model adapter wraps one third-party fitting library behind a fit/predict
pair. The resampling engine holds only this interface and never inspects a
backend's internals.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..data.dataset import Dataset
from ..data.response import ResponseType
from ..exceptions import ConfigurationError


@dataclass
class FittedModel:
    """Result of fitting a model adapter to a dataset.

    Attributes:
        adapter: Name of the adapter that produced the fit.
        backend: The fitted third-party model object.
        response_type: Response type of the training data.
        levels: Response levels for categorical responses.
        columns: Design-matrix columns used at fit time.
        y: Observed training response.
    """
    adapter: str
    backend: Any
    response_type: ResponseType
    levels: Optional[List] = None
    columns: List[str] = field(default_factory=list)
    y: Any = None


class ModelAdapter(ABC):
    """
    Abstract base class for model adapters.

    Subclasses declare the response types they support and implement
    ``fit`` and ``predict``. Hyperparameters are fixed at construction, so a
    tuning grid is evaluated by constructing one adapter per grid point.

    Parameters
    ----------
    **params : dict
        Hyperparameters passed through to the backend.

    Examples
    --------
    >>> class MeanModel(ModelAdapter):
    ...     name = "MeanModel"
    ...     response_types = frozenset({ResponseType.NUMERIC})
    ...     def fit(self, dataset, weights=None, seed=None):
    ...         return FittedModel(self.name, float(dataset.y.mean()), dataset.response_type)
    ...     def predict(self, fitted, newdata, mode, times=None):
    ...         return np.full(newdata.n_rows, fitted.backend)
    """

    name: str = "ModelAdapter"
    response_types: FrozenSet[ResponseType] = frozenset()

    def __init__(self, **params):
        self.params = params

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"{self.name}({args})"

    def check_response_type(self, response_type: ResponseType) -> None:
        """Raise ConfigurationError if the adapter cannot model this response type."""
        if response_type not in self.response_types:
            supported = sorted(t.value for t in self.response_types)
            raise ConfigurationError(
                f"{self.name} does not support {response_type.value} responses. "
                f"Supported: {supported}"
            )

    @abstractmethod
    def fit(
        self,
        dataset: Dataset,
        weights: Optional[np.ndarray] = None,
        seed: Optional[int] = None
    ) -> FittedModel:
        """
        Fit the model to a dataset.

        Args:
            dataset: Training data.
            weights: Case weights aligned with the dataset rows.
            seed: Seed for any randomness in the backend.

        Returns:
            FittedModel: Opaque fitted model.
        """
        pass

    @abstractmethod
    def predict(
        self,
        fitted: FittedModel,
        newdata: Union[Dataset, pd.DataFrame],
        mode: str,
        times: Optional[Sequence[float]] = None
    ) -> np.ndarray:
        """
        Predict responses for new data.

        Args:
            fitted: Result of ``fit``.
            newdata: Data to predict.
            mode: 'prob' (class probabilities ordered by response level;
                a second-level probability vector for binary responses),
                'numeric' (point estimates) or 'survival' (survival
                probabilities at ``times``, or risk scores without times).
            times: Survival evaluation times.

        Returns:
            np.ndarray: Predictions.
        """
        pass


def design_matrix(x: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    One-hot encode categorical predictors.

    Parameters
    ----------
    x : DataFrame
        Predictor columns.
    columns : list of str, optional
        Columns of the training design matrix; new data is aligned to them,
        with unseen categories dropped and absent ones filled with zeros.

    Returns
    -------
    DataFrame
        Numeric design matrix.
    """
    encoded = pd.get_dummies(x, drop_first=columns is None, dtype=float)
    if columns is not None:
        encoded = encoded.reindex(columns=columns, fill_value=0.0)
    return encoded.astype(float)


def predictors_of(newdata: Union[Dataset, pd.DataFrame]) -> pd.DataFrame:
    if isinstance(newdata, Dataset):
        return newdata.x
    return newdata
