"""
Model adapter for scikit-learn estimators.

Wraps any scikit-learn classifier or regressor: categorical predictors are
one-hot encoded consistently between fit and predict, categorical responses
are fit on their level codes, and class probabilities are always returned in
response-level order even when a training partition lacks some levels.
"""

from typing import Optional, Sequence, Union

import logging

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, clone, is_classifier, is_regressor
from sklearn.utils.validation import has_fit_parameter

from ..data.dataset import Dataset
from ..data.response import ResponseType
from .base import FittedModel, ModelAdapter, design_matrix, predictors_of

logger = logging.getLogger(__name__)

FACTOR_TYPES = frozenset({ResponseType.BINARY, ResponseType.MULTICLASS, ResponseType.ORDERED})
NUMERIC_TYPES = frozenset({ResponseType.NUMERIC, ResponseType.NUMERIC_MATRIX})


class SklearnModel(ModelAdapter):
    """
    Adapter for a scikit-learn estimator.

    Parameters
    ----------
    estimator : BaseEstimator
        Unfitted scikit-learn classifier or regressor. It is cloned for
        every fit.
    **params : dict
        Hyperparameters applied with ``set_params`` before fitting.

    Examples
    --------
    >>> from sklearn.linear_model import LogisticRegression
    >>> model = SklearnModel(LogisticRegression(max_iter=1000), C=0.5)
    >>> fitted = model.fit(ds)
    >>> probs = model.predict(fitted, ds, mode="prob")
    """

    def __init__(self, estimator: BaseEstimator, **params):
        super().__init__(**params)
        self.estimator = estimator
        self.name = type(estimator).__name__
        if is_classifier(estimator):
            self.response_types = FACTOR_TYPES
        elif is_regressor(estimator):
            self.response_types = NUMERIC_TYPES
        else:
            raise TypeError(
                f"{type(estimator).__name__} is neither a scikit-learn classifier nor regressor"
            )

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"SklearnModel({self.estimator!r}{', ' + args if args else ''})"

    def _build(self, seed: Optional[int]) -> BaseEstimator:
        estimator = clone(self.estimator)
        if self.params:
            estimator.set_params(**self.params)
        current = estimator.get_params()
        if seed is not None and "random_state" in current and current["random_state"] is None:
            estimator.set_params(random_state=seed)
        return estimator

    def fit(
        self,
        dataset: Dataset,
        weights: Optional[np.ndarray] = None,
        seed: Optional[int] = None
    ) -> FittedModel:
        self.check_response_type(dataset.response_type)
        estimator = self._build(seed)

        X = design_matrix(dataset.x)
        y = dataset.y
        if dataset.response_type.is_factor:
            y_fit = np.asarray(y.cat.codes, dtype=int)
        else:
            y_fit = y.to_numpy(dtype=float)

        fit_params = {}
        if weights is not None:
            if has_fit_parameter(estimator, "sample_weight"):
                fit_params["sample_weight"] = weights
            else:
                logger.warning("%s does not accept case weights; weights ignored", self.name)

        estimator.fit(X, y_fit, **fit_params)

        return FittedModel(
            adapter=self.name,
            backend=estimator,
            response_type=dataset.response_type,
            levels=dataset.levels,
            columns=list(X.columns),
            y=y
        )

    def predict(
        self,
        fitted: FittedModel,
        newdata: Union[Dataset, pd.DataFrame],
        mode: str,
        times: Optional[Sequence[float]] = None
    ) -> np.ndarray:
        estimator = fitted.backend
        X = design_matrix(predictors_of(newdata), fitted.columns)

        if mode == "prob":
            if not hasattr(estimator, "predict_proba"):
                raise AttributeError(
                    f"{self.name} does not support class probability predictions"
                )
            proba = estimator.predict_proba(X)
            probs = np.zeros((len(X), len(fitted.levels)))
            probs[:, np.asarray(estimator.classes_, dtype=int)] = proba
            if len(fitted.levels) == 2:
                return probs[:, 1]
            return probs

        if mode == "numeric":
            return np.asarray(estimator.predict(X), dtype=float)

        raise ValueError(f"{self.name} does not support '{mode}' predictions")
