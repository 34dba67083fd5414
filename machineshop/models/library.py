"""
Named model adapters that pick a backend by response type.

Each adapter builds the appropriate third-party model for the response type
of the data it is fit to, e.g. GLMNetModel fits a penalized logistic
regression to factors, an elastic net to numeric responses and a penalized
Cox model to survival responses.

Classes:
    GLMNetModel: Elastic net regression for every response type
    RandomForestModel: Random forest classification and regression
    GBMModel: Gradient boosted trees for classification and regression
"""

from abc import abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.ensemble import (
    GradientBoostingClassifier,
    GradientBoostingRegressor,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.linear_model import ElasticNet, LogisticRegression

from ..data.dataset import Dataset
from ..data.response import ResponseType
from .base import FittedModel, ModelAdapter
from .sklearn import FACTOR_TYPES, NUMERIC_TYPES, SklearnModel
from .survival import CoxModel


class _DispatchModel(ModelAdapter):
    """Adapter delegating to a backend adapter chosen by response type."""

    @abstractmethod
    def _backend(self, response_type: ResponseType) -> ModelAdapter:
        """Build the backend adapter for a response type."""
        pass

    def fit(
        self,
        dataset: Dataset,
        weights: Optional[np.ndarray] = None,
        seed: Optional[int] = None
    ) -> FittedModel:
        self.check_response_type(dataset.response_type)
        backend = self._backend(dataset.response_type)
        fitted = backend.fit(dataset, weights=weights, seed=seed)
        fitted.adapter = self.name
        fitted.backend = (backend, fitted.backend)
        return fitted

    def predict(
        self,
        fitted: FittedModel,
        newdata: Union[Dataset, pd.DataFrame],
        mode: str,
        times: Optional[Sequence[float]] = None
    ) -> np.ndarray:
        backend, model = fitted.backend
        inner = FittedModel(
            adapter=backend.name,
            backend=model,
            response_type=fitted.response_type,
            levels=fitted.levels,
            columns=fitted.columns,
            y=fitted.y
        )
        return backend.predict(inner, newdata, mode, times)


class GLMNetModel(_DispatchModel):
    """
    Elastic net regression.

    Parameters
    ----------
    alpha : float, default=1.0
        Elastic net mixing parameter: 1 is the lasso, 0 is ridge.
    lambda_ : float, default=0.01
        Penalty strength.
    max_iter : int, default=5000
        Maximum solver iterations.
    """

    name = "GLMNetModel"
    response_types = FACTOR_TYPES | NUMERIC_TYPES | {ResponseType.SURVIVAL}

    def __init__(self, alpha: float = 1.0, lambda_: float = 0.01, max_iter: int = 5000):
        if not 0 <= alpha <= 1:
            raise ValueError(f"alpha must be in [0, 1], got {alpha}")
        if lambda_ <= 0:
            raise ValueError(f"lambda_ must be positive, got {lambda_}")
        super().__init__(alpha=alpha, lambda_=lambda_, max_iter=max_iter)

    def _backend(self, response_type: ResponseType) -> ModelAdapter:
        alpha = self.params["alpha"]
        lambda_ = self.params["lambda_"]
        if response_type is ResponseType.SURVIVAL:
            return CoxModel(penalizer=lambda_, l1_ratio=alpha)
        if response_type.is_factor:
            return SklearnModel(LogisticRegression(
                penalty="elasticnet",
                C=1.0 / lambda_,
                l1_ratio=alpha,
                solver="saga",
                max_iter=self.params["max_iter"]
            ))
        return SklearnModel(ElasticNet(
            alpha=lambda_,
            l1_ratio=alpha,
            max_iter=self.params["max_iter"]
        ))


class RandomForestModel(_DispatchModel):
    """
    Random forest classification and regression.

    Parameters
    ----------
    n_estimators : int, default=100
        Number of trees.
    max_features : int, float or str, optional
        Number of predictors sampled at each split. Defaults to the square
        root of the number of predictors for factors and a third of them for
        numeric responses.
    min_samples_leaf : int, default=1
        Minimum cases per terminal node.
    """

    name = "RandomForestModel"
    response_types = FACTOR_TYPES | NUMERIC_TYPES

    def __init__(self, n_estimators: int = 100, max_features=None, min_samples_leaf: int = 1):
        super().__init__(
            n_estimators=n_estimators,
            max_features=max_features,
            min_samples_leaf=min_samples_leaf
        )

    def _backend(self, response_type: ResponseType) -> ModelAdapter:
        params = dict(self.params)
        if response_type.is_factor:
            if params["max_features"] is None:
                params["max_features"] = "sqrt"
            return SklearnModel(RandomForestClassifier(**params))
        if params["max_features"] is None:
            params["max_features"] = 1 / 3
        return SklearnModel(RandomForestRegressor(**params))


class GBMModel(_DispatchModel):
    """
    Gradient boosted trees.

    Parameters
    ----------
    n_estimators : int, default=100
        Number of boosting iterations.
    learning_rate : float, default=0.1
        Shrinkage applied to each tree.
    max_depth : int, default=3
        Maximum depth of each tree.
    subsample : float, default=1.0
        Fraction of cases used to fit each tree.
    """

    name = "GBMModel"
    response_types = FACTOR_TYPES | {ResponseType.NUMERIC}

    def __init__(
        self,
        n_estimators: int = 100,
        learning_rate: float = 0.1,
        max_depth: int = 3,
        subsample: float = 1.0
    ):
        super().__init__(
            n_estimators=n_estimators,
            learning_rate=learning_rate,
            max_depth=max_depth,
            subsample=subsample
        )

    def _backend(self, response_type: ResponseType) -> ModelAdapter:
        if response_type.is_factor:
            return SklearnModel(GradientBoostingClassifier(**self.params))
        return SklearnModel(GradientBoostingRegressor(**self.params))
