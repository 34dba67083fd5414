"""
Cox proportional hazards adapter backed by lifelines.
"""

from typing import Optional, Sequence, Union

import warnings

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter

from ..data.dataset import Dataset
from ..data.response import ResponseType
from .base import FittedModel, ModelAdapter, design_matrix, predictors_of

_TIME = "__time__"
_EVENT = "__event__"
_WEIGHT = "__weight__"


class CoxModel(ModelAdapter):
    """
    Cox proportional hazards regression for right-censored responses.

    Parameters
    ----------
    penalizer : float, default=0.0
        Penalty strength on the coefficients.
    l1_ratio : float, default=0.0
        Elastic net mixing between L2 (0) and L1 (1) penalties.

    Notes
    -----
    Predictions in 'survival' mode are survival probabilities at the
    requested times, shape (n_samples, n_times); without times they are
    partial hazards, where larger values mean earlier events.
    """

    name = "CoxModel"
    response_types = frozenset({ResponseType.SURVIVAL})

    def __init__(self, penalizer: float = 0.0, l1_ratio: float = 0.0):
        super().__init__(penalizer=penalizer, l1_ratio=l1_ratio)

    def fit(
        self,
        dataset: Dataset,
        weights: Optional[np.ndarray] = None,
        seed: Optional[int] = None
    ) -> FittedModel:
        self.check_response_type(dataset.response_type)
        X = design_matrix(dataset.x)
        y = dataset.y

        frame = X.copy()
        frame[_TIME] = y.time
        frame[_EVENT] = y.event
        fit_params = {}
        if weights is not None:
            frame[_WEIGHT] = weights
            fit_params["weights_col"] = _WEIGHT
            fit_params["robust"] = True

        cph = CoxPHFitter(**self.params)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            cph.fit(frame, duration_col=_TIME, event_col=_EVENT, **fit_params)

        return FittedModel(
            adapter=self.name,
            backend=cph,
            response_type=dataset.response_type,
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
        if mode != "survival":
            raise ValueError(f"{self.name} does not support '{mode}' predictions")

        X = design_matrix(predictors_of(newdata), fitted.columns)
        cph = fitted.backend
        if times is None:
            return np.asarray(cph.predict_partial_hazard(X), dtype=float).ravel()
        surv = cph.predict_survival_function(X, times=list(times))
        return surv.T.to_numpy(dtype=float)
