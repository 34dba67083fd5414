"""
Performance metric implementations.

Every metric takes ``(observed, predicted, control)``:

- factor responses: ``observed`` is a categorical Series; ``predicted`` holds
  class probabilities, a vector of second-level probabilities for binary
  responses or an (n, n_levels) matrix otherwise.
- numeric responses: ``observed`` and ``predicted`` are vectors, or
  (n, n_responses) matrices for multivariate responses.
- survival responses: ``observed`` is a Surv; ``predicted`` is a vector of
  risk scores (higher = earlier event) or an (n, n_times) matrix of survival
  probabilities at ``control.times``.

Metrics return NaN when a value is undefined for the given data (e.g. an
ROC AUC on a single observed class) rather than raising.
"""

import warnings

import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter
from lifelines.utils import concordance_index
from sklearn.metrics import (
    cohen_kappa_score,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    roc_auc_score,
)

from ..data.response import ResponseType
from ..exceptions import MetricUnavailableError
from .registry import METRICS

BINARY = ResponseType.BINARY
MULTICLASS = ResponseType.MULTICLASS
ORDERED = ResponseType.ORDERED
FACTORS = (BINARY, MULTICLASS, ORDERED)
NUMERICS = (ResponseType.NUMERIC, ResponseType.NUMERIC_MATRIX)
SURVIVAL = ResponseType.SURVIVAL

_EPS = 1e-15


def _class_probs(observed: pd.Series, predicted) -> tuple:
    """Observed level codes and an (n, n_levels) probability matrix."""
    codes = np.asarray(observed.cat.codes, dtype=int)
    probs = np.asarray(predicted, dtype=float)
    if probs.ndim == 1:
        probs = np.column_stack([1 - probs, probs])
    return codes, probs


def _predicted_codes(observed: pd.Series, predicted, control) -> np.ndarray:
    codes, probs = _class_probs(observed, predicted)
    if probs.shape[1] == 2 and not observed.cat.ordered:
        return (probs[:, 1] > control.cutoff).astype(int)
    return np.argmax(probs, axis=1)


def _binary_rates(observed, predicted, control) -> tuple:
    codes = np.asarray(observed.cat.codes, dtype=int)
    pred = _predicted_codes(observed, predicted, control)
    positives = codes == 1
    sens = np.mean(pred[positives] == 1) if positives.any() else np.nan
    spec = np.mean(pred[~positives] == 0) if (~positives).any() else np.nan
    return sens, spec


@METRICS.register("Accuracy", types=FACTORS, maximize=True)
def accuracy(observed, predicted, control) -> float:
    codes = np.asarray(observed.cat.codes, dtype=int)
    return float(np.mean(codes == _predicted_codes(observed, predicted, control)))


@METRICS.register("Kappa", types=FACTORS, maximize=True, label="Cohen's kappa")
def kappa(observed, predicted, control) -> float:
    codes = np.asarray(observed.cat.codes, dtype=int)
    labels = np.arange(len(observed.cat.categories))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        return float(cohen_kappa_score(
            codes, _predicted_codes(observed, predicted, control), labels=labels
        ))


@METRICS.register("WeightedKappa", types=[ORDERED], maximize=True,
                  label="Quadratic-weighted kappa")
def weighted_kappa(observed, predicted, control) -> float:
    codes = np.asarray(observed.cat.codes, dtype=int)
    labels = np.arange(len(observed.cat.categories))
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        return float(cohen_kappa_score(
            codes, _predicted_codes(observed, predicted, control),
            labels=labels, weights="quadratic"
        ))


@METRICS.register("ROCAUC", types=[BINARY, MULTICLASS], maximize=True,
                  label="Area under the ROC curve")
def roc_auc(observed, predicted, control) -> float:
    codes, probs = _class_probs(observed, predicted)
    try:
        if probs.shape[1] == 2:
            return float(roc_auc_score(codes, probs[:, 1]))
        probs = probs / probs.sum(axis=1, keepdims=True)
        return float(roc_auc_score(
            codes, probs, multi_class="ovr", average="macro",
            labels=np.arange(probs.shape[1])
        ))
    except ValueError:
        return np.nan


@METRICS.register("Brier", types=FACTORS, maximize=False, label="Brier score")
def brier(observed, predicted, control) -> float:
    codes, probs = _class_probs(observed, predicted)
    if probs.shape[1] == 2:
        return float(np.mean((codes - probs[:, 1]) ** 2))
    onehot = np.eye(probs.shape[1])[codes]
    return float(np.mean(np.sum((onehot - probs) ** 2, axis=1)))


@METRICS.register("CrossEntropy", types=FACTORS, maximize=False, label="Cross entropy")
def cross_entropy(observed, predicted, control) -> float:
    codes, probs = _class_probs(observed, predicted)
    p_true = np.clip(probs[np.arange(len(codes)), codes], _EPS, 1 - _EPS)
    return float(-np.mean(np.log(p_true)))


@METRICS.register("Sensitivity", types=[BINARY], maximize=True)
def sensitivity(observed, predicted, control) -> float:
    return float(_binary_rates(observed, predicted, control)[0])


@METRICS.register("Specificity", types=[BINARY], maximize=True)
def specificity(observed, predicted, control) -> float:
    return float(_binary_rates(observed, predicted, control)[1])


@METRICS.register("Index", types=[BINARY], maximize=True,
                  label="Sensitivity/specificity tradeoff")
def tradeoff_index(observed, predicted, control) -> float:
    sens, spec = _binary_rates(observed, predicted, control)
    return float(control.cutoff_index(sens, spec))


@METRICS.register("RMSE", types=NUMERICS, maximize=False, label="Root mean squared error")
def rmse(observed, predicted, control) -> float:
    mse = mean_squared_error(observed, predicted, multioutput="raw_values")
    return float(np.mean(np.sqrt(mse)))


@METRICS.register("R2", types=NUMERICS, maximize=True, label="R-squared")
def r2(observed, predicted, control) -> float:
    if len(observed) < 2:
        return np.nan
    return float(r2_score(observed, predicted, multioutput="uniform_average"))


@METRICS.register("MAE", types=NUMERICS, maximize=False, label="Mean absolute error")
def mae(observed, predicted, control) -> float:
    return float(mean_absolute_error(observed, predicted, multioutput="uniform_average"))


@METRICS.register("CIndex", types=[SURVIVAL], maximize=True, label="Concordance index")
def cindex(observed, predicted, control) -> float:
    predicted = np.asarray(predicted, dtype=float)
    if predicted.ndim == 2:
        # predicted survival at the last evaluation time
        scores = predicted[:, -1]
    else:
        scores = -predicted
    try:
        return float(concordance_index(observed.time, scores, observed.event))
    except ZeroDivisionError:
        return np.nan


def _censoring_survival(observed):
    kmf = KaplanMeierFitter()
    kmf.fit(observed.time, event_observed=1 - observed.event)
    return kmf


@METRICS.register("Brier", types=[SURVIVAL], maximize=False,
                  label="Time-dependent Brier score")
def survival_brier(observed, predicted, control) -> float:
    """
    Inverse-probability-of-censoring weighted Brier score.

    Averaged over the control's evaluation times. The censoring
    distribution is estimated by Kaplan-Meier on the observed cases.
    """
    predicted = np.asarray(predicted, dtype=float)
    if control.times is None or predicted.ndim != 2:
        raise MetricUnavailableError(
            "Survival Brier score requires evaluation times in the resampling control"
        )

    time, event = observed.time, observed.event
    censoring = _censoring_survival(observed)
    # censoring survival just before each observed time
    g_obs = censoring.survival_function_at_times(
        np.maximum(time - 1e-8, 0)
    ).to_numpy()

    scores = []
    for j, t in enumerate(control.times):
        g_t = float(censoring.survival_function_at_times(t).iloc[0])
        surv = predicted[:, j]
        had_event = (time <= t) & (event == 1)
        at_risk = time > t
        contrib = np.zeros(len(time))
        valid = had_event & (g_obs > 0)
        contrib[valid] = surv[valid] ** 2 / g_obs[valid]
        if g_t > 0:
            contrib[at_risk] = (1 - surv[at_risk]) ** 2 / g_t
        scores.append(np.mean(contrib))
    return float(np.mean(scores))
