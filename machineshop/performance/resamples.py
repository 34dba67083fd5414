"""
Aggregation and comparison of resampled performance estimates.

A Resamples object holds per-partition metric values for one or more models
that were all evaluated under the same resampling control, so that values
can be paired partition by partition. Objects are never modified in place:
combining, differencing and testing all produce new structures.

Classes:
    MetricRecord: One metric value from one partition of one model
    Resamples: Tidy collection of metric records sharing a control
    ResamplesDiff: Pairwise per-partition differences between models

Functions:
    summarize: Summary statistics of one or more Resamples
    diff: Pairwise differences of one or more Resamples
    paired_test: Paired t-tests of pairwise differences
"""

from dataclasses import asdict, dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence

import logging

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.multitest import multipletests

from ..data.response import ResponseType
from ..exceptions import ConfigurationError, PairingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricRecord:
    """One metric value from one resampling partition.

    Attributes:
        model: Model label.
        partition: Partition id within the resampling control's sequence.
        label: Partition label, e.g. 'Fold03.Rep1'.
        metric: Metric name.
        value: Metric value; NaN when missing.
        missing: True when the value could not be computed (e.g. an empty
            out-of-bootstrap test set).
    """
    model: str
    partition: int
    label: str
    metric: str
    value: float
    missing: bool = False


_COLUMNS = {
    "model": "Model",
    "partition": "Resample",
    "label": "Label",
    "metric": "Metric",
    "value": "Value",
    "missing": "Missing",
}


class Resamples:
    """
    Resampled performance of one or more models under a common control.

    Parameters
    ----------
    records : iterable of MetricRecord
        Per-partition metric values.
    control : MLControl
        Resampling control that produced every record.
    response_type : ResponseType
        Response type of the resampled data.
    cases : DataFrame, optional
        Held-out observed and predicted values with columns Model, Resample,
        Case, Observed, Predicted (and Event for survival responses).

    Examples
    --------
    >>> res = Resamples.combine(glm=resample(ds, GLMNetModel(), control),
    ...                         rf=resample(ds, RandomForestModel(), control))
    >>> res.summary()
    >>> res.paired_test()
    """

    def __init__(
        self,
        records: Iterable[MetricRecord],
        control,
        response_type: ResponseType,
        cases: Optional[pd.DataFrame] = None
    ):
        frame = pd.DataFrame(
            [asdict(r) for r in records], columns=list(_COLUMNS)
        ).rename(columns=_COLUMNS)
        frame["Value"] = frame["Value"].astype(float)
        frame["Missing"] = frame["Missing"].astype(bool)
        self._init(frame, control, response_type, cases)

    def _init(self, frame, control, response_type, cases) -> None:
        self._frame = frame.reset_index(drop=True)
        self.control = control
        self.response_type = ResponseType(response_type)
        self._cases = cases

    @classmethod
    def _from_frame(cls, frame, control, response_type, cases=None) -> "Resamples":
        obj = cls.__new__(cls)
        obj._init(frame, control, response_type, cases)
        return obj

    @classmethod
    def combine(cls, *resamples: "Resamples", **named: "Resamples") -> "Resamples":
        """
        Combine Resamples of several models into one.

        Named arguments relabel their models: a single-model Resamples takes
        the argument name, a multi-model one is prefixed with it.

        Raises
        ------
        PairingError
            If the inputs were generated under different resampling controls
            or for different response types.
        ValueError
            If model labels collide.
        """
        items = [(None, r) for r in resamples] + list(named.items())
        if not items:
            raise ValueError("At least one Resamples object is required")

        first = items[0][1]
        for _, res in items:
            if not isinstance(res, Resamples):
                raise TypeError(f"Expected Resamples, got {type(res).__name__}")
            if res.control.fingerprint != first.control.fingerprint:
                raise PairingError(
                    "Resamples were generated with different resampling controls: "
                    f"{first.control.fingerprint} vs {res.control.fingerprint}"
                )
            if res.response_type is not first.response_type:
                raise PairingError(
                    "Resamples were generated for different response types: "
                    f"{first.response_type.value} vs {res.response_type.value}"
                )

        frames, cases, labels = [], [], []
        for name, res in items:
            if name is not None:
                models = res.models
                mapping = {m: name if len(models) == 1 else f"{name}.{m}" for m in models}
                res = res._relabel(mapping)
            labels.extend(res.models)
            frames.append(res._frame)
            if res._cases is not None:
                cases.append(res._cases)

        if len(set(labels)) != len(labels):
            raise ValueError(f"Model labels must be unique across inputs, got {labels}")

        frame = pd.concat(frames, ignore_index=True)

        all_cases = pd.concat(cases, ignore_index=True) if cases else None
        return cls._from_frame(frame, first.control, first.response_type, all_cases)

    def _relabel(self, mapping: Dict[str, str]) -> "Resamples":
        frame = self._frame.copy()
        frame["Model"] = frame["Model"].map(mapping)
        cases = None
        if self._cases is not None:
            cases = self._cases.copy()
            cases["Model"] = cases["Model"].map(mapping)
        return type(self)._from_frame(frame, self.control, self.response_type, cases)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(models={self.models}, metrics={self.metrics}, "
            f"control={self.control.method}, partitions={self.n_partitions})"
        )

    @property
    def frame(self) -> pd.DataFrame:
        """Tidy metric table: Model, Resample, Label, Metric, Value, Missing."""
        return self._frame.copy()

    @property
    def cases(self) -> Optional[pd.DataFrame]:
        """Held-out observed and predicted values per case."""
        return None if self._cases is None else self._cases.copy()

    @property
    def models(self) -> List[str]:
        return list(dict.fromkeys(self._frame["Model"]))

    @property
    def metrics(self) -> List[str]:
        return list(dict.fromkeys(self._frame["Metric"]))

    @property
    def n_partitions(self) -> int:
        return int(self._frame["Resample"].nunique())

    def values(self, metric: str) -> pd.DataFrame:
        """
        Wide table of one metric: one row per partition, one column per model.
        """
        if metric not in self.metrics:
            raise KeyError(f"Metric '{metric}' not found. Available: {self.metrics}")
        sub = self._frame[self._frame["Metric"] == metric]
        wide = sub.pivot(index="Label", columns="Model", values="Value")
        order = list(dict.fromkeys(sub.sort_values("Resample")["Label"]))
        return wide.loc[order, self.models]

    def summary(self, quantiles: Sequence[float] = (0.25, 0.5, 0.75)) -> pd.DataFrame:
        """
        Summary statistics per model and metric.

        Parameters
        ----------
        quantiles : sequence of float, default=(0.25, 0.5, 0.75)
            Quantiles to report.

        Returns
        -------
        summary : DataFrame
            Indexed by (Model, Metric) with columns N (non-missing values),
            NA (missing values), Mean, SD, Min, the requested quantiles and
            Max. With ``control.na_rm`` False, statistics of a group with
            missing values are NaN.
        """
        q_names = [f"{100 * q:g}%" for q in quantiles]
        rows = []
        for (model, metric), group in self._frame.groupby(["Model", "Metric"], sort=False):
            values = group["Value"].to_numpy(dtype=float)
            present = values[~np.isnan(values)]
            n_missing = len(values) - len(present)

            row = {"Model": model, "Metric": metric, "N": len(present), "NA": n_missing}
            if len(present) == 0 or (n_missing and not self.control.na_rm):
                row.update({"Mean": np.nan, "SD": np.nan, "Min": np.nan, "Max": np.nan})
                row.update({name: np.nan for name in q_names})
            else:
                row["Mean"] = float(np.mean(present))
                row["SD"] = float(np.std(present, ddof=1)) if len(present) > 1 else np.nan
                row["Min"] = float(np.min(present))
                for q, name in zip(quantiles, q_names):
                    row[name] = float(np.quantile(present, q))
                row["Max"] = float(np.max(present))
            rows.append(row)

        columns = ["Model", "Metric", "N", "NA", "Mean", "SD", "Min"] + q_names + ["Max"]
        return pd.DataFrame(rows, columns=columns).set_index(["Model", "Metric"])

    def _check_pairing(self) -> None:
        models = self.models
        if len(models) < 2:
            raise PairingError(
                f"Model comparisons need at least two models, got {models}"
            )
        reference = set(self._frame.loc[self._frame["Model"] == models[0], "Resample"])
        for model in models[1:]:
            current = set(self._frame.loc[self._frame["Model"] == model, "Resample"])
            if current != reference:
                raise PairingError(
                    f"Partitions of '{model}' do not correspond 1:1 with those of '{models[0]}'"
                )

    def diff(self) -> "ResamplesDiff":
        """
        Per-partition metric differences between every pair of models.

        For models listed in order A, B, C the comparisons are 'A - B',
        'A - C' and 'B - C'. Only metrics shared by both models of a pair are
        differenced.

        Returns
        -------
        ResamplesDiff

        Raises
        ------
        PairingError
            If there are fewer than two models or their partitions do not
            correspond 1:1.
        """
        self._check_pairing()

        frame = self._frame
        keyed = frame.set_index(["Model", "Resample", "Metric"])["Value"]
        labels = frame.drop_duplicates("Resample").set_index("Resample")["Label"]

        pieces = []
        for a, b in combinations(self.models, 2):
            left = keyed.xs(a, level="Model")
            right = keyed.xs(b, level="Model")
            shared = left.index.intersection(right.index, sort=False)
            if len(shared) < len(left.index.union(right.index)):
                logger.debug("Differencing %s and %s on shared metrics only", a, b)
            delta = (left.loc[shared] - right.loc[shared]).reset_index()
            delta.insert(0, "Model", f"{a} - {b}")
            pieces.append(delta)

        result = pd.concat(pieces, ignore_index=True)
        result["Label"] = result["Resample"].map(labels)
        result["Missing"] = result["Value"].isna()
        result = result[list(_COLUMNS.values())]
        return ResamplesDiff._from_frame(result, self.control, self.response_type)

    def paired_test(self, conf_level: float = 0.95, adjust: Optional[str] = "holm") -> pd.DataFrame:
        """
        Paired t-tests of per-partition metric differences between models.

        Parameters
        ----------
        conf_level : float, default=0.95
            Confidence level of the interval for the mean difference.
        adjust : str or None, default='holm'
            statsmodels ``multipletests`` method used to adjust p-values
            across the comparisons of each metric; None for no adjustment.

        Returns
        -------
        results : DataFrame
            Indexed by (Comparison, Metric) with columns N, Estimate, SE,
            CI_Lower, CI_Upper, TStat, PValue and PValueAdj.

        Raises
        ------
        PairingError
            If any comparison has fewer than two non-missing paired
            differences.
        """
        if not 0 < conf_level < 1:
            raise ConfigurationError(f"conf_level must be in (0, 1), got {conf_level}")

        diffs = self if isinstance(self, ResamplesDiff) else self.diff()

        rows = []
        for (comparison, metric), group in diffs._frame.groupby(["Model", "Metric"], sort=False):
            d = group["Value"].dropna().to_numpy(dtype=float)
            n = len(d)
            if n < 2:
                raise PairingError(
                    f"Paired test of '{comparison}' on {metric} needs at least 2 "
                    f"paired observations, got {n}"
                )
            estimate = float(np.mean(d))
            se = float(np.std(d, ddof=1) / np.sqrt(n))
            t_crit = stats.t.ppf(1 - (1 - conf_level) / 2, df=n - 1)
            with np.errstate(divide="ignore", invalid="ignore"):
                t_stat, p_value = stats.ttest_1samp(d, 0.0)
            rows.append({
                "Comparison": comparison,
                "Metric": metric,
                "N": n,
                "Estimate": estimate,
                "SE": se,
                "CI_Lower": estimate - t_crit * se,
                "CI_Upper": estimate + t_crit * se,
                "TStat": float(t_stat),
                "PValue": float(p_value),
            })

        results = pd.DataFrame(rows)
        results["PValueAdj"] = results["PValue"]
        if adjust is not None:
            for metric, idx in results.groupby("Metric", sort=False).groups.items():
                pvals = results.loc[idx, "PValue"]
                valid = pvals.notna()
                if valid.sum() > 0:
                    _, adjusted, _, _ = multipletests(pvals[valid].to_numpy(), method=adjust)
                    results.loc[pvals[valid].index, "PValueAdj"] = adjusted

        return results.set_index(["Comparison", "Metric"])


class ResamplesDiff(Resamples):
    """Per-partition differences between pairs of models ('A - B')."""

    def diff(self) -> "ResamplesDiff":
        raise TypeError("ResamplesDiff already holds model differences")


def summarize(*resamples: Resamples, **named: Resamples) -> pd.DataFrame:
    """Summary statistics of one or more Resamples sharing a control."""
    return Resamples.combine(*resamples, **named).summary()


def diff(*resamples: Resamples, **named: Resamples) -> ResamplesDiff:
    """Pairwise per-partition differences across one or more Resamples."""
    return Resamples.combine(*resamples, **named).diff()


def paired_test(
    *resamples: Resamples,
    conf_level: float = 0.95,
    adjust: Optional[str] = "holm",
    **named: Resamples
) -> pd.DataFrame:
    """
    Paired t-tests between the models of one or more Resamples.

    Pairing is validated before any statistic is computed; Resamples from
    different resampling controls raise PairingError.
    """
    if len(resamples) == 1 and not named and isinstance(resamples[0], ResamplesDiff):
        return resamples[0].paired_test(conf_level=conf_level, adjust=adjust)
    return Resamples.combine(*resamples, **named).paired_test(conf_level=conf_level, adjust=adjust)
