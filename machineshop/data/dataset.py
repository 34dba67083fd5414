"""
Tabular datasets with explicit column roles.

A Dataset pairs a pandas DataFrame with a Schema naming the response,
predictor, weight, stratification and survival-event columns. The schema is
built once at construction, so resampling and model adapters never have to
parse symbolic expressions to find the variables they need.

Example:
    >>> from machineshop.data import Dataset
    >>> ds = Dataset(frame, response="outcome", strata="outcome")
    >>> ds.response_type
    <ResponseType.BINARY: 'binary'>
    >>> train = ds.subset([0, 1, 1, 4])
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .response import ResponseType, Surv, infer_response_type


@dataclass(frozen=True)
class Schema:
    """Column roles of a Dataset.

    Attributes:
        response: Response column name(s). Several names define a
            multivariate numeric response; for survival data this is the
            follow-up time column.
        predictors: Predictor column names.
        weights: Optional column of non-negative case weights.
        strata: Optional default stratification column for resampling.
        event: Event indicator column; setting it makes the response a
            right-censored survival response.
    """
    response: Tuple[str, ...]
    predictors: Tuple[str, ...]
    weights: Optional[str] = None
    strata: Optional[str] = None
    event: Optional[str] = None

    @property
    def columns(self) -> List[str]:
        roles = list(self.response) + list(self.predictors)
        roles += [c for c in (self.weights, self.event) if c is not None]
        return roles


class Dataset:
    """
    Read-only tabular data set with a designated response.

    Parameters
    ----------
    data : DataFrame
        Source data; rows are cases.
    response : str or sequence of str
        Response column name(s).
    predictors : sequence of str, optional
        Predictor columns. Defaults to every column not used in another role.
    weights : str, optional
        Column of non-negative case weights.
    strata : str, optional
        Default stratification column for resampling controls that do not
        name their own.
    event : str, optional
        Event indicator column for a right-censored survival response.

    Attributes
    ----------
    schema : Schema
        Column roles.
    response_type : ResponseType
        Type of the response variable, inferred at construction.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        response: Union[str, Sequence[str]],
        predictors: Optional[Sequence[str]] = None,
        weights: Optional[str] = None,
        strata: Optional[str] = None,
        event: Optional[str] = None
    ):
        if not isinstance(data, pd.DataFrame):
            raise TypeError(f"data must be a pandas DataFrame, got {type(data).__name__}")

        response_cols = (response,) if isinstance(response, str) else tuple(response)
        if not response_cols:
            raise ValueError("At least one response column is required")
        if event is not None and len(response_cols) != 1:
            raise ValueError("Survival responses take exactly one time column")

        reserved = set(response_cols) | {c for c in (weights, event) if c is not None}
        if predictors is None:
            predictors = [c for c in data.columns if c not in reserved]
        predictors = tuple(predictors)

        overlap = reserved.intersection(predictors)
        if overlap:
            raise ValueError(f"Columns used both as predictors and in other roles: {sorted(overlap)}")

        schema = Schema(
            response=response_cols,
            predictors=predictors,
            weights=weights,
            strata=strata,
            event=event
        )
        missing = [c for c in schema.columns + ([strata] if strata else []) if c not in data.columns]
        if missing:
            raise KeyError(f"Columns not found in data: {missing}")

        frame = data.reset_index(drop=True).copy()

        if event is None and len(response_cols) == 1:
            col = response_cols[0]
            y = frame[col]
            if isinstance(y.dtype, pd.CategoricalDtype):
                frame[col] = y.cat.remove_unused_categories()
            elif pd.api.types.is_bool_dtype(y) or not pd.api.types.is_numeric_dtype(y):
                frame[col] = pd.Categorical(y)

        if weights is not None:
            w = frame[weights].to_numpy(dtype=float)
            if np.any(np.isnan(w)) or np.any(w < 0):
                raise ValueError(f"Case weights in '{weights}' must be non-negative and non-missing")

        self._frame = frame
        self.schema = schema
        self.response_type = infer_response_type(self.y)

    @classmethod
    def _from_validated(cls, frame: pd.DataFrame, schema: Schema,
                        response_type: ResponseType) -> "Dataset":
        obj = cls.__new__(cls)
        obj._frame = frame
        obj.schema = schema
        obj.response_type = response_type
        return obj

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (
            f"Dataset(n_rows={self.n_rows}, response={list(self.schema.response)}, "
            f"type={self.response_type.value}, predictors={len(self.schema.predictors)})"
        )

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the underlying data."""
        return self._frame.copy()

    @property
    def x(self) -> pd.DataFrame:
        """Predictor columns."""
        return self._frame.loc[:, list(self.schema.predictors)]

    @property
    def y(self) -> Union[pd.Series, pd.DataFrame, Surv]:
        """Observed response values."""
        schema = self.schema
        if schema.event is not None:
            col = schema.response[0]
            return Surv(self._frame[col].to_numpy(), self._frame[schema.event].to_numpy())
        if len(schema.response) == 1:
            return self._frame[schema.response[0]]
        return self._frame.loc[:, list(schema.response)].astype(float)

    @property
    def levels(self) -> Optional[List]:
        """Levels of a categorical response, None otherwise."""
        if not self.response_type.is_factor:
            return None
        return list(self._frame[self.schema.response[0]].cat.categories)

    @property
    def weights(self) -> Optional[np.ndarray]:
        if self.schema.weights is None:
            return None
        return self._frame[self.schema.weights].to_numpy(dtype=float)

    def strata_values(self, column: str, bins: int = 4) -> np.ndarray:
        """
        Integer stratum codes for each row.

        Categorical, boolean and string columns are used as is; numeric
        columns are binned into quantile groups. The survival time column
        stratifies by event indicator. Missing values form their own stratum.

        Parameters
        ----------
        column : str
            Column to stratify on.
        bins : int, default=4
            Number of quantile groups for numeric columns.

        Returns
        -------
        codes : ndarray of shape (n_rows,)
        """
        if column not in self._frame.columns:
            raise KeyError(f"Stratification column '{column}' not found in data")

        if self.schema.event is not None and column == self.schema.response[0]:
            values = self._frame[self.schema.event]
        else:
            values = self._frame[column]

        if pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values) \
                and values.nunique(dropna=True) > bins:
            values = pd.qcut(values, q=bins, duplicates="drop")

        codes, _ = pd.factorize(values, use_na_sentinel=True)
        return codes

    def subset(self, indices) -> "Dataset":
        """
        Rows at the given positions, repetition allowed.

        Parameters
        ----------
        indices : array-like of int
            Positional row indices.

        Returns
        -------
        Dataset
            New dataset with a fresh 0..n-1 row index.
        """
        indices = np.asarray(indices, dtype=int)
        frame = self._frame.iloc[indices].reset_index(drop=True)
        return Dataset._from_validated(frame, self.schema, self.response_type)
