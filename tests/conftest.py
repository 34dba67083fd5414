"""Shared pytest fixtures for machineshop tests."""
import pytest
import numpy as np
import pandas as pd
from sklearn.datasets import load_iris

from machineshop.data import Dataset


@pytest.fixture
def iris_frame():
    """Iris measurements with a categorical species column (150 rows)."""
    iris = load_iris(as_frame=True)
    frame = iris.frame.drop(columns="target")
    frame.columns = ["sepal_length", "sepal_width", "petal_length", "petal_width"]
    frame["species"] = pd.Categorical.from_codes(iris.target, list(iris.target_names))
    return frame


@pytest.fixture
def iris_dataset(iris_frame):
    """Multiclass dataset with three balanced species."""
    return Dataset(iris_frame, response="species")


@pytest.fixture
def binary_frame():
    """Binary outcome driven by two numeric predictors plus a categorical one."""
    rng = np.random.default_rng(42)
    n = 120
    x1 = rng.normal(size=n)
    x2 = rng.normal(size=n)
    group = rng.choice(["a", "b", "c"], size=n)
    logit = 1.5 * x1 - x2 + (group == "c") * 0.5
    outcome = np.where(rng.uniform(size=n) < 1 / (1 + np.exp(-logit)), "yes", "no")
    return pd.DataFrame({"x1": x1, "x2": x2, "group": group, "outcome": outcome})


@pytest.fixture
def binary_dataset(binary_frame):
    """Binary classification dataset (levels 'no' < 'yes')."""
    return Dataset(binary_frame, response="outcome")


@pytest.fixture
def ordered_dataset():
    """Ordered three-level response."""
    rng = np.random.default_rng(7)
    n = 90
    x = rng.normal(size=n)
    score = x + rng.normal(scale=0.5, size=n)
    grade = pd.cut(score, bins=[-np.inf, -0.5, 0.5, np.inf], labels=["low", "mid", "high"])
    frame = pd.DataFrame({"x": x, "z": rng.normal(size=n), "grade": grade})
    frame["grade"] = frame["grade"].cat.as_ordered()
    return Dataset(frame, response="grade")


@pytest.fixture
def numeric_dataset():
    """Linear regression data with case weights."""
    rng = np.random.default_rng(0)
    n = 100
    x1 = rng.normal(size=n)
    x2 = rng.normal(size=n)
    y = 2 * x1 - x2 + rng.normal(scale=0.3, size=n)
    w = rng.uniform(0.5, 1.5, size=n)
    frame = pd.DataFrame({"x1": x1, "x2": x2, "y": y, "w": w})
    return Dataset(frame, response="y", weights="w")


@pytest.fixture
def matrix_dataset():
    """Two numeric responses sharing predictors."""
    rng = np.random.default_rng(3)
    n = 80
    x1 = rng.normal(size=n)
    x2 = rng.normal(size=n)
    frame = pd.DataFrame({
        "x1": x1,
        "x2": x2,
        "y1": x1 + rng.normal(scale=0.2, size=n),
        "y2": x2 - x1 + rng.normal(scale=0.2, size=n),
    })
    return Dataset(frame, response=["y1", "y2"])


@pytest.fixture
def survival_frame():
    """Right-censored exponential survival times with a risk predictor."""
    rng = np.random.default_rng(11)
    n = 120
    x1 = rng.normal(size=n)
    x2 = rng.normal(size=n)
    event_time = rng.exponential(scale=np.exp(-0.8 * x1) * 10)
    censor_time = rng.uniform(2, 25, size=n)
    return pd.DataFrame({
        "x1": x1,
        "x2": x2,
        "time": np.minimum(event_time, censor_time),
        "status": (event_time <= censor_time).astype(int),
    })


@pytest.fixture
def survival_dataset(survival_frame):
    """Survival dataset with 'time' and 'status' columns."""
    return Dataset(survival_frame, response="time", event="status")
