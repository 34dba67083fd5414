#!/usr/bin/env python3
"""
Basic Resampling Example for MachineShop

This example demonstrates how to use the machineshop package to:
1. Build datasets for classification, regression and survival responses
2. Estimate model performance by cross-validation and bootstrap
3. Compare models with paired t-tests
4. Tune hyperparameters on shared folds
5. Visualize results
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import sys
import os

# Add the package to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from sklearn.datasets import load_iris

from machineshop import (
    CVControl,
    Dataset,
    GBMModel,
    GLMNetModel,
    OOBControl,
    RandomForestModel,
    Resamples,
    lift,
    plot_lift,
    plot_resamples,
    plot_tune,
    resample,
    tune,
)


def make_binary_data(n=200, random_state=42):
    rng = np.random.default_rng(random_state)
    x = rng.normal(size=(n, 4))
    logit = 1.2 * x[:, 0] - 0.8 * x[:, 1] + 0.5 * x[:, 2]
    outcome = np.where(rng.uniform(size=n) < 1 / (1 + np.exp(-logit)), "event", "none")
    frame = pd.DataFrame(x, columns=["x1", "x2", "x3", "x4"])
    frame["outcome"] = pd.Categorical(outcome, categories=["none", "event"])
    return frame


def make_survival_data(n=200, random_state=42):
    rng = np.random.default_rng(random_state)
    x = rng.normal(size=(n, 3))
    event_time = rng.exponential(scale=np.exp(-0.7 * x[:, 0]) * 10)
    censor_time = rng.uniform(2, 30, size=n)
    frame = pd.DataFrame(x, columns=["x1", "x2", "x3"])
    frame["time"] = np.minimum(event_time, censor_time)
    frame["status"] = (event_time <= censor_time).astype(int)
    return frame


def main():
    """Run basic resampling example."""

    print("=== MachineShop Resampling Example ===")
    print()

    # Step 1: Multiclass classification
    print("1. Cross-validating classifiers on iris...")
    iris = load_iris(as_frame=True)
    iris_frame = iris.frame.drop(columns="target")
    iris_frame["species"] = pd.Categorical.from_codes(iris.target, list(iris.target_names))
    iris_ds = Dataset(iris_frame, response="species")

    control = CVControl(folds=10, repeats=3, seed=123)
    res = Resamples.combine(
        glm=resample(iris_ds, GLMNetModel(lambda_=0.05), control),
        rf=resample(iris_ds, RandomForestModel(n_estimators=100), control),
    )
    print(res.summary()[["N", "Mean", "SD"]].round(3))
    print()

    # Step 2: Paired comparison
    print("2. Paired t-tests of model differences...")
    print(res.paired_test()[["Estimate", "CI_Lower", "CI_Upper", "PValueAdj"]].round(4))
    print()

    # Step 3: Binary classification with out-of-bootstrap estimation
    print("3. Out-of-bootstrap estimation for a binary response...")
    binary_ds = Dataset(make_binary_data(), response="outcome", strata="outcome")
    oob = OOBControl(samples=25, seed=7)
    binary_res = Resamples.combine(
        glm=resample(binary_ds, GLMNetModel(), oob),
        gbm=resample(binary_ds, GBMModel(n_estimators=50), oob),
    )
    print(binary_res.summary().xs("ROCAUC", level="Metric")[["Mean", "SD"]].round(3))
    curves = lift(binary_res)
    print()

    # Step 4: Tuning
    print("4. Tuning the elastic net penalty...")
    result = tune(
        binary_ds, GLMNetModel,
        {"alpha": [0.0, 0.5, 1.0], "lambda_": [0.001, 0.01, 0.1]},
        control=CVControl(folds=5, seed=99),
        metric="ROCAUC"
    )
    print(f"   Selected {result.selected}: {result.best_params}")
    print()

    # Step 5: Survival
    print("5. Cox regression with time-dependent Brier scores...")
    surv_ds = Dataset(make_survival_data(), response="time", event="status")
    surv_res = resample(surv_ds, GLMNetModel(alpha=0.0, lambda_=0.05),
                        CVControl(folds=5, seed=5, times=[5.0, 10.0]))
    print(surv_res.summary()[["Mean", "SD"]].round(3))
    print()

    # Step 6: Figures
    print("6. Creating figures...")
    fig1, _ = plot_resamples(res, metrics=["Accuracy", "Kappa"])
    fig2, _ = plot_lift(curves)
    fig3, _ = plot_tune(result)
    plt.show()

    print("=== Example completed ===")


if __name__ == "__main__":
    main()
