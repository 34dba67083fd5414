"""
MachineShop: Resampled Performance Estimation for Model Adapters

A Python package for fitting, tuning and comparing classification, regression
and survival models through one interface, with resampling-based performance
estimation and paired model comparisons.
"""

__version__ = "0.1.0"
__author__ = "MachineShop Development Team"

# Core module imports
from .data.dataset import Dataset
from .data.response import ResponseType, Surv, response
from .exceptions import (
    ConfigurationError,
    MachineShopError,
    MetricUnavailableError,
    PairingError,
    PartitionExecutionError,
)
from .metrics import METRICS, performance
from .models import CoxModel, GBMModel, GLMNetModel, ModelAdapter, RandomForestModel, SklearnModel
from .performance import Resamples, diff, lift, paired_test, summarize
from .resampling import (
    BootControl,
    CVControl,
    JoblibExecutor,
    OOBControl,
    SequentialExecutor,
    SplitControl,
    TrainControl,
    resample,
)
from .tuning import TuneResult, tune
from .visualization import plot_lift, plot_resamples, plot_tune

# Convenience alias
t_test = paired_test

__all__ = [
    'Dataset',
    'ResponseType',
    'Surv',
    'response',
    'MachineShopError',
    'ConfigurationError',
    'PairingError',
    'MetricUnavailableError',
    'PartitionExecutionError',
    'METRICS',
    'performance',
    'ModelAdapter',
    'SklearnModel',
    'CoxModel',
    'GLMNetModel',
    'RandomForestModel',
    'GBMModel',
    'BootControl',
    'CVControl',
    'OOBControl',
    'SplitControl',
    'TrainControl',
    'SequentialExecutor',
    'JoblibExecutor',
    'resample',
    'Resamples',
    'summarize',
    'diff',
    'paired_test',
    't_test',
    'lift',
    'tune',
    'TuneResult',
    'plot_resamples',
    'plot_lift',
    'plot_tune'
]
