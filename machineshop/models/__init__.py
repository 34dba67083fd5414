"""
Model adapters: the fit/predict contract and reference backends.
"""

from .base import FittedModel, ModelAdapter
from .library import GBMModel, GLMNetModel, RandomForestModel
from .sklearn import SklearnModel
from .survival import CoxModel

__all__ = [
    'FittedModel',
    'ModelAdapter',
    'SklearnModel',
    'CoxModel',
    'GLMNetModel',
    'RandomForestModel',
    'GBMModel'
]
