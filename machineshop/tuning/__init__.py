"""
Hyperparameter grid tuning.
"""

from .tuner import TuneResult, expand_grid, tune

__all__ = ['TuneResult', 'expand_grid', 'tune']
