"""
Performance metrics keyed by response type.

Importing this package registers the built-in metrics in ``METRICS``.
"""

from . import functions
from .performance import performance
from .registry import METRICS, Metric, MetricRegistry

__all__ = [
    'METRICS',
    'Metric',
    'MetricRegistry',
    'performance'
]
