"""
Aggregation, comparison and lift of resampled performance.
"""

from .lift import lift
from .resamples import (
    MetricRecord,
    Resamples,
    ResamplesDiff,
    diff,
    paired_test,
    summarize,
)

__all__ = [
    'MetricRecord',
    'Resamples',
    'ResamplesDiff',
    'summarize',
    'diff',
    'paired_test',
    'lift',
]
