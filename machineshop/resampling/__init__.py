"""
Resampling controls, partition generation and the resample driver.
"""

from .controls import (
    BootControl,
    CVControl,
    MLControl,
    OOBControl,
    SplitControl,
    TrainControl,
    youden_index,
)
from .driver import PartitionResult, ResampleDriver, resample
from .executors import JoblibExecutor, SequentialExecutor
from .partitions import Partition, assign_folds, bootstrap_draw, partitions, split_draw

__all__ = [
    'MLControl',
    'BootControl',
    'CVControl',
    'OOBControl',
    'SplitControl',
    'TrainControl',
    'youden_index',
    'Partition',
    'partitions',
    'assign_folds',
    'bootstrap_draw',
    'split_draw',
    'SequentialExecutor',
    'JoblibExecutor',
    'PartitionResult',
    'ResampleDriver',
    'resample',
]
