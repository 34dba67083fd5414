"""
Generation of training/testing partitions from a resampling control.

Partitions are produced lazily and deterministically: the control's seed is
expanded with numpy's SeedSequence into one child stream per repeat (CV) or
per draw (bootstrap), and each partition additionally carries its own child
seed for model fitting. The same dataset and control therefore always yield
identical partitions, whatever order they are later evaluated in.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

import logging

import numpy as np

from ..data.dataset import Dataset
from ..exceptions import ConfigurationError
from .controls import (
    BootControl,
    CVControl,
    MLControl,
    OOBControl,
    SplitControl,
    TrainControl,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    """One training/testing split.

    Attributes:
        id: Position of the partition in the control's sequence (0-based).
        train: Positional training row indices (may repeat for bootstrap).
        test: Positional testing row indices.
        label: Human-readable identifier, e.g. 'Fold03.Rep1' or 'Boot07'.
        seed: Seed for model fitting within this partition.
        repeat: CV repeat number (1-based), if applicable.
        fold: CV fold number (1-based), if applicable.
    """
    id: int
    train: np.ndarray
    test: np.ndarray
    label: str
    seed: int
    repeat: Optional[int] = None
    fold: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return len(self.test) == 0


def _strata_codes(dataset: Dataset, control: MLControl) -> Optional[np.ndarray]:
    column = control.strata or dataset.schema.strata
    if column is None:
        return None
    return dataset.strata_values(column)


def _groups(codes: Optional[np.ndarray], n: int):
    if codes is None:
        return [np.arange(n)]
    return [np.flatnonzero(codes == code) for code in np.unique(codes)]


def assign_folds(n: int, folds: int, rng: np.random.Generator,
                 strata: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Assign each row a fold label in 0..folds-1.

    Within each stratum, rows are shuffled and fold labels are dealt out
    cyclically, continuing from where the previous stratum stopped, so fold
    sizes differ by at most one within each stratum and overall.

    Parameters
    ----------
    n : int
        Number of rows.
    folds : int
        Number of folds.
    rng : Generator
        Random number generator.
    strata : ndarray of shape (n,), optional
        Stratum codes.

    Returns
    -------
    labels : ndarray of shape (n,)
    """
    labels = np.empty(n, dtype=int)
    offset = 0
    for members in _groups(strata, n):
        shuffled = rng.permutation(members)
        labels[shuffled] = (np.arange(len(shuffled)) + offset) % folds
        offset = (offset + len(shuffled)) % folds
    return labels


def bootstrap_draw(n: int, rng: np.random.Generator,
                   strata: Optional[np.ndarray] = None) -> np.ndarray:
    """Draw ``n`` row indices with replacement, within strata if given."""
    if strata is None:
        return rng.integers(0, n, size=n)
    draws = [rng.choice(members, size=len(members), replace=True)
             for members in _groups(strata, n)]
    return np.sort(np.concatenate(draws))


def split_draw(n: int, prop: float, rng: np.random.Generator,
               strata: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Draw a training fraction ``prop`` of rows without replacement.

    Raises
    ------
    ConfigurationError
        If ``prop`` of ``n`` rows rounds to an empty training set.
    """
    if strata is None:
        sizes = [(np.arange(n), int(round(prop * n)))]
    else:
        sizes = [(members, int(round(prop * len(members)))) for members in _groups(strata, n)]
    if sum(size for _, size in sizes) == 0:
        raise ConfigurationError(
            f"prop={prop} of {n} rows leaves no training cases; increase prop or add data"
        )
    draws = [rng.choice(members, size=size, replace=False) for members, size in sizes]
    return np.sort(np.concatenate(draws))


def _child_seed(seq: np.random.SeedSequence) -> int:
    return int(seq.generate_state(1)[0])


def partitions(dataset: Dataset, control: MLControl) -> Iterator[Partition]:
    """
    Generate the partitions of a dataset under a resampling control.

    Parameters
    ----------
    dataset : Dataset
        Data to partition.
    control : MLControl
        Resampling scheme.

    Yields
    ------
    Partition
        Partitions in a fixed, seed-determined order.

    Examples
    --------
    >>> parts = list(partitions(ds, CVControl(folds=5, seed=1)))
    >>> len(parts)
    5
    """
    n = dataset.n_rows
    if n == 0:
        raise ValueError("Cannot resample an empty dataset")

    strata = _strata_codes(dataset, control)
    root = np.random.SeedSequence(control.seed)
    all_rows = np.arange(n)

    if isinstance(control, CVControl):
        if control.folds > n:
            logger.warning("%d folds requested for %d rows; some folds will be empty",
                           control.folds, n)
        pid = 0
        for r, repeat_seq in enumerate(root.spawn(control.repeats), start=1):
            fold_seq, fit_seq = repeat_seq.spawn(2)
            labels = assign_folds(n, control.folds, np.random.default_rng(fold_seq), strata)
            fit_seeds = fit_seq.spawn(control.folds)
            for k in range(control.folds):
                yield Partition(
                    id=pid,
                    train=np.flatnonzero(labels != k),
                    test=np.flatnonzero(labels == k),
                    label=f"Fold{k + 1:02d}.Rep{r}",
                    seed=_child_seed(fit_seeds[k]),
                    repeat=r,
                    fold=k + 1
                )
                pid += 1

    elif isinstance(control, BootControl):
        oob = isinstance(control, OOBControl)
        prefix = "OOB" if oob else "Boot"
        width = max(2, len(str(control.samples)))
        for b, draw_seq in enumerate(root.spawn(control.samples)):
            sample_seq, fit_seq = draw_seq.spawn(2)
            train = bootstrap_draw(n, np.random.default_rng(sample_seq), strata)
            test = np.setdiff1d(all_rows, train) if oob else all_rows
            yield Partition(
                id=b,
                train=train,
                test=test,
                label=f"{prefix}{b + 1:0{width}d}",
                seed=_child_seed(fit_seq)
            )

    elif isinstance(control, SplitControl):
        sample_seq, fit_seq = root.spawn(2)
        train = split_draw(n, control.prop, np.random.default_rng(sample_seq), strata)
        yield Partition(
            id=0,
            train=train,
            test=np.setdiff1d(all_rows, train),
            label="Split",
            seed=_child_seed(fit_seq)
        )

    elif isinstance(control, TrainControl):
        yield Partition(
            id=0,
            train=all_rows,
            test=all_rows,
            label="Train",
            seed=_child_seed(root.spawn(1)[0])
        )

    else:
        raise TypeError(f"Unsupported resampling control: {type(control).__name__}")
