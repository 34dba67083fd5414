"""
Resampling control configurations.

Each control is an immutable description of one resampling scheme together
with the options that response-type-specific metrics need (classification
cutoff, sensitivity/specificity tradeoff, survival evaluation times). A
control fixes its random seed at construction, so every use of the same
control object yields the same partitions.

Classes:
    MLControl: Common options shared by every scheme
    BootControl: Bootstrap resampling, tested on the full data
    CVControl: Repeated K-fold cross-validation
    OOBControl: Bootstrap resampling, tested on out-of-bootstrap cases
    SplitControl: Single train/test split
    TrainControl: Training-set (apparent) performance
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import ConfigurationError


def youden_index(sensitivity: float, specificity: float) -> float:
    """Default sensitivity/specificity tradeoff: sens + spec."""
    return sensitivity + specificity


def _random_seed() -> int:
    return int(np.random.SeedSequence().generate_state(1)[0])


@dataclass(frozen=True, kw_only=True)
class MLControl:
    """Options common to all resampling schemes.

    Attributes:
        seed: Random seed. Drawn once at construction when omitted.
        strata: Column to stratify partitions on. Falls back to the
            dataset's schema strata when None.
        cutoff: Probability cutoff for predicting the second level of a
            binary response.
        cutoff_index: Function of (sensitivity, specificity) reported as the
            'Index' metric for binary responses.
        times: Evaluation times for survival predictions.
        na_rm: Whether summaries drop missing metric values.
    """
    seed: Optional[int] = None
    strata: Optional[str] = None
    cutoff: float = 0.5
    cutoff_index: Callable[[float, float], float] = youden_index
    times: Optional[Sequence[float]] = None
    na_rm: bool = True

    method = "MLControl"

    def __post_init__(self):
        if self.seed is None:
            object.__setattr__(self, "seed", _random_seed())
        elif isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)) \
                or self.seed < 0:
            raise ConfigurationError(f"seed must be a non-negative integer, got {self.seed!r}")
        else:
            object.__setattr__(self, "seed", int(self.seed))

        if not 0 < self.cutoff < 1:
            raise ConfigurationError(f"cutoff must be in (0, 1), got {self.cutoff}")
        if not callable(self.cutoff_index):
            raise ConfigurationError("cutoff_index must be callable")

        if self.times is not None:
            times = tuple(float(t) for t in np.atleast_1d(self.times))
            if not times:
                raise ConfigurationError("times must contain at least one value")
            if times[0] <= 0 or np.any(np.diff(times) <= 0):
                raise ConfigurationError(
                    f"times must be positive and strictly increasing, got {times}"
                )
            object.__setattr__(self, "times", times)

        self._validate()

    def _validate(self) -> None:
        pass

    def _counts(self) -> Tuple:
        return ()

    @property
    def n_partitions(self) -> int:
        return 1

    @property
    def fingerprint(self) -> Tuple:
        """Identity of the partition sequence this control generates."""
        return (self.method,) + self._counts() + (self.strata, self.seed)

    def _check_positive_int(self, name: str, minimum: int) -> None:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < minimum:
            raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")


@dataclass(frozen=True)
class BootControl(MLControl):
    """Bootstrap resampling; each model is tested on the full data set."""
    samples: int = 25

    method = "Boot"

    def _validate(self) -> None:
        self._check_positive_int("samples", 1)

    def _counts(self) -> Tuple:
        return (self.samples,)

    @property
    def n_partitions(self) -> int:
        return self.samples


@dataclass(frozen=True)
class OOBControl(BootControl):
    """Bootstrap resampling; each model is tested on the cases left out of its draw."""

    method = "OOB"


@dataclass(frozen=True)
class CVControl(MLControl):
    """Repeated K-fold cross-validation."""
    folds: int = 10
    repeats: int = 1

    method = "CV"

    def _validate(self) -> None:
        self._check_positive_int("folds", 2)
        self._check_positive_int("repeats", 1)

    def _counts(self) -> Tuple:
        return (self.folds, self.repeats)

    @property
    def n_partitions(self) -> int:
        return self.folds * self.repeats


@dataclass(frozen=True)
class SplitControl(MLControl):
    """Single split into a training fraction ``prop`` and a test remainder."""
    prop: float = 2 / 3

    method = "Split"

    def _validate(self) -> None:
        if not 0 < self.prop < 1:
            raise ConfigurationError(f"prop must be in (0, 1), got {self.prop}")

    def _counts(self) -> Tuple:
        return (float(self.prop),)


@dataclass(frozen=True)
class TrainControl(MLControl):
    """Training and testing on the full data set (apparent performance)."""

    method = "Train"
