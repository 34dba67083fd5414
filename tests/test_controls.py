"""Tests for resampling controls."""
import dataclasses

import pytest

from machineshop.exceptions import ConfigurationError
from machineshop.resampling import (
    BootControl,
    CVControl,
    OOBControl,
    SplitControl,
    TrainControl,
)


class TestControlValidation:
    """Tests for control construction."""

    def test_defaults(self):
        """Defaults should match the documented schemes."""
        assert CVControl().folds == 10
        assert CVControl().repeats == 1
        assert BootControl().samples == 25
        assert SplitControl().prop == pytest.approx(2 / 3)
        assert TrainControl().n_partitions == 1

    def test_partition_counts(self):
        """n_partitions should reflect the scheme."""
        assert CVControl(folds=5, repeats=3).n_partitions == 15
        assert OOBControl(samples=7).n_partitions == 7

    @pytest.mark.parametrize("kwargs", [
        {"folds": 1},
        {"folds": 0},
        {"repeats": 0},
        {"folds": 2.5},
        {"seed": -1},
        {"cutoff": 1.0},
        {"times": [3.0, 1.0]},
        {"times": [0.0, 1.0]},
    ])
    def test_invalid_cv(self, kwargs):
        """Invalid settings should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            CVControl(**kwargs)

    def test_invalid_other_schemes(self):
        """Other schemes should validate their own counts."""
        with pytest.raises(ConfigurationError):
            BootControl(samples=0)
        with pytest.raises(ConfigurationError):
            SplitControl(prop=1.0)

    def test_configuration_error_is_value_error(self):
        """ConfigurationError should be catchable as ValueError."""
        with pytest.raises(ValueError):
            CVControl(folds=1)

    def test_seed_drawn_once(self):
        """An omitted seed should be fixed at construction."""
        control = CVControl()
        assert isinstance(control.seed, int)
        assert control.seed == control.seed

    def test_frozen(self):
        """Controls should be immutable."""
        control = CVControl(seed=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            control.folds = 3

    def test_times_normalized(self):
        """Survival times should be stored as a tuple of floats."""
        control = CVControl(times=[1, 5, 10])
        assert control.times == (1.0, 5.0, 10.0)


class TestFingerprint:
    """Tests for control fingerprints."""

    def test_same_configuration(self):
        """Equal method, counts and seed should share a fingerprint."""
        assert CVControl(folds=5, seed=1).fingerprint == CVControl(folds=5, seed=1).fingerprint

    def test_fingerprint_includes_counts_and_seed(self):
        """Counts and seed should distinguish fingerprints."""
        base = CVControl(folds=5, seed=1).fingerprint
        assert CVControl(folds=10, seed=1).fingerprint != base
        assert CVControl(folds=5, seed=2).fingerprint != base
        assert CVControl(folds=5, repeats=2, seed=1).fingerprint != base

    def test_boot_and_oob_differ(self):
        """Bootstrap and out-of-bootstrap should not pair."""
        assert BootControl(samples=5, seed=1).fingerprint != OOBControl(samples=5, seed=1).fingerprint

    def test_metric_options_ignored(self):
        """Cutoff and times should not affect pairing."""
        assert CVControl(seed=1, cutoff=0.3).fingerprint == CVControl(seed=1).fingerprint

    def test_fingerprint_includes_strata(self):
        """Stratified and unstratified controls draw different partitions and should not pair."""
        plain = CVControl(folds=5, seed=1)
        stratified = CVControl(folds=5, seed=1, strata="outcome")
        assert plain.fingerprint != stratified.fingerprint
        assert stratified.fingerprint == CVControl(folds=5, seed=1, strata="outcome").fingerprint
