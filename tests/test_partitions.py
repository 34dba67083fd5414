"""Tests for partition generation."""
import pytest
import numpy as np

from machineshop.resampling import (
    BootControl,
    CVControl,
    OOBControl,
    SplitControl,
    TrainControl,
    assign_folds,
    partitions,
    split_draw,
)
from machineshop.exceptions import ConfigurationError


class TestCrossValidation:
    """Tests for K-fold partitions."""

    def test_five_folds_on_150_rows(self, iris_dataset):
        """Test sets should be disjoint, cover every row and have equal size."""
        parts = list(partitions(iris_dataset, CVControl(folds=5, seed=1)))
        assert len(parts) == 5
        tests = [p.test for p in parts]
        assert all(len(t) == 30 for t in tests)
        assert np.array_equal(np.sort(np.concatenate(tests)), np.arange(150))
        for p in parts:
            assert len(np.intersect1d(p.train, p.test)) == 0
            assert len(p.train) + len(p.test) == 150

    def test_uneven_folds(self, binary_dataset):
        """Fold sizes should differ by at most one."""
        parts = list(partitions(binary_dataset, CVControl(folds=7, seed=3)))
        sizes = [len(p.test) for p in parts]
        assert max(sizes) - min(sizes) <= 1
        assert sum(sizes) == binary_dataset.n_rows

    def test_repeats(self, iris_dataset):
        """Each repeat should be an independent full partition of the rows."""
        parts = list(partitions(iris_dataset, CVControl(folds=3, repeats=2, seed=5)))
        assert len(parts) == 6
        assert [p.id for p in parts] == list(range(6))
        assert parts[0].label == "Fold01.Rep1"
        assert parts[5].label == "Fold03.Rep2"
        for r in (1, 2):
            tests = [p.test for p in parts if p.repeat == r]
            assert np.array_equal(np.sort(np.concatenate(tests)), np.arange(150))
        assert not np.array_equal(parts[0].test, parts[3].test)

    def test_stratified_folds(self, iris_dataset):
        """Stratified folds should balance every class."""
        parts = list(partitions(iris_dataset, CVControl(folds=5, seed=2, strata="species")))
        species = iris_dataset.frame["species"].to_numpy()
        for p in parts:
            counts = np.unique(species[p.test], return_counts=True)[1]
            assert list(counts) == [10, 10, 10]

    def test_numeric_strata_quantile_bins(self, numeric_dataset):
        """Numeric strata should give every fold an equal share of each quartile bin."""
        parts = list(partitions(numeric_dataset, CVControl(folds=5, seed=2, strata="y")))
        bins = numeric_dataset.strata_values("y")
        assert list(np.bincount(bins)) == [25, 25, 25, 25]
        for p in parts:
            assert list(np.bincount(bins[p.test], minlength=4)) == [5, 5, 5, 5]

    def test_assign_folds_balanced(self):
        """Fold labels should be balanced within and across strata."""
        strata = np.array([0] * 7 + [1] * 5)
        labels = assign_folds(12, 4, np.random.default_rng(0), strata)
        counts = np.bincount(labels, minlength=4)
        assert max(counts) - min(counts) <= 1


class TestBootstrap:
    """Tests for bootstrap partitions."""

    def test_boot_tests_on_all_rows(self, numeric_dataset):
        """Bootstrap partitions should test on every row."""
        parts = list(partitions(numeric_dataset, BootControl(samples=10, seed=1)))
        assert len(parts) == 10
        for p in parts:
            assert len(p.train) == 100
            assert np.array_equal(p.test, np.arange(100))
            assert len(np.unique(p.train)) < 100
        assert parts[0].label == "Boot01"

    def test_oob_tests_on_left_out_rows(self, numeric_dataset):
        """Out-of-bootstrap partitions should test on rows not drawn."""
        parts = list(partitions(numeric_dataset, OOBControl(samples=5, seed=1)))
        for p in parts:
            assert len(np.intersect1d(p.train, p.test)) == 0
            assert np.array_equal(np.union1d(p.train, p.test), np.arange(100))
        assert parts[0].label == "OOB01"

    def test_oob_matches_boot_draws(self, numeric_dataset):
        """OOB and bootstrap controls with the same seed should draw the same rows."""
        boot = list(partitions(numeric_dataset, BootControl(samples=3, seed=9)))
        oob = list(partitions(numeric_dataset, OOBControl(samples=3, seed=9)))
        for b, o in zip(boot, oob):
            assert np.array_equal(b.train, o.train)

    def test_stratified_bootstrap(self, binary_dataset):
        """Stratified draws should preserve class counts."""
        outcome = binary_dataset.frame["outcome"].to_numpy()
        parts = list(partitions(binary_dataset, BootControl(samples=4, seed=1, strata="outcome")))
        expected = np.unique(outcome, return_counts=True)[1]
        for p in parts:
            assert list(np.unique(outcome[p.train], return_counts=True)[1]) == list(expected)


class TestOtherSchemes:
    """Tests for split and training-set partitions."""

    def test_split(self, iris_dataset):
        """A split should hold out the complement of the training fraction."""
        (part,) = partitions(iris_dataset, SplitControl(prop=0.8, seed=4))
        assert len(part.train) == 120
        assert len(part.test) == 30
        assert np.array_equal(np.union1d(part.train, part.test), np.arange(150))
        assert part.label == "Split"

    def test_stratified_split(self, binary_dataset):
        """Stratified splits should draw the training fraction within each class."""
        (part,) = partitions(binary_dataset, SplitControl(prop=0.75, seed=3, strata="outcome"))
        outcome = binary_dataset.frame["outcome"].to_numpy()
        for level in np.unique(outcome):
            n_level = int(np.sum(outcome == level))
            assert np.sum(outcome[part.train] == level) == round(0.75 * n_level)
        assert np.array_equal(np.union1d(part.train, part.test), np.arange(binary_dataset.n_rows))

    def test_split_without_training_rows(self):
        """A fraction that rounds to no training rows should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            split_draw(3, 0.1, np.random.default_rng(0))
        with pytest.raises(ConfigurationError):
            split_draw(4, 0.1, np.random.default_rng(0), strata=np.array([0, 0, 1, 1]))

    def test_train(self, iris_dataset):
        """Training-set evaluation should train and test on every row."""
        (part,) = partitions(iris_dataset, TrainControl(seed=1))
        assert np.array_equal(part.train, np.arange(150))
        assert np.array_equal(part.test, np.arange(150))


class TestDeterminism:
    """Tests for seed-determined partitions."""

    @pytest.mark.parametrize("control_cls", [CVControl, BootControl, OOBControl, SplitControl])
    def test_same_seed_same_partitions(self, binary_dataset, control_cls):
        """The same seed should reproduce identical partitions."""
        first = list(partitions(binary_dataset, control_cls(seed=123)))
        second = list(partitions(binary_dataset, control_cls(seed=123)))
        for a, b in zip(first, second):
            assert np.array_equal(a.train, b.train)
            assert np.array_equal(a.test, b.test)
            assert a.seed == b.seed

    def test_different_seeds(self, binary_dataset):
        """Different seeds should give different folds."""
        a = list(partitions(binary_dataset, CVControl(folds=5, seed=1)))
        b = list(partitions(binary_dataset, CVControl(folds=5, seed=2)))
        assert any(not np.array_equal(x.test, y.test) for x, y in zip(a, b))

    def test_partition_fit_seeds_distinct(self, binary_dataset):
        """Each partition should carry its own fitting seed."""
        parts = list(partitions(binary_dataset, CVControl(folds=5, seed=1)))
        assert len({p.seed for p in parts}) == 5
