"""Tests for the quantized split generator."""

import itertools
import math

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from fundsplit.exceptions import ConfigError
from fundsplit.splits import SplitGenerator

GRIDS = [(0.5, 2), (0.25, 3), (0.1, 3), (0.2, 4), (0.05, 3), (1.0, 3), (0.3, 3)]


def brute_force(granularity, fund_count):
    """Filtered cartesian product of grid step counts, in product order."""
    steps = int(math.floor(1.0 / granularity + 1e-9))
    return [
        combo
        for combo in itertools.product(range(steps + 1), repeat=fund_count - 1)
        if sum(combo) <= steps
    ]


class TestSplitProperties:
    """Every generated split is a valid allocation."""

    @pytest.mark.parametrize("granularity,fund_count", GRIDS)
    def test_length_sign_and_sum(self, granularity, fund_count):
        for split in SplitGenerator(granularity, fund_count):
            assert len(split) == fund_count
            assert all(w >= 0 for w in split)
            assert abs(sum(split) - 1.0) < 1e-6

    @pytest.mark.parametrize("granularity,fund_count", [(0.1, 3), (0.05, 4), (0.25, 2)])
    def test_leading_weights_are_grid_multiples(self, granularity, fund_count):
        for split in SplitGenerator(granularity, fund_count):
            for w in split[:-1]:
                assert abs(w / granularity - round(w / granularity)) < 1e-6

    def test_grid_is_rounded(self):
        """Grid values carry no accumulated float error."""
        generator = SplitGenerator(0.1, 3)

        assert generator.grid == [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]

    def test_last_weight_is_remainder(self):
        """With a step that does not divide 1, the last weight takes the rest."""
        splits = list(SplitGenerator(0.3, 2))

        assert [split[0] for split in splits] == [0.0, 0.3, 0.6, 0.9]
        assert [split[1] for split in splits] == pytest.approx([1.0, 0.7, 0.4, 0.1])

    def test_last_weight_is_not_rounded(self):
        """The last weight is exactly one minus the grid prefix."""
        for split in SplitGenerator(0.3, 3):
            assert split[-1] == max(1.0 - math.fsum(split[:-1]), 0.0)
        assert list(SplitGenerator(0.3, 2))[-1][1] == 1.0 - 0.9

    def test_tiny_granularity_builds_no_grid(self):
        """Construction cost does not grow with the number of grid steps."""
        generator = SplitGenerator(1e-9, 2)

        assert generator.steps == 10 ** 9
        assert generator.count() == 10 ** 9 + 1
        assert generator.weight(123) == 0.0
        assert next(iter(generator)) == (0.0, 1.0)


class TestCardinality:
    """count() matches the enumeration and a brute-force product."""

    @pytest.mark.parametrize("granularity,fund_count", GRIDS)
    def test_count_matches_brute_force(self, granularity, fund_count):
        generator = SplitGenerator(granularity, fund_count)

        expected = len(brute_force(granularity, fund_count))
        assert generator.count() == expected
        assert len(list(generator)) == expected
        assert len(generator) == expected

    def test_known_counts(self):
        assert SplitGenerator(0.05, 3).count() == 231
        assert SplitGenerator(0.5, 2).count() == 3

    def test_large_grid_counted_without_enumeration(self):
        """0.01 with 5 funds: 101^4 raw combinations, C(104, 4) valid ones."""
        assert SplitGenerator(0.01, 5).count() == math.comb(104, 4)


class TestOrder:
    """Enumeration follows cartesian-product order and is restartable."""

    @pytest.mark.parametrize("granularity,fund_count", [(0.25, 3), (0.2, 4)])
    def test_product_order(self, granularity, fund_count):
        generator = SplitGenerator(granularity, fund_count)

        expected = [
            tuple(generator.grid[k] for k in combo)
            for combo in brute_force(granularity, fund_count)
        ]
        assert [split[:-1] for split in generator] == expected

    def test_restartable(self):
        generator = SplitGenerator(0.1, 3)

        assert list(generator) == list(generator)

    def test_lazy(self):
        """Taking the first split does not enumerate the grid."""
        generator = SplitGenerator(0.01, 5)

        assert next(iter(generator)) == (0.0, 0.0, 0.0, 0.0, 1.0)


class TestValidation:
    """Invalid grids are rejected with ConfigError."""

    @pytest.mark.parametrize("granularity", [0, -0.1, 1.5, float("nan"), float("inf"), "0.1", True])
    def test_bad_granularity(self, granularity):
        with pytest.raises(ConfigError):
            SplitGenerator(granularity, 3)

    @pytest.mark.parametrize("fund_count", [0, 1, -2, 2.5, "3", True])
    def test_bad_fund_count(self, fund_count):
        with pytest.raises(ConfigError):
            SplitGenerator(0.1, fund_count)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            SplitGenerator(0.0, 3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
