"""Unit tests for nearest-rank percentile trimming."""

import math

import pytest

from src.liquidationdensity.engine.percentile import percentile, trim_price_range
from src.liquidationdensity.models.liquidation import PriceRange


class TestPercentile:
    """Tests for percentile()."""

    def test_nearest_rank_selection(self):
        """Index is floor(n * p) on the sorted sample."""
        values = list(range(1, 101))  # 1..100

        assert percentile(values, 0.05) == 6  # sorted[5]
        assert percentile(values, 0.95) == 96  # sorted[95]

    def test_unsorted_input(self):
        """Sample order does not matter."""
        assert percentile([5, 1, 4, 2, 3], 0.5) == 3

    def test_small_sample_uses_floor(self):
        """With 4 values, 5th -> index 0 and 95th -> index 3."""
        values = [10.0, 40.0, 20.0, 30.0]

        assert percentile(values, 0.05) == 10.0
        assert percentile(values, 0.95) == 40.0

    def test_p_one_clamps_to_last(self):
        assert percentile([1, 2, 3], 1.0) == 3

    def test_empty_sample_raises(self):
        with pytest.raises(ValueError, match="non-empty"):
            percentile([], 0.5)

    def test_p_out_of_bounds_raises(self):
        with pytest.raises(ValueError, match="p must be"):
            percentile([1, 2, 3], 1.5)


class TestTrimPriceRange:
    """Tests for trim_price_range()."""

    def test_excludes_outliers(self):
        """Extreme prices beyond the 5th/95th percentile are trimmed."""
        prices = [float(p) for p in range(100, 120)] + [1.0, 10_000.0]

        price_range = trim_price_range(prices)

        # 22 values: floor(1.1)=1 -> 100.0, floor(20.9)=20 -> 119.0
        assert price_range == PriceRange(min=100.0, max=119.0)

    def test_accepts_generator(self):
        price_range = trim_price_range(p for p in [1.0, 2.0, 3.0, 4.0])
        assert price_range == PriceRange(min=1.0, max=4.0)

    def test_all_equal_prices_is_no_data(self):
        """Zero-width range reports no renderable data instead of dividing by zero."""
        assert trim_price_range([100.0] * 10) is None

    def test_single_price_is_no_data(self):
        assert trim_price_range([100.0]) is None

    def test_empty_is_no_data(self):
        assert trim_price_range([]) is None

    def test_non_finite_bound_is_no_data(self):
        assert trim_price_range([1.0, math.inf]) is None

    def test_custom_percentiles(self):
        prices = list(range(0, 10))

        price_range = trim_price_range(prices, lower=0.0, upper=1.0)

        assert price_range == PriceRange(min=0, max=9)
