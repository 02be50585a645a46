"""Unit tests for the price x time grid builder."""

import numpy as np
import pytest

from src.liquidationdensity.engine.grid import build_grid
from src.liquidationdensity.models.liquidation import PriceRange


class TestBuildGrid:
    """Tests for build_grid()."""

    def test_allocates_zeroed_buffer(self):
        grid = build_grid(PriceRange(min=100.0, max=220.0), time_bins=10, price_bins=120)

        assert grid is not None
        assert grid.values.shape == (120, 10)
        assert grid.values.dtype == np.float64
        assert not grid.values.any()

    def test_price_step(self):
        grid = build_grid(PriceRange(min=100.0, max=220.0), time_bins=10, price_bins=120)

        assert grid.price_step == pytest.approx(1.0)

    def test_default_resolution_is_120(self):
        grid = build_grid(PriceRange(min=0.0, max=1.0), time_bins=2)

        assert grid.price_bins == 120

    def test_fewer_than_two_time_bins_is_no_data(self):
        assert build_grid(PriceRange(min=0.0, max=1.0), time_bins=1) is None
        assert build_grid(PriceRange(min=0.0, max=1.0), time_bins=0) is None

    def test_non_positive_span_is_no_data(self):
        assert build_grid(PriceRange(min=5.0, max=5.0), time_bins=10) is None
        assert build_grid(PriceRange(min=6.0, max=5.0), time_bins=10) is None

    def test_missing_range_is_no_data(self):
        assert build_grid(None, time_bins=10) is None

    def test_fresh_buffer_per_call(self):
        """Grids are never shared between invocations."""
        price_range = PriceRange(min=0.0, max=10.0)
        first = build_grid(price_range, time_bins=4, price_bins=10)
        second = build_grid(price_range, time_bins=4, price_bins=10)

        first.values[0, 0] = 1.0

        assert second.values[0, 0] == 0.0


class TestDensityGridAxes:
    """Tests for price bin mapping and bin bounds."""

    @pytest.fixture
    def grid(self):
        return build_grid(PriceRange(min=100.0, max=200.0), time_bins=5, price_bins=10)

    def test_price_bin_floor(self, grid):
        assert grid.price_bin(100.0) == 0
        assert grid.price_bin(109.9) == 0
        assert grid.price_bin(155.0) == 5

    def test_price_bin_clamped_at_top(self, grid):
        """The range max maps into the last bin, not one past it."""
        assert grid.price_bin(200.0) == 9

    def test_price_bin_clamped_at_bottom(self, grid):
        assert grid.price_bin(50.0) == 0

    def test_price_bounds(self, grid):
        low, high = grid.price_bounds(3)

        assert low == pytest.approx(130.0)
        assert high == pytest.approx(140.0)

    def test_column_sums(self, grid):
        grid.values[2, 1] = 0.5
        grid.values[7, 1] = 0.25

        sums = grid.column_sums()

        assert sums.tolist() == [0.0, 0.75, 0.0, 0.0, 0.0]
