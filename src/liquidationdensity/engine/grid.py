"""Price x time accumulation buffer for the density heatmap."""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from src.liquidationdensity.models.liquidation import PriceRange

DEFAULT_PRICE_BINS = 120


@dataclass
class DensityGrid:
    """Dense ``price_bins x time_bins`` buffer of non-negative floats.

    Row index is the price bin (0 = lowest price), column index is the candle.
    """

    price_range: PriceRange
    price_bins: int
    time_bins: int
    price_step: float
    values: np.ndarray

    def price_bin(self, price: float) -> int:
        """Map a price to its bin, clamped to the grid."""
        b = math.floor((price - self.price_range.min) / self.price_step)
        return max(0, min(self.price_bins - 1, b))

    def price_bounds(self, price_bin: int) -> tuple[float, float]:
        """Lower and upper price of a bin."""
        low = self.price_range.min + price_bin * self.price_step
        return low, low + self.price_step

    def column_sums(self) -> np.ndarray:
        return self.values.sum(axis=0)


def build_grid(
    price_range: Optional[PriceRange],
    time_bins: int,
    price_bins: int = DEFAULT_PRICE_BINS,
) -> Optional[DensityGrid]:
    """Allocate a zeroed grid spanning ``price_range`` with one column per candle.

    Args:
        price_range: Visible price band
        time_bins: Number of candles (no resampling)
        price_bins: Price resolution

    Returns:
        DensityGrid, or None when the axes cannot express any data
        (fewer than 2 time bins, no price bins, or a non-positive price span)
    """
    if price_range is None or time_bins < 2 or price_bins < 1:
        return None
    if not price_range.span > 0:
        return None

    return DensityGrid(
        price_range=price_range,
        price_bins=price_bins,
        time_bins=time_bins,
        price_step=price_range.span / price_bins,
        values=np.zeros((price_bins, time_bins), dtype=np.float64),
    )
