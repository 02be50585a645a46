"""Robust price bounds via nearest-rank percentiles."""

import math
from typing import Iterable, Optional

from src.liquidationdensity.models.liquidation import PriceRange


def percentile(values: Iterable[float], p: float) -> float:
    """Nearest-rank percentile of a numeric sample.

    Selects ``sorted(values)[floor(n * p)]``, clamped to the last element so
    that ``p == 1.0`` stays in range.

    Args:
        values: Non-empty numeric sample (any order)
        p: Fraction in [0, 1]

    Returns:
        The selected sample value

    Raises:
        ValueError: If the sample is empty or p is outside [0, 1]
    """
    ordered = sorted(values)
    if not ordered:
        raise ValueError("percentile() requires a non-empty sample")
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"p must be in [0, 1], got {p}")

    index = min(math.floor(len(ordered) * p), len(ordered) - 1)
    return ordered[index]


def trim_price_range(
    prices: Iterable[float],
    lower: float = 0.05,
    upper: float = 0.95,
) -> Optional[PriceRange]:
    """Compute the visible price band, excluding outliers at both ends.

    Args:
        prices: Event prices
        lower: Lower percentile (default: 5th)
        upper: Upper percentile (default: 95th)

    Returns:
        PriceRange, or None when there is nothing to render (empty sample,
        non-finite bound, or a zero-width band)
    """
    sample = list(prices)
    if not sample:
        return None

    low = percentile(sample, lower)
    high = percentile(sample, upper)
    if not (math.isfinite(low) and math.isfinite(high)):
        return None

    price_range = PriceRange(min=low, max=high)
    if price_range.is_degenerate():
        return None
    return price_range
