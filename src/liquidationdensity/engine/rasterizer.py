"""Event rasterization for the liquidation density heatmap.

Each liquidation event is live from the first candle at or after its entry
time until the first candle whose range trades through its price (the level
is swept). While live it adds a weighted, vertically smoothed band to the
grid, fading in over the first few candles.

Key rules:
- Start index: first candle with time >= entry_time (none -> no contribution)
- End index: first candle from start with low <= price <= high (none -> end of series)
- Weight: (notional / max_notional) ** 0.65
- Ramp: linear 1/ramp_length .. 1 over the first ramp_length candles
- Splat: symmetric kernel centred on the price bin, clipped at grid edges
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from src.liquidationdensity.engine.config import DEFAULT_KERNEL
from src.liquidationdensity.engine.grid import DensityGrid
from src.liquidationdensity.models.liquidation import Candle, LiquidationEvent

logger = logging.getLogger(__name__)

DEFAULT_RAMP_LENGTH = 6
DEFAULT_WEIGHT_EXPONENT = 0.65


@dataclass
class RasterStats:
    """Counters for one rasterization pass."""

    rasterized: int = 0
    out_of_range: int = 0
    not_started: int = 0
    zero_lifetime: int = 0


def canonical_order(events: Sequence[LiquidationEvent]) -> list[LiquidationEvent]:
    """Sort events so that floating-point accumulation never depends on input order."""
    return sorted(
        events,
        key=lambda e: (e.entry_time, e.price, e.notional_usd, e.side, e.status),
    )


def find_start_index(candle_times: Sequence[float], entry_time: float) -> Optional[int]:
    """Index of the first candle with ``time >= entry_time``.

    Returns:
        Candle index, or None when the event starts after the last candle
    """
    index = bisect.bisect_left(candle_times, entry_time)
    return index if index < len(candle_times) else None


def find_end_index(candles: Sequence[Candle], price: float, start_index: int) -> int:
    """Index of the first candle from ``start_index`` that brackets ``price``.

    Returns:
        Candle index, or ``len(candles)`` when the level is never swept
    """
    for i in range(start_index, len(candles)):
        if candles[i].brackets(price):
            return i
    return len(candles)


def event_weight(
    notional_usd: float,
    max_notional: float,
    exponent: float = DEFAULT_WEIGHT_EXPONENT,
) -> float:
    """Pre-ramp weight of an event relative to the largest event in the pass."""
    if max_notional <= 0:
        return 0.0
    return (notional_usd / max_notional) ** exponent


def ramp_profile(length: int, ramp_length: int = DEFAULT_RAMP_LENGTH) -> np.ndarray:
    """Fade-in multipliers for a lifetime of ``length`` candles."""
    steps = np.arange(1, length + 1, dtype=np.float64) / ramp_length
    return np.minimum(steps, 1.0)


def splat_event(
    grid: DensityGrid,
    price_bin: int,
    start_index: int,
    end_index: int,
    weight: float,
    kernel: Sequence[float] = DEFAULT_KERNEL,
    ramp_length: int = DEFAULT_RAMP_LENGTH,
) -> None:
    """Add one event's smoothed, ramped band to the grid (summation only)."""
    if end_index <= start_index or weight <= 0:
        return

    base = weight * ramp_profile(end_index - start_index, ramp_length)
    radius = len(kernel) // 2

    for offset, tap in enumerate(kernel):
        b = price_bin + offset - radius
        if b < 0 or b >= grid.price_bins:
            continue
        grid.values[b, start_index:end_index] += base * tap


def rasterize_events(
    grid: DensityGrid,
    candles: Sequence[Candle],
    events: Sequence[LiquidationEvent],
    kernel: Sequence[float] = DEFAULT_KERNEL,
    ramp_length: int = DEFAULT_RAMP_LENGTH,
    weight_exponent: float = DEFAULT_WEIGHT_EXPONENT,
) -> RasterStats:
    """Accumulate all events into the grid.

    Events must already be filtered to those with an entry time and an
    allowed status. The maximum notional is taken over all of them, including
    events that end up outside the price range.

    Args:
        grid: Target buffer (one column per candle)
        candles: Candles ascending by time
        events: Eligible liquidation events, any order
        kernel: Vertical smoothing taps
        ramp_length: Fade-in length in candles
        weight_exponent: Sub-linear weight curve exponent

    Returns:
        RasterStats with per-reason skip counts
    """
    stats = RasterStats()
    if not events:
        return stats

    candle_times = [c.time for c in candles]
    max_notional = max(e.notional_usd for e in events)

    for event in canonical_order(events):
        if not grid.price_range.contains(event.price):
            stats.out_of_range += 1
            continue

        start_index = find_start_index(candle_times, event.entry_time)
        if start_index is None:
            stats.not_started += 1
            continue

        end_index = find_end_index(candles, event.price, start_index)
        if end_index <= start_index:
            stats.zero_lifetime += 1
            continue

        splat_event(
            grid,
            price_bin=grid.price_bin(event.price),
            start_index=start_index,
            end_index=end_index,
            weight=event_weight(event.notional_usd, max_notional, weight_exponent),
            kernel=kernel,
            ramp_length=ramp_length,
        )
        stats.rasterized += 1

    logger.debug(
        f"Rasterized {stats.rasterized}/{len(events)} events "
        f"(out_of_range={stats.out_of_range}, not_started={stats.not_started}, "
        f"zero_lifetime={stats.zero_lifetime})"
    )
    return stats
