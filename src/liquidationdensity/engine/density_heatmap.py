"""Liquidation density heatmap engine.

Turns discrete liquidation events plus a candle series into a price x time
intensity field for rendering as a heatmap with a price line overlay.

Pipeline (each stage depends only on the previous one):
1. TRIM: 5th/95th percentile of event prices -> visible price band
2. GRID: price_bins x one-column-per-candle zero buffer
3. RASTERIZE: per event lifetime, weighted + ramped + smoothed, summed
4. NORMALIZE: global max, sub-linear curve, noise threshold -> cells

Insufficient input (fewer than 2 candles, no event with a lifetime, a
zero-width price band) is not an error: the result is an empty heatmap.
"""

import logging
import math
from typing import Collection, Optional, Sequence

from src.liquidationdensity.engine.config import (
    EngineConfig,
    get_engine_config,
    validate_kernel,
)
from src.liquidationdensity.engine.grid import build_grid
from src.liquidationdensity.engine.normalizer import normalize_grid
from src.liquidationdensity.engine.percentile import trim_price_range
from src.liquidationdensity.engine.rasterizer import rasterize_events
from src.liquidationdensity.models.liquidation import (
    Candle,
    DensityHeatmap,
    LiquidationEvent,
)

logger = logging.getLogger(__name__)


def select_events(
    events: Sequence[LiquidationEvent],
    excluded_statuses: Collection[str] = (),
) -> list[LiquidationEvent]:
    """Keep events that have a finite entry time and an allowed status."""
    return [
        e
        for e in events
        if e.entry_time is not None
        and math.isfinite(e.entry_time)
        and e.status not in excluded_statuses
    ]


def calculate_density_heatmap(
    candles: Sequence[Candle],
    events: Sequence[LiquidationEvent],
    price_bins: Optional[int] = None,
    kernel: Optional[Sequence[float]] = None,
    excluded_statuses: Collection[str] = (),
    config: Optional[EngineConfig] = None,
) -> DensityHeatmap:
    """Calculate the liquidation density heatmap.

    Main entry point for the engine. Pure and synchronous: no I/O, no state
    kept between calls.

    Args:
        candles: Candles ascending by time (defines the time axis)
        events: Liquidation events, any order
        price_bins: Price resolution (default from config, 120)
        kernel: Vertical smoothing taps (default from config, 5-tap radius 2)
        excluded_statuses: Event statuses to leave out (e.g. {"CLEARED"})
        config: Engine tunables (default: environment-derived singleton)

    Returns:
        DensityHeatmap; empty (no cells, no price range) when there is
        nothing to render
    """
    config = config or get_engine_config()
    price_bins = price_bins if price_bins is not None else config.price_bins
    if kernel is not None:
        kernel = tuple(kernel)
        validate_kernel(kernel)
    else:
        kernel = config.kernel

    times = [c.time for c in candles]
    closes = [c.close for c in candles]

    if len(candles) < 2:
        logger.debug(f"Need at least 2 candles, got {len(candles)}")
        return DensityHeatmap.empty(times, closes)

    eligible = select_events(events, excluded_statuses)
    if not eligible:
        logger.debug(f"No events with a lifetime among {len(events)}")
        return DensityHeatmap.empty(times, closes)

    price_range = trim_price_range(
        (e.price for e in eligible),
        lower=config.lower_percentile,
        upper=config.upper_percentile,
    )
    grid = build_grid(price_range, time_bins=len(candles), price_bins=price_bins)
    if grid is None:
        logger.debug("Degenerate price range, nothing to render")
        return DensityHeatmap.empty(times, closes)

    rasterize_events(
        grid,
        candles,
        eligible,
        kernel=kernel,
        ramp_length=config.ramp_length,
        weight_exponent=config.weight_exponent,
    )

    cells = normalize_grid(
        grid,
        exponent=config.intensity_exponent,
        min_intensity=config.min_intensity,
    )
    if not cells:
        return DensityHeatmap.empty(times, closes)

    logger.debug(
        f"Heatmap: {len(cells)} cells over {price_bins}x{len(candles)} grid, "
        f"price range [{grid.price_range.min}, {grid.price_range.max}]"
    )

    return DensityHeatmap(
        price_range=grid.price_range,
        times=tuple(times),
        closes=tuple(closes),
        cells=tuple(cells),
    )
