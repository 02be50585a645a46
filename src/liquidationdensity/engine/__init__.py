"""Liquidation density heatmap engine.

This module provides:
- trim_price_range: robust 5th/95th percentile price band
- build_grid: price x time accumulation buffer
- rasterize_events: per-event lifetime, weight, ramp and smoothing
- normalize_grid: global-max normalization into visible cells
- calculate_density_heatmap: the four stages wired together
"""

from src.liquidationdensity.engine.config import (
    DEFAULT_KERNEL,
    EngineConfig,
    SourceConfig,
    get_engine_config,
    get_source_config,
    load_engine_config,
)
from src.liquidationdensity.engine.density_heatmap import (
    calculate_density_heatmap,
    select_events,
)
from src.liquidationdensity.engine.grid import DensityGrid, build_grid
from src.liquidationdensity.engine.normalizer import normalize_grid
from src.liquidationdensity.engine.percentile import percentile, trim_price_range
from src.liquidationdensity.engine.rasterizer import (
    RasterStats,
    event_weight,
    find_end_index,
    find_start_index,
    rasterize_events,
)

__all__ = [
    # Config
    "DEFAULT_KERNEL",
    "EngineConfig",
    "SourceConfig",
    "get_engine_config",
    "get_source_config",
    "load_engine_config",
    # Stages
    "percentile",
    "trim_price_range",
    "DensityGrid",
    "build_grid",
    "RasterStats",
    "event_weight",
    "find_start_index",
    "find_end_index",
    "rasterize_events",
    "normalize_grid",
    # Entry point
    "calculate_density_heatmap",
    "select_events",
]
