"""Data model for the liquidation density heatmap engine.

Contains the immutable inputs (liquidation events, price candles), the
derived price axis bound, and the render-ready output (cells + overlay data).
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

Side = Literal["long", "short"]
Status = Literal["ACTIVE", "PARTIAL", "CLEARED"]

VALID_SIDES = ("long", "short")
VALID_STATUSES = ("ACTIVE", "PARTIAL", "CLEARED")


@dataclass(frozen=True)
class LiquidationEvent:
    """One open leveraged position's liquidation trigger.

    Events without an ``entry_time`` are kept as data but never rasterized,
    since no lifetime can be computed for them.
    """

    price: float  # Liquidation trigger price
    notional_usd: float  # Position size in USD
    side: Side = "long"
    status: Status = "ACTIVE"
    entry_time: Optional[float] = None  # Unix seconds when the position was opened

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.price < 0:
            raise ValueError(f"Price must be non-negative: {self.price}")
        if self.notional_usd < 0:
            raise ValueError(f"Notional must be non-negative: {self.notional_usd}")
        if self.side not in VALID_SIDES:
            raise ValueError(f"Invalid side: {self.side}")
        if self.status not in VALID_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")

    @property
    def has_lifetime(self) -> bool:
        """Check if the event carries an opening time."""
        return self.entry_time is not None


@dataclass(frozen=True)
class Candle:
    """Single OHLC candle. Time is unix seconds."""

    time: float
    open: float
    high: float
    low: float
    close: float

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError(f"Candle low {self.low} above high {self.high}")

    def brackets(self, price: float) -> bool:
        """Check if the candle traded through ``price`` (inclusive bounds)."""
        return self.low <= price <= self.high


@dataclass(frozen=True)
class PriceRange:
    """Visible price band of the heatmap."""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    def is_degenerate(self) -> bool:
        """True when the band has no usable width."""
        return not self.span > 0

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class Cell:
    """Sparse output unit: one visible price x time rectangle."""

    time_index: int
    price_low: float
    price_high: float
    intensity: float  # Normalized, in [0, 1]

    def to_dict(self) -> dict:
        return {
            "time_index": self.time_index,
            "price_low": self.price_low,
            "price_high": self.price_high,
            "intensity": self.intensity,
        }


@dataclass(frozen=True)
class DensityHeatmap:
    """Render-ready result of one engine pass.

    An empty heatmap (no cells, no price range) is the "no renderable data"
    outcome; callers render a placeholder for it.
    """

    price_range: Optional[PriceRange] = None
    times: tuple[float, ...] = field(default_factory=tuple)
    closes: tuple[float, ...] = field(default_factory=tuple)
    cells: tuple[Cell, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.cells

    @classmethod
    def empty(cls, times=(), closes=()) -> "DensityHeatmap":
        """Build the no-renderable-data result, keeping the price overlay."""
        return cls(price_range=None, times=tuple(times), closes=tuple(closes), cells=())

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "price_range": self.price_range.to_dict() if self.price_range else None,
            "times": list(self.times),
            "closes": list(self.closes),
            "cells": [cell.to_dict() for cell in self.cells],
        }
