"""Pydantic models for the liquidation map API payload.

The upstream API reports aggregated liquidation bins, a directional bias and,
optionally, the raw liquidation events the bins were built from. Only the raw
events feed the density heatmap; the bins feed the cross-sectional view.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.liquidationdensity.models.liquidation import LiquidationEvent

BinStatus = Literal["ACTIVE", "CLEARED", "PARTIAL"]
DirectionBias = Literal["UP", "DOWN", "UNBIASED"]


class Bin(BaseModel):
    """Aggregated liquidation bin."""

    mid_price: float
    intensity: float = Field(ge=0, le=100)
    usd: float
    status: BinStatus


class Direction(BaseModel):
    """Directional bias derived from liquidation magnitude above/below price."""

    bias: DirectionBias
    upward_mag: float
    downward_mag: float


class Summary(BaseModel):
    """Market summary. Upstream variants disagree on key names, so extra keys pass through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    price: Optional[float] = None
    current_price: Optional[float] = None
    currentPrice: Optional[float] = None
    close: Optional[float] = None  # Binance-derived payloads report the current price as close
    open_interest: Optional[float] = None
    funding_rate: Optional[float] = None


class RawLiquidation(BaseModel):
    """Single raw liquidation event as reported by the API."""

    price: float = Field(ge=0)
    usd: float = Field(ge=0)
    side: Literal["long", "short"]
    status: BinStatus = "ACTIVE"
    entry_time: Optional[float] = None

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v):
        """Accept LONG/Short etc."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.upper() if isinstance(v, str) else v

    def to_event(self) -> LiquidationEvent:
        return LiquidationEvent(
            price=self.price,
            notional_usd=self.usd,
            side=self.side,
            status=self.status,
            entry_time=self.entry_time,
        )


class LiquidationMap(BaseModel):
    """Liquidation map API response."""

    summary: Summary
    direction: Direction
    bins: List[Bin]
    timestamp: float
    raw_liquidations: List[RawLiquidation] = Field(default_factory=list)

    @property
    def current_price(self) -> Optional[float]:
        return get_current_price(self.summary)

    def to_events(self) -> list[LiquidationEvent]:
        """Convert raw liquidations into engine events."""
        return [raw.to_event() for raw in self.raw_liquidations]


class CrossSectionalPoint(BaseModel):
    """One bar of the cross-sectional (price vs USD) view."""

    price: float
    usd: float
    intensity: float
    status: BinStatus
    above_current_price: bool


def get_current_price(summary: Summary) -> Optional[float]:
    """Resolve the current price from whichever summary key the API used."""
    for candidate in (summary.currentPrice, summary.current_price, summary.price, summary.close):
        if candidate is not None:
            return candidate
    return None


def transform_to_cross_sectional(
    bins: List[Bin], current_price: Optional[float]
) -> list[CrossSectionalPoint]:
    """Build the cross-sectional view, leaving out cleared bins.

    Args:
        bins: Aggregated bins from the liquidation map
        current_price: Current market price, if known

    Returns:
        Points in input order; ``above_current_price`` is False when the
        current price is unknown
    """
    return [
        CrossSectionalPoint(
            price=b.mid_price,
            usd=b.usd,
            intensity=b.intensity,
            status=b.status,
            above_current_price=current_price is not None and b.mid_price > current_price,
        )
        for b in bins
        if b.status != "CLEARED"
    ]
