"""Pydantic models for density heatmap API endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.liquidationdensity.models.liquidation_map import CrossSectionalPoint


class PriceRangeModel(BaseModel):
    """Visible price band of the heatmap."""

    min: float = Field(..., description="Lower bound (5th percentile of event prices)")
    max: float = Field(..., description="Upper bound (95th percentile of event prices)")


class HeatmapCellModel(BaseModel):
    """Single visible cell."""

    time_index: int = Field(..., description="Candle index (column)", ge=0)
    price_low: float = Field(..., description="Lower price of the bin")
    price_high: float = Field(..., description="Upper price of the bin")
    intensity: float = Field(..., description="Normalized intensity", ge=0.0, le=1.0)


class DensityHeatmapMetadata(BaseModel):
    """Counts and context for a heatmap response."""

    total_events: int = Field(..., description="Raw liquidations received from upstream", ge=0)
    rendered_cells: int = Field(..., description="Cells above the visibility threshold", ge=0)
    candle_count: int = Field(..., description="Candles on the time axis", ge=0)
    current_price: Optional[float] = Field(None, description="Current market price")


class DensityHeatmapResponse(BaseModel):
    """Response from the density heatmap endpoint."""

    ticker: str = Field(..., description="Ticker symbol")
    lookback_days: int = Field(..., description="Candle lookback window actually used")
    price_range: Optional[PriceRangeModel] = Field(
        None, description="Price axis bounds; null when there is nothing to render"
    )
    times: List[float] = Field(..., description="Candle times (unix seconds)")
    closes: List[float] = Field(..., description="Candle closes for the price overlay")
    cells: List[HeatmapCellModel] = Field(..., description="Visible cells")
    meta: DensityHeatmapMetadata
    timestamp: datetime = Field(
        default_factory=datetime.now, description="Response generation timestamp"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "ticker": "BTC",
                "lookback_days": 1,
                "price_range": {"min": 61250.0, "max": 72400.0},
                "times": [1730160000, 1730161800],
                "closes": [67012.5, 67120.0],
                "cells": [
                    {
                        "time_index": 1,
                        "price_low": 63600.0,
                        "price_high": 63692.9,
                        "intensity": 0.42,
                    }
                ],
                "meta": {
                    "total_events": 812,
                    "rendered_cells": 1,
                    "candle_count": 2,
                    "current_price": 67120.0,
                },
                "timestamp": "2024-10-29T12:00:00",
            }
        }
    }


class CrossSectionResponse(BaseModel):
    """Response from the cross-section endpoint."""

    current_price: Optional[float] = None
    bias: str = Field(..., description="UP, DOWN or UNBIASED")
    data: List[CrossSectionalPoint]
