"""FastAPI application serving the liquidation density heatmap."""

import logging
import os
import time
from typing import Any, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from src.liquidationdensity.api.heatmap_models import (
    CrossSectionResponse,
    DensityHeatmapMetadata,
    DensityHeatmapResponse,
    HeatmapCellModel,
    PriceRangeModel,
)
from src.liquidationdensity.engine.density_heatmap import calculate_density_heatmap
from src.liquidationdensity.ingestion.liquidation_client import (
    LiquidationMapClient,
    LiquidationMapError,
)
from src.liquidationdensity.ingestion.price_client import PriceClient, pick_lookback_days
from src.liquidationdensity.models.liquidation_map import transform_to_cross_sectional

logger = logging.getLogger(__name__)


class HeatmapCache:
    """In-memory cache with TTL for heatmap responses."""

    def __init__(self, ttl_seconds: int = 300, max_size: int = 100):
        """Initialize cache.

        Args:
            ttl_seconds: Time-to-live for cache entries (default: 5 minutes)
            max_size: Maximum number of cache entries
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._cache: dict[str, tuple[float, Any]] = {}  # key -> (expiry_time, value)
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(ticker: str, lookback_days: int, price_bins: int, excluded: tuple[str, ...]) -> str:
        return f"{ticker}:{lookback_days}:{price_bins}:{','.join(sorted(excluded))}"

    def get(self, key: str) -> Optional[Any]:
        """Get cached response if exists and not expired."""
        if key in self._cache:
            expiry, value = self._cache[key]
            if time.time() < expiry:
                self._hits += 1
                return value
            del self._cache[key]

        self._misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        """Store response in cache, evicting the entry closest to expiry when full."""
        if key not in self._cache and len(self._cache) >= self.max_size:
            oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][0])
            del self._cache[oldest_key]

        self._cache[key] = (time.time() + self.ttl_seconds, value)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0.0
        return {
            "hits": self._hits,
            "misses": self._misses,
            "total_requests": total,
            "hit_rate_percent": round(hit_rate, 2),
            "cached_entries": len(self._cache),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
        }

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0


# Global heatmap cache instance (TTL from env or default 5 minutes)
_heatmap_cache = HeatmapCache(
    ttl_seconds=int(os.getenv("LD_CACHE_TTL", "300")),
    max_size=int(os.getenv("LD_CACHE_MAX_SIZE", "100")),
)


def get_cors_origins() -> list[str]:
    """Get CORS allowed origins from environment.

    In production, set CORS_ALLOWED_ORIGINS to comma-separated list of origins.

    Returns:
        List of allowed origins. Defaults to ["*"] for development.
    """
    origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if origins_env:
        return [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    return ["*"]


def get_liquidation_client():
    """Dependency: liquidation map client, closed after the request."""
    client = LiquidationMapClient()
    try:
        yield client
    finally:
        client.close()


def get_price_client():
    """Dependency: candle client, closed after the request."""
    client = PriceClient()
    try:
        yield client
    finally:
        client.close()


app = FastAPI(
    title="Liquidation Density API",
    description="Render-ready liquidation density heatmaps from liquidation maps and price candles",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "liquidation-density"}


@app.get("/upstream/status")
def upstream_status(liquidations: LiquidationMapClient = Depends(get_liquidation_client)):
    """Report the liquidation map API status."""
    return liquidations.check_status()


@app.get("/cache/stats")
def cache_stats():
    """Get heatmap cache statistics."""
    return _heatmap_cache.get_stats()


@app.delete("/cache/clear")
def cache_clear():
    """Clear the heatmap cache."""
    _heatmap_cache.clear()
    logger.info("Heatmap cache cleared")
    return {"status": "ok"}


@app.get("/liquidations/density-heatmap", response_model=DensityHeatmapResponse)
def get_density_heatmap(
    ticker: str = Query(
        "BTC",
        description="Ticker symbol (e.g., BTC)",
        pattern="^[A-Za-z]{2,10}$",
    ),
    lookback_days: float = Query(
        1, gt=0, le=365, description="Candle lookback in days (snapped to 1/7/14/30/90/180/365)"
    ),
    price_bins: int = Query(120, ge=10, le=500, description="Price axis resolution"),
    exclude_status: Optional[List[Literal["ACTIVE", "PARTIAL", "CLEARED"]]] = Query(
        None, description="Liquidation statuses to leave out of the heatmap"
    ),
    liquidations: LiquidationMapClient = Depends(get_liquidation_client),
    prices: PriceClient = Depends(get_price_client),
):
    """Get the liquidation density heatmap.

    Each raw liquidation is drawn from its entry time until price trades
    through its level, weighted by notional and smoothed vertically. The
    response carries the price axis bounds, the candle closes for the price
    line overlay, and only the cells above the visibility threshold.

    **CACHING**: Responses are cached for 5 minutes (configurable via LD_CACHE_TTL).
    """
    ticker = ticker.upper()
    days = pick_lookback_days(lookback_days)
    excluded = tuple(sorted(set(exclude_status or ())))

    cache_key = HeatmapCache.make_key(ticker, days, price_bins, excluded)
    cached_response = _heatmap_cache.get(cache_key)
    if cached_response is not None:
        logger.debug(f"Cache HIT for {cache_key}")
        return cached_response

    try:
        liquidation_map = liquidations.fetch_liquidation_map()
    except LiquidationMapError as e:
        logger.error(f"Liquidation map fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    candles = prices.fetch_historical_candles(ticker, days)
    events = liquidation_map.to_events()

    heatmap = calculate_density_heatmap(
        candles,
        events,
        price_bins=price_bins,
        excluded_statuses=excluded,
    )

    response = DensityHeatmapResponse(
        ticker=ticker,
        lookback_days=days,
        price_range=(
            PriceRangeModel(min=heatmap.price_range.min, max=heatmap.price_range.max)
            if heatmap.price_range
            else None
        ),
        times=list(heatmap.times),
        closes=list(heatmap.closes),
        cells=[HeatmapCellModel(**cell.to_dict()) for cell in heatmap.cells],
        meta=DensityHeatmapMetadata(
            total_events=len(events),
            rendered_cells=len(heatmap.cells),
            candle_count=len(candles),
            current_price=liquidation_map.current_price,
        ),
    )

    logger.info(
        f"Density heatmap {ticker} {days}d: {len(events)} events, "
        f"{len(candles)} candles -> {len(heatmap.cells)} cells"
    )
    if candles:
        _heatmap_cache.set(cache_key, response)
    else:
        logger.warning(f"No candles for {ticker}, not caching the empty heatmap")
    return response


@app.get("/liquidations/cross-section", response_model=CrossSectionResponse)
def get_cross_section(liquidations: LiquidationMapClient = Depends(get_liquidation_client)):
    """Get liquidation USD by price bin, without cleared bins."""
    try:
        liquidation_map = liquidations.fetch_liquidation_map()
    except LiquidationMapError as e:
        logger.error(f"Liquidation map fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    current_price = liquidation_map.current_price
    return CrossSectionResponse(
        current_price=current_price,
        bias=liquidation_map.direction.bias,
        data=transform_to_cross_sectional(liquidation_map.bins, current_price),
    )
