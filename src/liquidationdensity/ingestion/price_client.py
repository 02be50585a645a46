"""Historical OHLC candles from a CoinGecko-compatible API.

CoinGecko's OHLC endpoint returns rows of ``[timestamp_ms, open, high, low,
close]`` and only accepts a fixed set of ``days`` values, so lookbacks are
snapped up to the nearest supported window.
"""

import logging
from typing import Optional

import httpx

from src.liquidationdensity.engine.config import get_source_config
from src.liquidationdensity.models.liquidation import Candle
from src.liquidationdensity.utils.retry import retry_on_error

logger = logging.getLogger(__name__)

COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "DOGE": "dogecoin",
    "ADA": "cardano",
    "XRP": "ripple",
    "MATIC": "matic-network",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
}
DEFAULT_COIN_ID = "bitcoin"

SUPPORTED_DAYS = (1, 7, 14, 30, 90, 180, 365)


def pick_lookback_days(days: Optional[float] = None) -> int:
    """Snap a lookback to the smallest supported window that covers it (max 365)."""
    d = days if days is not None else 1
    for supported in SUPPORTED_DAYS:
        if d <= supported:
            return supported
    return SUPPORTED_DAYS[-1]


def coin_id_for(symbol: str) -> str:
    """Map a ticker (BTC, eth, ...) to its CoinGecko id; unknown tickers fall back to bitcoin."""
    return COINGECKO_IDS.get(symbol.upper(), DEFAULT_COIN_ID)


def parse_ohlc_rows(rows: list) -> list[Candle]:
    """Convert ``[ts_ms, o, h, l, c]`` rows to candles ascending by time."""
    candles = [
        Candle(
            time=int(row[0]) // 1000,
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
        )
        for row in rows
    ]
    candles.sort(key=lambda c: c.time)
    return candles


class PriceClient:
    """Fetches historical candles for the heatmap time axis."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = get_source_config()
        self.base_url = (base_url or config.price_api_base_url).rstrip("/")
        self.max_retries = max_retries if max_retries is not None else config.max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else config.backoff_seconds
        )

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout if timeout is not None else config.timeout),
            transport=transport,
        )

    def fetch_historical_candles(self, symbol: str, days: Optional[float] = 1) -> list[Candle]:
        """
        Fetch OHLC candles for a ticker.

        Args:
            symbol: Ticker (e.g. BTC)
            days: Lookback in days, snapped to a supported window

        Returns:
            Candles ascending by time; empty list if the fetch or parse fails
        """
        coin_id = coin_id_for(symbol)
        params = {"vs_currency": "usd", "days": pick_lookback_days(days)}

        try:
            response = retry_on_error(
                lambda: self._client.get(f"/coins/{coin_id}/ohlc", params=params),
                max_attempts=self.max_retries,
                backoff_seconds=self.backoff_seconds,
                retry_on=(httpx.TransportError,),
            )
            response.raise_for_status()
            candles = parse_ohlc_rows(response.json())
        except (httpx.HTTPError, ValueError, TypeError, IndexError) as e:
            logger.error(f"Failed to fetch price data for {symbol}: {e}")
            return []

        logger.debug(f"Fetched {len(candles)} candles for {symbol} ({coin_id}, {params['days']}d)")
        return candles

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PriceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
