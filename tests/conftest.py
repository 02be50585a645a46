"""Pytest configuration and shared fixtures."""

import pytest

from src.liquidationdensity.engine.config import EngineConfig
from src.liquidationdensity.models.liquidation import Candle, LiquidationEvent


def make_candles(count: int, low: float = 120.0, high: float = 130.0, start: float = 0.0, step: float = 1.0):
    """Flat candles that never trade below ``low`` or above ``high``."""
    mid = (low + high) / 2
    return [
        Candle(time=start + i * step, open=mid, high=high, low=low, close=mid)
        for i in range(count)
    ]


@pytest.fixture
def candle_factory():
    """Factory for flat candle series (see make_candles)."""
    return make_candles


@pytest.fixture
def engine_config():
    """Engine tunables pinned to defaults, independent of HEATMAP_* env vars."""
    return EngineConfig(
        price_bins=120,
        ramp_length=6,
        weight_exponent=0.65,
        intensity_exponent=0.55,
        min_intensity=0.015,
        lower_percentile=0.05,
        upper_percentile=0.95,
    )


@pytest.fixture
def flat_candles():
    """Ten candles at times 0..9 trading in [120, 130]."""
    return make_candles(10)


@pytest.fixture
def spread_events():
    """Twenty timed events priced 90..109, all below the flat candle range."""
    return [
        LiquidationEvent(
            price=90.0 + i,
            notional_usd=1000.0 * (i + 1),
            side="long",
            status="ACTIVE",
            entry_time=float(i % 5),
        )
        for i in range(20)
    ]


@pytest.fixture
def liquidation_map_payload():
    """Liquidation map API response with bins and raw liquidations."""
    return {
        "summary": {"close": 67000.0, "open_interest": 1.2e10, "funding_rate": 0.0001, "high": 67500.0},
        "direction": {"bias": "UP", "upward_mag": 3.2, "downward_mag": 1.4},
        "bins": [
            {"mid_price": 65000.0, "intensity": 40.0, "usd": 12.5, "status": "ACTIVE"},
            {"mid_price": 66000.0, "intensity": 10.0, "usd": 3.1, "status": "CLEARED"},
            {"mid_price": 68000.0, "intensity": 75.0, "usd": 20.0, "status": "PARTIAL"},
        ],
        "timestamp": 1730160000,
        "raw_liquidations": [
            {"price": 64000.0, "usd": 500000.0, "side": "long", "status": "ACTIVE", "entry_time": 1730000000},
            {"price": 65000.0, "usd": 900000.0, "side": "long", "status": "ACTIVE", "entry_time": 1730003600},
            {"price": 66000.0, "usd": 100000.0, "side": "long", "status": "CLEARED", "entry_time": 1730007200},
            {"price": 69000.0, "usd": 750000.0, "side": "short", "status": "PARTIAL", "entry_time": 1730010800},
            {"price": 70000.0, "usd": 250000.0, "side": "short", "status": "ACTIVE", "entry_time": None},
        ],
    }


@pytest.fixture
def ohlc_rows():
    """CoinGecko OHLC rows ([ts_ms, o, h, l, c]) that never reach the raw liquidation prices."""
    base_ms = 1730000000 * 1000
    return [
        [base_ms + i * 1_800_000, 67000.0, 67400.0, 66800.0, 67100.0 + i]
        for i in range(12)
    ]
