"""
Property-based tests for the density heatmap engine.

Uses Hypothesis to check order independence, bounded intensities, monotonic
weights and idempotence over generated event sets.
"""

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from src.liquidationdensity.engine.config import EngineConfig
from src.liquidationdensity.engine.density_heatmap import calculate_density_heatmap
from src.liquidationdensity.engine.grid import build_grid
from src.liquidationdensity.engine.rasterizer import event_weight, rasterize_events
from src.liquidationdensity.models.liquidation import Candle, LiquidationEvent, PriceRange

CONFIG = EngineConfig(
    price_bins=40,
    ramp_length=6,
    weight_exponent=0.65,
    intensity_exponent=0.55,
    min_intensity=0.015,
    lower_percentile=0.05,
    upper_percentile=0.95,
)

# Candles wander through 80..120 so some levels get swept and others do not
CANDLES = [
    Candle(time=float(t), open=100.0, high=100.0 + (t % 7) * 3, low=100.0 - (t % 5) * 4, close=100.0)
    for t in range(24)
]

event_strategy = st.builds(
    LiquidationEvent,
    price=st.floats(min_value=50.0, max_value=150.0, allow_nan=False),
    notional_usd=st.floats(min_value=0.0, max_value=1e9, allow_nan=False),
    side=st.sampled_from(["long", "short"]),
    status=st.sampled_from(["ACTIVE", "PARTIAL", "CLEARED"]),
    entry_time=st.one_of(st.none(), st.floats(min_value=-5.0, max_value=30.0, allow_nan=False)),
)


class TestDensityProperties:
    """Property-based tests for engine invariants."""

    @given(events=st.lists(event_strategy, max_size=40), data=st.data())
    @settings(max_examples=200, deadline=None)
    def test_accumulation_is_order_independent(self, events, data):
        """
        Property: any permutation of the events yields a bit-identical grid.
        """
        permuted = data.draw(st.permutations(events))
        timed = [e for e in events if e.entry_time is not None]
        timed_permuted = [e for e in permuted if e.entry_time is not None]

        first = build_grid(PriceRange(min=50.0, max=150.0), time_bins=len(CANDLES), price_bins=40)
        second = build_grid(PriceRange(min=50.0, max=150.0), time_bins=len(CANDLES), price_bins=40)

        rasterize_events(first, CANDLES, timed)
        rasterize_events(second, CANDLES, timed_permuted)

        assert np.array_equal(first.values, second.values)

    @given(events=st.lists(event_strategy, max_size=40))
    @settings(max_examples=200, deadline=None)
    def test_intensities_bounded(self, events):
        """
        Property: every emitted intensity is in [0.015, 1] and finite.
        """
        heatmap = calculate_density_heatmap(CANDLES, events, config=CONFIG)

        for cell in heatmap.cells:
            assert 0.015 <= cell.intensity <= 1.0
            assert np.isfinite(cell.price_low) and np.isfinite(cell.price_high)
            assert 0 <= cell.time_index < len(CANDLES)

    @given(events=st.lists(event_strategy, max_size=30))
    @settings(max_examples=100, deadline=None)
    def test_idempotent(self, events):
        """
        Property: two invocations with identical inputs give identical output.
        """
        assert calculate_density_heatmap(CANDLES, events, config=CONFIG) == calculate_density_heatmap(
            CANDLES, events, config=CONFIG
        )

    @given(
        a=st.floats(min_value=0.0, max_value=1e9, allow_nan=False),
        b=st.floats(min_value=0.0, max_value=1e9, allow_nan=False),
    )
    @settings(max_examples=500)
    def test_weight_monotonic_in_notional(self, a, b):
        """
        Property: larger notional never yields a smaller pre-ramp weight.
        """
        low, high = sorted((a, b))
        max_notional = max(high, 1.0)

        assert event_weight(low, max_notional) <= event_weight(high, max_notional)
        assert 0.0 <= event_weight(high, max_notional) <= 1.0

    @given(events=st.lists(event_strategy, min_size=1, max_size=30))
    @settings(max_examples=100, deadline=None)
    def test_events_after_window_contribute_nothing(self, events):
        """
        Property: shifting every entry time past the last candle empties the heatmap.
        """
        late = [
            LiquidationEvent(
                price=e.price,
                notional_usd=e.notional_usd,
                side=e.side,
                status=e.status,
                entry_time=100.0,
            )
            for e in events
        ]

        assert calculate_density_heatmap(CANDLES, late, config=CONFIG).is_empty
