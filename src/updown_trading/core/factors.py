"""Factor extraction for short-horizon UP/DOWN markets.

Five independent factors are derived from recent price bars, an optional
reference price and the current market quote:

1. Momentum - short-term price change over a few bars
2. Volatility - ATR-style true range relative to price
3. Pricing deviation - quoted UP probability vs. a trend-implied fair value
4. Volume anomaly - 24h market volume vs. typical bar volume
5. Time factor - trend right after the market opens

Every factor is bounded and falls back to the neutral value 0.0 when its
inputs are missing. Each computation is a public method so callers can
inspect factors individually.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from updown_trading.config.models import StrategyConfig
from updown_trading.core.numeric import clamp, finite_or, parse_timeframe
from updown_trading.core.types import FactorSet, PriceBar, ReferencePrice

logger = logging.getLogger(__name__)

MIN_MOMENTUM_BARS = 5
PRICING_TREND_BARS = 5
PRICING_TREND_GAIN = 10.0
FAIR_PROBABILITY_BOUNDS = (0.3, 0.7)
VOLUME_WINDOW = 10
TIME_TREND_BARS = 3
TREND_SCALE = 100.0
DEFAULT_PERIOD_WEIGHT = 0.4


def _change(new: float, old: float) -> float:
    if old == 0:
        return 0.0
    return finite_or((new - old) / old)


class FactorExtractor:
    """Computes the bounded factor set for one instrument.

    Pure: no I/O, no state beyond the configuration. Calling any method
    twice with the same inputs gives the same result.
    """

    def __init__(self, config: StrategyConfig | None = None) -> None:
        self.config = config or StrategyConfig()
        self.bar_seconds = parse_timeframe(self.config.bar_timeframe)

    def extract(
        self,
        bars: Sequence[PriceBar],
        reference_price: ReferencePrice | None,
        quote_probability: float,
        volume_24h: float,
        market_start_time: datetime | None = None,
        now: datetime | None = None,
    ) -> FactorSet:
        """Compute all five factors.

        Args:
            bars: Price bars ordered oldest to newest
            reference_price: Current reference price, or None if unavailable
            quote_probability: Current UP outcome probability
            volume_24h: Market 24h volume in USD
            market_start_time: When the market period started, if known
            now: Evaluation time (defaults to current UTC time)

        Returns:
            FactorSet with every component within its bounds
        """
        return FactorSet(
            momentum=self.momentum(bars),
            volatility=self.volatility(bars),
            pricing_deviation=self.pricing_deviation(bars, reference_price, quote_probability),
            volume_anomaly=self.volume_anomaly(bars, volume_24h),
            time_factor=self.time_factor(bars, market_start_time, now),
        )

    def momentum(self, bars: Sequence[PriceBar]) -> float:
        """Weighted multi-period momentum in [-1, 1]; shorter periods weigh more."""
        if len(bars) < MIN_MOMENTUM_BARS:
            return 0.0

        current = bars[-1].close
        total = 0.0
        weight_sum = 0.0

        for period in self.config.momentum_periods:
            if len(bars) < period:
                continue
            weight = self.config.momentum_weights.get(period, DEFAULT_PERIOD_WEIGHT)
            total += _change(current, bars[-period].close) * weight
            weight_sum += weight

        if weight_sum <= 0:
            return 0.0

        value = finite_or(total / weight_sum * self.config.momentum_scale)
        return clamp(value, -1.0, 1.0)

    def volatility(self, bars: Sequence[PriceBar]) -> float:
        """Normalized average true range over the configured window, in [0, 1]."""
        period = self.config.volatility_period
        if len(bars) < period:
            return 0.0

        window = bars[-period:]
        true_ranges = [
            max(
                curr.high - curr.low,
                abs(curr.high - prev.close),
                abs(curr.low - prev.close),
            )
            for prev, curr in zip(window, window[1:])
        ]

        avg_close = sum(bar.close for bar in window) / len(window)
        if not true_ranges or avg_close <= 0:
            return 0.0

        atr = sum(true_ranges) / len(true_ranges)
        ratio = finite_or(atr / avg_close)
        return clamp(ratio / self.config.high_volatility_multiplier, 0.0, 1.0)

    def pricing_deviation(
        self,
        bars: Sequence[PriceBar],
        reference_price: ReferencePrice | None,
        quote_probability: float,
    ) -> float:
        """Quoted UP probability minus a trend-implied fair probability, in [-1, 1].

        Negative means the market underprices UP (buy UP); positive means it
        overprices UP. Only computed when a reference price is available.
        """
        if reference_price is None or len(bars) < PRICING_TREND_BARS:
            return 0.0

        recent = bars[-PRICING_TREND_BARS:]
        trend = _change(recent[-1].close, recent[0].close)

        lo, hi = FAIR_PROBABILITY_BOUNDS
        estimated = clamp(0.5 + trend * PRICING_TREND_GAIN, lo, hi)
        deviation = finite_or(quote_probability) - estimated

        return clamp(deviation * 2, -1.0, 1.0)

    def volume_anomaly(self, bars: Sequence[PriceBar], volume_24h: float) -> float:
        """24h volume relative to typical bar volume, in [0, 1]."""
        volumes = [
            bar.volume
            for bar in bars[-VOLUME_WINDOW:]
            if bar.volume is not None and finite_or(bar.volume) > 0
        ]
        if not volumes:
            return 0.0

        avg_volume = sum(volumes) / len(volumes)
        bars_per_day = 86400 / self.bar_seconds
        ratio = finite_or(volume_24h) / (avg_volume * bars_per_day)

        return clamp(finite_or(ratio) / self.config.volume_anomaly_threshold, 0.0, 1.0)

    def time_factor(
        self,
        bars: Sequence[PriceBar],
        market_start_time: datetime | None,
        now: datetime | None = None,
    ) -> float:
        """Early-market trend in [-1, 1], zero outside the early window."""
        if not self.config.use_time_factor or market_start_time is None:
            return 0.0
        if len(bars) < TIME_TREND_BARS:
            return 0.0

        now = now or datetime.now(timezone.utc)
        minutes_since_start = (now - market_start_time).total_seconds() / 60
        if not 0 <= minutes_since_start < self.config.early_window_minutes:
            return 0.0

        recent = bars[-TIME_TREND_BARS:]
        trend = _change(recent[-1].close, recent[0].close)

        return clamp(trend * TREND_SCALE, -1.0, 1.0) * self.config.early_market_weight


__all__ = ["FactorExtractor"]
