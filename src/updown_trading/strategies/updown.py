"""Short-term multi-factor strategy for 15-minute UP/DOWN markets.

Combines momentum, volatility, pricing deviation, volume anomaly and an
early-market time factor into a gated trade signal with a recommended size.
The strategy itself performs no I/O: the trading loop fetches quotes, bars
and the reference price and hands them to evaluate().
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from updown_trading.config.models import SizingConfig, StrategyConfig
from updown_trading.core.factors import FactorExtractor
from updown_trading.core.position_sizing import PositionSizer
from updown_trading.core.signals import CombinedScore, SignalCombiner
from updown_trading.core.types import FactorSet, PriceBar, QuotePair, ReferencePrice, Signal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Evaluation:
    """Everything computed for one instrument in one cycle."""

    factors: FactorSet
    combined: CombinedScore | None
    signal: Signal | None
    rejection: str | None = None


class UpDownStrategy:
    """Per-instrument evaluation pipeline: factors -> combine -> gate -> size."""

    def __init__(
        self,
        config: StrategyConfig | None = None,
        sizing_config: SizingConfig | None = None,
    ) -> None:
        self.config = config or StrategyConfig()
        self.extractor = FactorExtractor(self.config)
        self.combiner = SignalCombiner(self.config)
        self.sizer = PositionSizer(sizing_config)

    def evaluate(
        self,
        instrument_id: str,
        quotes: QuotePair,
        bars: Sequence[PriceBar],
        reference_price: ReferencePrice | None,
        market_start_time: datetime | None = None,
        now: datetime | None = None,
    ) -> Evaluation:
        """Evaluate one instrument.

        Args:
            instrument_id: Market identifier
            quotes: Current UP/DOWN quotes
            bars: Price bars of the underlying, oldest first
            reference_price: Current reference price, or None
            market_start_time: Start of the current market period, if known
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Evaluation whose signal is set only when strength and confidence
            both clear their minimums
        """
        if len(bars) < self.config.min_history_bars:
            return Evaluation(
                factors=FactorSet(),
                combined=None,
                signal=None,
                rejection="insufficient_history",
            )

        factors = self.extractor.extract(
            bars,
            reference_price,
            quotes.up.probability,
            quotes.up.volume_24h_usd,
            market_start_time=market_start_time,
            now=now,
        )

        combined = self.combiner.combine(factors)
        if combined is None:
            return Evaluation(factors, None, None, rejection="weak_signal")

        if combined.confidence < self.config.min_confidence:
            return Evaluation(factors, combined, None, rejection="low_confidence")

        chosen = quotes.for_outcome(combined.direction)
        size = self.sizer.size(
            combined.confidence,
            combined.strength,
            chosen.probability,
            chosen.liquidity_usd,
        )

        signal = Signal(
            instrument_id=instrument_id,
            direction=combined.direction,
            probability=chosen.probability,
            confidence=combined.confidence,
            strength=combined.strength,
            recommended_size_usd=size,
            reasons=list(combined.reasons),
        )
        logger.debug(
            "Signal for %s: %s conf=%.3f strength=%.3f size=%.2f",
            instrument_id,
            signal.direction,
            signal.confidence,
            signal.strength,
            signal.recommended_size_usd,
        )
        return Evaluation(factors, combined, signal)


__all__ = ["Evaluation", "UpDownStrategy"]
