"""Position sizing module for converting signal quality into a notional entry size.

The sizing logic scales a base notional by:
1. Signal confidence and strength
2. A derate for outcomes the market already prices as likely
3. A cap relative to the outcome's available liquidity

The result is clamped to a fixed floor and ceiling. This is purely a sizing
layer - it does NOT decide whether to trade; risk limits are applied later
by the RiskGovernor.
"""

from __future__ import annotations

import logging

from updown_trading.config.models import SizingConfig
from updown_trading.core.numeric import clamp, finite_or

logger = logging.getLogger(__name__)


class PositionSizer:
    """Turns confidence, strength and liquidity into a bounded USD size."""

    def __init__(self, config: SizingConfig | None = None) -> None:
        self.config = config or SizingConfig()

    def size(
        self,
        confidence: float,
        strength: float,
        probability: float,
        liquidity_usd: float,
    ) -> float:
        """Compute the recommended notional size for an entry.

        Args:
            confidence: Combined signal confidence, in [0, 1]
            strength: Signal strength, in [0, 1]
            probability: Current probability of the chosen outcome
            liquidity_usd: Liquidity available on the chosen outcome

        Returns:
            Size in USD within [min_size_usd, max_size_usd]. The floor takes
            precedence over the liquidity cap when the two conflict.

        Example:
            >>> PositionSizer().size(1.0, 0.75, 0.45, 20_000)
            75.0
        """
        cfg = self.config

        confidence = clamp(finite_or(confidence), 0.0, 1.0)
        strength = clamp(finite_or(strength), 0.0, 1.0)
        probability = finite_or(probability)
        liquidity_usd = max(0.0, finite_or(liquidity_usd))

        # Outcomes already priced as likely leave less edge
        derate = cfg.high_probability_derate if probability > cfg.high_probability_threshold else 1.0

        raw = cfg.base_size_usd * confidence * strength * derate
        capped = min(raw, liquidity_usd * cfg.liquidity_cap_fraction)
        size = max(cfg.min_size_usd, min(capped, cfg.max_size_usd))

        logger.debug(
            "Sized entry: raw=%.2f capped=%.2f final=%.2f (conf=%.3f strength=%.3f prob=%.3f liq=%.0f)",
            raw,
            capped,
            size,
            confidence,
            strength,
            probability,
            liquidity_usd,
        )
        return size


__all__ = ["PositionSizer"]
