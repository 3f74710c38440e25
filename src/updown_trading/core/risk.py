"""Risk governor: pre-trade admission control and post-trade exit triggers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from updown_trading.config.models import RiskConfig
from updown_trading.core.types import Position, RiskState, Signal

logger = logging.getLogger(__name__)

MIN_ORDER_SIZE_USD = 1.0
LOW_CAPACITY_FRACTION = 0.5
LOW_CAPACITY_SCALE = 0.5
CROWDED_FRACTION = 0.8
CROWDED_SCALE = 0.7


@dataclass(slots=True, frozen=True)
class RiskDecision:
    """Outcome of an admission check; truthy when the entry is allowed."""

    allowed: bool
    reason: str = "ok"

    def __bool__(self) -> bool:
        return self.allowed


class RiskGovernor:
    """Reads positions and risk state and returns decisions; never mutates them."""

    def __init__(self, config: RiskConfig | None = None) -> None:
        self.config = config or RiskConfig()

    def can_open(
        self,
        signal: Signal,
        open_positions: Sequence[Position],
        risk_state: RiskState,
    ) -> RiskDecision:
        """Check whether a new entry is allowed.

        Returns:
            RiskDecision naming the first failing check, or allowed=True
        """
        cfg = self.config

        if risk_state.cumulative_daily_pnl_usd <= -cfg.max_daily_loss_usd:
            decision = RiskDecision(False, "daily_loss_limit")
        elif len(open_positions) >= cfg.max_positions:
            decision = RiskDecision(False, "max_positions")
        elif any(p.instrument_id == signal.instrument_id for p in open_positions):
            decision = RiskDecision(False, "duplicate_position")
        elif not signal.recommended_size_usd >= MIN_ORDER_SIZE_USD:
            decision = RiskDecision(False, "size_too_small")
        else:
            return RiskDecision(True)

        logger.info("Entry blocked for %s: %s", signal.instrument_id, decision.reason)
        return decision

    def adjust(
        self,
        signal: Signal,
        open_positions: Sequence[Position],
        risk_state: RiskState,
    ) -> float:
        """Apply risk-based size reductions to a signal's recommended size."""
        cfg = self.config
        size = min(signal.recommended_size_usd, cfg.max_position_size_usd)

        remaining_capacity = cfg.max_daily_loss_usd + risk_state.cumulative_daily_pnl_usd
        if remaining_capacity < cfg.max_daily_loss_usd * LOW_CAPACITY_FRACTION:
            size *= LOW_CAPACITY_SCALE

        if len(open_positions) >= cfg.max_positions * CROWDED_FRACTION:
            size *= CROWDED_SCALE

        return max(size, MIN_ORDER_SIZE_USD)

    def close_reason(self, position: Position, risk_state: RiskState) -> str | None:
        """Name the exit trigger that fires for a position, if any."""
        cfg = self.config
        if position.pnl_percent <= -cfg.stop_loss_percent:
            return "stop_loss"
        if risk_state.cumulative_daily_pnl_usd + position.pnl_usd <= -cfg.max_daily_loss_usd:
            return "daily_loss"
        return None

    def should_close(self, position: Position, risk_state: RiskState) -> bool:
        return self.close_reason(position, risk_state) is not None


__all__ = ["RiskDecision", "RiskGovernor"]
