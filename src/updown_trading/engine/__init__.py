"""Trading loop and position bookkeeping."""

from updown_trading.engine.ledger import PositionLedger, compute_pnl
from updown_trading.engine.trading_loop import (
    CycleReport,
    LoopState,
    TradingLoop,
    TradingSessionResult,
)

__all__ = [
    "PositionLedger",
    "compute_pnl",
    "TradingLoop",
    "LoopState",
    "CycleReport",
    "TradingSessionResult",
]
