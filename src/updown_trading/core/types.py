"""Core records shared by the decision pipeline and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal

Outcome = Literal["UP", "DOWN"]
OrderSideKind = Literal["OPEN", "CLOSE"]
PositionEventKind = Literal["OPENED", "CLOSED"]

OUTCOMES: tuple[Outcome, Outcome] = ("UP", "DOWN")


@dataclass(slots=True)
class Quote:
    """Current implied probability for one outcome of an instrument."""

    instrument_id: str
    outcome: Outcome
    probability: float
    liquidity_usd: float = 0.0
    volume_24h_usd: float = 0.0


@dataclass(slots=True)
class QuotePair:
    """The UP and DOWN quotes observed for one instrument in one cycle."""

    up: Quote
    down: Quote

    def for_outcome(self, outcome: Outcome) -> Quote:
        return self.up if outcome == "UP" else self.down


@dataclass(slots=True)
class PriceBar:
    """OHLC summary of one fixed-width time bucket."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None


@dataclass(slots=True)
class ReferencePrice:
    """Trusted current price of the underlying asset."""

    symbol: str
    price: float
    observed_at: datetime
    source_tag: str


@dataclass(slots=True, frozen=True)
class FactorSet:
    """Five bounded factor values; 0.0 is the neutral value for each."""

    momentum: float = 0.0
    volatility: float = 0.0
    pricing_deviation: float = 0.0
    volume_anomaly: float = 0.0
    time_factor: float = 0.0


@dataclass(slots=True)
class Signal:
    """Gated directional trade recommendation."""

    instrument_id: str
    direction: Outcome
    probability: float
    confidence: float
    strength: float
    recommended_size_usd: float
    reasons: list[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        return " | ".join(self.reasons)


@dataclass(slots=True)
class Position:
    """Open directional position.

    Fields:
        entry_price: Outcome probability paid on entry, in [0, 1]
        mark_price: Most recently observed outcome probability
        pnl_usd: Unrealized profit/loss in USD
        pnl_percent: Unrealized profit/loss in percent units (-12.5 == -12.5%)
    """

    instrument_id: str
    direction: Outcome
    size_usd: float
    entry_price: float
    mark_price: float
    pnl_usd: float = 0.0
    pnl_percent: float = 0.0
    opened_at: datetime | None = None

    def copy(self) -> Position:
        return replace(self)


@dataclass(slots=True)
class RiskState:
    """Daily realized pnl and open position count owned by the trading loop."""

    cumulative_daily_pnl_usd: float = 0.0
    open_position_count: int = 0

    def record_realized(self, pnl_usd: float) -> None:
        self.cumulative_daily_pnl_usd += pnl_usd

    def reset_daily(self) -> None:
        self.cumulative_daily_pnl_usd = 0.0


@dataclass(slots=True)
class Instrument:
    """Binary UP/DOWN market metadata."""

    id: str
    question: str
    slug: str
    liquidity_usd: float
    start_time: datetime | None = None
    end_time: datetime | None = None
    active: bool = True


@dataclass(slots=True)
class OrderIntent:
    """Order the core wants executed; sizes are notional USD."""

    instrument_id: str
    direction: Outcome
    side: OrderSideKind
    size_usd: float
    price: float


@dataclass(slots=True)
class PositionEvent:
    """Position lifecycle event for audit sinks."""

    kind: PositionEventKind
    position: Position
    order_id: str | None
    timestamp: datetime
    realized_pnl_usd: float | None = None
    reason: str = ""


@dataclass(slots=True)
class AnalysisRecord:
    """Snapshot of one instrument evaluation, recorded whether or not it produced a signal."""

    timestamp: datetime
    instrument_id: str
    slug: str
    question: str
    symbol: str
    up_probability: float
    down_probability: float
    liquidity_usd: float
    volume_24h_usd: float
    factors: FactorSet
    reference_price: float | None
    bar_count: int
    first_close: float | None
    last_close: float | None
    price_change_percent: float | None
    signal: Signal | None = None
    market_start_time: datetime | None = None
    market_end_time: datetime | None = None


__all__ = [
    "Outcome",
    "OrderSideKind",
    "PositionEventKind",
    "OUTCOMES",
    "Quote",
    "QuotePair",
    "PriceBar",
    "ReferencePrice",
    "FactorSet",
    "Signal",
    "Position",
    "RiskState",
    "Instrument",
    "OrderIntent",
    "PositionEvent",
    "AnalysisRecord",
]
