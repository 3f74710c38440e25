"""Trading loop that evaluates UP/DOWN markets every polling cycle.

Each cycle lists markets, evaluates every eligible instrument through the
strategy, admits entries through the risk governor, and then re-marks open
positions and closes those that hit an exit trigger. The loop owns the
position ledger and the risk state; nothing else mutates them.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from updown_trading.config.models import LoopConfig
from updown_trading.core.errors import (
    DataUnavailableError,
    InvariantViolation,
    OrderRejectedError,
)
from updown_trading.core.risk import RiskGovernor
from updown_trading.core.types import (
    AnalysisRecord,
    Instrument,
    OrderIntent,
    Position,
    PositionEvent,
    PriceBar,
    QuotePair,
    ReferencePrice,
    RiskState,
    Signal,
)
from updown_trading.data.symbols import SymbolResolver
from updown_trading.engine.ledger import PositionLedger
from updown_trading.exchange.base import (
    HistorySource,
    MarketSource,
    ObservabilitySink,
    OrderSink,
    QuoteSource,
    ReferencePriceSource,
)
from updown_trading.storage.recorder import LoggingSink
from updown_trading.strategies.updown import Evaluation, UpDownStrategy

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    """Phases of the trading loop."""

    IDLE = "IDLE"
    FETCHING = "FETCHING"
    SCORING = "SCORING"
    RISK_CHECK = "RISK_CHECK"
    ACTING = "ACTING"
    SETTLING = "SETTLING"
    STOPPED = "STOPPED"


@dataclass
class CycleReport:
    """What happened during one cycle."""

    started_at: datetime
    instruments_seen: int = 0
    analyzed: int = 0
    signals: int = 0
    opened: int = 0
    closed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class TradingSessionResult:
    """Totals for a run_forever session.

    Attributes:
        cycles: Number of completed cycles
        signals: Signals emitted across all cycles
        opened: Positions opened
        closed: Positions closed
        errors: Error messages encountered
        start_time: Session start time
        end_time: Session end time (None if still running)
    """

    cycles: int = 0
    signals: int = 0
    opened: int = 0
    closed: int = 0
    errors: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    def add(self, report: CycleReport) -> None:
        self.cycles += 1
        self.signals += report.signals
        self.opened += report.opened
        self.closed += report.closed
        self.errors.extend(report.errors)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TradingLoop:
    """Single-threaded polling loop over UP/DOWN instruments.

    Attributes:
        ledger: Open positions, keyed by instrument id
        risk_state: Daily realized pnl and open position count
        trading_enabled: False in data-collection mode (no order sink); signals
            are still evaluated and recorded but no positions are opened
    """

    def __init__(
        self,
        markets: MarketSource,
        quotes: QuoteSource,
        history: HistorySource,
        reference: ReferencePriceSource,
        strategy: UpDownStrategy,
        risk_governor: RiskGovernor,
        *,
        order_sink: OrderSink | None = None,
        sink: ObservabilitySink | None = None,
        symbol_resolver: SymbolResolver | None = None,
        config: LoopConfig | None = None,
        ledger: PositionLedger | None = None,
        risk_state: RiskState | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.markets = markets
        self.quotes = quotes
        self.history = history
        self.reference = reference
        self.strategy = strategy
        self.risk_governor = risk_governor
        self.order_sink = order_sink
        self.sink = sink or LoggingSink()
        self.symbol_resolver = symbol_resolver or SymbolResolver()
        self.config = config or LoopConfig()
        self.ledger = ledger or PositionLedger()
        self.risk_state = risk_state or RiskState()
        self._sleep = sleep
        self._clock = clock

        self.trading_enabled = order_sink is not None
        self._state = LoopState.IDLE
        self._stop_event = threading.Event()
        self._current_day: date | None = None

        logger.info(
            "TradingLoop initialized: trading_enabled=%s, poll_interval=%.1fs, max_positions=%d",
            self.trading_enabled,
            self.config.poll_interval_sec,
            self.risk_governor.config.max_positions,
        )

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request a graceful stop; the cycle in flight is completed first."""
        if not self._stop_event.is_set():
            logger.info("Stop requested; finishing current cycle")
        self._stop_event.set()
        if self._state == LoopState.IDLE:
            self._state = LoopState.STOPPED

    def run_forever(self, max_cycles: int | None = None) -> TradingSessionResult:
        """Run cycles until stop() is called (or max_cycles cycles completed).

        A loop that is already stopped, or has a pending stop request, runs no
        cycles: STOPPED is terminal.

        Returns:
            TradingSessionResult with session totals
        """
        result = TradingSessionResult(start_time=self._clock())
        if self._stop_event.is_set() or self._state == LoopState.STOPPED:
            logger.warning("Stop already requested; trading loop not started")
            self._state = LoopState.STOPPED
            result.end_time = result.start_time
            return result

        logger.info("Starting trading loop")

        try:
            while not self._stop_event.is_set():
                result.add(self.run_once())
                if max_cycles is not None and result.cycles >= max_cycles:
                    break
                self._stop_event.wait(self.config.poll_interval_sec)

        except KeyboardInterrupt:
            logger.info("Trading loop interrupted by user")

        finally:
            self._state = LoopState.STOPPED
            result.end_time = self._clock()
            logger.info(
                "Trading session ended: cycles=%d, signals=%d, opened=%d, closed=%d, errors=%d",
                result.cycles,
                result.signals,
                result.opened,
                result.closed,
                len(result.errors),
            )

        return result

    def run_once(self) -> CycleReport:
        """Execute one full cycle: entries for all instruments, then exits."""
        now = self._clock()
        report = CycleReport(started_at=now)

        if self._state == LoopState.STOPPED:
            logger.warning("run_once called on a stopped loop; ignoring")
            return report

        self._roll_day(now)

        self._state = LoopState.FETCHING
        for index, instrument in enumerate(self._eligible_instruments(report)):
            if index > 0:
                self._pause()
            self._process_instrument(instrument, report, now)

        self._settle_positions(report, now)
        self._log_status()

        self._state = LoopState.STOPPED if self._stop_event.is_set() else LoopState.IDLE
        return report

    def _pause(self) -> None:
        if self.config.request_delay_sec > 0:
            self._sleep(self.config.request_delay_sec)

    def _roll_day(self, now: datetime) -> None:
        today = now.date()
        if self._current_day is not None and today != self._current_day:
            logger.info(
                "New trading day %s; resetting daily pnl (was %.2f)",
                today.isoformat(),
                self.risk_state.cumulative_daily_pnl_usd,
            )
            self.risk_state.reset_daily()
        self._current_day = today

    def _eligible_instruments(self, report: CycleReport) -> list[Instrument]:
        try:
            markets = self.markets.get_markets()
        except InvariantViolation:
            raise
        except Exception as exc:
            logger.error("Failed to list markets: %s", exc, exc_info=True)
            report.errors.append(f"market listing: {exc}")
            return []

        min_liquidity = self.risk_governor.config.min_market_liquidity_usd
        eligible = [m for m in markets if m.active and m.liquidity_usd >= min_liquidity]
        report.instruments_seen = len(markets)

        logger.info("Found %d markets, %d eligible", len(markets), len(eligible))
        return eligible[: self.config.max_markets_per_cycle]

    def _process_instrument(self, instrument: Instrument, report: CycleReport, now: datetime) -> None:
        symbol = self.symbol_resolver.resolve_instrument(instrument)
        if symbol is None:
            logger.debug("No underlying symbol for market %s; skipping", instrument.slug)
            return

        try:
            self._state = LoopState.FETCHING
            quotes = self.quotes.get_quotes(instrument.id)
            bars = self.history.get_bars(symbol, self.strategy.config.history_bars)
            reference = self._reference_price(symbol)

            self._state = LoopState.SCORING
            evaluation = self.strategy.evaluate(
                instrument.id,
                quotes,
                bars,
                reference,
                market_start_time=instrument.start_time,
                now=now,
            )
            report.analyzed += 1
            self.sink.record(self._analysis_record(instrument, symbol, quotes, bars, reference, evaluation, now))

            if evaluation.rejection == "insufficient_history":
                raise DataUnavailableError(
                    f"Only {len(bars)} bars of {symbol} history available"
                )

            if evaluation.signal is not None:
                report.signals += 1
                self.sink.record(evaluation.signal)
                self._handle_signal(evaluation.signal, quotes, report, now)

        except InvariantViolation:
            raise
        except DataUnavailableError as exc:
            logger.warning("Skipping market %s: %s", instrument.id, exc)
        except Exception as exc:
            logger.error("Error processing market %s: %s", instrument.id, exc, exc_info=True)
            report.errors.append(f"{instrument.id}: {exc}")

    def _reference_price(self, symbol: str) -> ReferencePrice | None:
        try:
            return self.reference.get_price(symbol)
        except InvariantViolation:
            raise
        except Exception as exc:
            logger.warning("Reference price unavailable for %s, using bars only: %s", symbol, exc)
            return None

    def _handle_signal(self, signal: Signal, quotes: QuotePair, report: CycleReport, now: datetime) -> None:
        self._state = LoopState.RISK_CHECK
        open_positions = self.ledger.all()
        self.risk_state.open_position_count = len(open_positions)

        decision = self.risk_governor.can_open(signal, open_positions, self.risk_state)
        if not decision:
            return

        size = self.risk_governor.adjust(signal, open_positions, self.risk_state)
        price = quotes.for_outcome(signal.direction).probability

        self._state = LoopState.ACTING
        intent = OrderIntent(
            instrument_id=signal.instrument_id,
            direction=signal.direction,
            side="OPEN",
            size_usd=size,
            price=price,
        )

        if not self.trading_enabled:
            logger.info(
                "Data collection mode: would open %s %s size=$%.2f @ %.4f",
                signal.direction,
                signal.instrument_id,
                size,
                price,
            )
            return

        try:
            order_id = self.order_sink.submit(intent)
        except OrderRejectedError as exc:
            logger.error("Failed to place entry order for %s: %s", signal.instrument_id, exc)
            report.errors.append(f"{signal.instrument_id}: entry rejected: {exc}")
            return

        position = Position(
            instrument_id=signal.instrument_id,
            direction=signal.direction,
            size_usd=size,
            entry_price=price,
            mark_price=price,
            opened_at=now,
        )
        self.ledger.upsert(position)
        self.risk_state.open_position_count = len(self.ledger)
        report.opened += 1

        self.sink.record(
            PositionEvent(
                kind="OPENED",
                position=position,
                order_id=order_id,
                timestamp=now,
                reason=signal.reason,
            )
        )

    def _settle_positions(self, report: CycleReport, now: datetime) -> None:
        self._state = LoopState.SETTLING

        for index, position in enumerate(self.ledger.all()):
            if index > 0:
                self._pause()
            try:
                self._settle_position(position, report, now)
            except InvariantViolation:
                raise
            except DataUnavailableError as exc:
                logger.warning("Cannot re-mark position %s: %s", position.instrument_id, exc)
            except Exception as exc:
                logger.error("Error checking exit for %s: %s", position.instrument_id, exc, exc_info=True)
                report.errors.append(f"{position.instrument_id}: exit check: {exc}")

        self.risk_state.open_position_count = len(self.ledger)

    def _settle_position(self, position: Position, report: CycleReport, now: datetime) -> None:
        quotes = self.quotes.get_quotes(position.instrument_id)
        mark = quotes.for_outcome(position.direction).probability
        updated = self.ledger.update_mark(position.instrument_id, mark)

        reason = self.risk_governor.close_reason(updated, self.risk_state)
        if reason is None:
            return

        logger.info(
            "Exit signal for %s (%s): pnl=$%.2f (%.2f%%)",
            updated.instrument_id,
            reason,
            updated.pnl_usd,
            updated.pnl_percent,
        )

        order_id = None
        if self.trading_enabled:
            intent = OrderIntent(
                instrument_id=updated.instrument_id,
                direction=updated.direction,
                side="CLOSE",
                size_usd=updated.size_usd,
                price=mark,
            )
            try:
                order_id = self.order_sink.submit(intent)
            except OrderRejectedError as exc:
                logger.error("Failed to place exit order for %s: %s", updated.instrument_id, exc)
                report.errors.append(f"{updated.instrument_id}: exit rejected: {exc}")
                return

        self.ledger.remove(updated.instrument_id)
        self.risk_state.record_realized(updated.pnl_usd)
        self.risk_state.open_position_count = len(self.ledger)
        report.closed += 1

        self.sink.record(
            PositionEvent(
                kind="CLOSED",
                position=updated,
                order_id=order_id,
                timestamp=now,
                realized_pnl_usd=updated.pnl_usd,
                reason=reason,
            )
        )

    def _analysis_record(
        self,
        instrument: Instrument,
        symbol: str,
        quotes: QuotePair,
        bars: list[PriceBar],
        reference: ReferencePrice | None,
        evaluation: Evaluation,
        now: datetime,
    ) -> AnalysisRecord:
        first_close = bars[0].close if bars else None
        last_close = bars[-1].close if bars else None
        change = None
        if first_close and last_close is not None:
            change = (last_close - first_close) / first_close * 100

        return AnalysisRecord(
            timestamp=now,
            instrument_id=instrument.id,
            slug=instrument.slug,
            question=instrument.question,
            symbol=symbol,
            up_probability=quotes.up.probability,
            down_probability=quotes.down.probability,
            liquidity_usd=instrument.liquidity_usd,
            volume_24h_usd=quotes.up.volume_24h_usd,
            factors=evaluation.factors,
            reference_price=reference.price if reference else None,
            bar_count=len(bars),
            first_close=first_close,
            last_close=last_close,
            price_change_percent=change,
            signal=evaluation.signal,
            market_start_time=instrument.start_time,
            market_end_time=instrument.end_time,
        )

    def _log_status(self) -> None:
        logger.info(
            "Status: positions=%d/%d, open pnl=$%.2f, daily pnl=$%.2f",
            len(self.ledger),
            self.risk_governor.config.max_positions,
            self.ledger.total_pnl_usd(),
            self.risk_state.cumulative_daily_pnl_usd,
        )


__all__ = ["LoopState", "CycleReport", "TradingSessionResult", "TradingLoop"]
