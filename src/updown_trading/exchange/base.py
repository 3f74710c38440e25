"""Collaborator protocols consumed and produced by the trading loop.

This module defines the interfaces the decision core talks to. Concrete
implementations live next to it (prediction-market client, ccxt sources,
reference feed client, paper order sink) and can be swapped for in-memory
fakes in tests.
"""

from __future__ import annotations

from typing import Protocol

from updown_trading.core.types import (
    AnalysisRecord,
    Instrument,
    OrderIntent,
    PositionEvent,
    PriceBar,
    QuotePair,
    ReferencePrice,
    Signal,
)

ObservableEvent = Signal | PositionEvent | AnalysisRecord


class MarketSource(Protocol):
    """Lists the instruments that may be traded this cycle."""

    def get_markets(self) -> list[Instrument]:
        """Return currently listed instruments.

        Raises:
            TransientSourceError: If the listing cannot be fetched
        """
        ...


class QuoteSource(Protocol):
    """Provides the current UP/DOWN quotes for an instrument."""

    def get_quotes(self, instrument_id: str) -> QuotePair:
        """Return both outcome quotes.

        Raises:
            DataUnavailableError: If either outcome quote is missing
            TransientSourceError: If the request fails
        """
        ...


class HistorySource(Protocol):
    """Provides price bars of an underlying asset."""

    def get_bars(self, symbol: str, count: int) -> list[PriceBar]:
        """Return up to `count` bars, oldest first (may return fewer)."""
        ...


class ReferencePriceSource(Protocol):
    """Provides a trusted current price of an underlying asset."""

    def get_price(self, symbol: str) -> ReferencePrice | None:
        """Return the current reference price, or None if unavailable."""
        ...


class OrderSink(Protocol):
    """Executes order intents; the core does not retry failures."""

    def submit(self, intent: OrderIntent) -> str:
        """Submit an order and return its id.

        Raises:
            OrderRejectedError: If the order fails
        """
        ...


class ObservabilitySink(Protocol):
    """Receives signals, lifecycle events and analysis records for audit."""

    def record(self, event: ObservableEvent) -> None:
        ...


__all__ = [
    "ObservableEvent",
    "MarketSource",
    "QuoteSource",
    "HistorySource",
    "ReferencePriceSource",
    "OrderSink",
    "ObservabilitySink",
]
