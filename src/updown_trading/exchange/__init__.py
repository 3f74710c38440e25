"""Market data and execution infrastructure layer.

This package provides the collaborator protocols used by the trading loop
and their implementations: the read-only prediction-market client, exchange
history/reference sources, and the paper order sink.
"""

from updown_trading.exchange.base import (
    HistorySource,
    MarketSource,
    ObservabilitySink,
    ObservableEvent,
    OrderSink,
    QuoteSource,
    ReferencePriceSource,
)
from updown_trading.exchange.chainlink import ChainlinkFeedClient, FallbackReferencePriceSource
from updown_trading.exchange.paper import PaperOrderSink
from updown_trading.exchange.polymarket import PolymarketClient

__all__ = [
    "MarketSource",
    "QuoteSource",
    "HistorySource",
    "ReferencePriceSource",
    "OrderSink",
    "ObservabilitySink",
    "ObservableEvent",
    "PolymarketClient",
    "ChainlinkFeedClient",
    "FallbackReferencePriceSource",
    "PaperOrderSink",
]
