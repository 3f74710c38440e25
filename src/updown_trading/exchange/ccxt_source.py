"""Price history and reference prices from a crypto exchange via ccxt.

Only public market-data endpoints are used, so no API keys are required.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

try:
    import ccxt
except ImportError:
    raise ImportError(
        "ccxt library is required for exchange market data. "
        "Install it with: pip install ccxt"
    )

from updown_trading.core.errors import TransientSourceError
from updown_trading.core.types import PriceBar, ReferencePrice

logger = logging.getLogger(__name__)


def create_exchange(exchange_id: str = "binance", timeout_seconds: int = 10) -> Any:
    """Create a public (unauthenticated) ccxt exchange instance.

    Raises:
        ValueError: If ccxt does not know the exchange id
    """
    try:
        exchange_class = getattr(ccxt, exchange_id)
    except AttributeError:
        raise ValueError(f"Unknown ccxt exchange: {exchange_id}")

    return exchange_class(
        {
            "enableRateLimit": True,
            "timeout": timeout_seconds * 1000,  # ccxt uses milliseconds
        }
    )


class _CcxtMarketData:
    def __init__(self, exchange: Any, quote_currency: str = "USDT") -> None:
        self.exchange = exchange
        self.quote_currency = quote_currency.upper()

    def market_symbol(self, symbol: str) -> str:
        return f"{symbol.upper()}/{self.quote_currency}"


class CcxtHistorySource(_CcxtMarketData):
    """HistorySource backed by ccxt `fetch_ohlcv`."""

    def __init__(self, exchange: Any, timeframe: str = "15m", quote_currency: str = "USDT") -> None:
        super().__init__(exchange, quote_currency)
        self.timeframe = timeframe

    def get_bars(self, symbol: str, count: int) -> list[PriceBar]:
        """Fetch the latest `count` bars for a symbol, oldest first.

        Raises:
            TransientSourceError: If the exchange request fails
        """
        market = self.market_symbol(symbol)
        try:
            candles = self.exchange.fetch_ohlcv(market, self.timeframe, limit=count)
        except ccxt.BaseError as exc:
            raise TransientSourceError(f"Failed to fetch {self.timeframe} bars for {market}: {exc}") from exc

        bars = [
            PriceBar(
                timestamp=datetime.fromtimestamp(candle[0] / 1000, tz=timezone.utc),
                open=float(candle[1]),
                high=float(candle[2]),
                low=float(candle[3]),
                close=float(candle[4]),
                volume=float(candle[5]) if len(candle) > 5 and candle[5] is not None else None,
            )
            for candle in candles or []
        ]
        bars.sort(key=lambda bar: bar.timestamp)

        logger.debug("Fetched %d %s bars for %s", len(bars), self.timeframe, market)
        return bars


class CcxtReferencePriceSource(_CcxtMarketData):
    """ReferencePriceSource backed by the exchange's last traded price."""

    def get_price(self, symbol: str) -> ReferencePrice | None:
        market = self.market_symbol(symbol)
        try:
            ticker = self.exchange.fetch_ticker(market)
        except ccxt.BaseError as exc:
            logger.warning("Reference price unavailable for %s: %s", market, exc)
            return None

        price = ticker.get("last") or ticker.get("close")
        if not price or price <= 0:
            return None

        timestamp = ticker.get("timestamp")
        observed_at = (
            datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
            if timestamp
            else datetime.now(timezone.utc)
        )
        return ReferencePrice(
            symbol=symbol.upper(),
            price=float(price),
            observed_at=observed_at,
            source_tag=f"ccxt-{self.exchange.id}",
        )


__all__ = ["create_exchange", "CcxtHistorySource", "CcxtReferencePriceSource"]
