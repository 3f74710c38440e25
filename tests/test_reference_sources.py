"""Tests for reference price and history sources (no network calls)."""

from datetime import datetime, timezone

import ccxt
import pytest
import requests

from updown_trading.core.errors import TransientSourceError
from updown_trading.core.types import ReferencePrice
from updown_trading.exchange.ccxt_source import CcxtHistorySource, CcxtReferencePriceSource
from updown_trading.exchange.chainlink import ChainlinkFeedClient, FallbackReferencePriceSource


class FakeResponse:
    def __init__(self, data, status=200):
        self.data = data
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.data


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.urls = []

    def get(self, url, headers=None, timeout=None):
        self.urls.append(url)
        return self.responses.pop(0)


class FakeExchange:
    id = "fakex"

    def __init__(self, candles=None, ticker=None, error=None):
        self.candles = candles or []
        self.ticker = ticker or {}
        self.error = error
        self.requests = []

    def fetch_ohlcv(self, symbol, timeframe, limit=None):
        self.requests.append((symbol, timeframe, limit))
        if self.error:
            raise self.error
        return self.candles

    def fetch_ticker(self, symbol):
        if self.error:
            raise self.error
        return self.ticker


def test_chainlink_falls_through_templates():
    session = FakeSession([FakeResponse({}, status=404), FakeResponse({"data": {"price": "65000.5"}})])
    client = ChainlinkFeedClient(["https://a/{feed}", "https://b/{feed}"], session=session)

    price = client.get_price("btc")

    assert price.price == 65000.5
    assert price.symbol == "BTC"
    assert price.source_tag == "chainlink-feeds"
    assert session.urls == ["https://a/btc-usd", "https://b/btc-usd"]


def test_chainlink_unknown_symbol_or_failure():
    session = FakeSession([FakeResponse({"price": 0}), FakeResponse({"value": "n/a"})])
    client = ChainlinkFeedClient(["https://a/{feed}", "https://b/{feed}"], session=session)

    assert client.get_price("btc") is None
    assert client.get_price("unknowncoin") is None


def test_fallback_source_order():
    observed = datetime(2024, 1, 1, tzinfo=timezone.utc)

    class Failing:
        def get_price(self, symbol):
            raise TransientSourceError("down")

    class Empty:
        def get_price(self, symbol):
            return None

    class Fixed:
        def get_price(self, symbol):
            return ReferencePrice(symbol, 1.5, observed, "fixed")

    source = FallbackReferencePriceSource([Failing(), Empty(), Fixed()])
    assert source.get_price("xrp").price == 1.5
    assert FallbackReferencePriceSource([Empty()]).get_price("xrp") is None


def test_ccxt_history_sorted_oldest_first():
    candles = [
        [1_700_000_900_000, 101, 102, 100, 101.5, 12.0],
        [1_700_000_000_000, 100, 101, 99, 100.5, 10.0],
    ]
    exchange = FakeExchange(candles=candles)

    bars = CcxtHistorySource(exchange, timeframe="15m").get_bars("btc", 50)

    assert exchange.requests == [("BTC/USDT", "15m", 50)]
    assert [bar.close for bar in bars] == [100.5, 101.5]
    assert bars[0].volume == 10.0
    assert bars[0].timestamp.tzinfo is timezone.utc


def test_ccxt_history_errors_are_transient():
    exchange = FakeExchange(error=ccxt.NetworkError("timeout"))

    with pytest.raises(TransientSourceError):
        CcxtHistorySource(exchange).get_bars("eth", 10)


def test_ccxt_reference_price():
    exchange = FakeExchange(ticker={"last": 3200.0, "timestamp": 1_700_000_000_000})

    price = CcxtReferencePriceSource(exchange).get_price("eth")

    assert price.price == 3200.0
    assert price.source_tag == "ccxt-fakex"
    assert price.observed_at == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


def test_ccxt_reference_unavailable():
    assert CcxtReferencePriceSource(FakeExchange(ticker={"last": 0})).get_price("eth") is None
    assert CcxtReferencePriceSource(FakeExchange(error=ccxt.ExchangeError("bad symbol"))).get_price("eth") is None
