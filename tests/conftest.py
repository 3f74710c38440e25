"""Pytest configuration shared across the suite."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

import pytest

from updown_trading.core.types import (
    Instrument,
    PriceBar,
    Quote,
    QuotePair,
    ReferencePrice,
)

NOW = datetime(2024, 11, 14, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Fake collaborators (no network calls)
# ============================================================================


class FakeMarketSource:
    """Returns a fixed list of instruments, or raises a configured error."""

    def __init__(self, instruments: Sequence[Instrument] = ()) -> None:
        self.instruments = list(instruments)
        self.error: Exception | None = None
        self.calls = 0

    def get_markets(self) -> list[Instrument]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.instruments)


class FakeQuoteSource:
    """Quotes per instrument id; an Exception value is raised instead of returned."""

    def __init__(self, quotes: dict[str, QuotePair | Exception] | None = None) -> None:
        self.quotes = dict(quotes or {})
        self.requested: list[str] = []

    def get_quotes(self, instrument_id: str) -> QuotePair:
        self.requested.append(instrument_id)
        value = self.quotes[instrument_id]
        if isinstance(value, Exception):
            raise value
        return value


class FakeHistorySource:
    """Bars per symbol; an Exception value is raised instead of returned."""

    def __init__(self, bars: dict[str, list[PriceBar] | Exception] | None = None) -> None:
        self.bars = dict(bars or {})
        self.requests: list[tuple[str, int]] = []

    def get_bars(self, symbol: str, count: int) -> list[PriceBar]:
        self.requests.append((symbol, count))
        value = self.bars.get(symbol, [])
        if isinstance(value, Exception):
            raise value
        return list(value)[-count:]


class FakeReferenceSource:
    def __init__(self, prices: dict[str, float] | None = None, error: Exception | None = None) -> None:
        self.prices = dict(prices or {})
        self.error = error

    def get_price(self, symbol: str) -> ReferencePrice | None:
        if self.error is not None:
            raise self.error
        price = self.prices.get(symbol)
        if price is None:
            return None
        return ReferencePrice(symbol=symbol.upper(), price=price, observed_at=NOW, source_tag="fake")


class RecordingSink:
    """Collects every recorded event; optional hook runs after each record."""

    def __init__(self) -> None:
        self.events: list = []
        self.on_record: Callable[[object], None] | None = None

    def record(self, event) -> None:
        self.events.append(event)
        if self.on_record is not None:
            self.on_record(event)

    def of_type(self, cls: type) -> list:
        return [event for event in self.events if isinstance(event, cls)]


# ============================================================================
# Builders
# ============================================================================


def build_bars(
    closes: Sequence[float],
    volume: float | None = None,
    spread: float = 0.0,
    end: datetime = NOW,
    step: timedelta = timedelta(minutes=15),
) -> list[PriceBar]:
    """Bars oldest first with high/low at close +/- spread."""
    start = end - step * (len(closes) - 1)
    return [
        PriceBar(
            timestamp=start + step * i,
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=volume,
        )
        for i, close in enumerate(closes)
    ]


def build_quotes(
    instrument_id: str = "m1",
    up: float = 0.45,
    down: float | None = None,
    liquidity: float = 10_000.0,
    volume_24h: float = 0.0,
) -> QuotePair:
    down = 1.0 - up if down is None else down
    return QuotePair(
        up=Quote(instrument_id, "UP", up, liquidity, volume_24h),
        down=Quote(instrument_id, "DOWN", down, liquidity, volume_24h),
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_bars() -> Callable[..., list[PriceBar]]:
    return build_bars


@pytest.fixture
def make_quotes() -> Callable[..., QuotePair]:
    return build_quotes


@pytest.fixture
def flat_bars() -> list[PriceBar]:
    """50 bars with no price change."""
    return build_bars([100.0] * 50)


@pytest.fixture
def rising_bars() -> list[PriceBar]:
    """50 bars, flat then rising 2% over the last few bars."""
    return build_bars([100.0] * 45 + [100.0, 100.5, 101.0, 101.5, 102.0], volume=10.0)


@pytest.fixture
def btc_instrument() -> Instrument:
    return Instrument(
        id="m1",
        question="Bitcoin Up or Down - November 14, 12:00PM-12:15PM ET",
        slug="btc-updown-15m-1731585600",
        liquidity_usd=20_000.0,
    )
