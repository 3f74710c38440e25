"""Chainlink reference price feeds over HTTP, plus source fallback composition."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

import requests

from updown_trading.core.types import ReferencePrice
from updown_trading.exchange.base import ReferencePriceSource

logger = logging.getLogger(__name__)

PRICE_FEEDS: dict[str, str] = {
    "BTC": "btc-usd",
    "ETH": "eth-usd",
    "SOL": "sol-usd",
    "XRP": "xrp-usd",
    "DOGE": "doge-usd",
    "MATIC": "matic-usd",
    "AVAX": "avax-usd",
    "LINK": "link-usd",
    "ADA": "ada-usd",
    "DOT": "dot-usd",
}


class ChainlinkFeedClient:
    """Reads current prices from Chainlink feed endpoints.

    Endpoint templates are tried in order; the first positive price wins.
    Any failure yields None so callers can fall back to other sources.
    """

    def __init__(
        self,
        feed_urls: Sequence[str] = (
            "https://data.chain.link/v1/feeds/{feed}",
            "https://api.chain.link/v1/feeds/{feed}",
        ),
        timeout: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.feed_urls = list(feed_urls)
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_price(self, symbol: str) -> ReferencePrice | None:
        feed = PRICE_FEEDS.get(symbol.upper())
        if feed is None:
            return None

        for template in self.feed_urls:
            url = template.format(feed=feed)
            try:
                response = self.session.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except (requests.RequestException, ValueError) as exc:
                logger.debug("Chainlink feed %s failed: %s", url, exc)
                continue

            if not isinstance(data, dict):
                continue
            nested = data.get("data") if isinstance(data.get("data"), dict) else {}
            raw = data.get("price") or data.get("value") or nested.get("price")
            try:
                price = float(raw)
            except (TypeError, ValueError):
                continue

            if price > 0:
                return ReferencePrice(
                    symbol=symbol.upper(),
                    price=price,
                    observed_at=datetime.now(timezone.utc),
                    source_tag="chainlink-feeds",
                )

        return None


class FallbackReferencePriceSource:
    """Returns the first available price among several sources."""

    def __init__(self, sources: Sequence[ReferencePriceSource]) -> None:
        self.sources = list(sources)

    def get_price(self, symbol: str) -> ReferencePrice | None:
        for source in self.sources:
            try:
                price = source.get_price(symbol)
            except Exception as exc:
                logger.warning(
                    "Reference source %s failed for %s: %s", type(source).__name__, symbol, exc
                )
                continue
            if price is not None:
                return price
        return None


__all__ = ["PRICE_FEEDS", "ChainlinkFeedClient", "FallbackReferencePriceSource"]
