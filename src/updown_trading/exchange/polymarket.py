"""Read-only Polymarket client for 15-minute UP/DOWN markets.

Uses the public gamma market-data API; no credentials or order signing are
needed. Implements MarketSource and QuoteSource.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from updown_trading.core.errors import DataUnavailableError, TransientSourceError
from updown_trading.core.numeric import clamp
from updown_trading.core.types import Instrument, Outcome, Quote, QuotePair

logger = logging.getLogger(__name__)

PERIOD_SECONDS = 15 * 60
UP_LABELS = {"yes", "up", "1"}


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _first_number(payload: dict[str, Any], *keys: str) -> float:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return _to_float(value)
    return 0.0


def _as_list(value: Any) -> list[Any]:
    """Gamma API sometimes encodes arrays as JSON strings."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return []
        return decoded if isinstance(decoded, list) else []
    return []


def _normalize_probability(price: float) -> float:
    if price > 1:
        price = price / 100
    return clamp(price, 0.0, 1.0)


def _outcome_from_label(label: Any) -> Outcome:
    return "UP" if str(label).strip().lower() in UP_LABELS else "DOWN"


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_market(payload: dict[str, Any]) -> Instrument | None:
    """Convert a gamma market payload into an Instrument (None if unusable)."""
    market_id = payload.get("id") or payload.get("market_id") or payload.get("slug")
    question = payload.get("question") or payload.get("title") or ""
    if not market_id or not question:
        return None

    slug = payload.get("slug") or str(market_id)
    end_time = _parse_datetime(
        payload.get("end_date_iso") or payload.get("endDate") or payload.get("resolution_date")
    )
    start_time = end_time - timedelta(seconds=PERIOD_SECONDS) if end_time and "-15m-" in slug else None

    return Instrument(
        id=str(market_id),
        question=question,
        slug=slug,
        liquidity_usd=_first_number(payload, "liquidityNum", "liquidityClob", "liquidity"),
        start_time=start_time,
        end_time=end_time,
        active=not payload.get("closed", False) and payload.get("active") is not False,
    )


def parse_quotes(instrument_id: str, payload: dict[str, Any]) -> QuotePair:
    """Extract UP/DOWN quotes from a gamma market payload.

    Tries, in order: `outcomePrices` with `outcomes`, the `tokens` array, and
    direct price fields. Liquidity and 24h volume are split evenly across
    outcomes.

    Raises:
        DataUnavailableError: If either outcome cannot be priced
    """
    liquidity = _first_number(payload, "liquidityNum", "liquidityClob", "liquidity")
    volume_24h = _first_number(payload, "volume24hr", "volume24hrClob", "volume24h", "volume")

    quotes: dict[Outcome, Quote] = {}

    prices = _as_list(payload.get("outcomePrices"))
    if prices:
        labels = _as_list(payload.get("outcomes")) or ["Yes", "No"]
        share = max(len(labels), 2)
        for index, price in enumerate(prices):
            label = labels[index] if index < len(labels) else ("Yes" if index == 0 else "No")
            outcome = _outcome_from_label(label)
            quotes.setdefault(
                outcome,
                Quote(
                    instrument_id=instrument_id,
                    outcome=outcome,
                    probability=_normalize_probability(_to_float(price)),
                    liquidity_usd=liquidity / share,
                    volume_24h_usd=volume_24h / share,
                ),
            )

    tokens = payload.get("tokens")
    if isinstance(tokens, list):
        tokens = [token for token in tokens if isinstance(token, dict)]
    if not quotes and isinstance(tokens, list) and tokens:
        share = max(len(tokens), 2)
        for token in tokens:
            outcome = _outcome_from_label(token.get("outcome") or token.get("side"))
            price = _first_number(token, "price", "probability", "last_price") or 0.5
            quotes.setdefault(
                outcome,
                Quote(
                    instrument_id=instrument_id,
                    outcome=outcome,
                    probability=_normalize_probability(price),
                    liquidity_usd=liquidity / share,
                    volume_24h_usd=volume_24h / share,
                ),
            )

    if not quotes:
        up_price = _to_float(
            payload.get("yes_price", payload.get("yesPrice", payload.get("probability_yes"))),
            default=-1.0,
        )
        if up_price < 0:
            up_price = _to_float(payload.get("bestAsk") or payload.get("lastTradePrice"), default=-1.0)
        if up_price >= 0:
            up_price = _normalize_probability(up_price)
            down_price = _to_float(
                payload.get("no_price", payload.get("noPrice", payload.get("probability_no"))),
                default=1.0 - up_price,
            )
            for outcome, price in (("UP", up_price), ("DOWN", down_price)):
                quotes[outcome] = Quote(
                    instrument_id=instrument_id,
                    outcome=outcome,
                    probability=_normalize_probability(price),
                    liquidity_usd=liquidity / 2,
                    volume_24h_usd=volume_24h / 2,
                )

    if "UP" not in quotes or "DOWN" not in quotes:
        raise DataUnavailableError(f"Market {instrument_id} is missing an outcome quote")

    return QuotePair(up=quotes["UP"], down=quotes["DOWN"])


class PolymarketClient:
    """Read-only client for the gamma market-data API.

    Attributes:
        base_url: Gamma API base URL
        symbols: Underlying symbols whose 15m up/down markets are probed
        timeout: Request timeout in seconds
        rate_limit_delay: Delay between slug batches
    """

    def __init__(
        self,
        base_url: str = "https://gamma-api.polymarket.com",
        symbols: Sequence[str] = ("btc", "eth", "xrp", "sol", "matic", "link"),
        timeout: int = 10,
        rate_limit_delay: float = 0.2,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.symbols = [s.lower() for s in symbols]
        self.timeout = timeout
        self.rate_limit_delay = rate_limit_delay
        self.session = session or requests.Session()
        self.session.headers.setdefault("Content-Type", "application/json")

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def candidate_slugs(self, now: datetime | None = None) -> list[str]:
        """Slugs for the current, next two and previous two 15-minute periods."""
        now = now or datetime.now(timezone.utc)
        rounded = int(now.timestamp()) // PERIOD_SECONDS * PERIOD_SECONDS
        offsets = [0, 1, 2, -1, -2]
        return [
            f"{symbol}-updown-15m-{rounded + offset * PERIOD_SECONDS}"
            for offset in offsets
            for symbol in self.symbols
        ]

    def get_markets(self, now: datetime | None = None) -> list[Instrument]:
        """Fetch active 15-minute UP/DOWN markets, de-duplicated by id.

        Slugs that fail to load are skipped; a listing where every request
        failed raises TransientSourceError.
        """
        markets: dict[str, Instrument] = {}
        slugs = self.candidate_slugs(now)
        failures = 0
        batch_size = 10

        for start in range(0, len(slugs), batch_size):
            for slug in slugs[start:start + batch_size]:
                try:
                    data = self._get("/markets", params={"slug": slug, "limit": 1})
                except (requests.RequestException, ValueError) as exc:
                    failures += 1
                    logger.debug("Failed to fetch market %s: %s", slug, exc)
                    continue

                for payload in data if isinstance(data, list) else []:
                    instrument = parse_market(payload)
                    if instrument and instrument.active and instrument.id not in markets:
                        markets[instrument.id] = instrument

            if start + batch_size < len(slugs) and self.rate_limit_delay > 0:
                time.sleep(self.rate_limit_delay)

        if slugs and failures == len(slugs):
            raise TransientSourceError("All market listing requests failed")

        logger.info("Found %d active up/down markets", len(markets))
        return list(markets.values())

    def get_quotes(self, instrument_id: str) -> QuotePair:
        try:
            payload = self._get(f"/markets/{instrument_id}")
        except (requests.RequestException, ValueError) as exc:
            raise TransientSourceError(f"Failed to fetch prices for {instrument_id}: {exc}") from exc

        if not isinstance(payload, dict):
            raise DataUnavailableError(f"Unexpected market payload for {instrument_id}")
        return parse_quotes(instrument_id, payload)


__all__ = ["PolymarketClient", "parse_market", "parse_quotes"]
