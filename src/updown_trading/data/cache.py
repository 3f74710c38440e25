"""TTL cache for price-bar history.

The cache is an explicit component owned by whoever wires the trading loop,
so its lifetime, TTL and invalidation are under the caller's control.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from updown_trading.core.types import PriceBar
from updown_trading.exchange.base import HistorySource

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _CacheEntry:
    bars: list[PriceBar]
    stored_at: float


class BarCache:
    """Bars keyed by (symbol, count) that expire after `ttl_seconds`.

    Args:
        ttl_seconds: Entry lifetime; 0 disables caching
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, int], _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, symbol: str, count: int) -> list[PriceBar] | None:
        """Return cached bars if present and fresh, else None (expired entries are dropped)."""
        key = (symbol.upper(), count)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return list(entry.bars)

    def put(self, symbol: str, count: int, bars: list[PriceBar]) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[(symbol.upper(), count)] = _CacheEntry(list(bars), self._clock())

    def invalidate(self, symbol: str | None = None) -> int:
        """Drop entries for one symbol, or every entry when symbol is None.

        Returns:
            Number of entries removed
        """
        if symbol is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed

        keys = [key for key in self._entries if key[0] == symbol.upper()]
        for key in keys:
            del self._entries[key]
        return len(keys)


class CachedHistorySource:
    """HistorySource decorator that serves repeated requests from a BarCache.

    Empty results are not cached so a temporarily unavailable feed is
    retried on the next call.
    """

    def __init__(self, source: HistorySource, cache: BarCache) -> None:
        self.source = source
        self.cache = cache

    def get_bars(self, symbol: str, count: int) -> list[PriceBar]:
        cached = self.cache.get(symbol, count)
        if cached is not None:
            logger.debug("History cache hit for %s (%d bars)", symbol, count)
            return cached

        bars = self.source.get_bars(symbol, count)
        if bars:
            self.cache.put(symbol, count, bars)
        return bars


__all__ = ["BarCache", "CachedHistorySource"]
